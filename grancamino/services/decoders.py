"""
File decoders.

Turn the bytes of a classified Drive file into something the context
assembler can serialize: sheet rows, plain text or a parsed Track.
"""

import io
import logging
from typing import Any, Callable, Dict, List

import pandas as pd
from docx import Document
from pypdf import PdfReader

from grancamino.core.constants import GOOGLE_DOC_EXPORT_TYPE
from grancamino.core.exceptions import DecodeUnsupportedError
from grancamino.services.classifier import FileDescriptor, FileKind
from grancamino.services.tracks import TrackFormat, parse_track

logger = logging.getLogger(__name__)


def decode_spreadsheet(data: bytes) -> Dict[str, List[Dict[str, str]]]:
    """Every sheet of an Excel workbook as a list of row dicts."""
    sheets = pd.read_excel(io.BytesIO(data), sheet_name=None)

    decoded = {}
    for name, df in sheets.items():
        df = df.dropna(how="all")
        if df.empty:
            continue
        decoded[str(name)] = df.fillna("").astype(str).to_dict(orient="records")
    return decoded


def decode_pdf(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages = [(page.extract_text() or "").strip() for page in reader.pages]
    return "\n\n".join(p for p in pages if p)


def decode_word(data: bytes) -> str:
    """Paragraphs, then table rows with cells joined by ``|``."""
    doc = Document(io.BytesIO(data))
    lines = [p.text.strip() for p in doc.paragraphs if p.text.strip()]

    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                lines.append(" | ".join(cells))

    return "\n".join(lines)


def decode_text(data: bytes) -> str:
    return data.decode("utf-8-sig", errors="replace").strip()


class FileDecoder:
    """Fetches a file from the provider and decodes it according to its kind. Blocking."""

    def __init__(self, provider, strict_tracks: bool = False):
        self.provider = provider
        self.strict_tracks = strict_tracks
        self._byte_decoders: Dict[FileKind, Callable[[bytes], Any]] = {
            FileKind.SPREADSHEET: decode_spreadsheet,
            FileKind.WORD: decode_word,
            FileKind.PDF: decode_pdf,
            FileKind.TRACK_GPX: lambda data: parse_track(data, TrackFormat.GPX, self.strict_tracks),
            FileKind.TRACK_KML: lambda data: parse_track(data, TrackFormat.KML, self.strict_tracks),
        }

    def decode(self, descriptor: FileDescriptor, kind: FileKind) -> Any:
        if kind == FileKind.GOOGLE_SHEET:
            return self.provider.read_google_sheet(descriptor.id)

        if kind == FileKind.DOCUMENT:
            return decode_text(self.provider.export_file(descriptor.id, GOOGLE_DOC_EXPORT_TYPE))

        decoder = self._byte_decoders.get(kind)
        if decoder is None:
            raise DecodeUnsupportedError(kind.value, descriptor.name)

        return decoder(self.provider.get_file_bytes(descriptor.id))
