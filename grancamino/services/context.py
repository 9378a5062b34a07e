"""
Context Assembler

Serializes database rows and decoded files into the bounded text block that
is appended to the system prompt. Files that could not be decoded still get
a header with an "unavailable" marker so the model can say the data is
missing instead of guessing.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from grancamino.core.constants import CONTEXT_LABELS, MONTH_ABBREVIATIONS, Language
from grancamino.services.classifier import FileDescriptor, FileKind
from grancamino.services.records import RecordSnapshot
from grancamino.services.tracks import Track

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileContent:
    """One listed file and its decoded content, or the reason it has none."""
    descriptor: FileDescriptor
    kind: FileKind
    content: Any = None
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.content is not None


def serialize_content(content: Any) -> str:
    if isinstance(content, Track):
        return json.dumps(content.to_summary(), ensure_ascii=False)
    if isinstance(content, str):
        return content
    return json.dumps(content, ensure_ascii=False, default=str)


def format_stage_date(value: Any) -> str:
    """'2025-02-26' -> '26 feb'; anything unparseable is returned as text."""
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
        except ValueError:
            return str(value or "")
    return f"{parsed.day:02d} {MONTH_ABBREVIATIONS[parsed.month - 1]}"


def _stage_of(row: Dict[str, Any]) -> Dict[str, Any]:
    return row.get("stages") or {}


class ContextAssembler:
    def __init__(
        self,
        max_file_chars: int = 50000,
        truncated_chars: int = 5000,
        max_context_chars: int = 150000
    ):
        self.max_file_chars = max_file_chars
        self.truncated_chars = truncated_chars
        self.max_context_chars = max_context_chars

    @classmethod
    def from_settings(cls, settings) -> "ContextAssembler":
        return cls(
            max_file_chars=settings.MAX_FILE_CHARS,
            truncated_chars=settings.TRUNCATED_FILE_CHARS,
            max_context_chars=settings.MAX_CONTEXT_CHARS,
        )

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    @staticmethod
    def _file_header(item: FileContent) -> str:
        return f"#### {item.descriptor.name} ({item.kind.value})\n"

    def file_block(self, item: FileContent, language: Language = Language.SPANISH) -> str:
        labels = CONTEXT_LABELS[language]
        header = self._file_header(item)

        if not item.available:
            reason = item.error or "unsupported"
            return header + labels["file_unavailable"].format(reason=reason) + "\n"

        text = serialize_content(item.content)
        if len(text) > self.max_file_chars:
            logger.info(
                f"Truncating {item.descriptor.name}: {len(text)} chars -> {self.truncated_chars}"
            )
            text = text[:self.truncated_chars] + "\n" + labels["truncated"]

        return header + text + "\n"

    def assemble_files(
        self,
        items: Sequence[FileContent],
        language: Language = Language.SPANISH,
        budget: Optional[int] = None
    ) -> str:
        """File blocks in listing order, within ``budget`` characters."""
        if not items:
            return ""

        labels = CONTEXT_LABELS[language]
        remaining = self.max_context_chars if budget is None else budget
        parts: List[str] = [labels["files_header"]]
        remaining -= len(parts[0])

        for item in items:
            block = self.file_block(item, language)
            if len(block) > remaining:
                block = self._file_header(item) + labels["omitted"] + "\n"
            parts.append(block)
            remaining -= len(block)

        return "".join(parts)

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def assemble_records(self, snapshot: RecordSnapshot, language: Language = Language.SPANISH) -> str:
        t = CONTEXT_LABELS[language]
        stage = t["stage"]
        parts: List[str] = []

        def section(header: str, rows: Optional[List[Dict]], render) -> None:
            if rows is None:
                parts.append(header + t["unavailable"] + "\n")
            elif rows:
                parts.append(header + "".join(render(r) for r in rows))

        section(
            t["hotels_header"], snapshot.hotels,
            lambda h: (
                f"- {stage} {_stage_of(h).get('stage_number', '?')} "
                f"({format_stage_date(_stage_of(h).get('date'))}): "
                f"{h.get('hotel_name', '')}, {h.get('city', '')}\n"
            ),
        )
        section(
            t["stages_header"], snapshot.stages,
            lambda s: (
                f"- {stage} {s.get('stage_number', '?')} ({format_stage_date(s.get('date'))}): "
                f"{s.get('start_location', '')} → {s.get('finish_location', '')} "
                f"({s.get('distance_km', '?')}km)\n"
            ),
        )
        section(
            t["incidents_header"], snapshot.incidents,
            lambda i: f"- {stage} {_stage_of(i).get('stage_number', '?')}: {i.get('description', '')}\n",
        )
        section(
            t["documents_header"], snapshot.documents,
            lambda d: f"- {d.get('name', '')}: {d.get('url', '')}\n",
        )

        return "".join(parts)

    # -------------------------------------------------------------------------
    # Whole block
    # -------------------------------------------------------------------------

    def assemble(
        self,
        snapshot: Optional[RecordSnapshot],
        files: Sequence[FileContent],
        language: Language = Language.SPANISH
    ) -> str:
        context = CONTEXT_LABELS[language]["data_header"]
        if snapshot is not None:
            context += self.assemble_records(snapshot, language)
        context += self.assemble_files(files, language, budget=self.max_context_chars - len(context))
        return context
