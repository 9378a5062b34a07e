"""
File Classification

Maps a Drive file descriptor to exactly one decoder kind. Rules are checked
in order and the first match wins; Google-native media types come before the
generic "spreadsheet" substring because a Google Sheet's media type contains
it too.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class FileKind(str, Enum):
    SPREADSHEET = "spreadsheet"
    GOOGLE_SHEET = "google-sheet"
    DOCUMENT = "document"
    WORD = "word"
    PDF = "pdf"
    TRACK_GPX = "track-gpx"
    TRACK_KML = "track-kml"
    UNKNOWN = "unknown"

    @property
    def is_track(self) -> bool:
        return self in (FileKind.TRACK_GPX, FileKind.TRACK_KML)


@dataclass(frozen=True)
class FileDescriptor:
    """A file as listed by the file provider. Read-only."""
    id: str
    name: str
    media_type: str = ""
    size_bytes: Optional[int] = None
    last_modified: Optional[datetime] = None

    @classmethod
    def from_drive(cls, item: dict) -> "FileDescriptor":
        """Build from a Drive v3 ``files`` resource."""
        size = item.get("size")
        modified = item.get("modifiedTime")
        return cls(
            id=item["id"],
            name=item.get("name", ""),
            media_type=item.get("mimeType", ""),
            size_bytes=int(size) if size else None,
            last_modified=datetime.fromisoformat(modified.replace("Z", "+00:00")) if modified else None,
        )

    @property
    def version_tag(self) -> str:
        """Changes whenever the file changes; part of the content cache key."""
        return self.last_modified.isoformat() if self.last_modified else "-"


Rule = Tuple[FileKind, Callable[[str, str], bool]]

# (kind, predicate(media_type, lowercase name)); order is significant
CLASSIFICATION_RULES: List[Rule] = [
    (FileKind.GOOGLE_SHEET, lambda mt, n: "google-apps.spreadsheet" in mt),
    (FileKind.SPREADSHEET, lambda mt, n: "spreadsheet" in mt or n.endswith((".xlsx", ".xls"))),
    (FileKind.DOCUMENT, lambda mt, n: "google-apps.document" in mt),
    (FileKind.WORD, lambda mt, n: "wordprocessingml" in mt or n.endswith(".docx")),
    (FileKind.PDF, lambda mt, n: "pdf" in mt or n.endswith(".pdf")),
    (FileKind.TRACK_GPX, lambda mt, n: n.endswith(".gpx")),
    (FileKind.TRACK_KML, lambda mt, n: n.endswith((".kml", ".kmz"))),
]


def classify(descriptor: FileDescriptor) -> FileKind:
    media_type = (descriptor.media_type or "").lower()
    name = (descriptor.name or "").strip().lower()

    for kind, matches in CLASSIFICATION_RULES:
        if matches(media_type, name):
            return kind

    logger.debug(f"Unclassified file {descriptor.name!r} ({descriptor.media_type})")
    return FileKind.UNKNOWN
