"""
Supabase record provider.

Reads the race tables (teams, stages, hotels, incidents, documents). Rows
are plain dicts; nothing beyond presence checks is validated here.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import create_client

from grancamino.core.exceptions import ProviderUnavailableError

logger = logging.getLogger(__name__)

PROVIDER_NAME = "supabase"

HOTEL_COLUMNS = (
    "stage_id, hotel_name, city, address, "
    "stages(stage_number, date, start_location, finish_location, distance_km)"
)


@dataclass
class RecordSnapshot:
    """Rows for one request. ``None`` marks a table that could not be read."""
    hotels: Optional[List[Dict[str, Any]]] = None
    stages: Optional[List[Dict[str, Any]]] = None
    incidents: Optional[List[Dict[str, Any]]] = None
    documents: Optional[List[Dict[str, Any]]] = None


class RecordProvider:
    available = True

    def __init__(
        self,
        client,
        base_url: str,
        storage_bucket: str = "race-files",
        url_overrides: Optional[Dict[str, str]] = None
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.storage_bucket = storage_bucket
        self.url_overrides = url_overrides or {}

    @classmethod
    def from_settings(cls, settings) -> "RecordProvider":
        if not settings.supabase_enabled:
            return UnavailableRecordProvider("SUPABASE_URL/SUPABASE_ANON_KEY not configured")
        try:
            client = create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
        except Exception as e:
            # supabase-py validates the URL and key format eagerly
            logger.error(f"Supabase client init failed: {e}")
            return UnavailableRecordProvider(str(e))
        return cls(
            client,
            base_url=settings.SUPABASE_URL,
            storage_bucket=settings.SUPABASE_STORAGE_BUCKET,
            url_overrides=settings.DOCUMENT_URL_OVERRIDES,
        )

    def _execute(self, table: str, query) -> List[Dict[str, Any]]:
        try:
            return query.execute().data or []
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Error fetching {table}: {e}")
            raise ProviderUnavailableError(PROVIDER_NAME, f"{table}: {e}") from e

    def find_team_id(self, code: str) -> Optional[Any]:
        rows = self._execute(
            "teams",
            self.client.table("teams").select("id").eq("code", code).limit(1)
        )
        return rows[0].get("id") if rows else None

    def fetch_hotels(self, team_id) -> List[Dict[str, Any]]:
        return self._execute(
            "hotels",
            self.client.table("hotels").select(HOTEL_COLUMNS).eq("team_id", team_id).order("stage_id")
        )

    def fetch_stages(self) -> List[Dict[str, Any]]:
        return self._execute(
            "stages",
            self.client.table("stages").select("*").order("stage_number")
        )

    def fetch_incidents(self, limit: int = 10) -> List[Dict[str, Any]]:
        return self._execute(
            "incidents",
            self.client.table("incidents")
            .select("*, stages(stage_number, date)")
            .order("created_at", desc=True)
            .limit(limit)
        )

    def fetch_documents(self) -> List[Dict[str, Any]]:
        docs = self._execute("documents", self.client.table("documents").select("*"))
        return [{**doc, "url": self.document_url(doc)} for doc in docs]

    def document_url(self, doc: Dict[str, Any]) -> str:
        """Named override first, else the public storage URL of ``storage_path``."""
        name = doc.get("name") or ""
        if name in self.url_overrides:
            return self.url_overrides[name]
        path = str(doc.get("storage_path") or "")
        if path and not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}/storage/v1/object/public/{self.storage_bucket}{path}"


class UnavailableRecordProvider:
    """Stand-in used when Supabase is not configured; every call fails soft."""

    available = False

    def __init__(self, reason: str):
        self.reason = reason
        logger.warning(f"Supabase disabled: {reason}")

    def _fail(self, *args, **kwargs):
        raise ProviderUnavailableError(PROVIDER_NAME, self.reason)

    find_team_id = _fail
    fetch_hotels = _fail
    fetch_stages = _fail
    fetch_incidents = _fail
    fetch_documents = _fail


def load_snapshot(provider, team_id=None, incidents_limit: int = 10) -> RecordSnapshot:
    """
    Read every table independently; a failing table becomes ``None`` and the
    others are still returned. Hotels are only read for a resolved team.
    """
    snapshot = RecordSnapshot(hotels=[] if team_id is None else None)

    fetchers = {
        "stages": provider.fetch_stages,
        "incidents": lambda: provider.fetch_incidents(incidents_limit),
        "documents": provider.fetch_documents,
    }
    if team_id is not None:
        fetchers["hotels"] = lambda: provider.fetch_hotels(team_id)

    for field_name, fetch in fetchers.items():
        try:
            setattr(snapshot, field_name, fetch())
        except ProviderUnavailableError as e:
            logger.warning(f"Record set {field_name} unavailable: {e}")

    return snapshot
