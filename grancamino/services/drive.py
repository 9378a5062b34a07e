"""
Google Drive file provider.

Lists the race folder, downloads binary files, exports Google-native files
and reads Google Sheets through gspread. All calls are blocking; callers run
them in a worker thread.
"""

import json
import logging
import os
from typing import Dict, List, Optional

import gspread
import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2.service_account import Credentials

from grancamino.core.constants import DRIVE_API_URL, DRIVE_FILE_FIELDS, GOOGLE_SCOPES
from grancamino.core.exceptions import ProviderUnavailableError
from grancamino.services.classifier import FileDescriptor

logger = logging.getLogger(__name__)

PROVIDER_NAME = "google-drive"
REQUEST_TIMEOUT_SECONDS = 30


def load_google_credentials(settings) -> Optional[Credentials]:
    """Service account credentials from GOOGLE_CREDS_JSON or GOOGLE_CREDS_FILE."""
    creds = None

    # Option 1: JSON in the environment (serverless deployments)
    creds_json = settings.GOOGLE_CREDS_JSON or os.environ.get("GOOGLE_CREDS_JSON")
    if creds_json:
        try:
            creds = Credentials.from_service_account_info(json.loads(creds_json), scopes=GOOGLE_SCOPES)
            logger.info("Using Google credentials from GOOGLE_CREDS_JSON")
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Invalid GOOGLE_CREDS_JSON: {e}")

    # Option 2: file path (local/Docker)
    if not creds and settings.GOOGLE_CREDS_FILE and os.path.exists(settings.GOOGLE_CREDS_FILE):
        creds = Credentials.from_service_account_file(settings.GOOGLE_CREDS_FILE, scopes=GOOGLE_SCOPES)
        logger.info(f"Using Google credentials from file: {settings.GOOGLE_CREDS_FILE}")

    if not creds:
        logger.warning("No Google credentials found (env var or file)")
    return creds


def _normalize_row(row: Dict) -> Dict[str, str]:
    """Lowercase/underscore keys, drop empty cells."""
    return {
        str(k).lower().strip().replace(" ", "_"): str(v).strip()
        for k, v in row.items()
        if k and str(v).strip()
    }


class DriveProvider:
    """Google Drive v3 over an authorized google-auth session."""

    available = True

    def __init__(self, credentials: Credentials, session: Optional[AuthorizedSession] = None):
        self.credentials = credentials
        self._session = session or AuthorizedSession(credentials)
        self._sheets_client = None

    @classmethod
    def from_settings(cls, settings) -> "DriveProvider":
        if not settings.drive_enabled:
            return UnavailableDriveProvider("GOOGLE_DRIVE_FOLDER_ID not configured")
        creds = load_google_credentials(settings)
        if not creds:
            return UnavailableDriveProvider("no Google credentials")
        return cls(creds)

    def _get(self, url: str, params: Optional[Dict] = None) -> requests.Response:
        try:
            response = self._session.get(url, params=params, timeout=REQUEST_TIMEOUT_SECONDS)
            response.raise_for_status()
            return response
        except (requests.RequestException, GoogleAuthError) as e:
            raise ProviderUnavailableError(PROVIDER_NAME, str(e)) from e

    def list_files(self, folder_id: str) -> List[FileDescriptor]:
        """Non-trashed files directly inside ``folder_id``, in the order Drive returns them."""
        files: List[FileDescriptor] = []
        page_token = None

        while True:
            params = {
                "q": f"'{folder_id}' in parents and trashed = false",
                "fields": DRIVE_FILE_FIELDS,
                "pageSize": 100,
                "supportsAllDrives": "true",
                "includeItemsFromAllDrives": "true",
            }
            if page_token:
                params["pageToken"] = page_token

            payload = self._get(DRIVE_API_URL, params).json()
            files.extend(FileDescriptor.from_drive(item) for item in payload.get("files", []))

            page_token = payload.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Listed {len(files)} files in Drive folder {folder_id}")
        return files

    def get_file_bytes(self, file_id: str) -> bytes:
        return self._get(f"{DRIVE_API_URL}/{file_id}", {"alt": "media", "supportsAllDrives": "true"}).content

    def export_file(self, file_id: str, media_type: str) -> bytes:
        """Export a Google-native file (Doc, Sheet) to ``media_type``."""
        return self._get(f"{DRIVE_API_URL}/{file_id}/export", {"mimeType": media_type}).content

    def read_google_sheet(self, file_id: str) -> Dict[str, List[Dict[str, str]]]:
        """All worksheets of a Google Sheet as ``{title: [row, ...]}``."""
        try:
            if self._sheets_client is None:
                self._sheets_client = gspread.authorize(self.credentials)
            spreadsheet = self._sheets_client.open_by_key(file_id)

            sheets = {}
            for worksheet in spreadsheet.worksheets():
                rows = [_normalize_row(r) for r in worksheet.get_all_records()]
                sheets[worksheet.title] = [r for r in rows if r]
            logger.info(f"Fetched {len(sheets)} worksheets from Google Sheet {file_id}")
            return sheets
        except (gspread.exceptions.GSpreadException, requests.RequestException, GoogleAuthError) as e:
            raise ProviderUnavailableError(PROVIDER_NAME, str(e)) from e


class UnavailableDriveProvider:
    """Stand-in used when Drive is not configured; every call fails soft."""

    available = False

    def __init__(self, reason: str):
        self.reason = reason
        logger.warning(f"Google Drive disabled: {reason}")

    def _fail(self, *args, **kwargs):
        raise ProviderUnavailableError(PROVIDER_NAME, self.reason)

    list_files = _fail
    get_file_bytes = _fail
    export_file = _fail
    read_google_sheet = _fail
