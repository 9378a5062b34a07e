"""
O Gran Camiño Assistant - Constants & Enums

Centralized definitions for error codes, languages, cache key classes,
localized context labels and other constants used throughout the application.
"""

from enum import Enum, IntEnum
from typing import Dict, Optional


# =============================================================================
# ERROR CODES & MESSAGES
# =============================================================================

class ErrorCode(IntEnum):
    """Application error codes for consistent error handling."""
    # Client errors (4xxx)
    BAD_REQUEST = 4000
    MISSING_MESSAGE = 4001
    TEAM_NOT_FOUND = 4002
    METHOD_NOT_ALLOWED = 4005

    # Rate limiting (42xx)
    RATE_LIMITED = 4200

    # Server errors (5xxx)
    INTERNAL_ERROR = 5000
    LLM_ERROR = 5001

    # Timeout errors (52xx)
    LLM_TIMEOUT = 5200


ERROR_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.BAD_REQUEST: "Solicitud no válida",
    ErrorCode.MISSING_MESSAGE: "Mensaje requerido",
    ErrorCode.TEAM_NOT_FOUND: "Equipo no encontrado: {team}",
    ErrorCode.METHOD_NOT_ALLOWED: "Método no permitido",
    ErrorCode.RATE_LIMITED: "Demasiadas solicitudes. Inténtalo de nuevo en unos segundos",
    ErrorCode.INTERNAL_ERROR: "Error interno del servidor",
    ErrorCode.LLM_ERROR: "No se pudo generar la respuesta",
    ErrorCode.LLM_TIMEOUT: "La generación de la respuesta tardó demasiado",
}


HTTP_STATUS_MAP: Dict[ErrorCode, int] = {
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.MISSING_MESSAGE: 400,
    ErrorCode.TEAM_NOT_FOUND: 400,
    ErrorCode.METHOD_NOT_ALLOWED: 405,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.LLM_ERROR: 502,
    ErrorCode.LLM_TIMEOUT: 504,
}


# =============================================================================
# LANGUAGES
# =============================================================================

class Language(str, Enum):
    """Languages the assistant answers in."""
    SPANISH = "es"
    ENGLISH = "en"
    GALICIAN = "gl"


def resolve_language(value: Optional[str], default: Language = Language.SPANISH) -> Language:
    """Map a client supplied language code to a supported language, or ``default``."""
    try:
        return Language((value or "").strip().lower())
    except ValueError:
        return default


# =============================================================================
# CACHE KEY CLASSES
# =============================================================================

class CacheNamespace(str, Enum):
    """Key classes of the content cache, each with its own freshness window."""
    LISTING = "listing"
    CONTENT = "content"


def cache_key(namespace: CacheNamespace, *parts: str) -> str:
    """Build a cache key such as ``content:<file id>:<modified time>``."""
    return ":".join([namespace.value, *[str(p) for p in parts]])


# =============================================================================
# CONTEXT LABELS
# =============================================================================

CONTEXT_LABELS: Dict[Language, Dict[str, str]] = {
    Language.SPANISH: {
        "data_header": "\n## DATOS DE O GRAN CAMIÑO 2025:\n\n",
        "hotels_header": "### 🏨 HOTELES POR ETAPA:\n",
        "stages_header": "\n### 📅 ETAPAS:\n",
        "incidents_header": "\n### ⚠️ INCIDENCIAS RECIENTES:\n",
        "documents_header": "\n### 📄 DOCUMENTOS DISPONIBLES:\n",
        "files_header": "\n### 📁 ARCHIVOS:\n",
        "stage": "Etapa",
        "unavailable": "(datos no disponibles)",
        "file_unavailable": "(archivo no disponible: {reason})",
        "truncated": "[... contenido truncado ...]",
        "omitted": "(omitido: límite de contexto alcanzado)",
    },
    Language.ENGLISH: {
        "data_header": "\n## O GRAN CAMIÑO 2025 DATA:\n\n",
        "hotels_header": "### 🏨 HOTELS PER STAGE:\n",
        "stages_header": "\n### 📅 STAGES:\n",
        "incidents_header": "\n### ⚠️ RECENT INCIDENTS:\n",
        "documents_header": "\n### 📄 AVAILABLE DOCUMENTS:\n",
        "files_header": "\n### 📁 FILES:\n",
        "stage": "Stage",
        "unavailable": "(data not available)",
        "file_unavailable": "(file not available: {reason})",
        "truncated": "[... content truncated ...]",
        "omitted": "(omitted: context limit reached)",
    },
    Language.GALICIAN: {
        "data_header": "\n## DATOS DE O GRAN CAMIÑO 2025:\n\n",
        "hotels_header": "### 🏨 HOTEIS POR ETAPA:\n",
        "stages_header": "\n### 📅 ETAPAS:\n",
        "incidents_header": "\n### ⚠️ INCIDENCIAS RECENTES:\n",
        "documents_header": "\n### 📄 DOCUMENTOS DISPOÑIBLES:\n",
        "files_header": "\n### 📁 ARQUIVOS:\n",
        "stage": "Etapa",
        "unavailable": "(datos non dispoñibles)",
        "file_unavailable": "(arquivo non dispoñible: {reason})",
        "truncated": "[... contido truncado ...]",
        "omitted": "(omitido: límite de contexto acadado)",
    },
}

# Short month names used for stage dates ("26 feb")
MONTH_ABBREVIATIONS = [
    "ene", "feb", "mar", "abr", "may", "jun",
    "jul", "ago", "sept", "oct", "nov", "dic",
]


# =============================================================================
# GOOGLE DRIVE
# =============================================================================

GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets.readonly",
    "https://www.googleapis.com/auth/drive.readonly",
]

DRIVE_API_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_FILE_FIELDS = "nextPageToken, files(id, name, mimeType, size, modifiedTime)"

GOOGLE_DOC_EXPORT_TYPE = "text/plain"
