"""API Schemas (Pydantic models for request/response validation)."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# CHAT SCHEMAS
# =============================================================================

class HistoryTurn(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    """
    Chat request schema.

    Example:
        {
            "message": "¿En qué hotel dormimos en la etapa 2?",
            "team": "MOV",
            "history": [{"role": "user", "content": "Hola"}],
            "language": "es"
        }
    """
    message: str = Field(default="", max_length=4000, description="User message")
    team: str = Field(default="public", max_length=64, description="Team code, or 'public'")
    history: List[HistoryTurn] = Field(default_factory=list, description="Previous turns, oldest first")
    language: Optional[str] = Field(default=None, description="Answer language: es, en or gl (server default when omitted)")

    @field_validator("message")
    @classmethod
    def strip_message(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @field_validator("team")
    @classmethod
    def normalize_team(cls, v: Optional[str]) -> str:
        return (v or "").strip() or "public"


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    response: str
    tokens_used: Dict[str, int] = Field(default_factory=dict, alias="tokensUsed")


# =============================================================================
# FILE SCHEMAS
# =============================================================================

class FileSummary(BaseModel):
    id: str
    name: str
    type: str
    source: str
    url: Optional[str] = None


class FilesResponse(BaseModel):
    success: bool = True
    files: List[FileSummary]


# =============================================================================
# ERRORS & HEALTH
# =============================================================================

class ErrorResponse(BaseModel):
    """Standardized error response."""
    success: bool = False
    error: str


class HealthResponse(BaseModel):
    status: str
    version: str
    components: Dict[str, Any] = Field(default_factory=dict)
