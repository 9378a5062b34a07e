"""Error taxonomy for file ingestion, data providers and chat generation.

Ingestion and provider errors are never fatal to a chat request: they are
caught at the file or provider boundary and turned into "unavailable"
markers in the assembled context. Only an unknown team and a failed
generation reach the HTTP layer.
"""

from typing import Optional


class GranCaminoError(Exception):
    """Base class for all application errors."""


class MalformedTrackError(GranCaminoError):
    """Raw bytes could not be parsed as GPX/KML markup."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class DecodeUnsupportedError(GranCaminoError):
    """No decoder exists for the classified file kind."""

    def __init__(self, kind: str, name: str = ""):
        super().__init__(f"No decoder for {kind} file {name!r}".strip())
        self.kind = kind
        self.name = name


class ProviderUnavailableError(GranCaminoError):
    """A file or record provider could not be reached (network, auth, quota)."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider} unavailable: {reason}")
        self.provider = provider
        self.reason = reason


class TeamNotFoundError(GranCaminoError):
    """The requested team code has no row in the teams table."""

    def __init__(self, team: str):
        super().__init__(f"Team not found: {team}")
        self.team = team


class GenerationError(GranCaminoError):
    """The text-generation service failed or is not configured."""
