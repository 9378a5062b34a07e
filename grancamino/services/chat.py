"""
Chat service.

Resolves the team, gathers database rows and Drive files concurrently,
assembles the context block and asks the LLM for an answer.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from grancamino.core import metrics
from grancamino.core.constants import Language
from grancamino.core.exceptions import (
    GenerationError,
    ProviderUnavailableError,
    TeamNotFoundError,
)
from grancamino.core.logging import log_timing
from grancamino.services.classifier import classify
from grancamino.services.context import ContextAssembler
from grancamino.services.files import FileContentService
from grancamino.services.llm import GenerationResult, LLMService
from grancamino.services.prompts import get_system_prompt
from grancamino.services.records import load_snapshot

logger = logging.getLogger(__name__)

PUBLIC_TEAM = "public"


class ChatService:
    def __init__(
        self,
        records,
        files: FileContentService,
        assembler: ContextAssembler,
        llm: LLMService,
        incidents_limit: int = 10,
        llm_timeout: float = 60.0
    ):
        self.records = records
        self.files = files
        self.assembler = assembler
        self.llm = llm
        self.incidents_limit = incidents_limit
        self.llm_timeout = llm_timeout

    async def resolve_team(self, team: Optional[str]) -> Optional[Any]:
        """
        Team id for ``team``, or None for the public context.

        Raises TeamNotFoundError when the code is unknown. If the record
        provider is down the request falls back to the public context.
        """
        code = (team or PUBLIC_TEAM).strip()
        if not code or code == PUBLIC_TEAM:
            return None

        try:
            team_id = await asyncio.to_thread(self.records.find_team_id, code)
        except ProviderUnavailableError as e:
            logger.warning(f"Team lookup for {code!r} failed, using public context: {e}")
            return None

        if team_id is None:
            raise TeamNotFoundError(code)
        return team_id

    async def build_context(self, team_id: Optional[Any], language: Language) -> str:
        snapshot, contents = await asyncio.gather(
            asyncio.to_thread(load_snapshot, self.records, team_id, self.incidents_limit),
            self.files.load_all(),
        )

        context = self.assembler.assemble(snapshot, contents, language)
        metrics.context_chars.observe(len(context))

        unavailable = [c.descriptor.name for c in contents if not c.available]
        if unavailable:
            logger.info(f"Context built with {len(unavailable)} unavailable files: {unavailable}")
        return context

    @log_timing(logger, logging.INFO, "Chat answer generated")
    async def answer(
        self,
        message: str,
        team: Optional[str] = PUBLIC_TEAM,
        history: Optional[List[Dict]] = None,
        language: Language = Language.SPANISH
    ) -> GenerationResult:
        try:
            team_id = await self.resolve_team(team)
        except TeamNotFoundError:
            metrics.chat_requests_total.labels(language=language.value, outcome="team_not_found").inc()
            raise

        context = await self.build_context(team_id, language)
        system = get_system_prompt(language) + context

        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(self.llm.generate, system, history, message),
                timeout=self.llm_timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"LLM timeout after {self.llm_timeout}s")
            metrics.chat_requests_total.labels(language=language.value, outcome="llm_timeout").inc()
            raise
        except GenerationError:
            metrics.chat_requests_total.labels(language=language.value, outcome="llm_error").inc()
            raise

        metrics.chat_requests_total.labels(language=language.value, outcome="ok").inc()
        return result

    async def list_sources(self) -> List[Dict[str, Any]]:
        """Drive files and registered documents, for the file picker."""
        descriptors, documents = await asyncio.gather(
            self.files.list_files(),
            self._list_documents(),
        )

        sources = []
        for descriptor in descriptors:
            sources.append({
                "id": descriptor.id,
                "name": descriptor.name,
                "type": classify(descriptor).value,
                "source": "drive",
            })
        for doc in documents:
            sources.append({
                "id": str(doc.get("id", "")),
                "name": doc.get("name", ""),
                "type": doc.get("doc_type") or "",
                "source": "documents",
                "url": doc.get("url"),
            })
        return sources

    async def _list_documents(self) -> List[Dict[str, Any]]:
        try:
            return await asyncio.to_thread(self.records.fetch_documents)
        except ProviderUnavailableError as e:
            logger.warning(f"Document list unavailable: {e}")
            return []
