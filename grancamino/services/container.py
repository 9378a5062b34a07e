"""Service wiring. Built once in the app lifespan and kept on ``app.state``."""

import logging
from dataclasses import dataclass

from grancamino.core.config import Settings
from grancamino.services.cache import ContentCache
from grancamino.services.chat import ChatService
from grancamino.services.context import ContextAssembler
from grancamino.services.drive import DriveProvider
from grancamino.services.files import FileContentService
from grancamino.services.llm import LLMService
from grancamino.services.records import RecordProvider

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    cache: ContentCache
    drive: object
    records: object
    files: FileContentService
    llm: LLMService
    chat: ChatService

    @classmethod
    def build(cls, settings: Settings, drive=None, records=None, llm=None) -> "Services":
        """Providers left as None are created from ``settings``."""
        cache = ContentCache.from_settings(settings)
        drive = drive if drive is not None else DriveProvider.from_settings(settings)
        records = records if records is not None else RecordProvider.from_settings(settings)
        llm = llm if llm is not None else LLMService.from_settings(settings)

        files = FileContentService.from_settings(settings, drive, cache)
        chat = ChatService(
            records,
            files,
            ContextAssembler.from_settings(settings),
            llm,
            incidents_limit=settings.INCIDENTS_LIMIT,
            llm_timeout=settings.LLM_TIMEOUT_SECONDS,
        )

        logger.info(
            f"Services ready (drive={'on' if drive.available else 'off'}, "
            f"supabase={'on' if records.available else 'off'}, "
            f"llm={'on' if llm.client else 'off'})"
        )
        return cls(
            settings=settings,
            cache=cache,
            drive=drive,
            records=records,
            files=files,
            llm=llm,
            chat=chat,
        )
