import asyncio
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from grancamino.api.deps import get_cache, get_chat_service, get_llm, get_settings
from grancamino.api.schemas import ChatRequest, ChatResponse, ErrorResponse, FilesResponse
from grancamino.core.config import Settings, settings
from grancamino.core.constants import ERROR_MESSAGES, HTTP_STATUS_MAP, ErrorCode, resolve_language
from grancamino.core.exceptions import GenerationError, TeamNotFoundError
from grancamino.services.cache import ContentCache
from grancamino.services.chat import ChatService
from grancamino.services.llm import LLMService

router = APIRouter(prefix="/api")
limiter = Limiter(key_func=get_remote_address)
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def error_response(code: ErrorCode, **fields) -> JSONResponse:
    return JSONResponse(
        status_code=HTTP_STATUS_MAP[code],
        content={"success": False, "error": ERROR_MESSAGES[code].format(**fields)}
    )


# --- Routes ---

@router.get("/chat/files", response_model=FilesResponse)
async def list_files(chat: ChatService = Depends(get_chat_service)):
    """Files in the race Drive folder plus the registered documents."""
    sources = await chat.list_sources()
    return FilesResponse(files=sources)


@router.post("/chat", response_model=ChatResponse, responses=ERROR_RESPONSES)
@limiter.limit(settings.RATE_LIMIT_CHAT)
async def serve_chat(
    request: Request,
    req: ChatRequest,
    chat: ChatService = Depends(get_chat_service),
    app_settings: Settings = Depends(get_settings)
):
    if not req.message:
        return error_response(ErrorCode.MISSING_MESSAGE)

    language = resolve_language(req.language, default=resolve_language(app_settings.DEFAULT_LANGUAGE))
    history = [turn.model_dump() for turn in req.history]
    logger.info(f"Chat request: team={req.team} language={language.value} history={len(history)}")

    try:
        result = await chat.answer(req.message, req.team, history, language)
    except TeamNotFoundError as e:
        return error_response(ErrorCode.TEAM_NOT_FOUND, team=e.team)
    except asyncio.TimeoutError:
        return error_response(ErrorCode.LLM_TIMEOUT)
    except GenerationError as e:
        logger.error(f"Generation failed: {e}")
        return error_response(ErrorCode.LLM_ERROR)

    return ChatResponse(response=result.text, tokens_used=result.usage)


@router.get("/stats")
async def get_stats(
    cache: ContentCache = Depends(get_cache),
    llm: LLMService = Depends(get_llm)
):
    """Cache and LLM usage counters."""
    return {
        "status": "ok",
        "cache": cache.get_stats(),
        "llm": llm.get_usage_stats()
    }
