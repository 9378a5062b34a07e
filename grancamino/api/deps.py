from fastapi import Request

from grancamino.core.config import Settings
from grancamino.services.cache import ContentCache
from grancamino.services.chat import ChatService
from grancamino.services.container import Services
from grancamino.services.llm import LLMService


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_settings(request: Request) -> Settings:
    return get_services(request).settings


def get_chat_service(request: Request) -> ChatService:
    return get_services(request).chat


def get_cache(request: Request) -> ContentCache:
    return get_services(request).cache


def get_llm(request: Request) -> LLMService:
    return get_services(request).llm
