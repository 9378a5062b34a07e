"""LLM Service - Handles Anthropic API interactions for answer generation."""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import anthropic

from grancamino.core import metrics
from grancamino.core.exceptions import GenerationError
from grancamino.core.logging import PerformanceLogger

logger = logging.getLogger(__name__)

VALID_ROLES = ("user", "assistant")


@dataclass
class GenerationResult:
    text: str
    usage: Dict[str, int] = field(default_factory=dict)


def recent_turns(history: Optional[List[Dict]], limit: int) -> List[Dict[str, str]]:
    """Last ``limit`` well-formed user/assistant turns, oldest first."""
    turns = [
        {"role": h["role"], "content": str(h["content"])}
        for h in (history or [])
        if isinstance(h, dict) and h.get("role") in VALID_ROLES and h.get("content")
    ]
    return turns[-limit:] if limit > 0 else []


class LLMService:
    """Claude-based text generation over a system prompt plus race context."""

    def __init__(
        self,
        api_key: str = "",
        model: str = "claude-sonnet-4-5-20250929",
        max_tokens: int = 2048,
        history_turns: int = 6,
        timeout: float = 60.0
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.history_turns = history_turns
        self.total_requests = 0
        self.perf = PerformanceLogger("llm")

        if not api_key:
            logger.warning("ANTHROPIC_API_KEY not set")
            self.client = None
        else:
            self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout)

    @classmethod
    def from_settings(cls, settings) -> "LLMService":
        return cls(
            api_key=settings.ANTHROPIC_API_KEY,
            model=settings.ANTHROPIC_MODEL,
            max_tokens=settings.LLM_MAX_TOKENS,
            history_turns=settings.HISTORY_TURNS,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )

    def get_usage_stats(self) -> Dict:
        return {"model": self.model, "total_requests": self.total_requests}

    def generate(self, system: str, history: Optional[List[Dict]], message: str) -> GenerationResult:
        """Blocking call; run it in a worker thread from async code."""
        if not self.client:
            raise GenerationError("LLM not initialized")

        messages = recent_turns(history, self.history_turns)
        messages.append({"role": "user", "content": message})

        start = time.perf_counter()
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=messages,
            )
        except anthropic.APIError as e:
            duration_ms = (time.perf_counter() - start) * 1000
            self.perf.log_llm_call(self.model, 0, 0, duration_ms, success=False)
            logger.error(f"LLM error: {e}")
            raise GenerationError(str(e)) from e

        duration_ms = (time.perf_counter() - start) * 1000
        self.total_requests += 1

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        usage = {
            "input_tokens": response.usage.input_tokens,
            "output_tokens": response.usage.output_tokens,
        }

        metrics.token_usage_total.labels(model=self.model, type="input").inc(usage["input_tokens"])
        metrics.token_usage_total.labels(model=self.model, type="output").inc(usage["output_tokens"])
        self.perf.log_llm_call(
            self.model, usage["input_tokens"], usage["output_tokens"], duration_ms, success=True
        )

        return GenerationResult(text=text, usage=usage)
