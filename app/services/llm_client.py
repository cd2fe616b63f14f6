# app/services/llm_client.py
"""
Text-completion oracle backed by the OpenAI chat completions API.

The rest of the service only depends on the `TextOracle` shape:
`complete(system_instruction, user_prompt, temperature) -> str`. Every
failure (unconfigured key, auth, rate limit, timeout, transport, empty
content) surfaces as OracleError. The SDK's own retries are disabled: one
oracle call per request.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx
from openai import APITimeoutError, AuthenticationError, OpenAI, OpenAIError, RateLimitError

from app.config.settings import settings
from app.services.errors import OracleError

logger = logging.getLogger(__name__)


def _mask_key(k: Optional[str]) -> str:
    if not k:
        return "(none)"
    if len(k) <= 8:
        return k
    return f"{k[:4]}...{k[-4:]}"


class TextOracle(Protocol):

    def complete(self, system_instruction: str, user_prompt: str, temperature: float) -> str:
        ...


def _extract_content(resp: Any) -> Optional[str]:
    """Pull the first choice's text out of an SDK object or a dict-shaped response."""
    if hasattr(resp, "choices"):
        choices = resp.choices or []
        if not choices:
            return None
        choice = choices[0]
        message = getattr(choice, "message", None)
        if message is not None and getattr(message, "content", None):
            return message.content
        if isinstance(choice, dict):
            return (choice.get("message") or {}).get("content") or choice.get("text")
        return getattr(choice, "text", None)
    if isinstance(resp, dict):
        choices = resp.get("choices") or []
        if choices and isinstance(choices[0], dict):
            return (choices[0].get("message") or {}).get("content") or choices[0].get("text")
    return None


class OpenAIOracle:

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[Any] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        self.timeout_seconds = timeout_seconds or settings.openai_timeout_seconds
        self.client = client
        if self.client is None and self.api_key:
            try:
                self.client = OpenAI(
                    api_key=self.api_key,
                    timeout=httpx.Timeout(self.timeout_seconds, connect=5.0),
                    max_retries=0,
                )
                logger.info("OpenAI client created (model=%s)", self.model)
            except OpenAIError as exc:
                logger.error("Failed creating OpenAI client: %s", exc)
                self.client = None
        elif self.client is None:
            logger.info("OpenAI client not configured; generation will use fallback content.")

    @property
    def configured(self) -> bool:
        return self.client is not None

    def complete(self, system_instruction: str, user_prompt: str, temperature: float) -> str:
        if self.client is None:
            raise OracleError("oracle_not_configured")
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
            )
        except AuthenticationError as exc:
            logger.error("OpenAI AuthenticationError: %s (key=%s)", exc, _mask_key(self.api_key))
            raise OracleError("authentication_failed") from exc
        except RateLimitError as exc:
            logger.warning("OpenAI rate-limited: %s", exc)
            raise OracleError("rate_limited") from exc
        except APITimeoutError as exc:
            logger.warning("OpenAI request timed out after %.1fs", self.timeout_seconds)
            raise OracleError("timeout") from exc
        except OpenAIError as exc:
            logger.warning("OpenAIError: %s", exc)
            raise OracleError(str(exc)) from exc

        content = _extract_content(resp)
        if not content or not content.strip():
            raise OracleError("empty_content")
        return content
