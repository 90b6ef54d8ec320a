"""Completion provider client for OpenAI-compatible chat endpoints."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Protocol
from urllib import error as urllib_error
from urllib import request as urllib_request

from app.config import Settings, get_settings
from app.services.errors import CompletionAPIError, CompletionNetworkError, EmptyCompletionError

logger = logging.getLogger(__name__)


class CompletionConfigError(RuntimeError):
    """Raised when the completion client cannot be configured."""


@dataclass(frozen=True, slots=True)
class CompletionTurn:
    """Assistant turn returned by the provider."""

    role: str
    content: str


class CompletionClient(Protocol):
    """Protocol for chat completion providers.

    Implementations raise ``EmptyCompletionError``, ``CompletionAPIError`` or
    ``CompletionNetworkError`` instead of returning partial results.
    """

    def complete(self, messages: list[dict[str, str]], *, timeout: float | None = None) -> CompletionTurn:
        """Return the next assistant turn for the full ordered history."""


@dataclass(frozen=True, slots=True)
class OpenRouterChatClient:
    """Chat completions client for OpenRouter (or any OpenAI-compatible endpoint)."""

    api_key: str
    model: str
    temperature: float = 0.7
    max_tokens: int = 1024
    base_url: str = "https://openrouter.ai/api/v1"
    timeout_seconds: float = 55.0
    site_url: str | None = None
    app_title: str | None = None

    def complete(self, messages: list[dict[str, str]], *, timeout: float | None = None) -> CompletionTurn:
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        req = urllib_request.Request(
            url=f"{self.base_url.rstrip('/')}/chat/completions",
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers=self._headers(),
        )
        effective_timeout = self.timeout_seconds if timeout is None else min(timeout, self.timeout_seconds)

        started = perf_counter()
        try:
            with urllib_request.urlopen(req, timeout=effective_timeout) as resp:
                raw = resp.read()
        except urllib_error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            logger.warning(
                "completion.http_error model=%s status=%d body=%s",
                self.model,
                exc.code,
                detail[:500],
            )
            raise CompletionAPIError(exc.code, _upstream_message(detail)) from exc
        except OSError as exc:
            # URLError, socket timeouts and connection resets all land here.
            raise CompletionNetworkError() from exc

        logger.info(
            "completion.response model=%s messages=%d elapsed_ms=%.2f",
            self.model,
            len(messages),
            (perf_counter() - started) * 1000.0,
        )
        return _parse_turn(raw)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.site_url:
            headers["HTTP-Referer"] = self.site_url
        if self.app_title:
            headers["X-Title"] = self.app_title
        return headers


def get_default_completion_client(settings: Settings | None = None) -> OpenRouterChatClient:
    """Build the process-wide completion client from settings."""

    settings = settings or get_settings()
    if not settings.openrouter_api_key:
        raise CompletionConfigError(
            "OPENROUTER_API_KEY is not configured. Set it in backend/.env before serving chat."
        )
    return OpenRouterChatClient(
        api_key=settings.openrouter_api_key,
        model=settings.completion_model,
        temperature=settings.completion_temperature,
        max_tokens=settings.completion_max_tokens,
        base_url=settings.completion_base_url,
        timeout_seconds=settings.completion_timeout_seconds,
        site_url=settings.site_url,
        app_title=settings.app_title,
    )


def _parse_turn(raw: bytes) -> CompletionTurn:
    try:
        decoded = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise EmptyCompletionError() from exc
    if not isinstance(decoded, dict):
        raise EmptyCompletionError()

    # OpenRouter can report provider failures inside a 200 body.
    if "choices" not in decoded and isinstance(decoded.get("error"), dict):
        error_body = decoded["error"]
        status = error_body.get("code")
        raise CompletionAPIError(
            status if isinstance(status, int) and 400 <= status <= 599 else 502,
            _message_from(decoded),
        )

    try:
        message = decoded["choices"][0]["message"]
        content = message.get("content")
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise EmptyCompletionError() from exc
    if not isinstance(content, str) or not content.strip():
        raise EmptyCompletionError()
    return CompletionTurn(role="assistant", content=content)


def _upstream_message(detail: str) -> str | None:
    try:
        decoded = json.loads(detail)
    except json.JSONDecodeError:
        return None
    if not isinstance(decoded, dict):
        return None
    return _message_from(decoded)


def _message_from(decoded: dict[str, Any]) -> str | None:
    error_body = decoded.get("error")
    if isinstance(error_body, dict) and isinstance(error_body.get("message"), str) and error_body["message"]:
        return error_body["message"]
    if isinstance(decoded.get("message"), str) and decoded["message"]:
        return decoded["message"]
    return None
