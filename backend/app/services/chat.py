"""Chat turn pipeline: validate, load, complete, persist, respond."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any

from pydantic import BaseModel

from app.schemas.common import ApiResponse
from app.schemas.message import ConversationMessage, MessageRead
from app.services.completions import CompletionClient
from app.services.conversations import ConversationStore
from app.services.errors import (
    ChatError,
    CompletionError,
    CompletionUnavailable,
    ConversationNotFound,
    RequestBudgetExceeded,
    classify_failure,
)
from app.services.request_validation import validate_chat_request

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RequestDeadline:
    """Wall-clock budget for one request."""

    budget_seconds: float
    clock: Callable[[], float] = perf_counter
    started: float = field(init=False)

    def __post_init__(self) -> None:
        self.started = self.clock()

    def remaining(self) -> float:
        return self.budget_seconds - (self.clock() - self.started)

    def check(self) -> None:
        if self.remaining() <= 0:
            raise RequestBudgetExceeded()


@dataclass(frozen=True, slots=True)
class ChatOutcome:
    """HTTP status plus the envelope to return to the caller."""

    status_code: int
    body: BaseModel


def run_chat_turn(
    store: ConversationStore,
    completion_client: CompletionClient | None,
    *,
    principal_id: str | None,
    chat_id: Any,
    prompt: Any,
    deadline: RequestDeadline | None = None,
) -> ConversationMessage:
    """Run one chat turn and return the assistant message.

    The user's turn is persisted even when the completion fails, in which
    case the completion failure is raised after the persist. Nothing is
    persisted if the request budget runs out first. Failures are raised as
    ``ChatError`` subclasses wherever the stage can tell what went wrong.
    """

    request = validate_chat_request(principal_id, prompt)
    if not isinstance(chat_id, str) or not chat_id:
        raise ConversationNotFound()
    if completion_client is None:
        raise CompletionUnavailable()
    conversation = store.load(chat_id, request.principal_id)

    conversation.append("user", request.prompt)

    completion_failure: Exception | None = None
    assistant_message: ConversationMessage | None = None
    try:
        if deadline is not None:
            deadline.check()
        turn = completion_client.complete(
            conversation.history(),
            timeout=deadline.remaining() if deadline is not None else None,
        )
    except RequestBudgetExceeded:
        raise
    except Exception as exc:
        completion_failure = exc
    else:
        assistant_message = conversation.append("assistant", turn.content)

    if deadline is not None:
        deadline.check()

    try:
        store.persist(conversation)
    except Exception:
        if completion_failure is None:
            raise
        logger.exception(
            "chat.persist_failed_after_completion_failure chat_id=%s messages=%d",
            conversation.id,
            len(conversation.messages),
        )
        raise completion_failure

    if completion_failure is not None:
        raise completion_failure
    return assistant_message


def handle_chat_request(
    store: ConversationStore,
    completion_client: CompletionClient | None,
    *,
    principal_id: str | None,
    chat_id: Any,
    prompt: Any,
    deadline: RequestDeadline | None = None,
) -> ChatOutcome:
    """Run a chat turn and convert every failure into exactly one outcome."""

    started = perf_counter()
    try:
        message = run_chat_turn(
            store,
            completion_client,
            principal_id=principal_id,
            chat_id=chat_id,
            prompt=prompt,
            deadline=deadline,
        )
    except Exception as exc:
        error = classify_failure(exc)
        _log_failure(error, exc, chat_id=chat_id, principal_id=principal_id, started=started)
        return ChatOutcome(status_code=error.status_code, body=error.to_response())

    logger.info(
        "chat.turn_completed chat_id=%s principal_id=%s reply_chars=%d total_ms=%.2f",
        chat_id,
        principal_id,
        len(message.content),
        (perf_counter() - started) * 1000.0,
    )
    return ChatOutcome(status_code=200, body=ApiResponse(data=MessageRead.from_message(message)))


def _log_failure(
    error: ChatError,
    exc: Exception,
    *,
    chat_id: str | None,
    principal_id: str | None,
    started: float,
) -> None:
    elapsed_ms = (perf_counter() - started) * 1000.0
    if error.status_code < 500 and not isinstance(error, CompletionError):
        logger.warning(
            "chat.turn_rejected chat_id=%s principal_id=%s status=%d reason=%s elapsed_ms=%.2f",
            chat_id,
            principal_id,
            error.status_code,
            type(error).__name__,
            elapsed_ms,
        )
        return
    logger.error(
        "chat.turn_failed chat_id=%s principal_id=%s status=%d reason=%s elapsed_ms=%.2f",
        chat_id,
        principal_id,
        error.status_code,
        type(error).__name__,
        elapsed_ms,
        exc_info=exc,
    )
