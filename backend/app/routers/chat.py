"""Chat completion and conversation routes."""

from fastapi import APIRouter, Depends, Path
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.config import get_settings
from app.routers.dependencies import get_completion_client, get_conversation_store, get_principal_id
from app.schemas.chat import ChatTurnRequest
from app.schemas.common import ApiResponse, ErrorResponse
from app.schemas.conversation import ConversationRead
from app.schemas.message import MessageRead
from app.services.chat import RequestDeadline, handle_chat_request
from app.services.completions import CompletionClient
from app.services.conversations import ConversationStore
from app.services.errors import ChatError, Unauthenticated

router = APIRouter(prefix="/api")

_FAILURE_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


@router.post("/chat/ai", response_model=ApiResponse[MessageRead], responses=_FAILURE_RESPONSES)
def create_chat_turn(
    payload: ChatTurnRequest,
    principal_id: str | None = Depends(get_principal_id),
    store: ConversationStore = Depends(get_conversation_store),
    completion_client: CompletionClient | None = Depends(get_completion_client),
) -> JSONResponse:
    """Append the user's prompt, ask the model for a reply, and save both turns."""

    outcome = handle_chat_request(
        store,
        completion_client,
        principal_id=principal_id,
        chat_id=payload.chat_id,
        prompt=payload.prompt,
        deadline=RequestDeadline(get_settings().request_budget_seconds),
    )
    return JSONResponse(status_code=outcome.status_code, content=_dump(outcome.body))


@router.post(
    "/chats",
    response_model=ApiResponse[ConversationRead],
    status_code=201,
    responses=_FAILURE_RESPONSES,
)
def create_chat(
    principal_id: str | None = Depends(get_principal_id),
    store: ConversationStore = Depends(get_conversation_store),
) -> JSONResponse:
    """Open an empty conversation owned by the caller."""

    try:
        if principal_id is None:
            raise Unauthenticated()
        conversation = store.create(principal_id)
    except ChatError as exc:
        return _error(exc)
    body = ApiResponse(data=ConversationRead.from_state(conversation))
    return JSONResponse(status_code=201, content=_dump(body))


@router.get("/chats/{chat_id}", response_model=ApiResponse[ConversationRead], responses=_FAILURE_RESPONSES)
def get_chat(
    chat_id: str = Path(..., min_length=1),
    principal_id: str | None = Depends(get_principal_id),
    store: ConversationStore = Depends(get_conversation_store),
) -> JSONResponse:
    """Return one of the caller's conversations."""

    try:
        if principal_id is None:
            raise Unauthenticated()
        conversation = store.load(chat_id, principal_id)
    except ChatError as exc:
        return _error(exc)
    return JSONResponse(status_code=200, content=_dump(ApiResponse(data=ConversationRead.from_state(conversation))))


def _error(exc: ChatError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_dump(exc.to_response()))


def _dump(body: BaseModel) -> dict:
    return body.model_dump(mode="json", exclude_none=True)
