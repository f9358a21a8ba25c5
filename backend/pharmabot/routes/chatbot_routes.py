from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from pharmabot import schemas
from pharmabot.ai.chat_service import ChatResolutionService, get_chat_service
from pharmabot.ai.types import InvalidRequest
from pharmabot.deps import enforce_chat_rate_limit


router = APIRouter(prefix="/api/chatbot", tags=["Chatbot"])
_logger = logging.getLogger(__name__)

_STATUS_MESSAGES = {
    "connected": "Generative backend is working",
    "unreachable": "Chatbot service is running; generative backend is unreachable",
    "no-api-key": "Chatbot service is running",
}


def _error(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    body = schemas.ErrorOut(error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.post(
    "/chat",
    response_model=schemas.ChatOut,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_chat_rate_limit)],
)
async def chat(
    payload: schemas.ChatIn,
    service: ChatResolutionService = Depends(get_chat_service),
):
    try:
        result = await service.resolve(payload.message, payload.session_id)
    except InvalidRequest as exc:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    except Exception:
        _logger.exception("chatbot request failed")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            "Please try again or use our platform search feature.",
        )

    return schemas.ChatOut(
        reply=result.reply,
        session_id=result.session_id,
        timestamp=result.timestamp,
        source=result.source,
        model=result.model,
        is_fallback=result.is_fallback,
        response_length=None if result.is_fallback else len(result.reply),
        backend_available=result.backend_available,
    )


@router.get("/suggestions", response_model=schemas.SuggestionsOut)
def suggestions(service: ChatResolutionService = Depends(get_chat_service)):
    return schemas.SuggestionsOut(suggestions=service.suggestions())


@router.post("/clear", response_model=schemas.ClearOut)
def clear(
    payload: schemas.ClearIn | None = None,
    service: ChatResolutionService = Depends(get_chat_service),
):
    service.clear(payload.session_id if payload else None)
    return schemas.ClearOut(message="Chat history cleared")


@router.get("/test", response_model=schemas.BackendTestOut, response_model_exclude_none=True)
async def test_connection(service: ChatResolutionService = Depends(get_chat_service)):
    try:
        result = await service.check_backend()
    except Exception as exc:
        _logger.exception("chatbot backend check failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Test failed", "Test failed")

    message = _STATUS_MESSAGES[result.status]
    if result.model:
        message = f"{message} (model: {result.model})"
    return schemas.BackendTestOut(
        message=message,
        backend_status=result.status,
        model=result.model,
        test_response=result.test_response,
        timestamp=result.timestamp,
    )
