"""Chat route: one message (and optional image) in, executed actions out."""

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from chat.actions import ChatResponse
from web.auth import get_current_user
from web.deps import get_config, get_orchestrator
from web.images import ImageValidationError, validate_image

logger = structlog.get_logger()

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
async def chat(
    message: str = Form(""),
    image: UploadFile | None = File(None),
    user: dict = Depends(get_current_user),
    orchestrator=Depends(get_orchestrator),
    config=Depends(get_config),
):
    """Interpret the message, run its actions, and report per-action results.

    Interpretation failures are mapped to 400 by the app-level handler.
    """
    chat_config = config.chat
    has_image = image is not None and bool(image.filename)
    if not message.strip() and not has_image:
        raise HTTPException(status_code=400, detail="A message or an image is required")
    if len(message) > chat_config.max_message_length:
        raise HTTPException(
            status_code=400,
            detail=f"Message cannot exceed {chat_config.max_message_length} characters",
        )

    data = mime_type = None
    if has_image:
        data = await image.read()
        try:
            mime_type = validate_image(data, image.filename, chat_config)
        except ImageValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return await orchestrator.process(user["id"], message, data, mime_type)
