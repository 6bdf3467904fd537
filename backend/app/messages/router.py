"""Edit and delete endpoints for stored messages.

Only the original sender may change a message; the caller states its
identity in the request (there is no authentication layer).

Endpoints:
    PUT /messages/{message_id}: Replace a message's text
    DELETE /messages/{message_id}?email=...: Delete a message
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.dependencies import get_message_store
from app.storage import MessageStore

from .schemas import EditMessageRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


def _check_sender(store: MessageStore, message_id: str, email: str) -> Optional[JSONResponse]:
    message = store.get(message_id)
    if message is None:
        return JSONResponse({"error": "Message not found"}, status_code=404)
    if message.from_ != email:
        logger.warning("[messages] %s tried to modify %s owned by %s", email, message_id, message.from_)
        return JSONResponse({"error": "Only the sender can modify this message"}, status_code=403)
    return None


@router.put("/{message_id}")
async def edit_message(
    message_id: str,
    body: EditMessageRequest,
    store: MessageStore = Depends(get_message_store),
) -> JSONResponse:
    """Replace the text of a message.

    Returns:
        200 with the updated message, 400 if email or text is missing,
        404 if the message does not exist, 403 if the caller is not the sender.
    """
    if not body.email or body.text is None:
        return JSONResponse({"error": "email and text are required"}, status_code=400)

    denied = _check_sender(store, message_id, body.email)
    if denied is not None:
        return denied

    updated = store.update_text(message_id, body.text)
    if updated is None:
        return JSONResponse({"error": "Message not found"}, status_code=404)
    logger.info("[messages] %s edited %s", body.email, message_id)
    return JSONResponse(updated.to_wire())


@router.delete("/{message_id}")
async def delete_message(
    message_id: str,
    email: Optional[str] = Query(None, description="Identity of the original sender"),
    store: MessageStore = Depends(get_message_store),
) -> JSONResponse:
    """Delete a message.

    Returns:
        200 on success, 400 if email is missing, 404 if the message does not
        exist, 403 if the caller is not the sender.
    """
    if not email:
        return JSONResponse({"error": "email is required"}, status_code=400)

    denied = _check_sender(store, message_id, email)
    if denied is not None:
        return denied

    if not store.delete(message_id):
        return JSONResponse({"error": "Message not found"}, status_code=404)
    logger.info("[messages] %s deleted %s", email, message_id)
    return JSONResponse({"success": True, "id": message_id})
