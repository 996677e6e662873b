from fastapi import APIRouter, HTTPException
from typing import List, Optional

from scope.db import queries
from scope.db.session import get_session
from scope.schemas.conversations import (
    ConversationCreate,
    ConversationDetail,
    ConversationOut,
    ConversationRename,
    MessageCreate,
    MessageOut,
    Success,
)

router = APIRouter()

DEFAULT_TITLE = "New Chat"


@router.get("/conversations", response_model=List[ConversationOut])
async def get_conversations():
    """Get all conversations (most recent first)."""
    async with get_session() as session:
        return await queries.list_conversations(session)


@router.post("/conversations", response_model=ConversationOut)
async def create_conversation(body: Optional[ConversationCreate] = None):
    """Create a new conversation."""
    title = ((body.title if body else None) or "").strip() or DEFAULT_TITLE
    async with get_session() as session:
        return await queries.create_conversation(session, title)


@router.get("/conversations/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(conversation_id: str):
    """Get a conversation with its messages (oldest first)."""
    async with get_session() as session:
        conv = await queries.get_conversation(session, conversation_id)
        if not conv:
            raise HTTPException(status_code=404, detail="Conversation not found")
        messages = await queries.list_messages(session, conversation_id)
        return ConversationDetail(
            conversation=ConversationOut.model_validate(conv),
            messages=[MessageOut.model_validate(m) for m in messages],
        )


@router.patch("/conversations/{conversation_id}", response_model=Success)
async def rename_conversation(conversation_id: str, body: ConversationRename):
    """Rename a conversation."""
    async with get_session() as session:
        conv = await queries.rename_conversation(session, conversation_id, body.title)
        if not conv:
            raise HTTPException(status_code=404, detail="Conversation not found")
    return Success()


@router.delete("/conversations/{conversation_id}", response_model=Success)
async def delete_conversation(conversation_id: str):
    """Delete a conversation and its messages."""
    async with get_session() as session:
        deleted = await queries.delete_conversation(session, conversation_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return Success()


@router.post("/conversations/{conversation_id}/messages", response_model=MessageOut)
async def create_message(conversation_id: str, body: MessageCreate):
    """Append a message to a conversation."""
    async with get_session() as session:
        msg = await queries.add_message(session, conversation_id, body.role, body.content)
        if msg is None:
            raise HTTPException(status_code=404, detail="Conversation not found")
        return msg
