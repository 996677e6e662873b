from __future__ import annotations
from typing import List, Optional
from sqlmodel import select, desc
from sqlmodel.ext.asyncio.session import AsyncSession

from scope.db.models import Conversation, Message, Setting, utcnow


# Conversations
async def create_conversation(session: AsyncSession, title: str) -> Conversation:
    conv = Conversation(title=title)
    session.add(conv)
    await session.flush()
    await session.refresh(conv)
    return conv


async def list_conversations(session: AsyncSession) -> List[Conversation]:
    stmt = select(Conversation).order_by(desc(Conversation.updated_at))
    result = await session.exec(stmt)
    return list(result.all())


async def get_conversation(session: AsyncSession, conversation_id: str) -> Optional[Conversation]:
    return await session.get(Conversation, conversation_id)


async def rename_conversation(session: AsyncSession, conversation_id: str, title: str) -> Optional[Conversation]:
    conv = await session.get(Conversation, conversation_id)
    if not conv:
        return None
    conv.title = title
    conv.updated_at = utcnow()
    await session.flush()
    await session.refresh(conv)
    return conv


async def delete_conversation(session: AsyncSession, conversation_id: str) -> bool:
    conv = await session.get(Conversation, conversation_id)
    if not conv:
        return False
    # Delete messages first (no relationship cascade defined)
    res = await session.exec(select(Message).where(Message.conversation_id == conversation_id))
    for m in res.all():
        await session.delete(m)
    await session.delete(conv)
    return True


# Messages
async def add_message(session: AsyncSession, conversation_id: str, role: str, content: str) -> Optional[Message]:
    conv = await session.get(Conversation, conversation_id)
    if not conv:
        return None
    msg = Message(conversation_id=conversation_id, role=role, content=content)
    session.add(msg)
    # Touch conversation
    conv.updated_at = msg.created_at
    await session.flush()
    await session.refresh(msg)
    return msg


async def list_messages(session: AsyncSession, conversation_id: str) -> List[Message]:
    """Messages of a conversation, oldest first."""
    stmt = (
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at)
    )
    result = await session.exec(stmt)
    return list(result.all())


# Settings
async def get_setting(session: AsyncSession, key: str) -> Optional[str]:
    setting = await session.get(Setting, key)
    return setting.value if setting else None


async def set_setting(session: AsyncSession, key: str, value: str) -> None:
    setting = await session.get(Setting, key)
    if setting:
        setting.value = value
        setting.updated_at = utcnow()
    else:
        session.add(Setting(key=key, value=value))
    await session.flush()


async def delete_setting(session: AsyncSession, key: str) -> None:
    setting = await session.get(Setting, key)
    if setting:
        await session.delete(setting)
