from __future__ import annotations
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class Conversation(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    title: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime(timezone=True))


class Message(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    conversation_id: str = Field(index=True, foreign_key="conversation.id")
    role: str
    content: str
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime(timezone=True))


class Setting(SQLModel, table=True):
    key: str = Field(primary_key=True)
    value: str
    updated_at: Optional[datetime] = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
