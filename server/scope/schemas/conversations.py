from __future__ import annotations
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ConversationOut(_CamelModel):
    id: str
    title: str
    created_at: datetime
    updated_at: datetime


class MessageOut(_CamelModel):
    id: str
    conversation_id: str
    role: str
    content: str
    created_at: datetime


class ConversationDetail(BaseModel):
    conversation: ConversationOut
    messages: List[MessageOut]


class ConversationCreate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)


class ConversationRename(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)


class MessageCreate(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1)


class SettingValue(BaseModel):
    value: Optional[str] = None


class SettingUpdate(BaseModel):
    value: str


class Success(BaseModel):
    success: bool = True
