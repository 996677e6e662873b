from fastapi import APIRouter
import logging

from scope.core.logging import redact
from scope.db import queries
from scope.db.session import get_session
from scope.schemas.conversations import SettingUpdate, SettingValue, Success

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/settings/{key}", response_model=SettingValue)
async def get_setting(key: str):
    async with get_session() as session:
        return SettingValue(value=await queries.get_setting(session, key))


@router.post("/settings/{key}", response_model=Success)
async def save_setting(key: str, body: SettingUpdate):
    """Store a setting; a blank value deletes it."""
    value = body.value.strip()
    async with get_session() as session:
        if value:
            await queries.set_setting(session, key, value)
            logger.info("Setting %s saved: %s...", key, redact(value)[:10])
        else:
            await queries.delete_setting(session, key)
            logger.info("Setting %s deleted", key)
    return Success()


@router.delete("/settings/{key}", response_model=Success)
async def delete_setting(key: str):
    async with get_session() as session:
        await queries.delete_setting(session, key)
    return Success()
