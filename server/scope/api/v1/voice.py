from fastapi import APIRouter, Depends, File, UploadFile
from typing import Any, Dict, Optional
import logging
import httpx

from scope.api.deps import get_app_settings, get_upstream_transport, open_provider
from scope.config import Settings
from scope.core.errors import MalformedRequestBody

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/transcribe")
async def transcribe(
    file: Optional[UploadFile] = File(default=None),
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_upstream_transport),
) -> Dict[str, str]:
    """Transcribe an uploaded audio clip."""
    if file is None:
        raise MalformedRequestBody("missing file")
    data = await file.read()
    provider = await open_provider(settings, transport)
    async with provider.client:
        text = await provider.transcribe(file.filename, data, file.content_type, settings.transcription_model)
    logger.info("Transcribed %d bytes -> %d chars", len(data), len(text))
    return {"text": text}


@router.post("/realtime/session")
async def create_realtime_session(
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_upstream_transport),
) -> Dict[str, Any]:
    """Create a short-lived realtime voice session for the browser."""
    provider = await open_provider(settings, transport)
    async with provider.client:
        return await provider.create_realtime_session(
            settings.realtime_model, settings.realtime_voice, settings.transcription_model
        )
