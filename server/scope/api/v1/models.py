from fastapi import APIRouter, Depends
from typing import Any, Dict, Optional
import httpx

from scope.api.deps import get_app_settings, get_upstream_transport, open_provider
from scope.config import Settings

router = APIRouter()


@router.get("/models")
async def get_models(
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_upstream_transport),
) -> Dict[str, Any]:
    """List the provider's chat models, newest families first."""
    provider = await open_provider(settings, transport)
    async with provider.client:
        models = await provider.list_models()
    return {"models": [m.model_dump() for m in models]}
