"""Plugin inspection and service REST API endpoints."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from devserver.dependencies import get_plugin_system, get_service_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["plugins"])


class ServiceCallRequest(BaseModel):
    """Request body for calling a plugin service."""

    payload: Optional[Any] = None


@router.get("/plugins")
async def list_plugins():
    """List all loaded plugins."""
    system = get_plugin_system()
    return {"plugins": system.list_plugins()}


@router.get("/plugins/{name}")
async def get_plugin(name: str):
    """Get detailed information about a loaded plugin."""
    system = get_plugin_system()
    info = system.get_plugin_info(name)
    if not info:
        raise HTTPException(status_code=404, detail=f"Plugin '{name}' not found")
    return info


@router.get("/services")
async def list_services():
    """List registered plugin services."""
    return {"services": get_service_registry().list_services()}


@router.post("/services/{name}")
async def call_service(name: str, body: ServiceCallRequest):
    """Call a service registered by a plugin."""
    io = get_service_registry()
    if io.get_service(name) is None:
        raise HTTPException(status_code=404, detail=f"Service '{name}' not found")

    try:
        result = await io.call(name, body.payload)
    except Exception as e:
        logger.error(f"Service '{name}' failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"result": result}
