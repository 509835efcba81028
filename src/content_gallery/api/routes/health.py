"""Health check endpoint."""

from typing import Any

from fastapi import APIRouter

from content_gallery import __version__
from content_gallery.api.dependencies import AuthResolverDep, ClientFactoryDep


router = APIRouter(tags=["health"])


@router.get("/health")
async def health(resolver: AuthResolverDep, factory: ClientFactoryDep) -> dict[str, Any]:
    return {
        "status": "ok",
        "version": __version__,
        "auth_required": resolver.is_auth_required(),
        "mode": factory.mode.value,
    }
