"""
Version information endpoint.
"""

from fastapi import APIRouter

from ...models.api_models import VersionResponse
from ...version import API_VERSION, get_component_versions

router = APIRouter()


@router.get("/version", response_model=VersionResponse)
async def get_version() -> VersionResponse:
    """Return API and component versions for audit and debugging."""
    return VersionResponse(
        api_version=API_VERSION,
        components=get_component_versions(),
    )
