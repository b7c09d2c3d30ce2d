"""Shared health check router for FastAPI applications."""

from datetime import UTC, datetime

import fastapi

router = fastapi.APIRouter()


@router.api_route('/health', methods=['GET', 'HEAD'])
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {'status': 'healthy', 'timestamp': datetime.now(UTC).isoformat()}
