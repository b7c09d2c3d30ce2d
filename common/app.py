"""Core FastAPI application utilities shared across all services."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import fastapi
import fastapi.middleware.cors
import fastapi.responses

import common.health
import common.log
import common.settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Cross-origin policy
# ---------------------------------------------------------------------------


def install_origin_policy(app: fastapi.FastAPI, allowed_origins: Sequence[str]) -> None:
    """Reject requests from origins outside the allow-list and add CORS headers.

    Requests without an Origin header (same-origin, curl, health probes) pass.
    """
    allowed = frozenset(allowed_origins)

    # Registered before the middleware below, so CORS runs inside the origin check.
    app.add_middleware(
        fastapi.middleware.cors.CORSMiddleware,
        allow_origins=list(allowed),
        allow_methods=['GET', 'HEAD', 'OPTIONS'],
        allow_headers=['*'],
    )

    @app.middleware('http')
    async def reject_unknown_origins(  # pyright: ignore[reportUnusedFunction]
        request: fastapi.Request,
        call_next: Callable[[fastapi.Request], Awaitable[fastapi.Response]],
    ) -> fastapi.Response:
        origin = request.headers.get('origin')
        if origin is not None and origin not in allowed:
            logger.warning(
                'Rejected request from origin %r to %s', origin, request.url.path
            )
            return fastapi.responses.JSONResponse(
                status_code=403, content={'detail': 'Origin not allowed'}
            )
        return await call_next(request)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(
    title: str,
    allowed_origins: Sequence[str] | None = None,
    **kwargs: Any,
) -> fastapi.FastAPI:
    """Create a FastAPI app with health endpoint, logging and origin policy configured.

    allowed_origins defaults to common.settings.ALLOWED_ORIGINS. Additional
    keyword arguments are forwarded to FastAPI.__init__ (e.g. lifespan).
    """
    app = fastapi.FastAPI(title=title, **kwargs)
    common.log.configure_logging()
    if allowed_origins is None:
        allowed_origins = common.settings.ALLOWED_ORIGINS
    install_origin_policy(app, allowed_origins)
    app.include_router(common.health.router)
    return app
