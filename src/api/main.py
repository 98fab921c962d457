"""
Management API application factory

Operators serve their management API through create_app(): it mounts the
/healthz endpoint polled by the readiness prober plus every HTTPOption the
node manager app handed to operator.launch().

Run it with APIServerWrapper so the shutdown coordinator, not uvicorn,
owns process signals.
"""

from typing import Callable, Optional

from fastapi import APIRouter, FastAPI
from fastapi.responses import PlainTextResponse

from api.http_options import HTTPOption, apply_http_options
from api.readiness import HEALTH_PATH
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.HTTP)


def create_app(
    *http_options: HTTPOption,
    is_ready: Optional[Callable[[], bool]] = None,
    title: str = "Node Manager",
    version: str = "1.0.0",
) -> FastAPI:
    """
    Create the operator management API.

    Args:
        *http_options: Routes contributed by the node manager app
        is_ready: Health predicate for /healthz (default: always healthy)
        title: API title
        version: API version

    Returns:
        FastAPI application ready to serve
    """
    app = FastAPI(title=title, version=version, docs_url=None, redoc_url=None)

    router = APIRouter()

    @router.get(HEALTH_PATH, response_class=PlainTextResponse)
    def healthz() -> PlainTextResponse:
        if is_ready is None or is_ready():
            return PlainTextResponse("ready")
        return PlainTextResponse("not ready", status_code=503)

    apply_http_options(router, *http_options)
    app.include_router(router)

    log.debug(
        f"Created management API: {title} v{version}",
        routes=len(router.routes),
    )
    return app
