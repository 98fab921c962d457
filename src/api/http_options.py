"""
HTTP options - routes the app contributes to the operator's management API.

An HTTPOption adds exactly one route to the router the operator builds
while launching. The app computes the full, immutable option tuple before
calling operator.launch(): routes cannot be added once the listener is live.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.HTTP)

HTTPOption = Callable[[APIRouter], None]

RESET_CONTINUITY_CHECKER_PATH = "/v1/reset_cc"


def reset_continuity_checker_option(reset: Callable[[], None]) -> HTTPOption:
    """GET /v1/reset_cc: reset the continuity checker, answer `ok`."""

    def register(router: APIRouter) -> None:
        def reset_cc() -> PlainTextResponse:
            reset()
            log.info("Continuity checker reset through management API")
            return PlainTextResponse("ok")

        router.add_api_route(
            RESET_CONTINUITY_CHECKER_PATH,
            reset_cc,
            methods=["GET"],
            response_class=PlainTextResponse,
            summary="Reset continuity checker",
        )

    return register


def build_http_options(
    reset_continuity_checker: Optional[Callable[[], None]] = None,
) -> Tuple[HTTPOption, ...]:
    """
    Compose the option tuple from feature presence.

    Args:
        reset_continuity_checker: Reset callable when a continuity checker
                                  is present, None otherwise
    """
    options = []
    if reset_continuity_checker is not None:
        options.append(reset_continuity_checker_option(reset_continuity_checker))
    return tuple(options)


def apply_http_options(router: APIRouter, *options: HTTPOption) -> APIRouter:
    """Operator side: register every option on router."""
    for option in options:
        option(router)
    return router
