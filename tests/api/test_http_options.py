"""
Tests for routes contributed to the operator's management API.
"""

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient

from api.http_options import (
    RESET_CONTINUITY_CHECKER_PATH,
    apply_http_options,
    build_http_options,
    reset_continuity_checker_option,
)
from api.main import create_app


def test_no_options_without_checker():
    assert build_http_options() == ()
    assert build_http_options(None) == ()


def test_reset_option_registers_single_get_route():
    router = APIRouter()

    apply_http_options(router, reset_continuity_checker_option(lambda: None))

    assert len(router.routes) == 1
    route = router.routes[0]
    assert route.path == RESET_CONTINUITY_CHECKER_PATH == "/v1/reset_cc"
    assert route.methods == {"GET"}


def test_reset_cc_resets_and_answers_ok():
    resets = []
    client = TestClient(create_app(*build_http_options(lambda: resets.append(1))))

    response = client.get("/v1/reset_cc")

    assert response.status_code == 200
    assert response.text == "ok"
    assert resets == [1]


def test_reset_cc_is_get_only():
    client = TestClient(create_app(*build_http_options(lambda: None)))

    assert client.post("/v1/reset_cc").status_code == 405


def test_failing_reset_is_server_error():
    def reset():
        raise RuntimeError("checker busy")

    client = TestClient(create_app(*build_http_options(reset)), raise_server_exceptions=False)

    assert client.get("/v1/reset_cc").status_code == 500


@pytest.mark.parametrize("ready, status", [(True, 200), (False, 503)])
def test_healthz(ready, status):
    client = TestClient(create_app(is_ready=lambda: ready))

    assert client.get("/healthz").status_code == status
