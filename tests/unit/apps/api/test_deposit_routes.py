from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.api.main.app import create_app
from shadowflow.shared_kernel.primitives import KeyScope

_CONFIG_PATH = Path(__file__).resolve().parents[4] / "configs" / "test" / "shadowflow.yaml"
_OWNER = "0x1111111111111111111111111111111111111111"


def _build_app() -> FastAPI:
    return create_app(environ={"SHADOWFLOW_ENV": "test"}, config_path=_CONFIG_PATH)


def _register(client: TestClient, mode: str) -> None:
    connected = client.post(
        "/wallet/connect",
        json={"address": _OWNER, "chain_id": 43113, "mode": mode},
    )
    assert connected.status_code == 200
    registered = client.post("/wallet/register")
    assert registered.status_code == 200


def test_post_deposit_wraps_public_tokens_in_converter_mode() -> None:
    """
    Verify converter deposit endpoint credits encrypted balance from public tokens.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Test config uses sandbox SDK with 2 decimals.
    Raises:
        AssertionError: If response or balances differ.
    Side Effects:
        None.
    """
    app = _build_app()
    with TestClient(app) as client:
        _register(client, "converter")
        sandbox = app.state.shadowflow.sandbox
        sandbox.fund_public(address=_OWNER, amount=500)
        response = client.post("/deposits", json={"amount": "1.5"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["state"] == "success"
    assert payload["transaction_hash"]
    assert payload["linkage_warning"] is None
    assert sandbox.balance_of(scope=KeyScope.of(_OWNER, "converter")) == 150
    assert sandbox.public_balance_of(address=_OWNER) == 350


def test_post_deposit_in_standalone_mode_is_conflict() -> None:
    app = _build_app()
    with TestClient(app) as client:
        _register(client, "standalone")
        app.state.shadowflow.sandbox.fund_public(address=_OWNER, amount=500)
        response = client.post("/deposits", json={"amount": "1"})

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "converter_mode_required"


def test_post_deposit_rejects_invalid_amount() -> None:
    app = _build_app()
    with TestClient(app) as client:
        _register(client, "converter")
        response = client.post("/deposits", json={"amount": "-5"})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "invalid_amount"
