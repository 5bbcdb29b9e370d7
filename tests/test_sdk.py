"""End-to-end tests for the MpesaSdk facade over a mock transport."""

from __future__ import annotations

import json
import threading

import httpx
import pytest

from mpesa import AuthenticationError, ConfigError, MpesaConfig, MpesaSdk, RequestCancelledError
from mpesa.dto import StkPushRequest
from mpesa.models import Settings

PHONE = "251700000000"


def _stk_request() -> StkPushRequest:
    return StkPushRequest(
        business_short_code="174379",
        password="cGFzc3dvcmQ=",
        amount="10",
        party_a=PHONE,
        party_b="174379",
        phone_number=PHONE,
        callback_url="https://example.com/callback",
        account_reference="INV-001",
        transaction_desc="Invoice 001",
    )


def _stk_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"CheckoutRequestID": "ws_CO_1", "ResponseCode": "0"})


class TestMpesaSdk:
    def test_stk_push_fetches_token_once(self, mock_client, routed, sleeper) -> None:
        handler = routed(_stk_ok)
        sdk = MpesaSdk("key", "secret", MpesaConfig(), http_client=mock_client(handler), sleep=sleeper)

        first = sdk.request_stk_push(_stk_request())
        second = sdk.request_stk_push(_stk_request())

        assert first.checkout_request_id == "ws_CO_1"
        assert second.is_successful
        assert handler.token_requests == 1

    def test_test_auth_refreshes(self, mock_client, routed) -> None:
        handler = routed(_stk_ok, tokens=["tok-1", "tok-2"])
        sdk = MpesaSdk("key", "secret", http_client=mock_client(handler))
        sdk.test_auth()
        sdk.test_auth()
        assert handler.token_requests == 2
        assert sdk.credentials.credential.access_token == "tok-2"

    def test_test_auth_rejected(self, mock_client) -> None:
        client = mock_client(lambda r: httpx.Response(401, text="Unauthorized"))
        sdk = MpesaSdk("key", "wrong", http_client=client)
        with pytest.raises(AuthenticationError):
            sdk.test_auth()

    def test_cancel_is_forwarded(self, mock_client, routed) -> None:
        handler = routed(_stk_ok)
        sdk = MpesaSdk("key", "secret", http_client=mock_client(handler))
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(RequestCancelledError):
            sdk.request_stk_push(_stk_request(), cancel=cancel)

    def test_wire_payload_uses_provider_keys(self, mock_client, routed) -> None:
        payloads: list[dict] = []

        def resource(request: httpx.Request) -> httpx.Response:
            payloads.append(json.loads(request.content))
            return _stk_ok(request)

        sdk = MpesaSdk("key", "secret", http_client=mock_client(routed(resource)))
        sdk.request_stk_push(_stk_request())
        assert payloads[0]["PhoneNumber"] == PHONE
        assert payloads[0]["CallBackURL"] == "https://example.com/callback"

    def test_shared_client_is_not_closed(self, mock_client, routed) -> None:
        client = mock_client(routed(_stk_ok))
        with MpesaSdk("key", "secret", http_client=client):
            pass
        assert not client.is_closed

    def test_owned_client_is_closed(self) -> None:
        sdk = MpesaSdk("key", "secret")
        sdk.close()
        assert sdk._client.is_closed

    def test_rejects_empty_credentials(self) -> None:
        with pytest.raises(ValueError):
            MpesaSdk("", "secret")


class TestFromSettings:
    def test_resolves_env_sources(self, monkeypatch, mock_client, routed) -> None:
        monkeypatch.setenv("MY_KEY", "env-key")
        monkeypatch.setenv("MY_SECRET", "env-secret")
        seen: list[str] = []

        def resource(request: httpx.Request) -> httpx.Response:
            return _stk_ok(request)

        token_handler = routed(resource)

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/v1/token/generate":
                seen.append(request.headers["Authorization"])
            return token_handler(request)

        settings = Settings(consumer_key_source="env:MY_KEY", consumer_secret_source="env:MY_SECRET")
        sdk = MpesaSdk.from_settings(settings, http_client=mock_client(handler))
        sdk.test_auth()

        from mpesa.auth.manager import basic_auth_header

        assert seen == [basic_auth_header("env-key", "env-secret")]

    def test_missing_env_source(self, monkeypatch) -> None:
        monkeypatch.delenv("NOT_SET_ANYWHERE", raising=False)
        settings = Settings(consumer_key_source="env:NOT_SET_ANYWHERE")
        with pytest.raises(ConfigError):
            MpesaSdk.from_settings(settings)
