"""Tests for the credential manager: caching, expiry, refresh errors, concurrency."""

from __future__ import annotations

import base64
import json
import logging
import threading
import time

import httpx
import pytest

from mpesa.auth.manager import CredentialManager, basic_auth_header
from mpesa.exceptions import (
    AuthenticationError,
    ErrorCode,
    NetworkError,
    UnexpectedResponseError,
)
from mpesa.models import Endpoint, MpesaConfig


def _manager(mock_client, handler, clock, config: MpesaConfig | None = None) -> CredentialManager:
    return CredentialManager(
        "consumer-key",
        "consumer-secret",
        config or MpesaConfig(),
        http_client=mock_client(handler),
        clock=clock,
    )


class TestBasicAuthHeader:
    def test_encodes_key_and_secret(self) -> None:
        header = basic_auth_header("key", "secret")
        assert header == "Basic " + base64.b64encode(b"key:secret").decode()


class TestTokenRequest:
    def test_sends_basic_auth_get_to_token_url(self, mock_client, clock, token_response) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return token_response()

        manager = _manager(mock_client, handler, clock)
        assert manager.current_token() == "tok-1"

        (request,) = seen
        assert request.method == "GET"
        assert str(request.url) == MpesaConfig().auth_url
        assert request.url.params["grant_type"] == "client_credentials"
        assert request.headers["Authorization"] == basic_auth_header("consumer-key", "consumer-secret")

    def test_honours_endpoint_override(self, mock_client, clock, token_response) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return token_response()

        config = MpesaConfig(endpoints={Endpoint.AUTH: "https://mock.local/token"})
        _manager(mock_client, handler, clock, config).refresh()
        assert seen == ["https://mock.local/token"]

    def test_accepts_numeric_string_expiry(self, mock_client, clock, token_response) -> None:
        manager = _manager(mock_client, lambda r: token_response(expires_in="3599"), clock)
        manager.refresh()
        assert manager.credential is not None
        assert manager.credential.expires_at == clock.now + 3599


class TestCaching:
    def test_initial_state_has_no_credential(self, mock_client, clock, token_response) -> None:
        manager = _manager(mock_client, lambda r: token_response(), clock)
        assert manager.credential is None

    def test_valid_token_is_reused(self, mock_client, clock, token_response) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return token_response()

        manager = _manager(mock_client, handler, clock)
        assert manager.current_token() == "tok-1"
        clock.advance(3599)
        assert manager.current_token() == "tok-1"
        assert len(calls) == 1

    def test_expired_token_is_refreshed(self, mock_client, clock, token_response) -> None:
        tokens = iter(["tok-1", "tok-2"])
        manager = _manager(mock_client, lambda r: token_response(next(tokens)), clock)

        assert manager.current_token() == "tok-1"
        clock.advance(3600)  # now == expires_at counts as expired
        assert manager.current_token() == "tok-2"

    def test_expiry_uses_issue_time(self, mock_client, clock, token_response) -> None:
        manager = _manager(mock_client, lambda r: token_response(expires_in=60), clock)
        manager.refresh()
        assert manager.credential.expires_at == 1_060.0

    def test_refresh_always_fetches(self, mock_client, clock, token_response) -> None:
        tokens = iter(["tok-1", "tok-2"])
        manager = _manager(mock_client, lambda r: token_response(next(tokens)), clock)
        manager.refresh()
        manager.refresh()
        assert manager.current_token() == "tok-2"


class TestStaleTokenRefresh:
    def test_skips_network_when_token_already_replaced(self, mock_client, clock, token_response) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return token_response(f"tok-{len(calls)}")

        manager = _manager(mock_client, handler, clock)
        manager.refresh()
        manager.refresh()
        assert manager.current_token() == "tok-2"

        manager.refresh(stale_token="tok-1")
        assert len(calls) == 2
        assert manager.current_token() == "tok-2"

    def test_refreshes_when_stale_token_is_current(self, mock_client, clock, token_response) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return token_response(f"tok-{len(calls)}")

        manager = _manager(mock_client, handler, clock)
        token = manager.current_token()
        manager.refresh(stale_token=token)
        assert len(calls) == 2
        assert manager.current_token() == "tok-2"


class TestRefreshErrors:
    def test_401_raises_authentication_error(self, mock_client, clock) -> None:
        manager = _manager(
            mock_client, lambda r: httpx.Response(401, text="bad credentials"), clock
        )
        with pytest.raises(AuthenticationError) as exc_info:
            manager.current_token()
        assert exc_info.value.response_body == "bad credentials"
        assert "Invalid API credentials: 401" in str(exc_info.value)

    def test_empty_body_raises_invalid_response(self, mock_client, clock) -> None:
        manager = _manager(mock_client, lambda r: httpx.Response(200, text=""), clock)
        with pytest.raises(UnexpectedResponseError) as exc_info:
            manager.refresh()
        assert exc_info.value.error_code is ErrorCode.INVALID_RESPONSE
        assert exc_info.value.response_body is None

    @pytest.mark.parametrize(
        "body",
        ['{"expires_in": 10}', "not json", '{"access_token": "", "expires_in": 5}', "[1, 2]"],
    )
    def test_malformed_body_raises_invalid_response(self, mock_client, clock, body: str) -> None:
        manager = _manager(mock_client, lambda r: httpx.Response(200, text=body), clock)
        with pytest.raises(UnexpectedResponseError) as exc_info:
            manager.refresh()
        assert exc_info.value.error_code is ErrorCode.INVALID_RESPONSE
        assert exc_info.value.response_body == body

    @pytest.mark.parametrize(
        "body",
        ['{"access_token": "live-token-123"}', '{"access_token": "live-token-123", "expires_in": "soon"}'],
    )
    def test_partial_body_never_exposes_token(self, mock_client, clock, caplog, body: str) -> None:
        manager = _manager(mock_client, lambda r: httpx.Response(200, text=body), clock)
        with caplog.at_level(logging.DEBUG, logger="mpesa"):
            with pytest.raises(UnexpectedResponseError) as exc_info:
                manager.refresh()

        assert "live-token-123" not in caplog.text
        assert "live-token-123" not in (exc_info.value.response_body or "")
        assert json.loads(exc_info.value.response_body)["access_token"] == "***"

    @pytest.mark.parametrize("expires_in", [0, "0", -5])
    def test_non_positive_lifetime_is_rejected(
        self, mock_client, clock, token_response, expires_in
    ) -> None:
        manager = _manager(mock_client, lambda r: token_response(expires_in=expires_in), clock)
        with pytest.raises(UnexpectedResponseError) as exc_info:
            manager.current_token()
        assert exc_info.value.error_code is ErrorCode.INVALID_RESPONSE
        assert manager.credential is None

        assert exc_info.value.response_body == body

    def test_server_error_raises_invalid_response(self, mock_client, clock) -> None:
        body = '{"requestId": "r-1", "errorCode": "500.001.1001", "errorMessage": "boom"}'
        manager = _manager(mock_client, lambda r: httpx.Response(500, text=body), clock)
        with pytest.raises(UnexpectedResponseError) as exc_info:
            manager.refresh()
        assert exc_info.value.response_body == body
        assert exc_info.value.error_response is not None
        assert exc_info.value.error_response.error_code == "500.001.1001"

    def test_transport_failure_raises_network_error(self, mock_client, clock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        manager = _manager(mock_client, handler, clock)
        with pytest.raises(NetworkError) as exc_info:
            manager.current_token()
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_failed_refresh_keeps_previous_credential(self, mock_client, clock, token_response) -> None:
        responses = iter([token_response("tok-1"), httpx.Response(401, text="revoked")])
        manager = _manager(mock_client, lambda r: next(responses), clock)
        manager.refresh()
        before = manager.credential

        with pytest.raises(AuthenticationError):
            manager.refresh()
        assert manager.credential is before


class TestConcurrency:
    def test_concurrent_callers_share_one_refresh(self, mock_client, clock) -> None:
        calls = []
        lock = threading.Lock()

        def handler(request: httpx.Request) -> httpx.Response:
            with lock:
                calls.append(request)
            time.sleep(0.05)
            return httpx.Response(200, json={"access_token": "shared", "expires_in": 3600})

        manager = _manager(mock_client, handler, clock)
        start = threading.Barrier(8)
        results: list[str] = []

        def worker() -> None:
            start.wait()
            token = manager.current_token()
            with lock:
                results.append(token)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert results == ["shared"] * 8

    def test_concurrent_stale_refreshes_converge(self, mock_client, clock, token_response) -> None:
        calls = []
        lock = threading.Lock()

        def handler(request: httpx.Request) -> httpx.Response:
            with lock:
                calls.append(request)
                n = len(calls)
            return token_response(f"tok-{n}")

        manager = _manager(mock_client, handler, clock)
        rejected = manager.current_token()

        threads = [
            threading.Thread(target=manager.refresh, kwargs={"stale_token": rejected})
            for _ in range(5)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 2
        assert manager.current_token() == "tok-2"


class TestConstruction:
    def test_rejects_missing_credentials(self) -> None:
        with pytest.raises(ValueError):
            CredentialManager("", "secret")

    def test_repr_hides_secrets(self, mock_client, clock, token_response) -> None:
        manager = _manager(mock_client, lambda r: token_response(), clock)
        assert "consumer-secret" not in repr(manager)
        assert "consumer-key" not in repr(manager)

    def test_supplied_client_is_not_closed(self, mock_client, clock, token_response) -> None:
        client = mock_client(lambda r: token_response())
        with CredentialManager("k", "s", http_client=client, clock=clock):
            pass
        assert not client.is_closed
