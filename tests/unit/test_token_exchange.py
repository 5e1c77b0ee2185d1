"""Unit tests for the token exchange client and wallet URL construction."""

import json
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from setto_sdk import MalformedResponseError, NetworkError, PaymentRequest, SettoConfig
from setto_sdk.token_exchange import (
    TokenExchangeClient,
    build_direct_url,
    build_token_url,
    requires_exchange,
)


@pytest.mark.unit
class TestUrlConstruction:
    """Test the decision rule and both URL shapes."""

    def test_exchange_needed_only_with_idp_token(self, config, idp_config):
        request = PaymentRequest(amount="10.00")

        assert requires_exchange(config, request) is False
        assert requires_exchange(idp_config, request) is True
        assert requires_exchange(config, PaymentRequest(amount="10.00", idp_token="t")) is True

    def test_direct_url_uses_query_parameters(self, config):
        request = PaymentRequest(amount="10.50", order_id="order#1/a", currency="USD")

        url = build_direct_url(config, request)
        parts = urlsplit(url)

        assert url.startswith("https://dev-wallet.settopay.com/pay/wallet?")
        assert parts.fragment == ""
        assert "order%231%2Fa" in parts.query
        assert parse_qs(parts.query) == {
            "merchant_id": ["m1"],
            "amount": ["10.50"],
            "order_id": ["order#1/a"],
            "currency": ["USD"],
        }

    def test_direct_url_includes_return_scheme_when_configured(self):
        config = SettoConfig(merchant_id="m1", return_scheme="mygame")

        url = build_direct_url(config, PaymentRequest(amount="1"))

        assert url.startswith("https://wallet.settopay.com/pay/wallet?")
        assert parse_qs(urlsplit(url).query)["return_scheme"] == ["mygame"]

    def test_token_url_puts_token_in_fragment(self, config):
        url = build_token_url(config, "tok/+ en")
        parts = urlsplit(url)

        assert parts.query == ""
        assert parts.fragment == "pt=tok%2F%2B%20en"


@pytest.mark.unit
class TestTokenExchange:
    """Test the pre-flight POST to the token endpoint."""

    @pytest.mark.asyncio
    async def test_exchange_success(self, idp_config, api):
        tokens = TokenExchangeClient(api.client())

        url = await tokens.resolve_payment_url(
            idp_config, PaymentRequest(amount="5.00", order_id="o-1")
        )

        assert url == "https://dev-wallet.settopay.com/pay/wallet#pt=tok-123"
        assert len(api.requests) == 1
        sent = api.requests[0]
        assert sent.method == "POST"
        assert str(sent.url) == "https://dev-wallet.settopay.com/api/external/payment/token"
        assert json.loads(sent.content) == {
            "merchant_id": "m1",
            "amount": "5.00",
            "order_id": "o-1",
            "idp_token": "idp-abc",
        }

    @pytest.mark.asyncio
    async def test_request_token_overrides_config_token(self, idp_config, api):
        tokens = TokenExchangeClient(api.client())

        await tokens.exchange_token(idp_config, PaymentRequest(amount="5", idp_token="per-request"))

        body = json.loads(api.requests[0].content)
        assert body["idp_token"] == "per-request"
        assert "order_id" not in body

    @pytest.mark.asyncio
    async def test_no_network_without_idp_token(self, config, api):
        tokens = TokenExchangeClient(api.client())

        url = await tokens.resolve_payment_url(config, PaymentRequest(amount="5"))

        assert api.requests == []
        assert "?merchant_id=m1&amount=5" in url

    @pytest.mark.asyncio
    async def test_server_error_raises_network_error(self, idp_config, make_api):
        api = make_api(httpx.Response(500, text="boom"))
        tokens = TokenExchangeClient(api.client())

        with pytest.raises(NetworkError) as exc_info:
            await tokens.exchange_token(idp_config, PaymentRequest(amount="5"))

        assert exc_info.value.status_code == 500
        assert len(api.requests) == 1

    @pytest.mark.asyncio
    async def test_transport_failure_raises_network_error(self, idp_config, make_api):
        api = make_api(httpx.ConnectError("connection refused"))
        tokens = TokenExchangeClient(api.client())

        with pytest.raises(NetworkError, match="Network error"):
            await tokens.exchange_token(idp_config, PaymentRequest(amount="5"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="not json"),
            httpx.Response(200, json={"token": "wrong-field"}),
            httpx.Response(200, json={"payment_token": 42}),
            httpx.Response(200, json=["payment_token"]),
        ],
    )
    async def test_malformed_body(self, idp_config, response, make_api):
        tokens = TokenExchangeClient(make_api(response).client())

        with pytest.raises(MalformedResponseError):
            await tokens.exchange_token(idp_config, PaymentRequest(amount="5"))


@pytest.mark.unit
class TestPaymentInfo:
    """Test the status query endpoint."""

    @pytest.mark.asyncio
    async def test_fetch_payment_info(self, config, make_api):
        api = make_api(
            httpx.Response(
                200,
                json={
                    "payment_id": "P1",
                    "status": "completed",
                    "amount": 12.5,
                    "currency": "USDC",
                    "tx_hash": "0xabc",
                    "created_at": 1700000000,
                },
            )
        )
        tokens = TokenExchangeClient(api.client())

        info = await tokens.fetch_payment_info(config, "P1")

        assert info.payment_id == "P1"
        assert info.amount == "12.5"
        assert info.completed_at is None
        sent = api.requests[0]
        assert sent.method == "GET"
        assert str(sent.url) == "https://dev-wallet.settopay.com/api/external/payment/P1"
        assert sent.headers["X-Merchant-ID"] == "m1"

    @pytest.mark.asyncio
    async def test_not_found(self, config, make_api):
        tokens = TokenExchangeClient(make_api(httpx.Response(404)).client())

        with pytest.raises(NetworkError) as exc_info:
            await tokens.fetch_payment_info(config, "missing")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_status_is_malformed(self, config, make_api):
        api = make_api(
            httpx.Response(
                200,
                json={"payment_id": "P1", "amount": "1", "currency": "USDC", "created_at": 1},
            )
        )
        tokens = TokenExchangeClient(api.client())

        with pytest.raises(MalformedResponseError):
            await tokens.fetch_payment_info(config, "P1")
