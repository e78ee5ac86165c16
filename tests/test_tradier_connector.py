"""Tradier REST client and adapter."""

import pytest

from app_config import TradierConfig
from broker_connector_base import (
    BrokerAuthError,
    Brokerage,
    HttpResponse,
    NoCredentialsError,
    OrderExecutionError,
    TradierCredential,
)
from tradier_connector import TradierBroker, TradierClient, parse_positions

from conftest import TRADIER_PORTFOLIO, json_response

PROFILE = "/v1/user/profile"
POSITIONS = "/v1/accounts/VA000001/positions"
ORDERS = "/v1/accounts/VA000001/orders"


class TestParsePositions:

    def test_single_object(self):
        positions = parse_positions({"positions": {"position": {"symbol": "SPY", "quantity": 3}}})
        assert [(p.symbol, p.long_quantity) for p in positions] == [("SPY", 3)]

    def test_list_filters_and_floors(self):
        data = {"positions": {"position": [
            {"symbol": "SPY", "quantity": 3.9},
            {"symbol": "QQQ", "quantity": 0},
            {"symbol": "IWM", "quantity": -2},
            {"symbol": "DIA", "quantity": "n/a"},
            {"symbol": "", "quantity": 4},
        ]}}
        assert [(p.symbol, p.long_quantity) for p in parse_positions(data)] == [("SPY", 3)]

    @pytest.mark.parametrize("data", [{"positions": "null"}, {"positions": None}, {}, None])
    def test_empty_account(self, data):
        assert parse_positions(data) == []


def make_client(sandbox=False):
    return TradierClient(TradierConfig(), api_key="tradier-key", sandbox=sandbox)


class TestTradierClient:

    async def test_sandbox_base_url(self, tradier_http):
        tradier_http.on("GET", POSITIONS, json_response({"positions": "null"}))
        await make_client(sandbox=True).get_positions("VA000001")
        assert tradier_http.requests[0].url == f"https://sandbox.tradier.com{POSITIONS}"
        assert tradier_http.requests[0].bearer == "Bearer tradier-key"

    async def test_account_id_prefers_open_account(self, tradier_http):
        tradier_http.on("GET", PROFILE, json_response({"profile": {"account": [
            {"account_number": "VA1", "status": "closed"},
            {"account_number": "VA2", "status": "active"},
        ]}}))
        assert await make_client().get_account_id() == "VA2"

    async def test_account_id_single_account_object(self, tradier_http):
        tradier_http.on("GET", PROFILE, json_response(
            {"profile": {"account": {"account_number": "VA9", "status": "closed"}}}
        ))
        assert await make_client().get_account_id() == "VA9"

    async def test_market_order_form(self, tradier_http):
        tradier_http.on("POST", ORDERS, json_response({"order": {"id": 228175, "status": "ok"}}))

        order_id = await make_client().place_order("VA000001", "buy", "AAPL", 10, price=150.5, order_type="market")

        assert order_id == "228175"
        assert tradier_http.requests[0].kwargs["data"] == {
            "class": "equity",
            "symbol": "AAPL",
            "side": "buy",
            "quantity": "10",
            "type": "market",
            "duration": "day",
        }

    async def test_limit_order_includes_price(self, tradier_http):
        tradier_http.on("POST", ORDERS, json_response({"order": {"status": "ok"}}))

        order_id = await make_client().place_order("VA000001", "sell", "AAPL", 4, price=150.5, order_type="limit")

        assert order_id is None
        assert tradier_http.requests[0].kwargs["data"]["price"] == "150.50"

    async def test_order_errors_raise(self, tradier_http):
        tradier_http.on("POST", ORDERS, json_response({"errors": {"error": "Backoffice rejected override of the order."}}))
        with pytest.raises(OrderExecutionError, match="Backoffice rejected"):
            await make_client().place_order("VA000001", "buy", "AAPL", 1)

    async def test_401_raises_auth_error(self, tradier_http):
        tradier_http.on("GET", POSITIONS, HttpResponse(status=401, text="Invalid Access Token"))
        with pytest.raises(BrokerAuthError) as exc_info:
            await make_client().get_positions("VA000001")
        assert exc_info.value.code == "INVALID_API_KEY"


class TestTradierBroker:

    async def test_missing_api_key(self, config, store, cache):
        broker = TradierBroker(config.tradier, store=store, cache=cache)
        with pytest.raises(NoCredentialsError, match="Tradier API key is required"):
            await broker.check_credentials(TRADIER_PORTFOLIO)

    async def test_stored_account_id_skips_profile_lookup(self, config, tradier_store, cache, tradier_http):
        broker = TradierBroker(config.tradier, store=tradier_store, cache=cache)
        assert await broker.resolve_account_id(TRADIER_PORTFOLIO) == "VA000001"
        assert tradier_http.requests == []

    async def test_account_id_resolved_and_persisted(self, config, store, cache, tradier_http):
        await store.write_credential(TRADIER_PORTFOLIO, TradierCredential(api_key="tradier-key", sandbox=True))
        tradier_http.on("GET", PROFILE, json_response(
            {"profile": {"account": [{"account_number": "VA777", "status": "active"}]}}
        ))
        broker = TradierBroker(config.tradier, store=store, cache=cache)

        assert await broker.resolve_account_id(TRADIER_PORTFOLIO) == "VA777"
        assert await broker.resolve_account_id(TRADIER_PORTFOLIO) == "VA777"

        assert len(tradier_http.calls("GET", PROFILE)) == 1
        stored = await store.read_credential(TRADIER_PORTFOLIO, Brokerage.TRADIER)
        assert stored.account_id == "VA777"
        assert stored.sandbox is True

    async def test_refresh_is_not_possible(self, config, tradier_store, cache):
        broker = TradierBroker(config.tradier, store=tradier_store, cache=cache)
        assert await broker.refresh_credentials(TRADIER_PORTFOLIO) is False

    async def test_place_order_lowercases_side(self, config, tradier_store, cache, tradier_http):
        tradier_http.on("POST", ORDERS, json_response({"order": {"id": 42, "status": "ok"}}))
        broker = TradierBroker(config.tradier, store=tradier_store, cache=cache)

        result = await broker.place_order(TRADIER_PORTFOLIO, "SELL", "SPY", 3, 500.0)

        assert result.success is True
        assert result.order_id == "42"
        assert tradier_http.requests[0].kwargs["data"]["side"] == "sell"
