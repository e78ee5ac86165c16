import json
from dataclasses import dataclass, field
from typing import Any, Dict, List
from unittest.mock import patch

import pytest

from app_config import AppConfig, SchwabConfig, TradierConfig
from broker_connector_base import (
    HttpResponse,
    InMemoryCredentialStore,
    SchwabCredential,
    SessionCache,
    TradierCredential,
)
from schwab_connector import SchwabApiClient
from tradier_connector import TradierClient

SCHWAB_PORTFOLIO = 1
TRADIER_PORTFOLIO = 2


def json_response(payload: Any, status: int = 200, headers: Dict[str, str] = None) -> HttpResponse:
    return HttpResponse(status=status, text=json.dumps(payload), headers=headers or {})


@dataclass
class RecordedRequest:
    method: str
    url: str
    kwargs: Dict[str, Any]

    @property
    def bearer(self):
        return (self.kwargs.get("headers") or {}).get("Authorization")


@dataclass
class FakeHttp:
    """Routes requests by method and URL fragment to queued responses.

    The last queued response for a route is reused once the queue drains. A
    queued coroutine function is awaited with the request to build the response.
    """
    routes: List[tuple] = field(default_factory=list)
    requests: List[RecordedRequest] = field(default_factory=list)

    def on(self, method: str, fragment: str, *responses: HttpResponse) -> "FakeHttp":
        self.routes.append((method, fragment, list(responses)))
        return self

    def calls(self, method: str, fragment: str) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == method and r.url.endswith(fragment)]

    async def handle(self, method: str, url: str, **kwargs) -> HttpResponse:
        request = RecordedRequest(method, url, kwargs)
        self.requests.append(request)
        for route_method, fragment, queue in self.routes:
            if route_method == method and url.endswith(fragment):
                response = queue.pop(0) if len(queue) > 1 else queue[0]
                if callable(response):
                    response = await response(request)
                return response
        raise AssertionError(f"Unexpected request: {method} {url}")


@pytest.fixture
def config():
    return AppConfig(
        schwab=SchwabConfig(trading_enabled=True, client_id="app-key", client_secret="app-secret"),
        tradier=TradierConfig(trading_enabled=True),
    )


@pytest.fixture
def store():
    return InMemoryCredentialStore()


@pytest.fixture
def cache():
    return SessionCache()


@pytest.fixture
def schwab_credential():
    return SchwabCredential(
        access_token="access-1",
        refresh_token="refresh-1",
        redirect_uri="https://127.0.0.1/callback",
        account_number="11112222",
    )


@pytest.fixture
def tradier_credential():
    return TradierCredential(api_key="tradier-key", account_id="VA000001")


@pytest.fixture
async def schwab_store(store, schwab_credential):
    await store.write_credential(SCHWAB_PORTFOLIO, schwab_credential)
    return store


@pytest.fixture
async def tradier_store(store, tradier_credential):
    await store.write_credential(TRADIER_PORTFOLIO, tradier_credential)
    return store


@pytest.fixture
def schwab_http():
    http = FakeHttp()

    async def _send(client, method, url, **kwargs):
        return await http.handle(method, url, **kwargs)

    with patch.object(SchwabApiClient, "_send", _send):
        yield http


@pytest.fixture
def tradier_http():
    http = FakeHttp()

    async def _send(client, method, url, **kwargs):
        return await http.handle(method, url, **kwargs)

    with patch.object(TradierClient, "_send", _send):
        yield http


def schwab_accounts(*pairs):
    return json_response([{"accountNumber": number, "hashValue": hash_value} for number, hash_value in pairs])


def schwab_account(positions):
    return json_response({"securitiesAccount": {"accountNumber": "11112222", "positions": positions}})


def schwab_position(symbol, long_quantity, short_quantity=0, market_value=None):
    return {
        "instrument": {"symbol": symbol, "assetType": "EQUITY"},
        "longQuantity": long_quantity,
        "shortQuantity": short_quantity,
        "marketValue": market_value,
        "currentDayProfitLoss": 1.5,
        "currentDayProfitLossPercentage": 0.2,
        "longOpenProfitLoss": 12.0,
    }
