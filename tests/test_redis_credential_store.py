"""Redis credential store against an in-process fake of the client API it uses."""

import json

import pytest

from broker_connector_base import Brokerage, Portfolio, SchwabCredential, TradierCredential
from trade_engine.redis_credential_store import RedisCredentialStore


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.commands.clear()

    def set(self, key, value):
        self.commands.append(("set", key, value))
        return self

    def delete(self, key):
        self.commands.append(("delete", key))
        return self

    def sadd(self, key, value):
        self.commands.append(("sadd", key, value))
        return self

    async def execute(self):
        self.redis.transactions += 1
        for name, *args in self.commands:
            await getattr(self.redis, name)(*args)


class FakeRedis:
    def __init__(self):
        self.values = {}
        self.sets = {}
        self.transactions = 0

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value):
        self.values[key] = value

    async def delete(self, key):
        self.values.pop(key, None)

    async def sadd(self, key, value):
        self.sets.setdefault(key, set()).add(value)

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    def pipeline(self, transaction=True):
        assert transaction is True
        return FakePipeline(self)


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest.fixture
def redis_store(redis_client):
    return RedisCredentialStore(client=redis_client)


def test_requires_url_or_client():
    with pytest.raises(ValueError):
        RedisCredentialStore()


async def test_credential_round_trip(redis_store, redis_client):
    credential = SchwabCredential(access_token="a", refresh_token="r", account_number="11112222")

    await redis_store.write_credential(1, credential)

    assert await redis_store.get_brokerage(1) == Brokerage.SCHWAB
    assert await redis_store.read_credential(1, Brokerage.SCHWAB) == credential
    assert json.loads(redis_client.values["portfolio:1:credential:schwab"])["brokerage"] == "schwab"
    assert redis_client.values["portfolio:1:brokerage"] == "schwab"


async def test_write_is_one_transaction_and_exclusive(redis_store, redis_client):
    await redis_store.write_credential(1, SchwabCredential(access_token="a", refresh_token="r"))
    await redis_store.write_credential(1, TradierCredential(api_key="k", account_id="VA1"))

    assert redis_client.transactions == 2
    assert "portfolio:1:credential:schwab" not in redis_client.values
    assert await redis_store.read_credential(1, Brokerage.SCHWAB) is None
    assert await redis_store.get_brokerage(1) == Brokerage.TRADIER


async def test_unknown_binding_reads_as_unbound(redis_store, redis_client):
    redis_client.values["portfolio:1:brokerage"] = "ibkr"
    assert await redis_store.get_brokerage(1) is None


async def test_delete_credentials(redis_store, redis_client):
    await redis_store.write_credential(1, TradierCredential(api_key="k"))
    await redis_store.delete_credentials(1)
    assert redis_client.values == {}


async def test_portfolios(redis_store):
    await redis_store.save_portfolio(Portfolio(id=10, name="Growth"))
    await redis_store.save_portfolio(Portfolio(id=2, name="Income"))

    portfolios = await redis_store.list_portfolios()

    assert [(p.id, p.name) for p in portfolios] == [(2, "Income"), (10, "Growth")]
