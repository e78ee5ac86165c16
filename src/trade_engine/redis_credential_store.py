"""
Redis Credential Store
Portfolio records and their exclusive brokerage binding in Redis
"""
from typing import List, Optional
import redis.asyncio as redis
from pydantic import TypeAdapter
from broker_connector_base import Brokerage, BrokerCredential, CredentialStore, Portfolio
from trade_engine.logger import AppLogger

app_logger = AppLogger(__name__)

_credential_adapter = TypeAdapter(BrokerCredential)

PORTFOLIOS_KEY = "portfolios"


def portfolio_key(portfolio_id: int) -> str:
    return f"portfolio:{portfolio_id}"


def brokerage_key(portfolio_id: int) -> str:
    return f"portfolio:{portfolio_id}:brokerage"


def credential_key(portfolio_id: int, brokerage: Brokerage) -> str:
    return f"portfolio:{portfolio_id}:credential:{brokerage.value}"


class RedisCredentialStore(CredentialStore):
    """Credential store backed by Redis.

    A credential write is one MULTI/EXEC transaction that deletes the other
    brokerage's credential, stores the new one and moves the binding.
    """

    def __init__(self, redis_url: Optional[str] = None, client: Optional[redis.Redis] = None):
        if client is None and redis_url is None:
            raise ValueError("redis_url or client is required")
        self.client = client or redis.Redis.from_url(redis_url, decode_responses=True)

    async def close(self) -> None:
        await self.client.aclose()

    async def read_credential(self, portfolio_id: int, brokerage: Brokerage) -> Optional[BrokerCredential]:
        try:
            raw = await self.client.get(credential_key(portfolio_id, brokerage))
        except Exception as e:
            app_logger.log_error(f"Failed to read {brokerage.value} credentials for portfolio {portfolio_id}: {e}")
            raise

        if not raw:
            return None
        return _credential_adapter.validate_json(raw)

    async def write_credential(self, portfolio_id: int, credential: BrokerCredential) -> None:
        brokerage = Brokerage(credential.brokerage)
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                for other in Brokerage:
                    if other != brokerage:
                        pipe.delete(credential_key(portfolio_id, other))
                pipe.set(credential_key(portfolio_id, brokerage), credential.model_dump_json())
                pipe.set(brokerage_key(portfolio_id), brokerage.value)
                await pipe.execute()
            app_logger.log_debug(f"Stored {brokerage.value} credentials for portfolio {portfolio_id}")
        except Exception as e:
            app_logger.log_error(f"Failed to write {brokerage.value} credentials for portfolio {portfolio_id}: {e}")
            raise

    async def get_brokerage(self, portfolio_id: int) -> Optional[Brokerage]:
        value = await self.client.get(brokerage_key(portfolio_id))
        if not value:
            return None
        try:
            return Brokerage(value)
        except ValueError:
            app_logger.log_warning(f"Unknown brokerage '{value}' stored for portfolio {portfolio_id}")
            return None

    async def delete_credentials(self, portfolio_id: int) -> None:
        async with self.client.pipeline(transaction=True) as pipe:
            for brokerage in Brokerage:
                pipe.delete(credential_key(portfolio_id, brokerage))
            pipe.delete(brokerage_key(portfolio_id))
            await pipe.execute()
        app_logger.log_info(f"Removed brokerage binding for portfolio {portfolio_id}")

    async def save_portfolio(self, portfolio: Portfolio) -> None:
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.set(portfolio_key(portfolio.id), portfolio.model_dump_json())
            pipe.sadd(PORTFOLIOS_KEY, str(portfolio.id))
            await pipe.execute()

    async def list_portfolios(self) -> List[Portfolio]:
        ids = sorted(int(i) for i in await self.client.smembers(PORTFOLIOS_KEY))
        portfolios = []
        for portfolio_id in ids:
            raw = await self.client.get(portfolio_key(portfolio_id))
            if raw:
                portfolios.append(Portfolio.model_validate_json(raw))
        return portfolios
