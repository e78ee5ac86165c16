"""Factory for creating broker clients"""

import logging
from typing import Optional

try:
    from broker_connector_base import BrokerClient, Brokerage, CredentialStore, SessionCache
    from app_config import AppConfig
    from schwab_connector import SchwabBroker
    from tradier_connector import TradierBroker
except ImportError as e:
    raise ImportError(
        f"Failed to import broker packages: {e}. "
        "Ensure packages are installed."
    )


def create_broker_client(
    brokerage: Brokerage | str,
    config: AppConfig,
    store: CredentialStore,
    cache: SessionCache,
    logger: Optional[logging.Logger] = None
) -> BrokerClient:
    """
    Factory to create the adapter for a brokerage binding.

    Args:
        brokerage: Brokerage the portfolio is bound to
        config: Application configuration
        store: Credential store shared by all adapters
        cache: Session cache shared by all adapters
        logger: Optional logger instance

    Returns:
        BrokerClient instance
    """
    name = str(brokerage.value if isinstance(brokerage, Brokerage) else brokerage).lower()

    if logger:
        logger.debug(f"Creating {name} broker client")

    if name == Brokerage.SCHWAB.value:
        return SchwabBroker(config.schwab, store=store, cache=cache, logger=logger)
    elif name == Brokerage.TRADIER.value:
        return TradierBroker(config.tradier, store=store, cache=cache, logger=logger)
    else:
        raise ValueError(f"Unsupported broker: {brokerage}")
