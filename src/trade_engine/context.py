"""
Portfolio context management using ContextVar for async-safe context propagation.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

# Context variable to store the portfolio being processed across async boundaries
current_portfolio: ContextVar[Optional[int]] = ContextVar('current_portfolio', default=None)


def get_current_portfolio() -> Optional[int]:
    """Get the current portfolio from the context."""
    return current_portfolio.get()


@contextmanager
def portfolio_context(portfolio_id: int) -> Iterator[None]:
    """Scope log records to one portfolio for the duration of a block."""
    token = current_portfolio.set(portfolio_id)
    try:
        yield
    finally:
        current_portfolio.reset(token)
