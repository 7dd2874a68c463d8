from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from actions_indexer.app.config import settings


def create_app_async_engine(*, echo: bool = False) -> AsyncEngine:
    """
    AsyncEngine shared by the transaction actions task: reads staged logs
    and domain.tokens, writes domain.transaction_actions.
    """
    return create_async_engine(
        settings.database_url,  # postgresql+asyncpg://...
        echo=echo,
        pool_pre_ping=True,
    )
