"""Core components, composed once at process start."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inventory_api.core.config import Settings
from inventory_api.services.catalog import ItemCatalog
from inventory_api.services.credentials import CredentialStore
from inventory_api.services.ledger import InventoryLedger
from inventory_api.services.session import SessionValidator
from inventory_api.services.tokens import TokenIssuer


@dataclass(frozen=True)
class Services:
    credentials: CredentialStore
    tokens: TokenIssuer
    sessions: SessionValidator
    catalog: ItemCatalog
    ledger: InventoryLedger


def build_services(settings: Settings, session_maker: async_sessionmaker[AsyncSession]) -> Services:
    credentials = CredentialStore(session_maker, settings.store_timeout_seconds)
    catalog = ItemCatalog()
    return Services(
        credentials=credentials,
        tokens=TokenIssuer(settings.jwt_secret_key, credentials),
        sessions=SessionValidator(settings.jwt_secret_key, credentials),
        catalog=catalog,
        ledger=InventoryLedger(
            session_maker,
            catalog,
            settings.store_timeout_seconds,
            max_attempts=settings.store_max_attempts,
        ),
    )
