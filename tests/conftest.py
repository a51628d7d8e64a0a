"""
Pytest Configuration and Centralized Fixtures.

Provides reusable fixtures for testing the SDK without a network:
- A clock that only moves when a test (or a pending request) moves it
- A transport that answers with scripted responses and records requests
- Connection config, backend connection and manager wired to the fakes
- Product lists
"""

import pytest

from apprien.models.connection import ConnectionConfig, IntegrationType
from apprien.models.product import ApprienProduct, ProductType
from apprien.services.backend_connection import ApprienBackendConnection
from apprien.services.price_manager import ApprienManager
from tests.fakes import (
    API_BASE_URL,
    APPRIEN_IDENTIFIER,
    PACKAGE_NAME,
    TOKEN,
    FakeClock,
    FakeTransport,
)

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport(clock: FakeClock) -> FakeTransport:
    return FakeTransport(clock)


@pytest.fixture
def connection_config() -> ConnectionConfig:
    return ConnectionConfig(
        package_name=PACKAGE_NAME,
        token=TOKEN,
        integration_type=IntegrationType.GOOGLE_PLAY_STORE,
        apprien_identifier=APPRIEN_IDENTIFIER,
        api_base_url=API_BASE_URL,
    )


@pytest.fixture
def backend(
    connection_config: ConnectionConfig, transport: FakeTransport, clock: FakeClock
) -> ApprienBackendConnection:
    return ApprienBackendConnection(
        connection_config,
        transport=transport,
        time_provider=clock,
        poll_interval=0,
    )


@pytest.fixture
def manager(backend: ApprienBackendConnection) -> ApprienManager:
    return ApprienManager(backend)


@pytest.fixture
def products() -> list[ApprienProduct]:
    """Three consumables with base ids A, B and C."""
    return [ApprienProduct(base_id, ProductType.CONSUMABLE) for base_id in ("A", "B", "C")]
