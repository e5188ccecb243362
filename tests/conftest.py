"""
Test fixtures and configuration.
"""

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer
from fakes import FakeNode

from wallet_gateway.config import Settings
from wallet_gateway.registry import SessionRegistry
from wallet_gateway.server import GatewayServer


@pytest.fixture
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        rpc_url="http://127.0.0.1:18443",
        rpc_user="user",
        rpc_password="pass",
        network="regtest",
        cors_origin="http://localhost:8080",
    )


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def gateway(settings, registry, node) -> GatewayServer:
    return GatewayServer(settings, registry=registry, session_factory=node.session)


@pytest_asyncio.fixture
async def client(gateway):
    async with TestClient(TestServer(gateway.app)) as client:
        yield client
