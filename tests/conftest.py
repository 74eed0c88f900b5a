"""Shared fixtures for the gmoryx test suite."""

from unittest.mock import MagicMock

import pytest

from gmoryx.app.addresses import AddressResolver, static_provider
from gmoryx.app.config import ServerConfig
from gmoryx.app.lifecycle import ServerLifecycle


@pytest.fixture
def fake_server():
    """Stand-in for HttpServer that records calls and never touches sockets."""
    server = MagicMock()
    server.listen_and_serve.return_value = None
    server.shutdown.return_value = None
    server.server_address = None
    return server


@pytest.fixture
def lan_resolver():
    return AddressResolver(static_provider({
        "lo": ["127.0.0.1", "::1"],
        "wlan0": ["192.168.1.5"],
    }))


@pytest.fixture
def lifecycle(fake_server, lan_resolver):
    return ServerLifecycle(server=fake_server, resolver=lan_resolver,
                           config=ServerConfig())
