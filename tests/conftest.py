# tests/conftest.py
import threading

import pytest
from werkzeug.serving import make_server

from trafficsrv.config import ServerConfig
from trafficsrv.server import SHUTDOWN_KEY, create_app


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (real sockets)"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (rate-limited transfers take seconds)"
    )


@pytest.fixture
def app():
    app = create_app(ServerConfig())
    app.config["TESTING"] = True
    yield app
    app.extensions[SHUTDOWN_KEY].set()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def live_server():
    """Threaded werkzeug server on an ephemeral port; yields its base URL."""
    app = create_app(ServerConfig(port=0))
    server = make_server("127.0.0.1", 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_port}"
    finally:
        app.extensions[SHUTDOWN_KEY].set()
        server.shutdown()
        thread.join(timeout=5)
