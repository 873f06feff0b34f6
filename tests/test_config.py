import logging

import pytest

from trafficsrv.__main__ import build_parser, main
from trafficsrv.config import ServerConfig, configure_logging


def test_from_address():
    config = ServerConfig.from_address("0.0.0.0:9000", request_timeout=5.0)
    assert (config.host, config.port, config.request_timeout) == ("0.0.0.0", 9000, 5.0)
    assert config.address == "0.0.0.0:9000"


def test_from_address_ipv6_and_empty_host():
    assert ServerConfig.from_address("[::1]:8080").host == "::1"
    assert ServerConfig.from_address(":8080").host == "0.0.0.0"


@pytest.mark.parametrize("address", ["localhost", "localhost:http", "host:99999", ""])
def test_from_address_invalid(address):
    with pytest.raises(ValueError):
        ServerConfig.from_address(address)


def test_config_is_frozen():
    with pytest.raises(AttributeError):
        ServerConfig().port = 1


def test_configure_logging_to_file(tmp_path):
    path = tmp_path / "traffic.log"
    configure_logging(ServerConfig(log_file=str(path)))
    try:
        logging.getLogger("trafficsrv.test").info("[REQUEST] GET /")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "[TRAFFIC] [REQUEST] GET /" in path.read_text()
    finally:
        for handler in list(logging.getLogger().handlers):
            if isinstance(handler, logging.FileHandler):
                logging.getLogger().removeHandler(handler)
                handler.close()


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.address == "127.0.0.1:8000"
    assert args.log_file is None
    assert not args.no_cors


def test_main_builds_config(monkeypatch):
    seen = {}
    monkeypatch.setattr("trafficsrv.__main__.run", lambda config: seen.setdefault("config", config))
    monkeypatch.setattr("trafficsrv.__main__.configure_logging", lambda config: None)
    assert main(["--address", "127.0.0.1:9999", "--default-size", "2K", "--timeout", "30", "--no-cors"]) == 0
    config = seen["config"]
    assert (config.port, config.default_size, config.request_timeout, config.cors) == (9999, 2048, 30.0, False)


def test_main_rejects_bad_address():
    with pytest.raises(SystemExit):
        main(["--address", "nowhere"])
