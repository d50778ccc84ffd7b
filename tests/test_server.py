import pytest
from flask import Flask

from tscserver.config import DEFAULT_IP, DEFAULT_PORT, DEFAULT_SEC_KEY, ServerConfig
from tscserver.server import (
    INVALID_KEY_MESSAGE,
    SECURITY_KEY_HEADER,
    SECURITY_KEY_QUERY,
    create_app,
    parse_args,
    register_routes,
    startup_info,
)


@pytest.fixture
def config():
    return ServerConfig(ip="127.0.0.1", port="9000", sec_key="secret", debug=False)


@pytest.fixture
def client(config):
    return create_app(config).test_client()


def test_missing_key_is_rejected(client):
    resp = client.get("/anything")
    assert resp.status_code == 401
    assert resp.get_json() == {"error": INVALID_KEY_MESSAGE}


def test_wrong_header_key_is_rejected(client):
    resp = client.get("/", headers={SECURITY_KEY_HEADER: "token"})
    assert resp.status_code == 401


def test_header_key_passes_to_routing(client):
    resp = client.get("/missing", headers={SECURITY_KEY_HEADER: "secret"})
    assert resp.status_code == 404


def test_query_key_passes_to_routing(client):
    resp = client.get("/missing", query_string={SECURITY_KEY_QUERY: "secret"})
    assert resp.status_code == 404


def test_header_takes_precedence_over_query(client):
    resp = client.get(
        "/missing",
        headers={SECURITY_KEY_HEADER: "token"},
        query_string={SECURITY_KEY_QUERY: "secret"},
    )
    assert resp.status_code == 401


def test_register_routes_guards_existing_views(config):
    app = Flask("guarded")
    register_routes(app, config)

    @app.route("/ping")
    def ping():
        return "pong"

    client = app.test_client()
    assert client.get("/ping").status_code == 401
    ok = client.get("/ping", headers={SECURITY_KEY_HEADER: "secret"})
    assert ok.status_code == 200
    assert ok.get_data(as_text=True) == "pong"


def test_create_app_applies_debug_and_config(config):
    config.debug = True
    app = create_app(config)
    assert app.debug is True
    assert app.config["SERVER_CONFIG"] is config


def test_parse_args_defaults():
    cfg = parse_args([])
    assert cfg == ServerConfig(ip=DEFAULT_IP, port=DEFAULT_PORT, sec_key=DEFAULT_SEC_KEY, debug=False)
    assert cfg.ip == "0.0.0.0"
    assert cfg.port == "8080"


def test_parse_args_single_dash_flags():
    cfg = parse_args(["-ip", "127.0.0.1", "-port", "9000", "-key", "token", "-debug"])
    assert cfg == ServerConfig(ip="127.0.0.1", port="9000", sec_key="token", debug=True)


def test_parse_args_double_dash_flags():
    cfg = parse_args(["--port", "7000", "--key", "placeholder"])
    assert cfg.port == "7000"
    assert cfg.sec_key == "placeholder"
    assert cfg.debug is False


def test_startup_info_lists_settings(config):
    lines = startup_info(config).splitlines()
    assert lines[0] == lines[-1]
    assert set(lines[0]) == {"="}
    assert any(line.endswith("127.0.0.1:9000") for line in lines)
    assert any(line.endswith("secret") for line in lines)
    assert any(line.endswith("false") for line in lines)