"""
Unit tests for uvicorn listener options
"""

import ssl

import pytest

from spiredash.config import DashboardConfig
from spiredash.services.dashboard import DashboardServer


@pytest.fixture
def tls_files(tmp_path):
    cert = tmp_path / "tls.crt"
    key = tmp_path / "tls.key"
    ca = tmp_path / "ca.crt"
    for path in (cert, key, ca):
        path.write_text("pem")
    return cert, key, ca


def _server(fake_executor, **overrides):
    return DashboardServer(DashboardConfig(**overrides), executor=fake_executor)


def test_plain_http_defaults(fake_executor):
    options = _server(fake_executor).uvicorn_options()

    assert options == {"log_level": "info", "host": "127.0.0.1", "port": 3000}


def test_debug_raises_log_level(fake_executor):
    assert _server(fake_executor, debug=True).uvicorn_options()["log_level"] == "debug"


def test_unix_socket_replaces_host_and_port(fake_executor, tmp_path, tls_files):
    cert, key, _ = tls_files
    options = _server(
        fake_executor, uds_path=tmp_path / "dashboard.sock", tls_cert_path=cert, tls_key_path=key
    ).uvicorn_options()

    assert options == {"log_level": "info", "uds": str(tmp_path / "dashboard.sock")}


def test_tls(fake_executor, tls_files):
    cert, key, _ = tls_files
    options = _server(fake_executor, port=3443, tls_cert_path=cert, tls_key_path=key).uvicorn_options()

    assert options["port"] == 3443
    assert options["ssl_certfile"] == str(cert)
    assert options["ssl_keyfile"] == str(key)
    assert "ssl_cert_reqs" not in options


def test_mtls(fake_executor, tls_files):
    cert, key, ca = tls_files
    options = _server(
        fake_executor, tls_cert_path=cert, tls_key_path=key, client_ca_path=ca, mtls_required=True
    ).uvicorn_options()

    assert options["ssl_cert_reqs"] == ssl.CERT_REQUIRED
    assert options["ssl_ca_certs"] == str(ca)


def test_mtls_without_client_ca(fake_executor, tls_files):
    cert, key, _ = tls_files
    server = _server(fake_executor, tls_cert_path=cert, tls_key_path=key, mtls_required=True)

    with pytest.raises(ValueError):
        server.uvicorn_options()


def test_require_tls_without_certificate(fake_executor):
    with pytest.raises(ValueError):
        _server(fake_executor, require_tls=True).uvicorn_options()


def test_run_passes_options_to_uvicorn(fake_executor, monkeypatch):
    calls = []
    monkeypatch.setattr("spiredash.server.uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))
    server = _server(fake_executor, port=3100)

    server.run()

    assert calls == [(server.app, {"log_level": "info", "host": "127.0.0.1", "port": 3100})]


def test_run_refuses_plain_tcp_when_tls_required(fake_executor, monkeypatch):
    calls = []
    monkeypatch.setattr("spiredash.server.uvicorn.run", lambda app, **kwargs: calls.append(kwargs))

    with pytest.raises(ValueError):
        _server(fake_executor, require_tls=True).run()
    assert calls == []
