import ssl

import pytest

from sockettest.tlsconfig import (
    Protocol,
    TLSConfigError,
    TLSSettings,
    VerifyMode,
    client_settings,
    protocol_from_index,
    server_settings,
    tls_supported,
    verify_mode_from_index,
)


@pytest.mark.parametrize(
    "index, expected",
    [
        (0, Protocol.ANY),
        (1, Protocol.SSL_V2),
        (2, Protocol.SSL_V3),
        (3, Protocol.TLS_V1_0),
        (7, Protocol.ANY),
        (-1, Protocol.ANY),
    ],
)
def test_protocol_from_index(index, expected):
    assert protocol_from_index(index) is expected


@pytest.mark.parametrize(
    "index, expected",
    [
        (0, VerifyMode.NONE),
        (1, VerifyMode.QUERY_PEER),
        (2, VerifyMode.VERIFY_PEER),
        (3, VerifyMode.AUTO_VERIFY_PEER),
        (9, VerifyMode.NONE),
    ],
)
def test_verify_mode_from_index(index, expected):
    assert verify_mode_from_index(index) is expected


def test_tls_supported_here():
    assert tls_supported() is True


def test_client_settings_allow_missing_files():
    settings = client_settings("", "", 3, 2)
    assert settings == TLSSettings("", "", Protocol.TLS_V1_0, VerifyMode.VERIFY_PEER)


def test_server_settings_require_key():
    with pytest.raises(TLSConfigError, match="private key"):
        server_settings("", "server.pem", 0, 0)


def test_server_settings_require_cert():
    with pytest.raises(TLSConfigError, match="certificate"):
        server_settings("server.key", "", 0, 0)


def test_server_settings_values():
    settings = server_settings("server.key", "server.pem", 0, 1)
    assert settings.key_file == "server.key"
    assert settings.cert_file == "server.pem"
    assert settings.protocol is Protocol.ANY
    assert settings.verify_mode is VerifyMode.QUERY_PEER


@pytest.mark.parametrize(
    "mode, expected",
    [
        (VerifyMode.NONE, ssl.CERT_NONE),
        (VerifyMode.QUERY_PEER, ssl.CERT_NONE),
        (VerifyMode.VERIFY_PEER, ssl.CERT_REQUIRED),
        (VerifyMode.AUTO_VERIFY_PEER, ssl.CERT_REQUIRED),
    ],
)
def test_client_context_verify_mode(mode, expected):
    context = TLSSettings(verify_mode=mode).client_context()
    assert context.verify_mode == expected
    assert context.check_hostname is False


def test_client_context_missing_certificate(tmp_path):
    settings = TLSSettings(cert_file=str(tmp_path / "missing.pem"))
    with pytest.raises(TLSConfigError):
        settings.client_context()


def test_server_context_missing_files(tmp_path):
    settings = TLSSettings(
        key_file=str(tmp_path / "missing.key"),
        cert_file=str(tmp_path / "missing.pem"),
    )
    with pytest.raises(TLSConfigError):
        settings.server_context()


def test_server_context_invalid_certificate(tmp_path):
    cert = tmp_path / "bad.pem"
    cert.write_text("not a certificate", encoding="utf-8")
    settings = TLSSettings(key_file=str(cert), cert_file=str(cert))
    with pytest.raises(TLSConfigError):
        settings.server_context()