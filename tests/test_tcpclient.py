import socket
import time

import pytest

from sockettest.payload import LineEnding, PayloadError
from sockettest.tcpclient import ClientError, TcpClient, describe_socket_error
from sockettest.tlsconfig import TLSSettings


@pytest.fixture
def listener():
    sock = socket.create_server(("127.0.0.1", 0))
    sock.settimeout(5)
    yield sock
    sock.close()


@pytest.fixture
def pair(listener):
    client = TcpClient()
    client.connect("127.0.0.1", listener.getsockname()[1])
    conn, _ = listener.accept()
    conn.settimeout(5)
    yield client, conn
    conn.close()
    client.close()


def _recv_exact(sock, size):
    data = b""
    while len(data) < size:
        part = sock.recv(size - len(data))
        if not part:
            break
        data += part
    return data


def _receive_until(client, size, timeout=5.0):
    data = b""
    deadline = time.monotonic() + timeout
    while len(data) < size and time.monotonic() < deadline:
        data += client.receive(0.05)
    return data


def test_describe_known_errors():
    assert describe_socket_error(ConnectionRefusedError()).startswith(
        "Connection refused, server refused the connection"
    )
    assert describe_socket_error(socket.gaierror()).startswith(
        "Connection refused, server not found"
    )
    assert describe_socket_error(ConnectionResetError()) == "Server closed the connection"


def test_describe_other_error():
    assert describe_socket_error(OSError("boom")) == "ERROR : boom"


def test_connect_logs(pair):
    client, _ = pair
    assert client.is_connected()
    assert client.peer_address == "127.0.0.1"
    assert list(client.log) == ["Attempting to connect...", "Connected !"]
    assert client.cipher_description() == ""


def test_connect_refused():
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    client = TcpClient(timeout=2)
    with pytest.raises(ClientError, match="refused"):
        client.connect("127.0.0.1", port)
    assert not client.is_connected()


def test_secure_client_with_missing_certificate(tmp_path, listener):
    client = TcpClient(tls=TLSSettings(cert_file=str(tmp_path / "missing.pem")))
    with pytest.raises(ClientError):
        client.connect("127.0.0.1", listener.getsockname()[1])
    assert not client.is_connected()


def test_send_without_connection():
    with pytest.raises(ClientError, match="Not connected"):
        TcpClient().send(b"x")


def test_send_message_with_lf(pair):
    client, conn = pair
    packet = client.send_message("ping", ending=LineEnding.LF)
    assert packet == b"ping\n"
    assert _recv_exact(conn, len(packet)) == packet
    assert list(client.log)[-1] == "[=>] : ping"


def test_send_message_with_null(pair):
    client, conn = pair
    packet = client.send_message("ok", ending=LineEnding.NULL)
    assert _recv_exact(conn, len(packet)) == b"ok\x00"


def test_odd_hex_is_rejected(pair):
    client, _ = pair
    before = len(client.log)
    with pytest.raises(PayloadError):
        client.send_message("ABC", hex_mode=True)
    assert len(client.log) == before


def test_send_file(pair, tmp_path):
    client, conn = pair
    path = tmp_path / "payload.bin"
    content = b"\x00\x01\x02" * 1000
    path.write_bytes(content)
    assert client.send_file(path) == len(content)
    assert _recv_exact(conn, len(content)) == content
    assert list(client.log)[-1] == "[=>] File was sent to server."


def test_send_file_errors(pair, tmp_path):
    client, _ = pair
    with pytest.raises(ClientError, match="Enter a file path"):
        client.send_file("")
    with pytest.raises(ClientError, match="Could not open"):
        client.send_file(tmp_path / "absent.bin")


def test_receive_logs_text(pair):
    client, conn = pair
    conn.sendall(b"welcome")
    assert _receive_until(client, 7) == b"welcome"
    assert list(client.log)[-1] == "welcome"


def test_receive_nothing(pair):
    client, _ = pair
    assert client.receive(0.05) == b""
    assert client.is_connected()


def test_server_close_disconnects(pair):
    client, conn = pair
    conn.close()
    deadline = time.monotonic() + 5
    while client.is_connected() and time.monotonic() < deadline:
        client.receive(0.05)
    assert not client.is_connected()
    assert client.peer_address is None


def test_close_then_reconnect(pair, listener):
    client, _ = pair
    client.close()
    assert not client.is_connected()
    client.connect("127.0.0.1", listener.getsockname()[1])
    conn, _ = listener.accept()
    try:
        assert client.is_connected()
        assert list(client.log).count("Connected !") == 2
    finally:
        conn.close()