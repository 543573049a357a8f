"""A TCP client, plain or TLS, that talks to one server."""

from __future__ import annotations

import os
import select
import socket
from typing import Any

from sockettest.payload import LineEnding, build_packet, format_received
from sockettest.sessionlog import SessionLog
from sockettest.tlsconfig import TLSConfigError, TLSSettings

_CHUNK_SIZE = 65536


class ClientError(Exception):
    """Raised when the client cannot connect or talk to the server."""


def describe_socket_error(error: BaseException) -> str:
    """A message for the user explaining a socket error."""
    if isinstance(error, socket.gaierror):
        return "Connection refused, server not found, check IP and Port"
    if isinstance(error, ConnectionRefusedError):
        return (
            "Connection refused, server refused the connection, "
            "check IP and Port and that server is available"
        )
    if isinstance(error, (ConnectionResetError, ConnectionAbortedError, BrokenPipeError)):
        return "Server closed the connection"
    return f"ERROR : {error}"


def _describe_cipher(sock: Any, context: Any) -> str:
    cipher = sock.cipher()
    if not cipher:
        return ""
    name, version, bits = cipher
    auth, used, supported = version, bits, bits
    for info in context.get_ciphers():
        if info.get("name") == name:
            auth = info.get("auth", version)
            used = info.get("strength_bits", bits)
            supported = info.get("alg_bits", bits)
            break
    return f"{auth}, {name} ({used}/{supported})"


class TcpClient:
    """Connects to a server, sends messages and files, and logs what arrives."""

    def __init__(
        self,
        tls: TLSSettings | None = None,
        log: SessionLog | None = None,
        hex_mode: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self.tls = tls
        self.log = log if log is not None else SessionLog()
        self.hex_mode = hex_mode
        self._timeout = timeout
        self._sock: socket.socket | None = None
        self._peer: str | None = None
        self._cipher = ""

    def __enter__(self) -> "TcpClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def secure(self) -> bool:
        """Whether the connection is encrypted."""
        return self.tls is not None

    @property
    def peer_address(self) -> str | None:
        """Address of the server, or None when not connected."""
        return self._peer

    def connect(self, host: str, port: int) -> None:
        """Connect to host and port, dropping any previous connection."""
        self.close()
        self.log.append("Attempting to connect...")
        context = None
        if self.tls is not None:
            try:
                context = self.tls.client_context()
            except TLSConfigError as exc:
                raise ClientError(str(exc)) from exc
        try:
            sock = socket.create_connection((host, port), timeout=self._timeout)
        except OSError as exc:
            raise ClientError(describe_socket_error(exc)) from exc
        if context is not None:
            try:
                sock = context.wrap_socket(sock, server_hostname=host or None)
            except OSError as exc:
                sock.close()
                raise ClientError(describe_socket_error(exc)) from exc
            self._cipher = _describe_cipher(sock, context)
        self._sock = sock
        self._peer = str(sock.getpeername()[0])
        self.log.append("Connected !")

    def close(self) -> None:
        """Close the connection, if there is one."""
        if self._sock is not None:
            self._sock.close()
        self._sock = None
        self._peer = None
        self._cipher = ""

    def is_connected(self) -> bool:
        """Whether a connection is open."""
        return self._sock is not None

    def cipher_description(self) -> str:
        """The negotiated cipher, or an empty string for plain connections."""
        return self._cipher

    def send(self, data: bytes) -> None:
        """Send raw bytes to the server."""
        if self._sock is None:
            raise ClientError("Not connected")
        try:
            self._sock.sendall(data)
        except OSError as exc:
            self.close()
            raise ClientError(describe_socket_error(exc)) from exc

    def send_message(
        self, text: str, hex_mode: bool = False, ending: LineEnding = LineEnding.NONE
    ) -> bytes:
        """Build a packet from typed text, send it and log it; returns the packet."""
        packet = build_packet(text, hex_mode, ending)
        self.send(packet)
        self.log.append("[=>] : " + text)
        return packet

    def send_file(self, path: str | os.PathLike[str]) -> int:
        """Send the whole content of a file; returns the number of bytes sent."""
        if not os.fspath(path):
            raise ClientError("Enter a file path !")
        try:
            with open(path, "rb") as handle:
                packet = handle.read()
        except OSError as exc:
            raise ClientError("Could not open the file for reading.") from exc
        self.send(packet)
        self.log.append("[=>] File was sent to server.")
        return len(packet)

    def receive(self, timeout: float = 0.0) -> bytes:
        """Read what the server has sent, waiting up to timeout seconds.

        Returns an empty result when nothing arrived; if the server closed
        the connection, the client is left disconnected.
        """
        sock = self._sock
        if sock is None:
            return b""
        if not self._has_buffered(sock):
            if not select.select([sock], [], [], timeout)[0]:
                return b""
        chunks = []
        closed = False
        while True:
            try:
                data = sock.recv(_CHUNK_SIZE)
            except TimeoutError:
                break
            except OSError:
                closed = True
                break
            if not data:
                closed = True
                break
            chunks.append(data)
            if not self._has_buffered(sock):
                break
        received = b"".join(chunks)
        if received:
            self.log.append(format_received(received, self.hex_mode))
        if closed:
            self.close()
        return received

    @staticmethod
    def _has_buffered(sock: socket.socket) -> bool:
        pending = getattr(sock, "pending", None)
        return bool(pending()) if pending is not None else False