"""A TCP server, plain or TLS, that serves a single client at a time."""

from __future__ import annotations

import os
import select
import socket
from typing import Any

from sockettest.payload import LineEnding, build_packet, format_received
from sockettest.sessionlog import SessionLog
from sockettest.tlsconfig import TLSConfigError, TLSSettings

MAX_HOSTNAME_LENGTH = 255
_CHUNK_SIZE = 65536
_SEPARATOR = "~" * 33


class ServerError(Exception):
    """Raised when the server cannot do what was asked of it."""


class TcpServer:
    """Listens on one address and talks to the first client that connects.

    Further clients are turned away while one is connected. With TLS
    settings the accepted connection is encrypted before it is used.
    """

    def __init__(
        self,
        tls: TLSSettings | None = None,
        log: SessionLog | None = None,
        hex_mode: bool = False,
        io_timeout: float = 10.0,
    ) -> None:
        self.tls = tls
        self.log = log if log is not None else SessionLog()
        self.hex_mode = hex_mode
        self._io_timeout = io_timeout
        self._listener: socket.socket | None = None
        self._context: Any = None
        self._client: socket.socket | None = None
        self._peer: str | None = None

    def __enter__(self) -> "TcpServer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._close_client()
        if self._listener is not None:
            self._listener.close()
            self._listener = None

    @property
    def secure(self) -> bool:
        """Whether connections are encrypted."""
        return self.tls is not None

    @property
    def port(self) -> int | None:
        """The port actually listened on, or None when not listening."""
        if self._listener is None:
            return None
        return self._listener.getsockname()[1]

    def start(self, host: str, port: int) -> None:
        """Start listening on host and port."""
        if self._listener is not None:
            raise ServerError("Server is already listening")
        kind = "Secure Server" if self.secure else "Server"
        if len(host) > MAX_HOSTNAME_LENGTH:
            raise ServerError("IP address / hostname is too long !")
        context = None
        if self.tls is not None:
            try:
                context = self.tls.server_context()
            except TLSConfigError as exc:
                raise ServerError(f"{kind} couldn't start. Reason: {exc}") from exc
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        try:
            listener = socket.create_server((host, port), family=family)
        except OSError as exc:
            raise ServerError(f"{kind} couldn't start. Reason: {exc}") from exc
        listener.setblocking(False)
        self._listener = listener
        self._context = context
        self.log.append(f"{kind} Started\r\n{_SEPARATOR}")

    def stop(self) -> None:
        """Stop listening; a connected client stays connected."""
        if self._listener is None:
            return
        self._listener.close()
        self._listener = None
        self.log.append("SSL Server stopped" if self.secure else "Server stopped")

    def is_listening(self) -> bool:
        """Whether the server accepts connections."""
        return self._listener is not None

    def client_address(self) -> str | None:
        """Address of the connected client, or None."""
        return self._peer

    def poll(self, timeout: float = 0.0) -> list[bytes]:
        """Handle pending connections and data, waiting up to timeout seconds.

        Returns the chunks of data received from the client.
        """
        received: list[bytes] = []
        watched = [s for s in (self._listener, self._client) if s is not None]
        if not watched:
            return received
        buffered = self._client is not None and self._has_buffered(self._client)
        ready = set(select.select(watched, [], [], 0.0 if buffered else timeout)[0])
        if buffered:
            ready.add(self._client)
        if self._listener is not None and self._listener in ready:
            self._accept()
        client = self._client
        if client is not None and client in ready:
            data = self._read(client)
            if data is None:
                self._close_client()
                self.log.append(
                    "SSL Client closed conection." if self.secure
                    else "Client closed conection."
                )
            elif data:
                self.log.append(format_received(data, self.hex_mode))
                received.append(data)
        return received

    def send(self, data: bytes) -> None:
        """Send raw bytes to the connected client."""
        if self._client is None:
            raise ServerError("No client connected")
        try:
            self._client.sendall(data)
        except OSError as exc:
            self._close_client()
            raise ServerError(f"Could not send data: {exc}") from exc

    def send_message(
        self, text: str, hex_mode: bool = False, ending: LineEnding = LineEnding.NONE
    ) -> bytes:
        """Build a packet from typed text, send it and log it; returns the packet."""
        packet = build_packet(text, hex_mode, ending)
        self.send(packet)
        prefix = "[Encrypted =>] : " if self.secure else "[=>] : "
        self.log.append(prefix + text)
        return packet

    def send_file(self, path: str | os.PathLike[str]) -> int:
        """Send the whole content of a file; returns the number of bytes sent."""
        if not os.fspath(path):
            raise ServerError("Enter a file path !")
        try:
            with open(path, "rb") as handle:
                packet = handle.read()
        except OSError as exc:
            raise ServerError("Could not open the file for reading.") from exc
        self.send(packet)
        self.log.append(
            "[=>] File was sent to connected SSL client." if self.secure
            else "[=>] File was sent to connected client."
        )
        return len(packet)

    def disconnect_client(self) -> None:
        """Close the connection to the client, if there is one."""
        if self._client is None:
            return
        self._close_client()
        self.log.append(
            "SSL Client closed conection." if self.secure
            else "Server closed client connection."
        )

    def _accept(self) -> None:
        assert self._listener is not None
        try:
            conn, address = self._listener.accept()
        except (BlockingIOError, InterruptedError):
            return
        if self._client is not None:
            conn.close()
            return
        conn.settimeout(self._io_timeout)
        peer = str(address[0])
        if self._context is not None:
            self.log.append(f"New SSL Client addr: {peer}")
            try:
                conn = self._context.wrap_socket(conn, server_side=True)
            except OSError as exc:
                conn.close()
                self.log.append(f"SSL handshake failed: {exc}")
                self.log.append("SSL Client closed conection.")
                return
        else:
            self.log.append(f"New Client addr: {peer}")
        self._client = conn
        self._peer = peer

    def _read(self, client: socket.socket) -> bytes | None:
        chunks = []
        while True:
            try:
                data = client.recv(_CHUNK_SIZE)
            except TimeoutError:
                break
            except OSError:
                return None
            if not data:
                return None if not chunks else b"".join(chunks)
            chunks.append(data)
            if not self._has_buffered(client):
                break
        return b"".join(chunks)

    @staticmethod
    def _has_buffered(client: socket.socket) -> bool:
        pending = getattr(client, "pending", None)
        return bool(pending()) if pending is not None else False

    def _close_client(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._peer = None