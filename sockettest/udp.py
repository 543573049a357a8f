"""A UDP endpoint that can listen on a port and send datagrams anywhere."""

from __future__ import annotations

import os
import select
import socket
from dataclasses import dataclass

from sockettest.payload import LineEnding, build_packet, format_received
from sockettest.sessionlog import SessionLog

MAX_HOSTNAME_LENGTH = 255
_MAX_DATAGRAM = 65535


class UdpError(Exception):
    """Raised when a UDP operation cannot be carried out."""


@dataclass(frozen=True)
class Datagram:
    """One received datagram and the address it came from."""

    data: bytes
    host: str
    port: int


def _family_for(host: str) -> socket.AddressFamily:
    return socket.AF_INET6 if ":" in host else socket.AF_INET


class UdpEndpoint:
    """Receives datagrams on a bound address and sends datagrams to any address.

    Sending works without binding first; the system then picks a local port.
    """

    def __init__(self, log: SessionLog | None = None, hex_mode: bool = False) -> None:
        self.log = log if log is not None else SessionLog()
        self.hex_mode = hex_mode
        self._sock: socket.socket | None = None
        self._senders: dict[socket.AddressFamily, socket.socket] = {}

    def __enter__(self) -> "UdpEndpoint":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
        for sender in self._senders.values():
            sender.close()
        self._senders.clear()

    @property
    def port(self) -> int | None:
        """The port actually bound, or None when not bound."""
        if self._sock is None:
            return None
        return self._sock.getsockname()[1]

    def bind(self, host: str, port: int) -> None:
        """Start listening for datagrams on host and port."""
        if self._sock is not None:
            raise UdpError("UDP server is already listening")
        if len(host) > MAX_HOSTNAME_LENGTH:
            raise UdpError("IP address / hostname is too long !")
        sock = socket.socket(_family_for(host), socket.SOCK_DGRAM)
        try:
            sock.bind((host, port))
        except OSError as exc:
            sock.close()
            raise UdpError(f"UDP server couldn't start. Reason: {exc}") from exc
        self._sock = sock
        self.log.append(f"Server Started on Port : {self.port}")

    def close(self) -> None:
        """Stop listening, if listening."""
        if self._sock is None:
            return
        self._sock.close()
        self._sock = None
        self.log.append("UDP Server stopped")

    def is_bound(self) -> bool:
        """Whether the endpoint listens for datagrams."""
        return self._sock is not None

    def send(self, data: bytes, host: str, port: int) -> None:
        """Send one datagram to host and port."""
        sock = self._socket_for(_family_for(host))
        try:
            sock.sendto(data, (host, port))
        except OSError as exc:
            raise UdpError(f"Could not send datagram: {exc}") from exc

    def send_message(
        self,
        text: str,
        hex_mode: bool = False,
        ending: LineEnding = LineEnding.NONE,
        host: str = "127.0.0.1",
        port: int = 0,
    ) -> bytes:
        """Build a packet from typed text, send it and log it; returns the packet."""
        packet = build_packet(text, hex_mode, ending)
        self.send(packet, host, port)
        self.log.append("[=>] : " + text)
        return packet

    def send_file(
        self, path: str | os.PathLike[str], host: str = "127.0.0.1", port: int = 0
    ) -> int:
        """Send the whole content of a file as one datagram; returns its size."""
        if not os.fspath(path):
            raise UdpError("Enter a file path !")
        try:
            with open(path, "rb") as handle:
                packet = handle.read()
        except OSError as exc:
            raise UdpError("Could not open the file for reading.") from exc
        self.send(packet, host, port)
        self.log.append("[=>] File was sent.")
        return len(packet)

    def receive(self, timeout: float = 0.0) -> Datagram | None:
        """Read one datagram, waiting up to timeout seconds; None if none came."""
        sock = self._sock
        if sock is None:
            return None
        if not select.select([sock], [], [], timeout)[0]:
            return None
        try:
            data, address = sock.recvfrom(_MAX_DATAGRAM)
        except OSError:
            return None
        self.log.append(format_received(data, self.hex_mode))
        return Datagram(data=data, host=str(address[0]), port=int(address[1]))

    def _socket_for(self, family: socket.AddressFamily) -> socket.socket:
        if self._sock is not None and self._sock.family == family:
            return self._sock
        sender = self._senders.get(family)
        if sender is None:
            sender = socket.socket(family, socket.SOCK_DGRAM)
            self._senders[family] = sender
        return sender