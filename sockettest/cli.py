"""Command-line front end: a TCP server, a TCP client or a UDP endpoint."""

from __future__ import annotations

import argparse
import queue
import sys
import threading
import time
from typing import Callable, TextIO

from sockettest.payload import LineEnding, PayloadError
from sockettest.sessionlog import SessionLog
from sockettest.tcpclient import ClientError, TcpClient
from sockettest.tcpserver import ServerError, TcpServer
from sockettest.tlsconfig import TLSConfigError, client_settings, server_settings
from sockettest.udp import UdpEndpoint, UdpError

_POLL_INTERVAL = 0.05
_ENDINGS = {
    "none": LineEnding.NONE,
    "null": LineEnding.NULL,
    "lf": LineEnding.LF,
    "crlf": LineEnding.CRLF,
}
_RUNTIME_ERRORS = (PayloadError, ServerError, ClientError, UdpError, OSError)


def _port(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
    if not 0 <= number <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {value!r}")
    return number


def _endpoint(value: str) -> tuple[str, int]:
    host, sep, port = value.rpartition(":")
    host = host.strip("[]")
    if not sep or not host:
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got {value!r}")
    return host, _port(port)


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for the sockettest command."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--hex", action="store_true",
                        help="send typed text as hexadecimal and show received data as hex")
    common.add_argument("--ending", choices=sorted(_ENDINGS), default="lf",
                        help="terminator appended to text messages (default: lf)")

    tls = argparse.ArgumentParser(add_help=False)
    tls.add_argument("--tls", action="store_true", help="use an encrypted connection")
    tls.add_argument("--key", default="", help="private key file (no passphrase)")
    tls.add_argument("--cert", default="", help="certificate file")
    tls.add_argument("--protocol", type=int, choices=range(4), default=0,
                     help="0 any, 1 SSLv2, 2 SSLv3, 3 TLSv1.0")
    tls.add_argument("--verify", type=int, choices=range(4), default=0,
                     help="0 none, 1 query peer, 2 verify peer, 3 auto")

    parser = argparse.ArgumentParser(
        prog="sockettest",
        description="Test TCP and UDP connections. Typed lines are sent; "
        "commands: /file PATH, /save PATH, /clear, /disconnect (server), /quit. "
        "Start a line with // to send text beginning with /.",
    )
    modes = parser.add_subparsers(dest="mode", required=True)

    server = modes.add_parser("server", parents=[common, tls], help="accept one TCP client")
    server.add_argument("port", type=_port)
    server.add_argument("--host", default="0.0.0.0")

    client = modes.add_parser("client", parents=[common, tls], help="connect to a TCP server")
    client.add_argument("host")
    client.add_argument("port", type=_port)

    udp = modes.add_parser("udp", parents=[common], help="send and receive UDP datagrams")
    udp.add_argument("--listen", type=_endpoint, metavar="HOST:PORT",
                     help="address to receive datagrams on")
    udp.add_argument("--to", type=_endpoint, metavar="HOST:PORT",
                     help="address typed messages and files are sent to")
    return parser


class _LogPrinter:
    """Prints the lines a session log gained since the last flush."""

    def __init__(self, log: SessionLog) -> None:
        self.log = log
        self._printed = 0

    def flush(self) -> None:
        lines = list(self.log)
        if len(lines) < self._printed:
            self._printed = 0
        for line in lines[self._printed:]:
            print(line, flush=True)
        self._printed = len(lines)


def _read_lines(stream: TextIO) -> "queue.Queue[str | None]":
    lines: "queue.Queue[str | None]" = queue.Queue()

    def feed() -> None:
        try:
            for line in stream:
                lines.put(line.rstrip("\r\n"))
        finally:
            lines.put(None)

    threading.Thread(target=feed, daemon=True).start()
    return lines


def _save_log(log: SessionLog, path: str) -> None:
    try:
        log.save(path)
    except OSError as exc:
        raise OSError("Could not open file for writing !") from exc


def _interact(
    printer: _LogPrinter,
    pump: Callable[[], bool],
    send_text: Callable[[str], object],
    send_file: Callable[[str], object],
    extra: dict[str, Callable[[str], object]] | None = None,
) -> int:
    commands: dict[str, Callable[[str], object]] = {
        "/file": lambda rest: send_file(rest.strip()),
        "/save": lambda rest: _save_log(printer.log, rest.strip()),
        "/clear": lambda rest: printer.log.clear(),
    }
    commands.update(extra or {})
    lines = _read_lines(sys.stdin)
    printer.flush()
    while True:
        try:
            keep_going = pump()
        except _RUNTIME_ERRORS as exc:
            print(f"error: {exc}", file=sys.stderr)
            keep_going = True
        printer.flush()
        if not keep_going:
            return 0
        while True:
            try:
                line = lines.get_nowait()
            except queue.Empty:
                break
            if line is None or line == "/quit":
                printer.flush()
                return 0
            try:
                if line.startswith("//"):
                    send_text(line[1:])
                elif line.startswith("/"):
                    name, _, rest = line.partition(" ")
                    action = commands.get(name)
                    if action is None:
                        print(f"Unknown command: {name}", file=sys.stderr)
                    else:
                        action(rest)
                else:
                    send_text(line)
            except _RUNTIME_ERRORS as exc:
                print(f"error: {exc}", file=sys.stderr)
            printer.flush()


def _run_server(args: argparse.Namespace) -> int:
    tls = server_settings(args.key, args.cert, args.protocol, args.verify) if args.tls else None
    ending = _ENDINGS[args.ending]
    with TcpServer(tls=tls, hex_mode=args.hex) as server:
        printer = _LogPrinter(server.log)
        server.start(args.host, args.port)
        printer.flush()
        print(f"Listening on {args.host}:{server.port}", flush=True)
        label = "Connected SSL Client" if server.secure else "Connected Client"
        last_peer: list[str | None] = [None]

        def pump() -> bool:
            server.poll(_POLL_INTERVAL)
            peer = server.client_address()
            if peer != last_peer[0]:
                printer.flush()
                print(f"{label} : < {peer or 'NONE'} >", flush=True)
                last_peer[0] = peer
            return True

        return _interact(
            printer,
            pump,
            lambda text: server.send_message(text, args.hex, ending),
            server.send_file,
            {"/disconnect": lambda rest: server.disconnect_client()},
        )


def _run_client(args: argparse.Namespace) -> int:
    tls = client_settings(args.key, args.cert, args.protocol, args.verify) if args.tls else None
    ending = _ENDINGS[args.ending]
    with TcpClient(tls=tls, hex_mode=args.hex) as client:
        printer = _LogPrinter(client.log)
        try:
            client.connect(args.host, args.port)
        finally:
            printer.flush()
        title = f"Connected To < {client.peer_address} >"
        if client.secure:
            title += f" Cipher : {client.cipher_description()}"
        print(title, flush=True)

        def pump() -> bool:
            client.receive(_POLL_INTERVAL)
            if not client.is_connected():
                printer.flush()
                print("Connected to < NONE >", flush=True)
                return False
            return True

        return _interact(
            printer,
            pump,
            lambda text: client.send_message(text, args.hex, ending),
            client.send_file,
        )


def _run_udp(args: argparse.Namespace) -> int:
    ending = _ENDINGS[args.ending]
    with UdpEndpoint(hex_mode=args.hex) as endpoint:
        printer = _LogPrinter(endpoint.log)
        if args.listen is not None:
            endpoint.bind(*args.listen)

        def destination() -> tuple[str, int]:
            if args.to is None:
                raise UdpError("No destination given; use --to HOST:PORT")
            return args.to

        def pump() -> bool:
            if endpoint.is_bound():
                endpoint.receive(_POLL_INTERVAL)
            else:
                time.sleep(_POLL_INTERVAL)
            return True

        return _interact(
            printer,
            pump,
            lambda text: endpoint.send_message(text, args.hex, ending, *destination()),
            lambda path: endpoint.send_file(path, *destination()),
        )


def main(argv: list[str] | None = None) -> int:
    """Run the command; returns the exit status."""
    args = build_parser().parse_args(argv)
    runners = {"server": _run_server, "client": _run_client, "udp": _run_udp}
    try:
        return runners[args.mode](args)
    except (ServerError, ClientError, UdpError, TLSConfigError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())