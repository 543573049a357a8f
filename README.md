# sockettest

A small toolkit for poking at network services by hand. It can

- listen as a TCP server, plain or TLS, and talk to one connected client,
- connect as a TCP client, plain or TLS, to a server,
- bind a UDP endpoint, receive datagrams and send them to any address,

sending typed messages as text (optionally followed by a NUL, LF or CR LF
terminator) or as hexadecimal bytes, sending whole files, and showing what
arrives either as text or as hex. Everything shown is kept in a session log
that can be cleared or saved to a file.

It needs nothing beyond the Python standard library.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command line

Installing the package provides the `sockettest` command with three modes:

```
sockettest server PORT [--host HOST]
sockettest client HOST PORT
sockettest udp [--listen HOST:PORT] [--to HOST:PORT]
```

Options shared by all modes:

- `--hex` sends typed text as hexadecimal bytes and shows received data as
  lower-case hex.
- `--ending {none,null,lf,crlf}` picks the terminator appended to text
  messages (default `lf`); it is not used in hex mode.

`server` and `client` also take:

- `--tls` to encrypt the connection,
- `--key FILE` and `--cert FILE` for the private key (without a passphrase)
  and certificate; a TLS server requires both, a TLS client may go without,
- `--protocol N`: 0 any, 1 SSLv2, 2 SSLv3, 3 TLSv1.0. SSLv2 and SSLv3 are not
  available, so choosing them leaves the default protocol range,
- `--verify N`: 0 none, 1 query peer, 2 verify peer, 3 auto.

The server listens on `0.0.0.0` unless `--host` is given; port 0 lets the
system pick one, and the port actually used is printed. It serves one client
at a time and turns further clients away while one is connected.

Once running, each line typed on standard input is sent as a message.
Lines starting with `/` are commands:

- `/file PATH` sends the content of a file,
- `/save PATH` writes the session log to a text file,
- `/clear` empties the session log,
- `/disconnect` (server only) drops the connected client,
- `/quit` ends the program, as does the end of input.

Start a line with `//` to send text that begins with `/`. In `udp` mode,
messages and files go to the address given with `--to`; without `--listen`
nothing is received.

The command exits with status 1 when it cannot start (for instance a port in
use, a refused connection or missing TLS files) and 130 when interrupted.

## Using it from Python

- `sockettest.payload` turns what you type into bytes and received bytes
  into something to show. `parse_hex("48656C6C6F")` gives `b"Hello"`, case
  ignored; an odd number of hex digits or a non-hex symbol raises
  `PayloadError`. `build_packet(text, hex_mode, ending)` encodes text as
  UTF-8 and appends the chosen `LineEnding` (`NONE`, `NULL`, `LF`, `CRLF`),
  or decodes hex in hex mode. `format_received(data, hex_mode)` gives hex, or
  the UTF-8 text up to the first NUL byte.
- `sockettest.sessionlog.SessionLog` collects lines with `append`, and offers
  `clear`, `text` and `save(path)`; it can be iterated and has a length.
- `sockettest.tlsconfig` maps menu indices to `Protocol` and `VerifyMode`
  (`protocol_from_index`, `verify_mode_from_index`; unknown indices fall back
  to `ANY` and `NONE`). `client_settings(...)` and `server_settings(...)`
  return `TLSSettings`, whose `client_context()` and `server_context()` build
  `ssl.SSLContext` objects. `server_settings` raises `TLSConfigError` without
  a key or certificate, and both raise it when `tls_supported()` is false.
  Client contexts do not check host names.
- `sockettest.tcpserver.TcpServer` (a context manager) has `start(host, port)`,
  `stop()`, `is_listening()`, `port`, `client_address()` and `poll(timeout)`,
  which accepts a client and returns the chunks of data it sent. `send`,
  `send_message(text, hex_mode, ending)`, `send_file(path)` and
  `disconnect_client()` act on the connected client. Failures raise
  `ServerError`.
- `sockettest.tcpclient.TcpClient` (a context manager) has `connect(host, port)`,
  `close()`, `is_connected()`, `peer_address`, `cipher_description()`, `send`,
  `send_message`, `send_file` and `receive(timeout)`. Failures raise
  `ClientError`; `describe_socket_error(error)` gives a readable reason for a
  socket error.
- `sockettest.udp.UdpEndpoint` (a context manager) has `bind(host, port)`,
  `close()`, `is_bound()`, `port`, `send(data, host, port)`, `send_message`,
  `send_file` and `receive(timeout)`, which returns a `Datagram` with `data`,
  `host` and `port`, or `None`. Sending works without binding. Failures raise
  `UdpError`.

Every class writes what it sends and receives to its `log`, a `SessionLog`.
Host names or addresses longer than 255 characters are refused.

## What it does not do

There is no graphical interface: everything is driven from the command line
or from Python. There is no built-in reference list of well-known TCP or UDP
ports. The server talks to a single client at a time, and received data is
only shown and logged, not stored in files of its own.