"""Hand-driven TCP, TLS and UDP testing: servers, clients, payloads and logs."""

__version__ = "1.0.0"

__all__ = ["cli", "payload", "sessionlog", "tcpclient", "tcpserver", "tlsconfig", "udp"]