"""TLS settings for the secure client and the secure server."""

from __future__ import annotations

import enum
import warnings
from dataclasses import dataclass

try:
    import ssl
except ImportError:  # Python built without OpenSSL
    ssl = None  # type: ignore[assignment]


class TLSConfigError(Exception):
    """Raised when TLS cannot be set up as requested."""


class Protocol(enum.Enum):
    """Protocol choices offered to the user, in menu order."""

    ANY = 0
    SSL_V2 = 1
    SSL_V3 = 2
    TLS_V1_0 = 3


class VerifyMode(enum.Enum):
    """Peer verification choices offered to the user, in menu order."""

    NONE = 0
    QUERY_PEER = 1
    VERIFY_PEER = 2
    AUTO_VERIFY_PEER = 3


def protocol_from_index(index: int) -> Protocol:
    """Map a menu index to a protocol; unknown indices mean ANY."""
    try:
        return Protocol(index)
    except ValueError:
        return Protocol.ANY


def verify_mode_from_index(index: int) -> VerifyMode:
    """Map a menu index to a verify mode; unknown indices mean NONE."""
    try:
        return VerifyMode(index)
    except ValueError:
        return VerifyMode.NONE


def tls_supported() -> bool:
    """Whether this interpreter can make TLS connections."""
    return ssl is not None


@dataclass(frozen=True)
class TLSSettings:
    """Key, certificate, protocol and verification choices for one side."""

    key_file: str = ""
    cert_file: str = ""
    protocol: Protocol = Protocol.ANY
    verify_mode: VerifyMode = VerifyMode.NONE

    def client_context(self) -> "ssl.SSLContext":
        """Build a context for connecting to a TLS server."""
        _require_tls()
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        if self.verify_mode in (VerifyMode.VERIFY_PEER, VerifyMode.AUTO_VERIFY_PEER):
            context.verify_mode = ssl.CERT_REQUIRED
            context.load_default_certs(ssl.Purpose.SERVER_AUTH)
        else:
            # The server always sends its certificate; it is just not checked.
            context.verify_mode = ssl.CERT_NONE
        self._apply_protocol(context)
        if self.cert_file:
            self._load_chain(context)
        return context

    def server_context(self) -> "ssl.SSLContext":
        """Build a context for accepting TLS clients."""
        _require_tls()
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.verify_mode = {
            VerifyMode.NONE: ssl.CERT_NONE,
            VerifyMode.QUERY_PEER: ssl.CERT_OPTIONAL,
            VerifyMode.VERIFY_PEER: ssl.CERT_REQUIRED,
            VerifyMode.AUTO_VERIFY_PEER: ssl.CERT_OPTIONAL,
        }[self.verify_mode]
        if context.verify_mode != ssl.CERT_NONE:
            context.load_default_certs(ssl.Purpose.CLIENT_AUTH)
        self._apply_protocol(context)
        self._load_chain(context)
        return context

    def _apply_protocol(self, context: "ssl.SSLContext") -> None:
        # SSLv2 and SSLv3 are not available; choosing them leaves the default.
        if self.protocol is not Protocol.TLS_V1_0:
            return
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", DeprecationWarning)
                context.minimum_version = ssl.TLSVersion.TLSv1
                context.maximum_version = ssl.TLSVersion.TLSv1
        except ValueError as exc:
            raise TLSConfigError(f"TLSv1.0 is not available: {exc}") from exc

    def _load_chain(self, context: "ssl.SSLContext") -> None:
        try:
            context.load_cert_chain(self.cert_file, self.key_file or None)
        except (OSError, ssl.SSLError) as exc:
            raise TLSConfigError(
                f"Could not load certificate {self.cert_file!r}: {exc}"
            ) from exc


def _require_tls() -> None:
    if not tls_supported():
        raise TLSConfigError("This system does not support OpenSSL.")


def client_settings(
    key_file: str, cert_file: str, protocol_index: int, verify_index: int
) -> TLSSettings:
    """Settings for the secure client; key and certificate are optional."""
    _require_tls()
    return TLSSettings(
        key_file=key_file,
        cert_file=cert_file,
        protocol=protocol_from_index(protocol_index),
        verify_mode=verify_mode_from_index(verify_index),
    )


def server_settings(
    key_file: str, cert_file: str, protocol_index: int, verify_index: int
) -> TLSSettings:
    """Settings for the secure server; key and certificate are required."""
    _require_tls()
    if not key_file:
        raise TLSConfigError(
            "You didn't indicate private key's file path. Go to SSL Settings."
        )
    if not cert_file:
        raise TLSConfigError(
            "You didn't indicate server's certificate file path. Go to SSL Settings."
        )
    return TLSSettings(
        key_file=key_file,
        cert_file=cert_file,
        protocol=protocol_from_index(protocol_index),
        verify_mode=verify_mode_from_index(verify_index),
    )