"""
TLS connections and peer certificate inspection for TLS Host Checker.
"""

import asyncio
import ssl
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

from cryptography import x509
from cryptography.x509.verification import PolicyBuilder, Store, VerificationError

from tls_host_checker.config import Config
from tls_host_checker.errors import ConnectError, ConnectTimeoutError, ProbeTimeoutError
from tls_host_checker.logger import get_logger
from tls_host_checker.models import CertificateFields, TLSDetails
from tls_host_checker.timeouts import race

# OpenSSL's text form, as used in ssl.getpeercert() notBefore/notAfter
CERT_TIME_FORMAT = "%b %d %H:%M:%S %Y GMT"


def parse_alt_names(alt_names: Optional[str]) -> List[str]:
    """
    Split an alternative-name string such as ``"DNS:a.com, IP Address:1.2.3.4"``.

    A leading ``DNS:`` is stripped; any other entry is kept verbatim.
    """
    if not alt_names:
        return []
    return [name[4:] if name.startswith("DNS:") else name for name in alt_names.split(", ")]


def format_alt_names(cert: x509.Certificate) -> str:
    """Render the SAN extension in OpenSSL's comma-separated text form."""
    try:
        san_ext = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return ""

    entries = []
    for name in san_ext.value:
        if isinstance(name, x509.DNSName):
            entries.append(f"DNS:{name.value}")
        elif isinstance(name, x509.IPAddress):
            entries.append(f"IP Address:{name.value}")
        elif isinstance(name, x509.RFC822Name):
            entries.append(f"email:{name.value}")
        elif isinstance(name, x509.UniformResourceIdentifier):
            entries.append(f"URI:{name.value}")
        else:
            entries.append(str(name.value))
    return ", ".join(entries)


def _common_name(name: x509.Name) -> str:
    attrs = name.get_attributes_for_oid(x509.NameOID.COMMON_NAME)
    if not attrs:
        return ""
    value = attrs[0].value
    return value if isinstance(value, str) else value.decode("utf-8")


def extract_certificate_fields(cert: x509.Certificate) -> CertificateFields:
    """
    Extract the reported fields from a peer certificate.

    Args:
        cert: Certificate object

    Returns:
        Certificate fields
    """
    not_before = cert.not_valid_before_utc
    not_after = cert.not_valid_after_utc

    return CertificateFields(
        subject=_common_name(cert.subject),
        issuer=_common_name(cert.issuer),
        valid_from=not_before.strftime(CERT_TIME_FORMAT),
        valid_to=not_after.strftime(CERT_TIME_FORMAT),
        alt_names=parse_alt_names(format_alt_names(cert)),
        expiration_timestamp=not_after.timestamp(),
    )


class ConnectionState(Enum):
    """Lifecycle of a single connection attempt."""

    CONNECTING = "connecting"
    SECURED = "secured"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class ConnectionHandle:
    """
    An open TLS connection and the metadata negotiated on it.

    The caller owns the handle and must ``await close()`` it (or use it as an
    async context manager).
    """

    def __init__(
        self,
        hostname: str,
        address: str,
        writer: asyncio.StreamWriter,
        tls: TLSDetails,
        certificate: CertificateFields,
    ):
        self.hostname = hostname
        self.address = address
        self.tls = tls
        self.certificate = certificate
        self._writer = writer
        self._closed = False

    @property
    def version(self) -> str:
        return self.tls.version

    @property
    def cipher(self) -> str:
        return self.tls.cipher

    @property
    def authorized(self) -> bool:
        return self.tls.authorized

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        """Close the underlying connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await _close_writer(self._writer)

    async def __aenter__(self) -> "ConnectionHandle":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


async def _close_writer(writer: Optional[asyncio.StreamWriter]) -> None:
    """Close a stream writer, tolerating transports that are already gone."""
    if writer is None:
        return
    writer.close()
    try:
        await writer.wait_closed()
    except OSError as e:
        get_logger("connector").debug(f"Error while closing connection: {e}")


class SecureConnector:
    """
    Open TLS client connections to resolved addresses.

    With verification disabled the connection accepts any peer certificate, so
    trust is established separately: the chain the peer sent is checked
    against the system store where the interpreter exposes it, and otherwise a
    second, verifying handshake is made to the same address.
    """

    def __init__(self, config: Config, verify_context: Optional[ssl.SSLContext] = None):
        self.config = config
        self.logger = get_logger("connector")
        self._ssl_context = self._build_ssl_context()
        self._verify_context: Optional[ssl.SSLContext] = None
        self._trust_store: Optional[Store] = None

        if not config.reject_unauthorized:
            self._verify_context = verify_context or ssl.create_default_context()
            if hasattr(ssl.SSLObject, "get_unverified_chain"):
                self._trust_store = self._load_trust_store()

    def _build_ssl_context(self) -> ssl.SSLContext:
        if self.config.reject_unauthorized:
            return ssl.create_default_context()

        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        return ctx

    async def connect(self, hostname: str, address: str) -> ConnectionHandle:
        """
        Open a TLS connection to address, presenting hostname for SNI.

        Args:
            hostname: Name used for SNI and certificate matching
            address: Resolved IP address to connect to

        Returns:
            Open connection handle

        Raises:
            ConnectTimeoutError: If the handshake doesn't finish within the connect timeout
            ConnectError: On any other connection or handshake failure
        """
        state = ConnectionState.CONNECTING
        writer: Optional[asyncio.StreamWriter] = None
        try:
            _, writer = await race(
                asyncio.open_connection(
                    address,
                    self.config.port,
                    ssl=self._ssl_context,
                    server_hostname=hostname,
                ),
                self.config.timeout,
                f"Connection timed out after {self.config.timeout:g}ms",
            )
            handle = await self._build_handle(hostname, address, writer)
            state = ConnectionState.SECURED
            return handle
        except ConnectError:
            state = ConnectionState.FAILED
            raise
        except ProbeTimeoutError as e:
            state = ConnectionState.TIMED_OUT
            raise ConnectTimeoutError(str(e), e) from e
        except (OSError, ValueError) as e:
            # ssl.SSLError and ssl.CertificateError are OSError/ValueError subclasses
            state = ConnectionState.FAILED
            raise ConnectError(
                f"TLS connection to {hostname} ({address}:{self.config.port}) failed: {e}", e
            ) from e
        finally:
            if state is not ConnectionState.SECURED:
                await _close_writer(writer)
            self.logger.debug(f"Connection attempt to {hostname} ({address}): {state.value}")

    async def _build_handle(
        self, hostname: str, address: str, writer: asyncio.StreamWriter
    ) -> ConnectionHandle:
        ssl_object = writer.get_extra_info("ssl_object")
        if ssl_object is None:
            raise ConnectError(f"No TLS session established with {hostname}")

        der = ssl_object.getpeercert(binary_form=True)
        if not der:
            raise ConnectError(f"{hostname} did not present a certificate")

        cert = x509.load_der_x509_certificate(der)
        cipher = ssl_object.cipher()

        tls = TLSDetails(
            version=ssl_object.version() or "unknown",
            cipher=cipher[0] if cipher else "unknown",
            authorized=await self._is_authorized(hostname, address, cert, ssl_object),
        )
        return ConnectionHandle(
            hostname=hostname,
            address=address,
            writer=writer,
            tls=tls,
            certificate=extract_certificate_fields(cert),
        )

    async def _is_authorized(
        self, hostname: str, address: str, cert: x509.Certificate, ssl_object: Any
    ) -> bool:
        """
        Report whether the peer certificate is trusted for hostname.

        With verification enabled the handshake already enforced it.
        """
        if self.config.reject_unauthorized:
            return True

        if self._chain_trusted(hostname, cert, ssl_object):
            return True

        return await self._verified_handshake(hostname, address)

    def _chain_trusted(self, hostname: str, cert: x509.Certificate, ssl_object: Any) -> bool:
        """Check the chain the peer sent against the system store, where available."""
        get_chain = getattr(ssl_object, "get_unverified_chain", None)
        if self._trust_store is None or not callable(get_chain):
            return False

        intermediates = []
        for der in (get_chain() or [])[1:]:
            if isinstance(der, bytes):
                intermediates.append(x509.load_der_x509_certificate(der))

        try:
            verifier = (
                PolicyBuilder()
                .store(self._trust_store)
                .build_server_verifier(x509.DNSName(hostname))
            )
            verifier.verify(cert, intermediates)
        except (VerificationError, ValueError) as e:
            self.logger.debug(f"Peer chain for {hostname} did not verify locally: {e}")
            return False
        return True

    async def _verified_handshake(self, hostname: str, address: str) -> bool:
        """Repeat the handshake with verification on; success means the peer is trusted."""
        writer: Optional[asyncio.StreamWriter] = None
        try:
            _, writer = await race(
                asyncio.open_connection(
                    address,
                    self.config.port,
                    ssl=self._verify_context,
                    server_hostname=hostname,
                ),
                self.config.timeout,
                f"Verification handshake timed out after {self.config.timeout:g}ms",
            )
        except (ProbeTimeoutError, OSError, ValueError) as e:
            self.logger.debug(f"Certificate for {hostname} is not trusted: {e}")
            return False
        finally:
            await _close_writer(writer)
        return True

    def _load_trust_store(self) -> Optional[Store]:
        paths = ssl.get_default_verify_paths()
        for cafile in (paths.cafile, paths.openssl_cafile):
            if cafile and Path(cafile).is_file():
                try:
                    return Store(x509.load_pem_x509_certificates(Path(cafile).read_bytes()))
                except (OSError, ValueError) as e:
                    self.logger.warning(f"Could not load trust store {cafile}: {e}")

        self.logger.debug("No system CA bundle found; peer chains are verified by handshake")
        return None
