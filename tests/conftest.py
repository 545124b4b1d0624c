"""
Shared fixtures for TLS Host Checker tests.
"""

import ipaddress
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from tls_host_checker.config import Config
from tls_host_checker.models import CertificateFields, ProbeSuccess, TLSDetails


def generate_test_certificate(
    cn: str = "test.example.com",
    issuer_cn: Optional[str] = None,
    dns_names: Optional[List[str]] = None,
    ip_addresses: Optional[List[str]] = None,
) -> x509.Certificate:
    """Generate a self-signed X.509 certificate."""
    private_key = ec.generate_private_key(ec.SECP256R1())

    subject = x509.Name(
        [
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Test Org"),
            x509.NameAttribute(NameOID.COMMON_NAME, cn),
        ]
    )
    issuer = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer_cn or cn)])

    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(datetime(2024, 3, 14, tzinfo=timezone.utc))
        .not_valid_after(datetime.now(timezone.utc) + timedelta(days=365))
    )

    names: List[x509.GeneralName] = [x509.DNSName(n) for n in (dns_names or [])]
    names += [x509.IPAddress(ipaddress.ip_address(ip)) for ip in (ip_addresses or [])]
    if names:
        builder = builder.add_extension(x509.SubjectAlternativeName(names), critical=False)

    return builder.sign(private_key, hashes.SHA256())


def _issue_certificate(
    subject_cn: str,
    public_key: ec.EllipticCurvePublicKey,
    issuer_cn: str,
    issuer_key: ec.EllipticCurvePrivateKey,
    path_length: Optional[int] = None,
    is_ca: bool = False,
    dns_names: Optional[List[str]] = None,
) -> x509.Certificate:
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject_cn)]))
        .issuer_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer_cn)]))
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=is_ca, path_length=path_length), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=is_ca,
                crl_sign=is_ca,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(public_key), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_key.public_key()),
            critical=False,
        )
    )
    if not is_ca:
        builder = builder.add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False
        ).add_extension(
            x509.SubjectAlternativeName([x509.DNSName(n) for n in dns_names or []]),
            critical=False,
        )
    return builder.sign(issuer_key, hashes.SHA256())


def generate_certificate_chain(directory: Path, hostname: str = "localhost") -> Dict[str, Path]:
    """
    Write a root -> intermediate -> leaf chain for a local TLS server.

    Returns paths to the root CA (``cafile``), the leaf followed by the
    intermediate (``certfile``) and the leaf key (``keyfile``).
    """
    directory.mkdir(parents=True, exist_ok=True)
    root_key = ec.generate_private_key(ec.SECP256R1())
    intermediate_key = ec.generate_private_key(ec.SECP256R1())
    leaf_key = ec.generate_private_key(ec.SECP256R1())

    root = _issue_certificate(
        "Test Root CA", root_key.public_key(), "Test Root CA", root_key, is_ca=True
    )
    intermediate = _issue_certificate(
        "Test Intermediate CA",
        intermediate_key.public_key(),
        "Test Root CA",
        root_key,
        path_length=0,
        is_ca=True,
    )
    leaf = _issue_certificate(
        hostname,
        leaf_key.public_key(),
        "Test Intermediate CA",
        intermediate_key,
        dns_names=[hostname],
    )

    paths = {
        "cafile": directory / "root.pem",
        "certfile": directory / "chain.pem",
        "keyfile": directory / "leaf.key",
    }
    paths["cafile"].write_bytes(root.public_bytes(serialization.Encoding.PEM))
    paths["certfile"].write_bytes(
        leaf.public_bytes(serialization.Encoding.PEM)
        + intermediate.public_bytes(serialization.Encoding.PEM)
    )
    paths["keyfile"].write_bytes(
        leaf_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    return paths


def make_tls_writer(
    cert: Optional[x509.Certificate],
    version: str = "TLSv1.3",
    cipher: str = "TLS_AES_256_GCM_SHA384",
) -> MagicMock:
    """Build a stream writer mock exposing an SSL object for cert."""
    ssl_object = MagicMock()
    ssl_object.getpeercert.return_value = (
        cert.public_bytes(serialization.Encoding.DER) if cert is not None else None
    )
    ssl_object.version.return_value = version
    ssl_object.cipher.return_value = (cipher, version, 256)
    ssl_object.get_unverified_chain.return_value = []

    writer = MagicMock()
    writer.get_extra_info.side_effect = lambda key, default=None: (
        ssl_object if key == "ssl_object" else default
    )
    writer.wait_closed = AsyncMock()
    return writer


def make_success(hostname: str, ip: str = "192.0.2.10") -> ProbeSuccess:
    """Build a success outcome without touching the network."""
    return ProbeSuccess(
        hostname=hostname,
        ip=ip,
        tls=TLSDetails(version="TLSv1.3", cipher="TLS_AES_128_GCM_SHA256", authorized=True),
        certificate=CertificateFields(
            subject=hostname,
            issuer="Test CA",
            valid_from="Mar 14 00:00:00 2024 GMT",
            valid_to="Mar 14 00:00:00 2027 GMT",
            alt_names=[hostname],
            expiration_timestamp=1804896000.0,
        ),
    )


def make_handle(hostname: str, ip: str = "192.0.2.10") -> MagicMock:
    """Build a connection handle mock carrying success details."""
    success = make_success(hostname, ip)
    handle = MagicMock()
    handle.tls = success.tls
    handle.certificate = success.certificate
    handle.close = AsyncMock()
    return handle


@pytest.fixture
def test_certificate() -> x509.Certificate:
    """Self-signed certificate with DNS and IP alternative names."""
    return generate_test_certificate(
        cn="test.example.com",
        issuer_cn="Test CA",
        dns_names=["test.example.com", "www.test.example.com"],
        ip_addresses=["192.168.1.1"],
    )


@pytest.fixture
def config() -> Config:
    """Fast configuration for tests."""
    return Config(timeout=200, dns_timeout=200, concurrency=2, retries=1, retry_delay=0)
