# devca/crypto/issue.py
"""
Issue leaf (server) certificates signed by the root CA.
The leaf subject mirrors the identity's distinguished name; SAN entries are
kept in the order given, IP literals become IPAddress names and everything
else is handed to the DNSName codec untouched.
"""
import datetime
import ipaddress
from typing import List, Sequence

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import ExtendedKeyUsageOID

from devca.common.errors import CryptoError, ParseError
from devca.common.logger import get_logger
from devca.common.utils import utc_now
from devca.crypto.sign import generate_private_key, hash_for_key, private_key_pem

log = get_logger(__name__)


def general_name(entry: str) -> x509.GeneralName:
    """Map one SAN entry to an IPAddress or DNSName."""
    try:
        return x509.IPAddress(ipaddress.ip_address(entry))
    except ValueError:
        pass
    try:
        return x509.DNSName(entry)
    except (ValueError, TypeError) as exc:
        raise ParseError(f"invalid subject alternative name {entry!r}: {exc}") from exc


def subject_alt_names(sans: Sequence[str]) -> List[x509.GeneralName]:
    return [general_name(entry) for entry in sans]


class LeafCertificate:
    def __init__(self, key, cert: x509.Certificate):
        self.key = key
        self.cert = cert

    @property
    def key_pem(self) -> bytes:
        return private_key_pem(self.key)

    @property
    def cert_pem(self) -> bytes:
        return self.cert.public_bytes(serialization.Encoding.PEM)


class CertIssuer:
    def __init__(self, ca, curve: str = "P-384", validity_days: int = 825):
        self.ca = ca
        self.curve = curve
        self.validity_days = validity_days

    def issue(self, identity, sans: Sequence[str]) -> LeafCertificate:
        """
        Generate a fresh key and a server certificate for `sans` signed by the CA.
        An empty `sans` is allowed; the certificate then carries no SAN extension.

        Raises ParseError for SAN entries the codec rejects, CryptoError if signing fails.
        """
        names = subject_alt_names(sans)
        key = generate_private_key(self.curve)
        ca_cert = self.ca.cert
        now = utc_now()

        builder = (
            x509.CertificateBuilder()
            .subject_name(identity.distinguished_name())
            .issuer_name(ca_cert.subject)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - datetime.timedelta(days=1))
            .not_valid_after(now + datetime.timedelta(days=self.validity_days))
            .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
            .add_extension(x509.KeyUsage(
                digital_signature=True, content_commitment=False, key_encipherment=True,
                data_encipherment=False, key_agreement=False, key_cert_sign=False,
                crl_sign=False, encipher_only=False, decipher_only=False,
            ), critical=True)
            .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
            .add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(self.ca.key.public_key()),
                critical=False
            )
        )
        if names:
            builder = builder.add_extension(x509.SubjectAlternativeName(names), critical=False)

        try:
            cert = builder.sign(self.ca.key, hash_for_key(self.ca.key))
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise CryptoError(f"failed to sign leaf certificate: {exc}") from exc

        log.info("issued leaf certificate for %s", ", ".join(sans) or identity.common_name)
        return LeafCertificate(key, cert)
