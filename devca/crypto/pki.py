# devca/crypto/pki.py

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID
import datetime

from devca.common.errors import CryptoError, ParseError
from devca.common.logger import get_logger
from devca.common.utils import sha1_hex, utc_now
from devca.crypto.sign import generate_private_key, hash_for_key, load_private_key, private_key_pem, verify_bytes

log = get_logger(__name__)


def load_cert(pem_bytes: bytes) -> x509.Certificate:
    """Load a PEM-encoded certificate and return an x509.Certificate object."""
    try:
        return x509.load_pem_x509_certificate(pem_bytes)
    except ValueError as exc:
        raise ParseError(f"malformed certificate: {exc}") from exc


def thumbprint(der: bytes) -> str:
    """Return the SHA-1 thumbprint of DER certificate bytes as uppercase hex."""
    return sha1_hex(der)


def cert_thumbprint(cert: x509.Certificate) -> str:
    return thumbprint(cert.public_bytes(serialization.Encoding.DER))


def _same_public_key(a, b) -> bool:
    fmt = (serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo)
    return a.public_bytes(*fmt) == b.public_bytes(*fmt)


class CertificateAuthority:
    """
    Root CA key pair and its self-signed certificate.

    Instances come from create() (a brand new CA) or load_existing() (the CA
    persisted by a KeyMaterialStore). Neither touches storage on its own.
    """

    def __init__(self, key: ec.EllipticCurvePrivateKey, cert: x509.Certificate):
        self.key = key
        self.cert = cert

    @classmethod
    def create(cls, identity, curve: str = "P-384", validity_days: int = 3650) -> "CertificateAuthority":
        """
        Generate a key on `curve` and self-sign an unconstrained CA certificate
        whose subject is the identity's distinguished name.

        Raises CryptoError if key generation or signing fails.
        """
        key = generate_private_key(curve)
        subject = issuer = identity.distinguished_name()
        now = utc_now()
        try:
            cert = (
                x509.CertificateBuilder()
                .subject_name(subject)
                .issuer_name(issuer)
                .public_key(key.public_key())
                .serial_number(x509.random_serial_number())
                .not_valid_before(now - datetime.timedelta(days=1))
                .not_valid_after(now + datetime.timedelta(days=validity_days))
                .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
                .add_extension(x509.KeyUsage(
                    digital_signature=True, content_commitment=False, key_encipherment=True,
                    data_encipherment=False, key_agreement=False, key_cert_sign=True,
                    crl_sign=False, encipher_only=False, decipher_only=False,
                ), critical=True)
                .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
                .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
                .sign(key, hash_for_key(key))
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise CryptoError(f"failed to sign CA certificate: {exc}") from exc
        log.info("created %s root CA %r", curve, identity.common_name)
        return cls(key, cert)

    @classmethod
    def load_existing(cls, keystore) -> "CertificateAuthority":
        """
        Load the CA written by `keystore.persist`.

        Raises:
          - NotFoundError if the key or certificate file is missing
          - ParseError if either PEM is malformed or the key does not belong to the certificate
        """
        key_pem, cert_pem = keystore.load()
        key = load_private_key(key_pem)
        cert = load_cert(cert_pem)
        if not isinstance(cert.public_key(), ec.EllipticCurvePublicKey):
            raise ParseError("root certificate does not carry an elliptic-curve key")
        if not _same_public_key(key.public_key(), cert.public_key()):
            raise ParseError("root private key does not match root certificate")
        log.debug("loaded root CA %s", cert.subject.rfc4514_string())
        return cls(key, cert)

    @property
    def key_pem(self) -> bytes:
        return private_key_pem(self.key)

    @property
    def cert_pem(self) -> bytes:
        return self.cert.public_bytes(serialization.Encoding.PEM)

    @property
    def der(self) -> bytes:
        return self.cert.public_bytes(serialization.Encoding.DER)

    @property
    def thumbprint(self) -> str:
        return thumbprint(self.der)


def verify_cert_signed_by_ca(cert: x509.Certificate, ca_cert: x509.Certificate) -> None:
    """
    Verify that `cert` was signed by `ca_cert`.

    Raises:
      - ValueError if issuer does not match CA subject, the signature is bad,
        or cert expired/not yet valid
    """
    # Check issuer matches CA subject
    if cert.issuer != ca_cert.subject:
        raise ValueError("certificate issuer does not match CA subject")

    # Verify signature using CA public key. Must pass the signature algorithm.
    if not verify_bytes(ca_cert.public_key(), cert.signature, cert.tbs_certificate_bytes,
                        cert.signature_hash_algorithm):
        raise ValueError("certificate signature does not verify against CA key")

    # Check validity window
    now = utc_now()
    if now < cert.not_valid_before_utc or now > cert.not_valid_after_utc:
        raise ValueError("certificate is not valid at the current time")

