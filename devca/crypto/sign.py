# devca/crypto/sign.py
"""
Elliptic-curve key and signature helpers using cryptography.
Provides:
 - generate_private_key(curve_name)
 - load_private_key(pem_bytes)
 - private_key_pem(priv_key)
 - hash_for_key(priv_or_pub_key)
 - verify_bytes(pub_key, signature: bytes, data: bytes, algorithm=None) -> bool
"""
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization, hashes
from cryptography.hazmat.primitives.asymmetric import ec

from devca.common.errors import CryptoError, ParseError

CURVES = {
    "P-256": (ec.SECP256R1, hashes.SHA256),
    "P-384": (ec.SECP384R1, hashes.SHA384),
}


def generate_private_key(curve_name: str = "P-384") -> ec.EllipticCurvePrivateKey:
    """
    Generate a fresh key pair on the named curve.
    """
    if curve_name not in CURVES:
        raise CryptoError(f"unsupported curve {curve_name!r}")
    curve_cls, _ = CURVES[curve_name]
    try:
        return ec.generate_private_key(curve_cls())
    except (UnsupportedAlgorithm, ValueError) as exc:
        raise CryptoError(f"key generation failed: {exc}") from exc


def load_private_key(pem_bytes: bytes) -> ec.EllipticCurvePrivateKey:
    """
    Load a PEM-encoded EC private key (no password).
    """
    try:
        key = serialization.load_pem_private_key(pem_bytes, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ParseError(f"malformed private key: {exc}") from exc
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise ParseError("private key is not an elliptic-curve key")
    return key


def private_key_pem(priv_key) -> bytes:
    """
    Serialize a private key as unencrypted PKCS#8 PEM.
    """
    return priv_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption()
    )


def hash_for_key(key) -> hashes.HashAlgorithm:
    """
    Digest matched to the key's curve: SHA256 for P-256, SHA384 for P-384.
    """
    for curve_cls, hash_cls in CURVES.values():
        if isinstance(key.curve, curve_cls):
            return hash_cls()
    raise CryptoError(f"unsupported curve {key.curve.name}")


def verify_bytes(pub_key, signature: bytes, data: bytes, algorithm=None) -> bool:
    """
    Verify an ECDSA signature. Returns True if valid, False otherwise.
    """
    if algorithm is None:
        algorithm = hash_for_key(pub_key)
    try:
        pub_key.verify(signature, data, ec.ECDSA(algorithm))
        return True
    except InvalidSignature:
        return False
