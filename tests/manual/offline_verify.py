# tests/manual/offline_verify.py
# Check issued leaf certificates against the installed root CA, without the trust store.
# Usage: python tests/manual/offline_verify.py server.crt [more.crt ...]

import sys
from cryptography import x509

from devca.common.config import load_settings
from devca.common.errors import ParseError
from devca.crypto.pki import CertificateAuthority, load_cert, verify_cert_signed_by_ca
from devca.storage.keystore import KeyMaterialStore


def main(paths):
    settings = load_settings()
    ca = CertificateAuthority.load_existing(KeyMaterialStore(settings.app_dir))
    print(f"Root CA:    {ca.cert.subject.rfc4514_string()}")
    print(f"Thumbprint: {ca.thumbprint}\n")

    ok = True
    for path in paths:
        try:
            with open(path, "rb") as f:
                cert = load_cert(f.read())
        except (OSError, ParseError) as e:
            ok = False
            print(f"{path}: INVALID ({e})")
            continue
        try:
            sans = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
            names = [str(v) for v in sans.get_values_for_type(x509.DNSName) + sans.get_values_for_type(x509.IPAddress)]
        except x509.ExtensionNotFound:
            names = []
        try:
            verify_cert_signed_by_ca(cert, ca.cert)
            print(f"{path}: valid  SANs={names}")
        except ValueError as e:
            ok = False
            print(f"{path}: INVALID ({e})")
    return ok


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python tests/manual/offline_verify.py <cert.pem> [...]")
        sys.exit(2)
    sys.exit(0 if main(sys.argv[1:]) else 1)
