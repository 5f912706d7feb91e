# devca/storage/keystore.py
"""
On-disk root CA key material.
Files, all under the application directory:
 - rootCA.key   private key, PKCS#8 PEM, mode 0600 -- never share
 - rootCA.crt   self-signed certificate, PEM
 - rootCA.p12   best-effort PKCS#12 bundle of the two
"""
import os
from pathlib import Path
from typing import Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from devca.common.errors import IoError, NotFoundError
from devca.common.logger import get_logger
from devca.crypto.sign import private_key_pem

log = get_logger(__name__)

KEY_FILE = "rootCA.key"
CERT_FILE = "rootCA.crt"
P12_FILE = "rootCA.p12"


def write_private(path: Path, data: bytes) -> None:
    """Write `data` to `path`, readable only by the owner."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(data)
    os.chmod(path, 0o600)


class KeyMaterialStore:
    def __init__(self, directory):
        self.directory = Path(directory)

    @property
    def key_path(self) -> Path:
        return self.directory / KEY_FILE

    @property
    def cert_path(self) -> Path:
        return self.directory / CERT_FILE

    @property
    def p12_path(self) -> Path:
        return self.directory / P12_FILE

    def exists(self) -> bool:
        return self.key_path.exists() and self.cert_path.exists()

    def persist(self, key, cert) -> None:
        """
        Write key and certificate PEM, overwriting any previous CA, then try
        to export a PKCS#12 bundle. Only the PEM writes can fail the call.
        """
        try:
            self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)
            write_private(self.key_path, private_key_pem(key))
            with open(self.cert_path, "wb") as f:
                f.write(cert.public_bytes(serialization.Encoding.PEM))
        except OSError as exc:
            raise IoError(f"could not write CA key material to {self.directory}: {exc}") from exc
        log.info("wrote %s and %s", self.key_path, self.cert_path)
        self.export_pkcs12(key, cert)

    def export_pkcs12(self, key, cert) -> bool:
        try:
            bundle = pkcs12.serialize_key_and_certificates(
                name=b"devca root",
                key=key,
                cert=cert,
                cas=None,
                encryption_algorithm=serialization.NoEncryption()
            )
            write_private(self.p12_path, bundle)
        except (OSError, ValueError, TypeError) as exc:
            log.warning("PKCS#12 export to %s failed: %s", self.p12_path, exc)
            return False
        log.info("wrote %s", self.p12_path)
        return True

    def load(self) -> Tuple[bytes, bytes]:
        """Return (key_pem, cert_pem). Raises NotFoundError if either file is absent."""
        try:
            with open(self.key_path, "rb") as f:
                key_pem = f.read()
            with open(self.cert_path, "rb") as f:
                cert_pem = f.read()
        except FileNotFoundError as exc:
            raise NotFoundError(
                f"CA not found in {self.directory} ({exc.filename}). Run install-ca first."
            ) from exc
        except OSError as exc:
            raise IoError(f"could not read CA key material: {exc}") from exc
        return key_pem, cert_pem

    def delete(self) -> None:
        """Remove key, certificate and PKCS#12 export. Already-missing files are skipped."""
        for path in (self.key_path, self.cert_path, self.p12_path):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise IoError(f"could not delete {path}: {exc}") from exc
            log.info("deleted %s", path)
