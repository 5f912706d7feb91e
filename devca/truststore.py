# devca/truststore.py
"""
Platform trust-store adapters.

Each adapter exposes add(cert_path) and remove(thumbprint) and reports the
outcome as a TrustStoreResult; deciding what a failure means is left to the
caller. select_trust_store() picks the adapter for the running platform.
"""
from abc import ABC, abstractmethod
import platform
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from devca.common.errors import ParseError, TrustStoreError
from devca.common.logger import get_logger
from devca.common.models import TrustStoreResult
from devca.crypto.pki import load_cert, cert_thumbprint

log = get_logger(__name__)


def run_command(argv: List[str]) -> TrustStoreResult:
    """Run argv to completion and fold exit status and output into a result."""
    log.debug("running %s", " ".join(argv))
    try:
        proc = subprocess.run(argv, capture_output=True, text=True)
    except OSError as exc:
        return TrustStoreResult(success=False, diagnostic=f"{argv[0]}: {exc}")
    output = "\n".join(part.strip() for part in (proc.stdout, proc.stderr) if part and part.strip())
    if proc.returncode != 0:
        return TrustStoreResult(
            success=False,
            diagnostic=f"{' '.join(argv)} exited with status {proc.returncode}\n{output}".rstrip(),
        )
    return TrustStoreResult(success=True, diagnostic=output)


class TrustStoreAdapter(ABC):
    name = "trust store"

    @abstractmethod
    def add(self, cert_path) -> TrustStoreResult:
        """Trust the certificate stored at cert_path."""

    @abstractmethod
    def remove(self, thumbprint: str) -> TrustStoreResult:
        """Stop trusting the certificate with this thumbprint."""


class MacOSKeychain(TrustStoreAdapter):
    name = "macOS login keychain"

    def __init__(self, keychain: Optional[Path] = None):
        self.keychain = keychain or Path.home() / "Library" / "Keychains" / "login.keychain-db"

    def add(self, cert_path) -> TrustStoreResult:
        return run_command(["security", "add-trusted-cert", "-k", str(self.keychain), str(cert_path)])

    def remove(self, thumbprint: str) -> TrustStoreResult:
        return run_command(["security", "delete-certificate", "-Z", thumbprint])


class WindowsCertStore(TrustStoreAdapter):
    name = "Windows Root certificate store"

    def add(self, cert_path) -> TrustStoreResult:
        return run_command(["certutil", "-addstore", "Root", str(cert_path)])

    def remove(self, thumbprint: str) -> TrustStoreResult:
        return run_command(["certutil", "-delstore", "Root", thumbprint])


class LinuxCaCertificates(TrustStoreAdapter):
    """
    Debian-style anchors: the certificate is copied to
    <anchors>/devca-<thumbprint>.crt and update-ca-certificates rebuilds the bundle.
    """
    name = "system CA certificates"

    def __init__(self, anchors_dir: Path = Path("/usr/local/share/ca-certificates"),
                 update_command: str = "update-ca-certificates"):
        self.anchors_dir = Path(anchors_dir)
        self.update_command = update_command

    def anchor_path(self, thumbprint: str) -> Path:
        return self.anchors_dir / f"devca-{thumbprint}.crt"

    def add(self, cert_path) -> TrustStoreResult:
        try:
            with open(cert_path, "rb") as f:
                tp = cert_thumbprint(load_cert(f.read()))
            self.anchors_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(cert_path, self.anchor_path(tp))
        except (OSError, ParseError) as exc:
            return TrustStoreResult(success=False, diagnostic=f"could not install anchor: {exc}")
        return run_command([self.update_command])

    def remove(self, thumbprint: str) -> TrustStoreResult:
        try:
            self.anchor_path(thumbprint).unlink()
        except FileNotFoundError:
            log.warning("anchor %s already gone", self.anchor_path(thumbprint))
        except OSError as exc:
            return TrustStoreResult(success=False, diagnostic=f"could not remove anchor: {exc}")
        return run_command([self.update_command, "--fresh"])


def select_trust_store(system: Optional[str] = None) -> TrustStoreAdapter:
    system = system or platform.system()
    if system == "Darwin":
        return MacOSKeychain()
    if system == "Windows":
        return WindowsCertStore()
    if system == "Linux":
        return LinuxCaCertificates()
    raise TrustStoreError(f"no trust store support for platform {system!r}")
