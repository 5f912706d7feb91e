# devca/lifecycle.py
"""
install / uninstall / new.

Three resources have to agree: the key material on disk, the trust-store
entry and the thumbprint recorded in the identity file. None of the steps
below is transactional, so each operation orders them to bound what an
interruption can leave behind:

install   Absent -> Installed
  1. create CA          (nothing external yet)
  2. persist key files  (an orphan here is overwritten by the next install)
  3. trust store add    (failure: TrustStoreError, no thumbprint recorded)
  4. record thumbprint  (the only possible leftover is a trusted CA we forgot)

uninstall Installed -> Absent
  1. trust store remove (failure: TrustStoreError, disk and record untouched)
  2. delete key files   (failure: IoError, thumbprint kept for a retry)
  3. clear thumbprint
"""
import os
from pathlib import Path
from typing import Optional, Sequence, Tuple

from devca.common.errors import AlreadyInstalledError, IoError, NotInstalledError, TrustStoreError
from devca.common.logger import get_logger
from devca.common.models import Identity
from devca.crypto.issue import CertIssuer
from devca.crypto.pki import CertificateAuthority
from devca.storage.keystore import write_private

log = get_logger(__name__)


def install(identity_store, keystore, trust_store, settings) -> Identity:
    identity = identity_store.load()
    if identity.installed:
        raise AlreadyInstalledError(
            f"a CA with thumbprint {identity.thumbprint} is already installed. Run uninstall-ca first."
        )

    ca = CertificateAuthority.create(identity, settings.curve, settings.ca_validity_days)
    keystore.persist(ca.key, ca.cert)

    result = trust_store.add(keystore.cert_path)
    if not result.success:
        raise TrustStoreError(f"failed to add the CA to the {trust_store.name}", result.diagnostic)
    log.info("added %s to the %s", keystore.cert_path, trust_store.name)

    identity = identity.with_thumbprint(ca.thumbprint)
    identity_store.save(identity)
    return identity


def uninstall(identity_store, keystore, trust_store) -> Identity:
    identity = identity_store.load()
    if not identity.installed:
        raise NotInstalledError("CA thumbprint not found in config. Cannot uninstall. Was the CA ever installed?")

    result = trust_store.remove(identity.thumbprint)
    if not result.success:
        raise TrustStoreError(f"failed to remove the CA from the {trust_store.name}", result.diagnostic)
    log.info("removed %s from the %s", identity.thumbprint, trust_store.name)

    keystore.delete()

    identity = identity.without_thumbprint()
    identity_store.save(identity)
    return identity


def new_certificate(identity_store, keystore, settings, cert_path, key_path,
                    sans: Sequence[str], cwd: Optional[Path] = None) -> Tuple[Path, Path]:
    """
    Issue a leaf certificate for `sans` and write it next to the caller.
    Nothing is written unless the CA loads and the leaf signs cleanly.
    Returns the (cert_path, key_path) actually written.
    """
    identity = identity_store.load()
    ca = CertificateAuthority.load_existing(keystore)
    leaf = CertIssuer(ca, settings.curve, settings.leaf_validity_days).issue(identity, sans)

    base = Path(cwd) if cwd is not None else Path(os.getcwd())
    cert_out = base / cert_path
    key_out = base / key_path
    written = []
    try:
        with open(cert_out, "wb") as f:
            written.append(cert_out)
            f.write(leaf.cert_pem)
        written.append(key_out)
        write_private(key_out, leaf.key_pem)
    except OSError as exc:
        # a half-written pair is worse than none
        for path in written:
            try:
                path.unlink(missing_ok=True)
            except OSError as cleanup_exc:
                log.warning("could not remove partial %s: %s", path, cleanup_exc)
        raise IoError(f"could not write leaf certificate: {exc}") from exc
    log.info("wrote %s and %s", cert_out, key_out)
    return cert_out, key_out
