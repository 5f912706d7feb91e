import pytest
from cryptography.x509.oid import NameOID

from devca.common.config import Settings
from devca.common.models import Identity, TrustStoreResult
from devca.storage.identity import IdentityStore
from devca.storage.keystore import KeyMaterialStore
from devca.truststore import TrustStoreAdapter


class FakeTrustStore(TrustStoreAdapter):
    name = "fake trust store"

    def __init__(self, add_ok=True, remove_ok=True):
        self.add_ok = add_ok
        self.remove_ok = remove_ok
        self.calls = []
        self.trusted = set()

    def add(self, cert_path):
        self.calls.append(("add", str(cert_path)))
        if not self.add_ok:
            return TrustStoreResult(success=False, diagnostic="add refused")
        self.trusted.add(str(cert_path))
        return TrustStoreResult(success=True)

    def remove(self, thumbprint):
        self.calls.append(("remove", thumbprint))
        if not self.remove_ok:
            return TrustStoreResult(success=False, diagnostic="remove refused")
        return TrustStoreResult(success=True)


@pytest.fixture
def settings(tmp_path):
    return Settings(app_dir=tmp_path / "home", curve="P-256")


@pytest.fixture
def identity_store(settings):
    return IdentityStore(settings.identity_path)


@pytest.fixture
def keystore(settings):
    return KeyMaterialStore(settings.app_dir)


@pytest.fixture
def trust_store():
    return FakeTrustStore()


@pytest.fixture
def identity():
    return Identity(common_name="Test CA")


def common_name(cert):
    return cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)[0].value
