import ipaddress

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import serialization

from devca import lifecycle
from devca.common.errors import AlreadyInstalledError, IoError, NotInstalledError, ParseError, TrustStoreError
from devca.crypto.pki import load_cert, thumbprint, verify_cert_signed_by_ca
from devca.storage.identity import IdentityStore

from conftest import FakeTrustStore, common_name


@pytest.fixture
def ca_store(settings):
    store = IdentityStore(settings.identity_path, {"common_name": "Test CA"})
    store.load()
    return store


def test_install_records_thumbprint_of_trusted_cert(ca_store, keystore, trust_store, settings):
    identity = lifecycle.install(ca_store, keystore, trust_store, settings)
    der = load_cert(keystore.cert_path.read_bytes()).public_bytes(serialization.Encoding.DER)
    assert identity.thumbprint == thumbprint(der)
    assert ca_store.load().thumbprint == identity.thumbprint
    assert trust_store.calls == [("add", str(keystore.cert_path))]


def test_install_then_uninstall_returns_to_absent(ca_store, keystore, trust_store, settings):
    installed = lifecycle.install(ca_store, keystore, trust_store, settings)
    identity = lifecycle.uninstall(ca_store, keystore, trust_store)
    assert identity.thumbprint is None
    assert ca_store.load().thumbprint is None
    assert not keystore.key_path.exists()
    assert not keystore.cert_path.exists()
    assert not keystore.p12_path.exists()
    assert trust_store.calls[-1] == ("remove", installed.thumbprint)


def test_uninstall_without_install_mutates_nothing(ca_store, keystore, trust_store, settings):
    with pytest.raises(NotInstalledError):
        lifecycle.uninstall(ca_store, keystore, trust_store)
    assert trust_store.calls == []
    assert sorted(p.name for p in settings.app_dir.iterdir()) == ["config.json"]


def test_install_trust_failure_leaves_no_thumbprint(ca_store, keystore, settings):
    failing = FakeTrustStore(add_ok=False)
    with pytest.raises(TrustStoreError) as err:
        lifecycle.install(ca_store, keystore, failing, settings)
    assert "add refused" in str(err.value)
    assert err.value.diagnostic == "add refused"
    assert ca_store.load().thumbprint is None
    # orphaned key material is overwritten by the next install
    assert keystore.exists()
    identity = lifecycle.install(ca_store, keystore, FakeTrustStore(), settings)
    assert identity.thumbprint is not None


def test_install_twice_is_refused(ca_store, keystore, trust_store, settings):
    first = lifecycle.install(ca_store, keystore, trust_store, settings)
    cert_before = keystore.cert_path.read_bytes()
    with pytest.raises(AlreadyInstalledError):
        lifecycle.install(ca_store, keystore, trust_store, settings)
    assert keystore.cert_path.read_bytes() == cert_before
    assert ca_store.load().thumbprint == first.thumbprint


def test_uninstall_trust_failure_touches_nothing(ca_store, keystore, trust_store, settings):
    installed = lifecycle.install(ca_store, keystore, trust_store, settings)
    with pytest.raises(TrustStoreError):
        lifecycle.uninstall(ca_store, keystore, FakeTrustStore(remove_ok=False))
    assert keystore.exists()
    assert ca_store.load().thumbprint == installed.thumbprint
    lifecycle.uninstall(ca_store, keystore, trust_store)
    assert ca_store.load().thumbprint is None


def test_uninstall_delete_failure_keeps_thumbprint(ca_store, keystore, trust_store, settings, monkeypatch):
    installed = lifecycle.install(ca_store, keystore, trust_store, settings)

    def refuse():
        raise IoError("disk says no")

    monkeypatch.setattr(keystore, "delete", refuse)
    with pytest.raises(IoError):
        lifecycle.uninstall(ca_store, keystore, trust_store)
    assert ca_store.load().thumbprint == installed.thumbprint


def test_install_then_new_scenario(ca_store, keystore, trust_store, settings, tmp_path):
    lifecycle.install(ca_store, keystore, trust_store, settings)
    root = load_cert(keystore.cert_path.read_bytes())
    assert common_name(root) == "Test CA"
    assert root.extensions.get_extension_for_class(x509.BasicConstraints).value.ca is True

    work = tmp_path / "work"
    work.mkdir()
    cert_path, key_path = lifecycle.new_certificate(
        ca_store, keystore, settings, "server.crt", "server.key",
        ["example.com", "127.0.0.1"], cwd=work,
    )
    assert cert_path == work / "server.crt"
    assert key_path.exists()
    leaf = load_cert(cert_path.read_bytes())
    verify_cert_signed_by_ca(leaf, root)
    san = leaf.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    assert san.get_values_for_type(x509.DNSName) == ["example.com"]
    assert san.get_values_for_type(x509.IPAddress) == [ipaddress.ip_address("127.0.0.1")]


def test_new_with_corrupt_root_key_writes_nothing(ca_store, keystore, trust_store, settings, tmp_path):
    lifecycle.install(ca_store, keystore, trust_store, settings)
    keystore.key_path.write_text("corrupted")
    work = tmp_path / "work"
    work.mkdir()
    with pytest.raises(ParseError):
        lifecycle.new_certificate(ca_store, keystore, settings, "server.crt", "server.key",
                                  ["example.com"], cwd=work)
    assert list(work.iterdir()) == []


def test_new_with_bad_san_writes_nothing(ca_store, keystore, trust_store, settings, tmp_path):
    lifecycle.install(ca_store, keystore, trust_store, settings)
    with pytest.raises(ParseError):
        lifecycle.new_certificate(ca_store, keystore, settings, "server.crt", "server.key",
                                  ["ok.example", "bücher.example"], cwd=tmp_path)
    assert not (tmp_path / "server.crt").exists()
    assert not (tmp_path / "server.key").exists()


def test_new_key_write_failure_removes_certificate(ca_store, keystore, trust_store, settings, tmp_path):
    lifecycle.install(ca_store, keystore, trust_store, settings)
    work = tmp_path / "work"
    work.mkdir()
    with pytest.raises(IoError):
        lifecycle.new_certificate(ca_store, keystore, settings, "server.crt", "missing/server.key",
                                  ["example.com"], cwd=work)
    assert list(work.iterdir()) == []
