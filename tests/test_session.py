import pytest

from conftest import FakeServiceInstance, make_datastore, make_host
from vsphere_session import VSphereSession
import vsphere_session


def test_connect_splits_sdk_url(fake_vsphere):
    state = fake_vsphere([])
    session = VSphereSession("https://esx01.lab.local/sdk", "root", "pw", timeout=15)
    session.connect()

    kwargs = state["calls"][0]
    assert kwargs["protocol"] == "https"
    assert kwargs["host"] == "esx01.lab.local"
    assert kwargs["port"] == 443
    assert kwargs["path"] == "/sdk"
    assert kwargs["user"] == "root"
    assert kwargs["pwd"] == "pw"
    assert kwargs["disableSslCertValidation"] is True
    assert kwargs["httpConnectionTimeout"] == 15


def test_connect_honours_explicit_port_and_ssl_verification(fake_vsphere):
    state = fake_vsphere([])
    VSphereSession("https://vc01:8443/sdk", "u", "p", verify_ssl=True).connect()
    kwargs = state["calls"][0]
    assert kwargs["port"] == 8443
    assert kwargs["disableSslCertValidation"] is False


def test_connect_failure_becomes_connection_error(monkeypatch):
    def refuse(**kwargs):
        raise OSError("Connection refused")

    monkeypatch.setattr(vsphere_session, "SmartConnect", refuse)
    with pytest.raises(ConnectionError, match="Failed to connect to esx01: Connection refused"):
        VSphereSession("https://esx01/sdk", "root", "pw").connect()


def test_retrieve_returns_requested_fields_and_destroys_view(fake_vsphere):
    hosts = [make_host("esx01"), make_host("esx02")]
    state = fake_vsphere(hosts)

    with VSphereSession("https://esx01/sdk", "root", "pw") as session:
        records = session.retrieve("HostSystem")

    assert [r["name"] for r in records] == ["esx01", "esx02"]
    assert records[0]["summary"] is hosts[0].summary
    assert set(records[0]) == {"name", "summary"}
    si = state["si"]
    assert si.views[0].destroyed
    assert si.disconnected
    assert si.requested_types[0][0].__name__.endswith("HostSystem")


def test_view_destroyed_when_property_read_fails(fake_vsphere):
    class Unreachable:
        name = "ds1"

        @property
        def summary(self):
            raise OSError("connection reset")

    state = fake_vsphere([Unreachable()])

    with pytest.raises(ConnectionError, match="Failed to retrieve Datastore objects"):
        with VSphereSession("https://vc01/sdk", "u", "p") as session:
            session.retrieve("Datastore")

    assert state["si"].views[0].destroyed
    assert state["si"].disconnected


def test_retrieve_requires_connection():
    with pytest.raises(RuntimeError, match="Not connected"):
        VSphereSession("https://vc01/sdk", "u", "p").retrieve("Datastore")


def test_disconnect_is_idempotent(fake_vsphere):
    fake_vsphere([make_datastore("ds1", 10, 5)])
    session = VSphereSession("https://vc01/sdk", "u", "p")
    session.connect()
    session.disconnect()
    session.disconnect()
    assert session.si is None
