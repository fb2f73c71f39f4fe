from types import SimpleNamespace

import pytest

import vsphere_session


def make_host(name, cpu_mhz=2000, cores=4, cpu_usage=3000, memory_bytes=8 * 1024 ** 3, memory_usage=2048):
    summary = SimpleNamespace(
        hardware=SimpleNamespace(cpuMhz=cpu_mhz, numCpuCores=cores, memorySize=memory_bytes),
        quickStats=SimpleNamespace(overallCpuUsage=cpu_usage, overallMemoryUsage=memory_usage),
    )
    return SimpleNamespace(name=name, summary=summary)


def make_datastore(name, capacity, free_space):
    summary = SimpleNamespace(name=name, capacity=capacity, freeSpace=free_space)
    return SimpleNamespace(name=name, summary=summary)


def as_record(obj):
    return {"name": obj.name, "summary": obj.summary}


class FakeView:
    def __init__(self, objects):
        self.view = objects
        self.destroyed = False

    def Destroy(self):
        self.destroyed = True


class FakeServiceInstance:
    """Stands in for vim.ServiceInstance; hands out container views over fixed objects"""

    def __init__(self, objects):
        self.objects = objects
        self.views = []
        self.requested_types = []
        self.disconnected = False

    def RetrieveContent(self):
        return SimpleNamespace(rootFolder="root", viewManager=self)

    def CreateContainerView(self, container, view_type, recursive):
        self.requested_types.append(view_type)
        view = FakeView(self.objects)
        self.views.append(view)
        return view


@pytest.fixture(autouse=True)
def no_password_env(monkeypatch):
    monkeypatch.delenv("ESXI_PROBE_PASSWORD", raising=False)


@pytest.fixture
def fake_vsphere(monkeypatch):
    """Patch SmartConnect/Disconnect; call the returned function with inventory objects"""
    state = {"calls": []}

    def install(objects):
        si = FakeServiceInstance(objects)

        def fake_connect(**kwargs):
            state["calls"].append(kwargs)
            return si

        def fake_disconnect(instance):
            instance.disconnected = True

        monkeypatch.setattr(vsphere_session, "SmartConnect", fake_connect)
        monkeypatch.setattr(vsphere_session, "Disconnect", fake_disconnect)
        state["si"] = si
        return state

    return install
