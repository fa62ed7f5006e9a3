from labstrap.execution.runner import Executor
from labstrap.host.services import ServiceManager
from labstrap.observers.dispatcher import EventBus


def test_enables_and_starts_when_needed(host, capture):
    host.service("docker")
    sm = ServiceManager(Executor(prefix=("sudo",)), bus=EventBus([capture]))

    status = sm.ensure_running("docker")

    assert status.enabled and status.active
    assert ["sudo", "systemctl", "enable", "docker"] in host.calls
    assert ["sudo", "systemctl", "start", "docker"] in host.calls
    assert [e.action for e in capture.of("ResourceChanged")] == ["enable", "start"]


def test_only_missing_half_is_converged(host):
    host.services["docker"] = {"enabled": True, "active": False}
    ServiceManager(Executor(prefix=("sudo",))).ensure_running("docker")

    assert ["sudo", "systemctl", "enable", "docker"] not in host.calls
    assert ["sudo", "systemctl", "start", "docker"] in host.calls


def test_running_service_is_left_alone(host, capture):
    host.services["tailscaled"] = {"enabled": True, "active": True}
    ServiceManager(Executor(prefix=("sudo",)), bus=EventBus([capture])).ensure_running("tailscaled")

    assert host.mutations() == []
    assert capture.of("ResourceChanged") == []


def test_missing_systemctl_only_warns(host, capture):
    host.binaries.discard("systemctl")
    result = ServiceManager(Executor(), bus=EventBus([capture])).ensure_running("docker")

    assert result is None
    assert host.calls == []
    assert "systemctl not found" in capture.of("AdvisoryRaised")[0].message
