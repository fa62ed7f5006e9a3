from labstrap.execution.runner import Executor
from labstrap.host.groups import SESSION_WARNING, GroupManager
from labstrap.observers.dispatcher import EventBus


def test_creates_missing_group(host):
    gm = GroupManager(Executor(prefix=("sudo",)))

    assert gm.ensure_group("docker") is True
    assert ["sudo", "groupadd", "docker"] in host.calls
    assert gm.ensure_group("docker") is False


def test_adding_member_warns_about_new_session(host, capture):
    host.groups["docker"] = set()
    gm = GroupManager(Executor(prefix=("sudo",)), bus=EventBus([capture]))

    assert gm.ensure_member("pi", "docker") is True

    assert ["sudo", "usermod", "-aG", "docker", "pi"] in host.calls
    assert [e.message for e in capture.of("AdvisoryRaised")] == [SESSION_WARNING]


def test_existing_member_is_not_touched(host, capture):
    host.groups["docker"] = {"pi"}
    gm = GroupManager(Executor(prefix=("sudo",)), bus=EventBus([capture]))

    assert gm.ensure_member("pi", "docker") is False
    assert host.mutations() == []
    assert capture.of("AdvisoryRaised") == []
