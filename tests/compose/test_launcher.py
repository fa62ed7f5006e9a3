import pytest

from labstrap.compose.launcher import StackLauncher, find_descriptor
from labstrap.docker.runtime import ContainerCli
from labstrap.errors import ConfigurationError
from labstrap.execution.runner import Executor


def _ready(host):
    host.binaries.add("docker")
    host.services["docker"] = {"enabled": True, "active": True}
    host.compose_plugin = True


def test_missing_descriptor_is_fatal_before_pull(host, tmp_path):
    _ready(host)
    (tmp_path / "README.md").write_text("not a compose file")

    with pytest.raises(ConfigurationError, match="No Compose file"):
        StackLauncher(Executor(prefix=("sudo",)), ContainerCli()).launch(tmp_path)

    assert host.calls == []


@pytest.mark.parametrize("name", ["docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"])
def test_any_candidate_is_enough(host, tmp_path, name):
    _ready(host)
    (tmp_path / name).write_text("services: {}\n")

    descriptor = StackLauncher(Executor(prefix=("sudo",)), ContainerCli()).launch(tmp_path)

    assert descriptor.name == name
    assert host.compose_calls() == [
        ["docker", "compose", "pull"],
        ["docker", "compose", "up", "-d", "--remove-orphans"],
    ]
    assert set(host.cwds) == {str(tmp_path)}


def test_first_candidate_wins(tmp_path):
    (tmp_path / "compose.yaml").write_text("services: {}\n")
    (tmp_path / "docker-compose.yml").write_text("services: {}\n")

    assert find_descriptor(tmp_path).name == "docker-compose.yml"


def test_elevated_cli_is_used_for_both_steps(host, tmp_path):
    _ready(host)
    (tmp_path / "compose.yml").write_text("services: {}\n")

    StackLauncher(Executor(prefix=("sudo",)), ContainerCli(base=("sudo", "docker"))).launch(tmp_path)

    assert host.compose_calls() == [
        ["sudo", "docker", "compose", "pull"],
        ["sudo", "docker", "compose", "up", "-d", "--remove-orphans"],
    ]
