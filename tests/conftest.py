import json
import logging
import os
import shutil
import subprocess
import types

import pytest
import requests


DOCKER_INSTALLER = "https://get.docker.com"
TAILSCALE_INSTALLER = "https://tailscale.com/install.sh"

BASE_BINARIES = {"sudo", "apt-get", "dpkg", "systemctl", "getent", "id", "groupadd", "usermod", "sh"}


class FakeHost:
    """
    In-memory model of a Debian host: binaries on PATH, dpkg database,
    systemd units, /etc/group, the docker daemon and tailscaled.
    Every argv passed to subprocess.run is recorded in ``calls``.
    """

    def __init__(self):
        self.root = False
        self.user = "pi"
        self.binaries = set(BASE_BINARIES)
        self.packages = set()
        self.services = {}                 # name -> {"enabled": bool, "active": bool}
        self.groups = {"sudo": {"pi"}}     # group -> members
        self.session_groups = {"sudo"}     # groups active in the current login session
        self.compose_plugin = False

        self.ts_connected = False
        self.ts_ip = "100.64.0.3"
        self.ts_dns = "pi.tailnet-1234.ts.net."
        self.ts_status_override = None     # raw stdout for `tailscale status --json`
        self.ts_status_rc = 0

        self.calls = []
        self.cwds = []
        self.stdin = []
        self.downloads = []

    # ------------------------------------------------------------ patches

    def which(self, name, *a, **k):
        return f"/usr/bin/{name}" if name in self.binaries else None

    def geteuid(self):
        return 0 if self.root else 1000

    def http_get(self, url, timeout=None, **kw):
        self.downloads.append(url)
        body = f"#!/bin/sh\n# installer for {url}\n"
        return types.SimpleNamespace(text=body, raise_for_status=lambda: None)

    def run(self, argv, check=False, text=False, capture_output=False, cwd=None, input=None, env=None):
        argv = list(argv)
        self.calls.append(argv)
        self.cwds.append(cwd)
        elevated = False
        if argv and argv[0] == "sudo":
            elevated = True
            argv = argv[1:]
        if not argv or argv[0] not in self.binaries:
            raise FileNotFoundError(argv[0] if argv else "")
        rc, out = self._dispatch(argv, elevated or self.root, input)
        return types.SimpleNamespace(returncode=rc, stdout=out, stderr="" if rc == 0 else "boom")

    # ------------------------------------------------------------ helpers

    def service(self, name):
        return self.services.setdefault(name, {"enabled": False, "active": False})

    def mutations(self):
        """Recorded commands that change host state (compose pull/up excluded)."""
        mutating = (
            ("apt-get",), ("systemctl", "enable"), ("systemctl", "start"),
            ("groupadd",), ("usermod",), ("sh",), ("tailscale", "up"),
        )
        out = []
        for argv in self.calls:
            bare = argv[1:] if argv[:1] == ["sudo"] else argv
            if any(tuple(bare[: len(m)]) == m for m in mutating):
                out.append(argv)
        return out

    def compose_calls(self):
        return [a for a in self.calls if "compose" in a and "version" not in a]

    def _ts_status(self):
        if self.ts_status_override is not None:
            return self.ts_status_override
        if self.ts_connected:
            return json.dumps({"BackendState": "Running", "Self": {"DNSName": self.ts_dns}})
        return json.dumps({"BackendState": "NeedsLogin", "Self": {"DNSName": ""}})

    def _dispatch(self, argv, privileged, stdin):
        cmd = argv[0]
        args = argv[1:]

        if cmd == "dpkg":
            return (0 if args[-1] in self.packages else 1), ""

        if cmd == "apt-get":
            if args[0] == "install":
                names = [a for a in args[1:] if not a.startswith("-")]
                self.packages.update(names)
                if "docker-compose-plugin" in names:
                    self.compose_plugin = True
            return 0, ""

        if cmd == "systemctl":
            verb, name = args[0], args[-1]
            if name not in self.services:
                return 1, ""
            svc = self.services[name]
            if verb == "is-enabled":
                return (0 if svc["enabled"] else 1), ""
            if verb == "is-active":
                return (0 if svc["active"] else 1), ""
            if verb == "enable":
                svc["enabled"] = True
            if verb == "start":
                svc["active"] = True
            return 0, ""

        if cmd == "getent":
            return (0 if args[-1] in self.groups else 2), ""

        if cmd == "groupadd":
            self.groups[args[-1]] = set()
            return 0, ""

        if cmd == "id":
            user = args[-1]
            return 0, " ".join(sorted(g for g, m in self.groups.items() if user in m)) + "\n"

        if cmd == "usermod":
            group, user = args[-2], args[-1]
            self.groups.setdefault(group, set()).add(user)
            return 0, ""

        if cmd == "sh":
            self.stdin.append(stdin)
            if DOCKER_INSTALLER in (stdin or ""):
                self.binaries.add("docker")
                self.service("docker")
            if TAILSCALE_INSTALLER in (stdin or ""):
                self.binaries.add("tailscale")
                self.service("tailscaled")
            return 0, ""

        if cmd == "docker":
            return self._docker(args, privileged)

        if cmd == "tailscale":
            return self._tailscale(args)

        return 1, ""

    def _docker(self, args, privileged):
        if args == ["--version"]:
            return 0, "Docker version 27.0.1, build 1234567\n"
        daemon_up = self.services.get("docker", {}).get("active", False)
        if args == ["info"]:
            allowed = privileged or "docker" in self.session_groups
            return (0 if daemon_up and allowed else 1), ""
        if args[:1] == ["compose"]:
            if not self.compose_plugin:
                return 1, ""
            return 0, ""
        return 1, ""

    def _tailscale(self, args):
        if args == ["version"]:
            return 0, "1.70.0\n  tailscale commit: abcdef\n"
        daemon_up = self.services.get("tailscaled", {}).get("active", False)
        if args[:1] == ["status"]:
            if not daemon_up:
                return 1, ""
            return self.ts_status_rc, self._ts_status()
        if args[:1] == ["up"]:
            self.ts_connected = True
            return 0, ""
        if args[:2] == ["ip", "-4"]:
            if not self.ts_connected:
                return 1, ""
            return 0, f"{self.ts_ip}\n"
        return 1, ""


@pytest.fixture
def host(monkeypatch):
    h = FakeHost()
    monkeypatch.setattr(subprocess, "run", h.run)
    monkeypatch.setattr(shutil, "which", h.which)
    monkeypatch.setattr(os, "geteuid", h.geteuid)
    monkeypatch.setattr(requests, "get", h.http_get)
    return h


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)

    def kinds(self):
        return [e.__class__.__name__ for e in self.events]

    def of(self, kind):
        return [e for e in self.events if e.__class__.__name__ == kind]


@pytest.fixture
def capture():
    return Capture()


@pytest.fixture(autouse=True)
def _reset_labstrap_logger():
    # init_logging() detaches the logger from root; undo that between tests
    yield
    logger = logging.getLogger("labstrap")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
