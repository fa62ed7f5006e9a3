# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/execution/runner.py

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from labstrap.errors import CommandError

log = logging.getLogger("labstrap")

Cmd = Sequence[Union[str, Path]]


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None


def _display(argv: Sequence[str], redact: Sequence[str]) -> str:
    line = " ".join(argv)
    for secret in redact:
        if secret:
            line = line.replace(secret, "***")
    return line


@dataclass(frozen=True)
class Executor:
    """
    The single capability every privileged action goes through.

    - prefix: elevation helper prepended to elevated commands (empty when root)
    - privileged: the running identity already has elevated rights
    - dry_run: mutating commands are logged and skipped, probes still run
    """

    prefix: tuple[str, ...] = ()
    privileged: bool = False
    dry_run: bool = False

    @property
    def can_elevate(self) -> bool:
        """True when commands can be wrapped with an elevation helper."""
        return bool(self.prefix)

    def wrap(self, cmd: Cmd, *, elevated: bool = True) -> list[str]:
        argv = [str(c) for c in cmd]
        if elevated and self.prefix:
            return [*self.prefix, *argv]
        return argv

    # ------------------------- internal helpers -------------------------

    def _exec(
        self,
        argv: list[str],
        *,
        capture_output: bool,
        cwd: Optional[Path],
        input: Optional[str],
        redact: Sequence[str],
    ) -> subprocess.CompletedProcess:
        log.debug(f"$ {_display(argv, redact)}")
        start = time.time()
        try:
            cp = subprocess.run(
                argv,
                check=False,
                text=True,
                capture_output=capture_output,
                cwd=str(cwd) if cwd else None,
                input=input,
            )
        except FileNotFoundError:
            # same convention as a shell: command not found -> 127
            cp = subprocess.CompletedProcess(argv, 127, "", f"{argv[0]}: not found")
        log.debug(f"[exit {cp.returncode}] ({time.time() - start:.2f}s)")
        return cp

    # ------------------------- public API -------------------------

    def probe(
        self,
        cmd: Cmd,
        *,
        elevated: bool = False,
        cwd: Optional[Path] = None,
    ) -> subprocess.CompletedProcess:
        """
        Run a read-only query. Always executes (also in dry-run),
        never raises on a non-zero exit; output is captured.
        """
        return self._exec(
            self.wrap(cmd, elevated=elevated),
            capture_output=True,
            cwd=cwd,
            input=None,
            redact=(),
        )

    def succeeds(self, cmd: Cmd, *, elevated: bool = False) -> bool:
        return self.probe(cmd, elevated=elevated).returncode == 0

    def run(
        self,
        cmd: Cmd,
        *,
        elevated: bool = True,
        capture_output: bool = False,
        cwd: Optional[Path] = None,
        input: Optional[str] = None,
        redact: Sequence[str] = (),
    ) -> subprocess.CompletedProcess:
        """
        Run a mutating command. A non-zero exit raises CommandError.
        Strings in ``redact`` are masked wherever the command line is logged.
        """
        argv = self.wrap(cmd, elevated=elevated)

        if self.dry_run:
            log.info(f"dry-run: would run {_display(argv, redact)}")
            return subprocess.CompletedProcess(argv, 0, "", "")

        cp = self._exec(
            argv, capture_output=capture_output, cwd=cwd, input=input, redact=redact
        )
        if cp.returncode != 0:
            stderr = getattr(cp, "stderr", "") or ""
            raise CommandError(
                f"command failed (rc={cp.returncode}): {_display(argv, redact)}\n{stderr}".rstrip(),
                argv=argv,
                returncode=cp.returncode,
                stderr=stderr,
            )
        return cp
