# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/labstrap/materialize/envfile.py

from __future__ import annotations

import logging
import os
import tempfile
from enum import Enum
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from labstrap.errors import BootstrapError
from labstrap.mesh.models import MeshIdentity

log = logging.getLogger("labstrap")

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


class WriteResult(str, Enum):
    CHANGED = "changed"
    UNCHANGED = "unchanged"


class TemplateRenderer:
    def __init__(self, templates_dir: Path = TEMPLATES_DIR):
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render(self, template_name: str, context: dict) -> str:
        tmpl = self.env.get_template(template_name)
        return tmpl.render(**context)


def render_env(identity: MeshIdentity, renderer: TemplateRenderer | None = None) -> str:
    """TS_IP / TS_FQDN lines for the compose stack's .env file."""
    renderer = renderer or TemplateRenderer()
    return renderer.render("env.j2", identity.as_env())


def write_if_changed(path: Path, content: str, *, dry_run: bool = False) -> WriteResult:
    """
    Write ``content`` to ``path`` only when it differs byte-for-byte from
    what is on disk. The write goes to a temp file in the same directory
    and is renamed into place, so readers never see a partial file and an
    unchanged file keeps its mtime.
    """
    path = Path(path)
    data = content.encode("utf-8")

    try:
        current = path.read_bytes() if path.is_file() else None
    except OSError as exc:
        raise BootstrapError(f"Cannot read {path}: {exc}") from exc

    if current == data:
        log.info(f"==> No change: {path.name} is already up to date")
        return WriteResult.UNCHANGED

    if dry_run:
        log.info(f"dry-run: would write {path}")
        return WriteResult.CHANGED

    log.info(f"==> Writing: {path}")
    try:
        _replace(path, data)
    except OSError as exc:
        raise BootstrapError(f"Cannot write {path}: {exc}") from exc

    return WriteResult.CHANGED


def _replace(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = (path.stat().st_mode & 0o777) if path.exists() else 0o644

    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
