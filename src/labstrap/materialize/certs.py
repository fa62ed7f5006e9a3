# src/labstrap/materialize/certs.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from labstrap.observers.dispatcher import EventBus

log = logging.getLogger("labstrap")


@dataclass(frozen=True)
class CertPair:
    crt: Path
    key: Path

    @classmethod
    def for_fqdn(cls, certs_dir: Path, fqdn: str) -> "CertPair":
        return cls(crt=certs_dir / f"{fqdn}.crt", key=certs_dir / f"{fqdn}.key")

    def missing(self) -> List[Path]:
        """Paths that do not exist or are empty."""
        return [p for p in (self.crt, self.key) if not p.is_file() or p.stat().st_size == 0]

    @property
    def present(self) -> bool:
        return not self.missing()


def check_certs(
    certs_dir: Path,
    fqdn: str,
    *,
    bus: Optional[EventBus] = None,
    dry_run: bool = False,
) -> CertPair:
    """
    Make sure the certs directory exists and warn (never fail) when the
    TLS pair for ``fqdn`` is absent.
    """
    bus = bus or EventBus()

    log.info(f"==> Ensuring certs directory exists: {certs_dir}")
    if certs_dir.is_dir():
        bus.converged("directory", str(certs_dir))
    elif dry_run:
        log.info(f"dry-run: would create {certs_dir}")
    else:
        certs_dir.mkdir(parents=True, exist_ok=True)
        bus.changed("directory", str(certs_dir), "create")

    pair = CertPair.for_fqdn(certs_dir, fqdn)
    if not pair.present:
        bus.advisory(
            "TLS certs not found (or empty). HTTPS will not work until these exist: "
            f"{pair.crt}, {pair.key}. "
            "HTTP on port 80 can still work (depending on your Compose stack)."
        )
    return pair
