# src/labstrap/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import typer

from labstrap.config.loader import load_config
from labstrap.errors import BootstrapError
from labstrap.execution.runner import Executor
from labstrap.host.services import ServiceManager
from labstrap.logging.log import init_logging
from labstrap.materialize.envfile import WriteResult
from labstrap.mesh.tailscale import TailscaleClient
from labstrap.observers.dispatcher import EventBus
from labstrap.observers.jsonfile import JsonFileObserver
from labstrap.observers.logger import LoggerObserver
from labstrap.pipeline import bootstrap


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Idempotent homelab host bootstrap")


def _fail(exc: BootstrapError) -> NoReturn:
    typer.secho(f"ERROR: {exc}", fg=typer.colors.RED, bold=True, err=True)
    raise typer.Exit(code=1)


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def up(
    config: Optional[Path] = typer.Option(None, "--config", help="Optional YAML config file"),
    homelab_dir: Optional[Path] = typer.Option(
        None, "--homelab-dir", help="Compose stack directory (default: $HOMELAB_DIR or ~/homelab)"
    ),
    auth_key: Optional[str] = typer.Option(
        None, "--auth-key", help="Tailscale auth key (default: $TAILSCALE_AUTH_KEY)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Probe only; skip every change"),
    debug: bool = typer.Option(False, "--debug"),
):
    """
    Converge this host: docker, tailscale, .env, compose stack.
    """
    logger, run_id, log_path = init_logging(verbose=debug)

    bus = EventBus(
        observers=[
            LoggerObserver(logger),
            JsonFileObserver(log_path.parent / f"{run_id}.jsonl"),
        ],
        run_id=run_id,
    )

    typer.echo("")
    typer.secho("Homelab bootstrap started", bold=True)
    typer.echo(f"  Run ID   : {run_id}")
    typer.echo(f"  Logs     : {log_path}")
    typer.echo("")

    try:
        cfg = load_config(
            config,
            overrides={"homelab_dir": homelab_dir, "auth_key": auth_key},
        )
        result = bootstrap(cfg, dry_run=dry_run, bus=bus)
    except BootstrapError as exc:
        logger.error(str(exc))
        _fail(exc)

    env_state = "updated" if result.env_result is WriteResult.CHANGED else "unchanged"
    typer.echo("")
    typer.secho("Setup complete.", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Tailscale IP  : {result.identity.address}")
    typer.echo(f"  Tailscale DNS : {result.identity.fqdn}")
    typer.echo(f"  {cfg.env_file_name:<13} : {env_state}")
    typer.echo(f"  Changes       : {result.changes}")
    https_note = "" if result.certs.present else f"   (requires certs in {cfg.certs_dir})"
    typer.echo(f"  HTTPS         : https://{result.identity.fqdn}{https_note}")


@app.command()
def identity():
    """
    Print the current Tailscale identity without changing anything.
    """
    try:
        executor = Executor(dry_run=True)
        client = TailscaleClient(executor, services=ServiceManager(executor))
        ident = client.identity()
    except BootstrapError as exc:
        _fail(exc)

    for key, value in ident.as_env().items():
        typer.echo(f"{key}={value}")


if __name__ == "__main__":
    app()
