"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

import logging

import click

from ..exceptions import FirebatchError
from ..store import FirestoreStore, StoreConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def _store_setting(ctx, param, value):
    """Click callback: store a connection option in the context."""
    ctx.ensure_object(dict)
    if value is not None:
        ctx.obj[param.name] = value
    return value


def _store_options(f):
    """Shared connection options for all commands.

    Accepted both before and after the command name.
    """
    for name, envvar, help_text in reversed((
        ("--project-id", "FIRESTORE_PROJECT_ID",
         "Google Cloud project ID (or set FIRESTORE_PROJECT_ID)."),
        ("--credential-path", "GOOGLE_APPLICATION_CREDENTIALS",
         "Service account key file (or set GOOGLE_APPLICATION_CREDENTIALS)."),
        ("--emulator-host", "FIRESTORE_EMULATOR_HOST",
         "Firestore emulator host:port (or set FIRESTORE_EMULATOR_HOST)."),
        ("--database", "FIRESTORE_DATABASE",
         "Named Firestore database (or set FIRESTORE_DATABASE)."),
    )):
        f = click.option(
            name, envvar=envvar, help=help_text,
            expose_value=False, callback=_store_setting, is_eager=True,
        )(f)
    return f


def _store_config(ctx) -> StoreConfig:
    return StoreConfig(
        project_id=ctx.obj.get("project_id"),
        credential_path=ctx.obj.get("credential_path"),
        emulator_host=ctx.obj.get("emulator_host"),
        database=ctx.obj.get("database"),
    )


def _open_store(ctx):
    """Return the store for this invocation, connecting on first use.

    A store already placed in ``ctx.obj["store"]`` is used as is.
    """
    store = ctx.obj.get("store")
    if store is not None:
        return store
    from google.auth.exceptions import DefaultCredentialsError
    config = _store_config(ctx)
    try:
        store = FirestoreStore.from_config(config)
    except FileNotFoundError as exc:
        raise click.ClickException(f"Credential file not found: {exc.filename or exc}")
    except (DefaultCredentialsError, ValueError) as exc:
        raise click.ClickException(f"Cannot connect to Firestore: {exc}")
    _status(ctx, f"Connected to {store!r}")
    ctx.obj["store"] = store
    return store


def _fail(exc: FirebatchError):
    """Convert an engine error into a ClickException."""
    raise click.ClickException(str(exc)) from exc


class _Progress:
    """Progress callback that rewrites one ``label: current/total`` line on stderr."""

    def __init__(self, label: str):
        self.label = label
        self.shown = False

    def __call__(self, current: int, total: int) -> None:
        if total <= 0:
            return
        pct = round(current * 100 / total)
        click.echo(f"\r{self.label}: {current}/{total} ({pct}%)", nl=False, err=True)
        self.shown = True

    def finish(self) -> None:
        if self.shown:
            click.echo("", err=True)


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group()
@_store_options
@click.option("-v", "--verbose", is_flag=True, help="Verbose output on stderr.")
@click.pass_context
def main(ctx, verbose):
    """firebatch: bulk data operations for Firestore.

    \b
    Quick start:
      firebatch export users -o users.json
      firebatch import users.json --batch-size 250
      firebatch delete users --recursive

    \b
    Collection paths have an odd number of segments (users,
    users/alice/orders); document paths an even number (users/alice).
    Imports are written in atomic batches of at most 500 documents.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )
