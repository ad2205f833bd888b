"""Bulk commands: export, import, delete, validate."""

from __future__ import annotations

import click

from ..bulk import (
    ExportOptions,
    ImportOptions,
    delete_collection,
    delete_document,
    export_collection,
    import_data,
)
from ..exceptions import BatchCommitError, FirebatchError, SentinelError, StoreError
from ..manifest import flatten_records, read_manifest
from ..paths import is_document_path, validate_path
from ..sentinels import find_sentinels
from ._helpers import main, _fail, _open_store, _Progress, _status, _store_options


class _PartialImportError(click.ClickException):
    """Import stopped after some batches were already committed."""
    exit_code = 2


def _echo_failures(failures):
    for f in failures:
        click.echo(f"  [{f.index}] {f.path}: {f.reason}", err=True)


# ---------------------------------------------------------------------------
# export
# ---------------------------------------------------------------------------

@main.command("export")
@_store_options
@click.argument("collection")
@click.option("-o", "--output", required=True, type=click.Path(dir_okay=False),
              help="Manifest file to write.")
@click.option("--include-subcollections", is_flag=True, default=False,
              help="Also export every subcollection, recursively.")
@click.pass_context
def export_cmd(ctx, collection, output, include_subcollections):
    """Export a collection to a JSON manifest.

    \b
    Examples:
        firebatch export users -o users.json
        firebatch export users -o backup.json --include-subcollections
        firebatch export users/alice/orders -o orders.json
    """
    store = _open_store(ctx)
    progress = _Progress("Exporting")
    _status(ctx, f"Exporting {collection}"
                 + (" with subcollections" if include_subcollections else ""))
    try:
        result = export_collection(store, ExportOptions(
            collection_path=collection,
            output_path=output,
            include_subcollections=include_subcollections,
            on_progress=progress,
        ))
    except FirebatchError as exc:
        progress.finish()
        _fail(exc)
    progress.finish()
    click.echo(f"Exported {result.exported_count} document(s) to {result.output_path}")


# ---------------------------------------------------------------------------
# import
# ---------------------------------------------------------------------------

@main.command("import")
@_store_options
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--batch-size", type=int, default=500, show_default=True,
              help="Documents per atomic batch (1-500).")
@click.option("--field-values", "resolve_sentinels", is_flag=True, default=False,
              help="Turn $fieldValue markers into server-side transforms.")
@click.option("--include-subcollections", is_flag=True, default=False,
              help="Also import nested subcollection records.")
@click.pass_context
def import_cmd(ctx, file, batch_size, resolve_sentinels, include_subcollections):
    """Import documents from a JSON manifest.

    Each batch is atomic. If a batch fails, the import stops; batches
    committed before it are not rolled back.

    \b
    Examples:
        firebatch import backup.json
        firebatch import users.json --batch-size 250
        firebatch import counters.json --field-values
    """
    store = _open_store(ctx)
    progress = _Progress("Importing")
    _status(ctx, f"Importing {file} (batch size {batch_size})")
    try:
        result = import_data(store, ImportOptions(
            input_path=file,
            batch_size=batch_size,
            on_progress=progress,
            resolve_sentinels=resolve_sentinels,
            include_subcollections=include_subcollections,
        ))
    except BatchCommitError as exc:
        progress.finish()
        _echo_failures(exc.failures)
        if exc.partial_success:
            raise _PartialImportError(
                f"{exc}\n{exc.committed_count} document(s) were imported before "
                f"the failure and were not rolled back. Resume from document "
                f"{exc.resume_index}."
            ) from exc
        _fail(exc)
    except FirebatchError as exc:
        progress.finish()
        _fail(exc)
    progress.finish()

    click.echo(f"Imported: {result.imported_count}")
    if result.skipped_count:
        click.echo(f"Skipped: {result.skipped_count}")
    if result.failed_count:
        click.echo(f"Failed: {result.failed_count}")
        _echo_failures(result.failures)


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------

@main.command("delete")
@_store_options
@click.argument("path")
@click.option("-r", "--recursive", is_flag=True, default=False,
              help="Delete every document of a collection, with subcollections.")
@click.option("-y", "--yes", is_flag=True, default=False,
              help="Do not ask for confirmation.")
@click.pass_context
def delete_cmd(ctx, path, recursive, yes):
    """Delete a document, or a whole collection with -r.

    \b
    Examples:
        firebatch delete users/alice
        firebatch delete users --recursive
        firebatch delete users/alice/orders -r -y
    """
    try:
        validate_path(path)
    except FirebatchError as exc:
        _fail(exc)

    if is_document_path(path):
        if recursive:
            raise click.ClickException("--recursive can only be used with collection paths")
        if not yes and not click.confirm(f"Delete document {path!r}?", default=False):
            click.echo("Cancelled")
            return
        store = _open_store(ctx)
        try:
            delete_document(store, path)
        except FirebatchError as exc:
            _fail(exc)
        click.echo(f"Deleted {path}")
        return

    if not recursive:
        raise click.ClickException(
            f"{path!r} is a collection; use --recursive to delete it"
        )

    def confirm():
        if yes:
            return True
        return click.confirm(
            f"Delete every document in {path!r}, including subcollections?",
            default=False,
        )

    store = _open_store(ctx)
    try:
        result = delete_collection(store, path, confirm)
    except StoreError as exc:
        if exc.processed_count:
            click.echo(f"{exc.processed_count} document(s) were deleted before "
                       "the failure.", err=True)
        _fail(exc)
    except FirebatchError as exc:
        _fail(exc)

    if result.deleted_count == 0:
        click.echo("Cancelled or no documents to delete")
    else:
        click.echo(f"Deleted {result.deleted_count} document(s)")


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------

@main.command("validate")
@click.argument("file", type=click.Path(dir_okay=False))
@click.pass_context
def validate_cmd(ctx, file):
    """Check a manifest offline: structure and $fieldValue markers.

    Lists every marker as DOCUMENT FIELD KIND. Nothing is written.
    """
    try:
        records = list(flatten_records(read_manifest(file)))
    except FirebatchError as exc:
        _fail(exc)

    errors = 0
    for record in records:
        try:
            for field_path, sentinel in find_sentinels(record.data):
                click.echo(f"{record.path}\t{field_path}\t{sentinel.kind}")
        except SentinelError as exc:
            errors += 1
            click.echo(f"{record.path}: {exc}", err=True)

    _status(ctx, f"Checked {len(records)} document(s)")
    if errors:
        raise click.ClickException(f"{errors} document(s) have invalid $fieldValue markers")
