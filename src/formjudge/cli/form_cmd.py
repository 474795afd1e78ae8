"""Form CLI commands: validate a form fixture offline, serve the endpoint."""

import asyncio
import json
import os
from pathlib import Path

import click

from formjudge.config import JudgeConfig
from formjudge.remote.client import UniquenessClient
from formjudge.validation import (
    Form,
    FormResult,
    ValidationOrchestrator,
    ValidatorRegistry,
    register_builtin_validators,
)


async def _validate_form(form: Form, base_url: str | None, mount_path: str) -> FormResult:
    registry = ValidatorRegistry()
    if base_url is None:
        register_builtin_validators(registry)
        return await ValidationOrchestrator(registry).validate_form(form)

    config = JudgeConfig(mount_path=mount_path, base_url=base_url)
    async with UniquenessClient.from_config(config) as client:
        register_builtin_validators(registry, client=client)
        return await ValidationOrchestrator(registry).validate_form(form)


@click.command()
@click.argument("form_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--base-url",
    default=None,
    help="Origin of the uniqueness endpoint. Without it, uniqueness rules are skipped.",
)
@click.option("--mount-path", default="/judge", show_default=True)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the result as JSON.")
def validate(form_file: Path, base_url: str | None, mount_path: str, as_json: bool):
    """Validate the fields of a JSON form fixture.

    FORM_FILE holds {"name": ..., "fields": [{"name", "value", "validate"}, ...]}.
    Exits with status 1 when any field is invalid or errored.
    """
    try:
        data = json.loads(form_file.read_text())
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{form_file} is not valid JSON: {e}") from e

    form = Form.from_dict(data)
    result = asyncio.run(_validate_form(form, base_url, mount_path))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        for field_result in result.results:
            line = f"{field_result.field.name}: {field_result.status.value}"
            if field_result.messages:
                line += ": " + "; ".join(field_result.messages)
            if field_result.errors and not field_result.messages:
                line += ": " + "; ".join(str(e) for e in field_result.errors)
            click.echo(line)
        click.echo("Form is valid" if result.valid else "Form is invalid")

    if not result.valid:
        raise SystemExit(1)


@click.command()
@click.option(
    "--database-url",
    envvar="DATABASE_URL",
    required=True,
    help="SQLAlchemy URL of the database holding the records.",
)
@click.option(
    "--table",
    "tables",
    multiple=True,
    metavar="TYPE=TABLE",
    help="Map a record type to a table, e.g. User=users. Repeatable.",
)
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=lambda: int(os.environ.get("FORMJUDGE_PORT", "8000")), type=int)
def serve(database_url: str, tables: tuple[str, ...], host: str, port: int):
    """Serve the uniqueness endpoint."""
    import uvicorn

    from formjudge.api.app import create_app
    from formjudge.remote.checker import SQLAlchemyUniquenessChecker

    mapping = {}
    for item in tables:
        record_type, sep, table = item.partition("=")
        if not sep or not record_type or not table:
            raise click.BadParameter(f"Expected TYPE=TABLE, got '{item}'", param_hint="--table")
        mapping[record_type] = table

    app = create_app(
        SQLAlchemyUniquenessChecker(database_url, mapping),
        config=JudgeConfig.from_env(Path.cwd()),
    )
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=os.environ.get("FORMJUDGE_LOG_LEVEL", "info"),
    )
