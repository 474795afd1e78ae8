"""Exposure CLI commands: inspect an exposure policy file."""

from pathlib import Path

import click

from formjudge.errors import ConfigurationError
from formjudge.exposure import load_exposure_file


def _load(path: Path):
    try:
        return load_exposure_file(path)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


@click.group()
def exposure():
    """Exposure policy commands."""
    pass


@exposure.command("list")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def list_exposed(path: Path):
    """List exposed record types, attributes and aliases."""
    policy = _load(path)

    if not policy.exposed:
        click.echo("Nothing exposed.")
    for record_type, attributes in sorted(policy.exposed.items()):
        click.echo(f"{record_type}: {', '.join(attributes)}")

    for alias, record_type in sorted(policy.exposed_as.items()):
        click.echo(f"{alias} -> {record_type}")


@exposure.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("record_type")
@click.argument("attribute")
def check(path: Path, record_type: str, attribute: str):
    """Check whether RECORD_TYPE#ATTRIBUTE may be queried remotely.

    Exits with status 1 when the pair is not exposed.
    """
    policy = _load(path)
    canonical = policy.resolve(record_type)
    label = record_type if canonical == record_type else f"{record_type} ({canonical})"

    if policy.is_exposed(record_type, attribute):
        click.echo(f"{label}#{attribute} is exposed")
    else:
        click.echo(f"{label}#{attribute} is NOT exposed")
        raise SystemExit(1)
