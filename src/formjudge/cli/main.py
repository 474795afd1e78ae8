"""formjudge CLI entry point."""

import click


@click.group()
def cli():
    """formjudge: check form fields against server-declared record rules.

    \b
    exposure  inspect which record types/attributes the uniqueness
              endpoint may answer for
    validate  run a JSON form fixture through the validators offline
    serve     serve the uniqueness endpoint over a SQL database
    """
    pass


from formjudge.cli.exposure_cmd import exposure  # noqa: E402
from formjudge.cli.form_cmd import serve, validate  # noqa: E402

cli.add_command(exposure)
cli.add_command(serve)
cli.add_command(validate)
