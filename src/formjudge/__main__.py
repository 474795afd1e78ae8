"""Run the formjudge CLI with ``python -m formjudge``."""

from formjudge.cli.main import cli

if __name__ == "__main__":
    cli()
