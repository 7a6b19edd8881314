"""Entry point for ``python -m unibuild``."""

from unibuild.cli import app

app(prog_name="unibuild")
