"""Allow ``python -m nodelint``."""

from nodelint.cli import app

app()
