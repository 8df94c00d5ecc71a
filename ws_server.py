"""Compatibility entrypoint for the compass server."""

from locaty.server import cli


if __name__ == "__main__":
    cli()
