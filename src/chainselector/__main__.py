"""Allow running as `python -m chainselector`."""

from chainselector.cli.main import cli

if __name__ == "__main__":
    cli()
