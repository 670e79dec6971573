"""Entry point for running fake_idp as a module.

This allows the package to be executed as:
    python -m fake_idp
"""

from fake_idp.cli.main import cli

if __name__ == "__main__":
    cli()
