"""Main CLI entry point for fake-idp.

This module provides the main Click command group for the fake-idp CLI.
"""

from pathlib import Path
from typing import Optional

import click

from fake_idp import __version__
from fake_idp.cli.response_commands import response_group
from fake_idp.config import load_config
from fake_idp.logging_audit import configure_logging
from fake_idp.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="fake-idp")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii",
    is_flag=True,
    help="Redact subject identifiers and key material from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """fake-idp - Signed SAML 2.0 Responses for Service Provider testing.

    Produces the HTTP-POST binding payload an Identity Provider would send,
    so Service Providers can be exercised without a real IdP.

    Common usage:

        # Build a signed response
        fake-idp response build --name-id user@example.com \\
            --cert certs/idp.pem --key certs/idp_key.pem

        # Verify a saved response
        fake-idp response verify response.xml --cert certs/idp.pem

        # Use custom configuration file
        fake-idp --config custom/config.json response build --name-id user@example.com

    Use --help with any command for more information.
    """
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config)
        ctx.obj["config"] = config_obj
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    ctx.obj["verbose"] = verbose
    ctx.obj["redact_pii"] = redact_pii
    ctx.obj["log_file"] = log_file

    # Precedence: CLI flags > config file > defaults
    log_level = "DEBUG" if verbose else config_obj.logging.level
    log_file_path = log_file if log_file else config_obj.logging.log_file
    redact_pii_setting = redact_pii if redact_pii else config_obj.logging.redact_pii

    configure_logging(
        level=log_level, log_file=log_file_path, redact_pii=redact_pii_setting
    )


cli.add_command(response_group)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file.

    Example:
        fake-idp config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)
    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)

    idp = config_obj.identity_provider
    click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
    click.echo(f"\nConfiguration file: {config_file}")
    click.echo("\nIdentity provider:")
    click.echo(f"  Issuer:      {idp.issuer_uri}")
    click.echo(f"  ACS URL:     {idp.acs_url}")
    click.echo(f"  Algorithm:   {idp.algorithm.name}")
    click.echo(f"  Encryption:  {idp.encryption_enabled}")

    click.echo("\nCertificates:")
    click.echo(f"  Cert path:   {config_obj.certificates.cert_path or 'Not configured'}")
    click.echo(f"  Key path:    {config_obj.certificates.key_path or 'Not configured'}")

    click.echo("\nLogging:")
    click.echo(f"  Level:       {config_obj.logging.level}")
    click.echo(f"  Log file:    {config_obj.logging.log_file}")
    click.echo(f"  Redact PII:  {config_obj.logging.redact_pii}")


cli.add_command(config)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"fake-idp version {__version__}")


if __name__ == "__main__":
    cli()
