"""SAML Response CLI commands for generation, verification and inspection.

This module provides CLI commands for driving the fake IdP from test scripts:
- response build: Create a signed (optionally encrypted) SAML Response
- response verify: Verify the assertion signature of a plain response
- response inspect: Decrypt an encrypted response and show the assertion
"""

import base64
import dataclasses
import logging
import uuid
from pathlib import Path
from typing import Optional, Tuple

import click
from lxml import etree
from signxml.exceptions import InvalidDigest, InvalidSignature

from fake_idp.config import build_response_request, get_key_password
from fake_idp.models.saml import DigestAlgorithm
from fake_idp.saml import (
    SamlResponse,
    decrypt_assertion,
    get_certificate_info,
    load_certificate_file,
    load_private_key_file,
    verify_response,
)
from fake_idp.saml.certificate_manager import convert_to_pem
from fake_idp.saml.constants import NSMAP
from fake_idp.utils.exceptions import ConfigurationError, FakeIdpError

logger = logging.getLogger(__name__)


def _parse_attributes(values: Tuple[str, ...]) -> dict[str, str]:
    """Parse repeated NAME=VALUE options, keeping their order.

    Raises:
        click.BadParameter: If a value has no '=' or an empty name
    """
    attributes: dict[str, str] = {}
    for item in values:
        name, separator, value = item.partition("=")
        if not separator or not name.strip():
            raise click.BadParameter(
                f"Invalid attribute {item!r}. Use NAME=VALUE (e.g., email=user@example.com).",
                param_hint="--attribute",
            )
        attributes[name.strip()] = value
    return attributes


def _fail(message: str) -> None:
    click.echo(click.style("✗", fg="red", bold=True) + f" {message}", err=True)
    raise click.exceptions.Exit(1)


@click.group(name="response")
def response_group() -> None:
    """SAML Response generation and verification commands.

    Provides tools for producing the signed responses a Service Provider
    consumes during integration tests.
    """
    pass


@response_group.command(name="build")
@click.option("--name-id", required=True, help="Subject identifier (e-mail address)")
@click.option(
    "--request-id",
    default=None,
    help="ID of the AuthnRequest being answered (default: generated)",
)
@click.option("--issuer", default=None, help="IdP entity ID (overrides config)")
@click.option("--acs-url", default=None, help="SP Assertion Consumer Service URL (overrides config)")
@click.option(
    "--attribute",
    "attributes",
    multiple=True,
    help="User attribute as NAME=VALUE (repeatable, order is kept)",
)
@click.option(
    "--algorithm",
    type=click.Choice([a.value for a in DigestAlgorithm], case_sensitive=False),
    default=None,
    help="Digest/signature algorithm (overrides config)",
)
@click.option("--cert", type=click.Path(exists=True, path_type=Path), help="IdP certificate (PEM/DER)")
@click.option("--key", type=click.Path(exists=True, path_type=Path), help="IdP RSA private key (PEM)")
@click.option(
    "--encrypt/--no-encrypt",
    default=None,
    help="Encrypt the assertion (overrides config)",
)
@click.option(
    "--base64",
    "as_base64",
    is_flag=True,
    help="Output base64 as posted in the SAMLResponse form field",
)
@click.option("--output", type=click.Path(path_type=Path), help="Save response to file")
@click.pass_context
def build(
    ctx: click.Context,
    name_id: str,
    request_id: Optional[str],
    issuer: Optional[str],
    acs_url: Optional[str],
    attributes: Tuple[str, ...],
    algorithm: Optional[str],
    cert: Optional[Path],
    key: Optional[Path],
    encrypt: Optional[bool],
    as_base64: bool,
    output: Optional[Path],
) -> None:
    """Build a signed SAML 2.0 Response.

    Examples:

        # Signed response for a local SP
        fake-idp response build --name-id user@example.com \\
            --request-id _a1b2c3 --attribute email=user@example.com \\
            --cert certs/idp.pem --key certs/idp_key.pem

        # Encrypted assertion, SHA-512, base64 for an HTTP-POST form
        fake-idp response build --name-id user@example.com \\
            --algorithm sha512 --encrypt --base64 --output response.b64
    """
    config = ctx.obj["config"]

    try:
        request = build_response_request(
            config,
            name_id=name_id,
            request_id=request_id or f"_{uuid.uuid4().hex}",
            user_attributes=_parse_attributes(attributes),
            cert_path=cert,
            key_path=key,
        )

        overrides = {}
        if issuer:
            overrides["issuer_uri"] = issuer
        if acs_url:
            overrides["acs_url"] = acs_url
        if algorithm:
            overrides["digest_algorithm"] = DigestAlgorithm.from_value(algorithm)
        if encrypt is not None:
            overrides["encryption_enabled"] = encrypt
        if overrides:
            request = dataclasses.replace(request, **overrides)

        result = SamlResponse(request).build_result()

    except ConfigurationError as e:
        logger.error(f"Configuration error during response build: {e}")
        _fail(f"Configuration error: {e}")
    except FakeIdpError as e:
        logger.error(f"Response build failed: {e}")
        _fail(f"Response build failed: {e}")

    payload = result.xml
    if as_base64:
        payload = base64.b64encode(result.xml.encode("utf-8")).decode("ascii")

    if output:
        output.write_text(payload, encoding="utf-8")
        click.echo(
            click.style("✓", fg="green", bold=True)
            + f" SAML response saved to: {output}"
        )
        click.echo(f"  Response ID:  {result.identifiers.response_id}")
        click.echo(f"  Assertion ID: {result.identifiers.assertion_id}")
        click.echo(f"  Encrypted:    {result.encrypted}")
    else:
        click.echo(payload)


@response_group.command(name="verify")
@click.argument("file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--cert",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="IdP certificate to verify against (PEM/DER)",
)
def verify(file: Path, cert: Path) -> None:
    """Verify the assertion signature of a plain SAML Response.

    Examples:

        fake-idp response verify response.xml --cert certs/idp.pem
    """
    try:
        certificate = load_certificate_file(cert)
        verified = verify_response(file.read_text(encoding="utf-8"), convert_to_pem(certificate))
    except etree.XMLSyntaxError as e:
        _fail(f"Response is not well-formed XML: {e}")
    except (InvalidSignature, InvalidDigest) as e:
        _fail(f"Signature invalid: {e}")
    except FakeIdpError as e:
        _fail(str(e))

    info = get_certificate_info(certificate)
    click.echo(click.style("✓", fg="green", bold=True) + " Signature valid")
    click.echo(f"  Assertion ID: {verified.get('ID', 'N/A')}")
    click.echo(f"  Signed by:    {info.subject}")


@response_group.command(name="inspect")
@click.argument("file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--key",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Private key matching the encryption certificate (PEM)",
)
@click.pass_context
def inspect(ctx: click.Context, file: Path, key: Path) -> None:
    """Decrypt an encrypted SAML Response and print its assertion.

    Examples:

        fake-idp response inspect response.xml --key certs/idp_key.pem
    """
    password = get_key_password(ctx.obj["config"].certificates)
    try:
        private_key = load_private_key_file(key, password)
        assertion_xml = decrypt_assertion(file.read_text(encoding="utf-8"), private_key)
    except etree.XMLSyntaxError as e:
        _fail(f"Response is not well-formed XML: {e}")
    except FakeIdpError as e:
        _fail(f"Decryption failed: {e}")

    assertion = etree.fromstring(assertion_xml.encode("utf-8"))
    name_id = assertion.find("saml:Subject/saml:NameID", NSMAP)
    click.echo(click.style("✓", fg="green", bold=True) + " Assertion decrypted")
    click.echo(f"  Assertion ID: {assertion.get('ID', 'N/A')}")
    click.echo(f"  Subject:      {name_id.text if name_id is not None else 'N/A'}")
    click.echo(etree.tostring(assertion, pretty_print=True, encoding="unicode"))
