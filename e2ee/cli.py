"""
Command-line interface: encrypt and decrypt messages with RSA-OAEP.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from e2ee.client.identity import ClientIdentity
from e2ee.common.config import Config
from e2ee.common.exceptions import E2eeError
from e2ee.common.logging_utils import parse_log_level, setup_logger
from e2ee.common.models import KeySize
from e2ee.server.identity import ServerIdentity
from e2ee.server.keygen import KeyGenerator
from e2ee.server.persistence import KeyFilePersistence

KEY_SIZE_CHOICES = [size.cli_name for size in KeySize]


def _fail(context: str, err: Exception) -> click.ClickException:
    return click.ClickException(f"{context}: {err}")


@click.group()
@click.version_option(package_name="e2ee", prog_name="e2ee-cli")
@click.option(
    "--log-level",
    default=None,
    help="Logging level (default: from E2EE_LOG_LEVEL env or WARNING)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """CLI tool to encrypt and decrypt messages using RSA encryption"""
    try:
        config = Config()
    except ValueError as err:
        msg = f"Invalid E2EE_* environment setting: {err}"
        raise click.ClickException(msg) from err
    try:
        level = parse_log_level(log_level) if log_level else config.LOG_LEVEL
    except ValueError as err:
        raise click.BadParameter(str(err), param_hint="--log-level") from err
    setup_logger(logging.getLogger("e2ee"), level)
    ctx.obj = config


@cli.command("generate-keys")
@click.option(
    "-s",
    "--size",
    "key_size",
    type=click.Choice(KEY_SIZE_CHOICES, case_sensitive=False),
    default=None,
    help="RSA key size (default: bit2048)",
)
@click.option(
    "--public-key-file-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to save the public key (default: <keys dir>/public.pem)",
)
@click.option(
    "--private-key-file-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to save the private key (default: <keys dir>/private.pem)",
)
@click.pass_obj
def generate_keys(
    config: Config,
    key_size: str | None,
    public_key_file_path: Path | None,
    private_key_file_path: Path | None,
) -> None:
    """Generate an RSA key pair and save it as PEM files"""
    try:
        generator = KeyGenerator(
            key_size=key_size,
            private_key_path=private_key_file_path,
            public_key_path=public_key_file_path,
            config=config,
        )
    except ValueError as err:
        raise _fail("Failed to generate keys", err) from err
    try:
        identity = generator.generate_keys()
    except E2eeError as err:
        raise _fail("Failed to generate keys", err) from err

    click.echo(f"Public Key Pem:\n{identity.public_key_pem}")
    click.echo(f"Private Key Pem:\n{identity.private_key_pem}")
    click.echo(f"Public Key Pem is saved to: {generator.public_key_path}")
    click.echo(f"Private Key Pem is saved to: {generator.private_key_path}")


@cli.command()
@click.option(
    "-p",
    "--public-key-file-path",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="PEM file holding the recipient's public key",
)
@click.option("-m", "--message", required=True, help="Message to encrypt")
def encrypt(public_key_file_path: Path, message: str) -> None:
    """Encrypt a message with a public key"""
    try:
        client = ClientIdentity(KeyFilePersistence.read_pem(public_key_file_path))
    except E2eeError as err:
        raise _fail("Failed to load public key", err) from err
    try:
        encrypted = client.encrypt(message)
    except E2eeError as err:
        raise _fail("Failed to encrypt message", err) from err
    click.echo(f"Encrypted message: {encrypted}")


@cli.command()
@click.option(
    "-p",
    "--private-key-file-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="PEM file holding the private key (default: <keys dir>/private.pem)",
)
@click.option(
    "-u",
    "--public-key-file-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="PEM file holding the public key (default: <keys dir>/public.pem)",
)
@click.option("-c", "--ciphertext", required=True, help="Base64 ciphertext to decrypt")
@click.pass_obj
def decrypt(
    config: Config,
    private_key_file_path: Path | None,
    public_key_file_path: Path | None,
    ciphertext: str,
) -> None:
    """Decrypt a ciphertext with the server key pair"""
    try:
        server = ServerIdentity.load_from_files(
            private_key_file_path or config.PRIVATE_KEY_PATH,
            public_key_file_path or config.PUBLIC_KEY_PATH,
            verify_pair=config.VERIFY_KEY_PAIR,
        )
    except E2eeError as err:
        raise _fail("Failed to load key pair", err) from err
    try:
        decrypted = server.decrypt(ciphertext)
    except E2eeError as err:
        raise _fail("Failed to decrypt message", err) from err
    click.echo(f"Decrypted message: {decrypted}")


if __name__ == "__main__":
    cli()
