"""
blobsas Command-Line Interface

Provides commands to parse blob service URLs and to issue SAS tokens for
containers and blobs.
"""

import sys
import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError

from blobsas import __version__
from blobsas.core.config_manager import ConfigManager
from blobsas.core.logging_config import setup_logging
from blobsas.exceptions import BlobSASError
from blobsas.sas.ip_range import IPRange
from blobsas.sas.permissions import PermissionSet
from blobsas.sas.protocol import SASProtocol
from blobsas.sas.query_parameters import ResponseHeaderOverrides
from blobsas.sas.signer import SASSigner
from blobsas.url.parser import BlobURLParser
from blobsas.utils import parse_iso8601, to_utc_string

logger = logging.getLogger("blobsas.cli")


def _load_config(config: Optional[Path], log_level: Optional[str]) -> ConfigManager:
    """Load configuration and configure logging from it."""
    overrides = {"logging": {"level": log_level.upper()}} if log_level else None
    manager = ConfigManager()
    try:
        cfg = manager.load(config_file=str(config) if config else None, cli_overrides=overrides)
    except (ValidationError, ValueError, FileNotFoundError, yaml.YAMLError) as e:
        click.echo(f"[ERROR] Invalid configuration: {e}", err=True)
        sys.exit(1)

    setup_logging(
        level=cfg.logging.level.value,
        format_type=cfg.logging.format,
        log_file=cfg.logging.file,
        rotation_size=cfg.logging.rotation_size,
        rotation_count=cfg.logging.rotation_count,
        module_levels=cfg.logging.module_levels,
    )
    return manager


def _parse_time(ctx, param, value: Optional[str]) -> Optional[datetime]:
    """Click callback turning an ISO-8601 UTC string into a datetime."""
    if value is None:
        return None
    try:
        return parse_iso8601(value)
    except ValueError:
        raise click.BadParameter(f"expected UTC ISO-8601 such as 2020-01-01T00:00:00Z, got {value!r}")


config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)

log_level_option = click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (overrides configuration)",
)


@click.group()
@click.version_option(version=__version__, prog_name="blobsas")
@click.pass_context
def cli(ctx):
    """
    blobsas - Shared Access Signatures for blob storage

    Parse blob URLs and issue container- or blob-scoped SAS tokens.
    """
    ctx.ensure_object(dict)


@cli.command()
@click.argument("url")
@log_level_option
def parse(url: str, log_level: Optional[str]):
    """
    Parse a blob service URL and print its parts as JSON.

    Examples:
        blobsas parse https://acct.blob.core.windows.net/container/dir/blob.txt
    """
    _load_config(None, log_level)

    try:
        parts = BlobURLParser().parse_parts(url)
    except BlobSASError as e:
        click.echo(f"[ERROR] {e.message} ({e.error_code})", err=True)
        sys.exit(1)

    identity = parts.identity
    result = {
        "scheme": identity.scheme,
        "host": identity.host,
        "account": identity.account_name,
        "container": identity.container_name,
        "blob": identity.blob_name,
        "snapshot": identity.snapshot,
        "sas": dict(parts.sas.to_pairs()) if parts.sas else None,
        "parameters": [list(pair) for pair in parts.unparsed_parameters],
    }
    click.echo(json.dumps(result, indent=2))


@cli.command()
@click.argument("url")
@click.option("--permissions", "-p", default="", help="Permission letters, any of 'racwdl'")
@click.option("--expiry", "-e", callback=_parse_time, help="Expiry time, e.g. 2020-01-01T00:00:00Z")
@click.option("--start", "-s", callback=_parse_time, help="Start time, e.g. 2019-12-31T00:00:00Z")
@click.option("--ip", "ip_range", help="Allowed client address or range, e.g. 10.0.0.1-10.0.0.255")
@click.option(
    "--protocol",
    type=click.Choice([p.value for p in SASProtocol]),
    help="Allowed protocols",
)
@click.option("--identifier", "-i", help="Stored access policy identifier")
@click.option("--cache-control", help="Cache-Control response override")
@click.option("--content-disposition", help="Content-Disposition response override")
@click.option("--content-encoding", help="Content-Encoding response override")
@click.option("--content-language", help="Content-Language response override")
@click.option("--content-type", help="Content-Type response override")
@click.option("--account-key", "-k", help="Base64 account key (overrides configuration)")
@click.option("--sas-version", help="Service version to sign for (overrides configuration)")
@config_option
@log_level_option
def sign(
    url: str,
    permissions: str,
    expiry: Optional[datetime],
    start: Optional[datetime],
    ip_range: Optional[str],
    protocol: Optional[str],
    identifier: Optional[str],
    cache_control: Optional[str],
    content_disposition: Optional[str],
    content_encoding: Optional[str],
    content_language: Optional[str],
    content_type: Optional[str],
    account_key: Optional[str],
    sas_version: Optional[str],
    config: Optional[Path],
    log_level: Optional[str],
):
    """
    Issue a SAS for a container or blob URL and print the signed URL.

    Examples:
        blobsas sign https://acct.blob.core.windows.net/c/blob.txt -p r -e 2030-01-01T00:00:00Z -k <key>
        blobsas sign https://acct.blob.core.windows.net/c -p rl --protocol https --config blobsas.yaml
    """
    manager = _load_config(config, log_level)
    cfg = manager.get_config()
    parser = BlobURLParser()

    try:
        parts = parser.parse_parts(url)
        identity = parts.identity
        if parts.sas is not None:
            logger.warning("URL already carries a SAS; it will be replaced")

        key = account_key or manager.get_account_key(identity.account_name)
        if not key:
            click.echo(
                f"[ERROR] No account key for '{identity.account_name}'. "
                "Pass --account-key or configure one.",
                err=True,
            )
            sys.exit(1)

        if expiry is None:
            expiry = datetime.now(timezone.utc) + timedelta(minutes=cfg.sas.expiry_minutes)
            logger.info(f"No expiry given; using {to_utc_string(expiry)}")

        chosen_protocol = SASProtocol(protocol) if protocol else cfg.sas.protocol
        signer = SASSigner(version=sas_version or cfg.sas.version)
        sas = signer.sign(
            identity,
            account_key=key,
            permissions=PermissionSet.parse(permissions, identity.scope) if permissions else None,
            expiry=expiry,
            start=start,
            ip_range=IPRange.parse(ip_range) if ip_range else None,
            protocol=chosen_protocol,
            identifier=identifier,
            headers=ResponseHeaderOverrides(
                cache_control=cache_control,
                content_disposition=content_disposition,
                content_encoding=content_encoding,
                content_language=content_language,
                content_type=content_type,
            ),
        )
    except BlobSASError as e:
        click.echo(f"[ERROR] {e.message} ({e.error_code})", err=True)
        sys.exit(1)

    click.echo(parser.build(identity, sas, parts.unparsed_parameters))


@cli.command(name="config")
@config_option
def show_config(config: Optional[Path]):
    """
    Show current configuration.

    Account keys are redacted.
    """
    manager = _load_config(config, None)
    click.echo(yaml.safe_dump(manager.redacted(), sort_keys=False).rstrip())


@cli.command()
def version():
    """Show blobsas version."""
    click.echo(f"blobsas version {__version__}")


def main():
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
