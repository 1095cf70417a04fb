"""CLI interface for pykvsites."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .api import KVClient
from .config import config
from .exceptions import KVSitesError, format_error
from .output import OutputFormatter
from .project import DEFAULT_PROJECT_FILE, AccountMode, Target, load_target
from .route import create_route
from .sites import SiteEngine

logger = logging.getLogger(__name__)

config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_PROJECT_FILE,
    show_default=True,
    help="Project file",
)


def _make_client(ctx: Any) -> KVClient:
    return KVClient(api_key=ctx.obj["api_key"], email=ctx.obj["email"])


def _load(ctx: Any, config_path: Path) -> tuple[Target, KVClient]:
    """Load the project file and create a client, exiting on failure."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        return load_target(config_path), _make_client(ctx)
    except KVSitesError as e:
        out.error(format_error(e))
        ctx.exit(1)
        raise  # Unreachable, but helps type checker


@click.group()
@click.option("--api-key", "-k", envvar="KVSITES_API_KEY", help="API key or token")
@click.option(
    "--email",
    envvar="KVSITES_EMAIL",
    help="Account email (only needed with a global API key)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option()
@click.pass_context
def main(
    ctx: Any,
    api_key: Optional[str],
    email: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """pykvsites - Publish static asset sites to a key-value namespace."""
    ctx.ensure_object(dict)
    ctx.obj["api_key"] = api_key
    ctx.obj["email"] = email
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pykvsites").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option("--api-key", "-k", prompt="Enter your API key or token", help="API key")
@click.option(
    "--email",
    prompt="Enter your account email (leave empty for API tokens)",
    default="",
    show_default=False,
    help="Account email for global API keys",
)
@click.pass_context
def init(ctx: Any, api_key: str, email: str) -> None:
    """Store credentials in ~/.config/pykvsites/config."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        config.save_credentials(api_key, email or None)
    except OSError as e:
        out.error(f"Failed to save configuration: {e}")
        ctx.exit(1)

    out.success("Configuration saved successfully")
    out.info(f"Config file: {config.get_config_path()}")


@main.command()
@click.argument(
    "directory",
    type=click.Path(file_okay=False, path_type=Path),
    required=False,
)
@config_option
@click.option(
    "--dry-run", is_flag=True, help="Show what would be done without doing it"
)
@click.pass_context
def publish(
    ctx: Any, directory: Optional[Path], config_path: Path, dry_run: bool
) -> None:
    """Upload changed assets and purge stale keys.

    DIRECTORY defaults to the `bucket` configured in the project's [site]
    section. When `subset` is configured, only keys under that path are
    uploaded or deleted.

    Examples:
        pykvsites publish
        pykvsites publish ./public --dry-run
        pykvsites publish -c sites/docs.toml
    """
    out: OutputFormatter = ctx.obj["out"]
    target, client = _load(ctx, config_path)

    try:
        with client:
            stats = SiteEngine(client, out).publish(target, directory, dry_run)
    except KeyboardInterrupt:
        out.warning("\nPublish cancelled by user")
        ctx.exit(130)
    except KVSitesError as e:
        out.error(format_error(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(stats)


@main.command()
@click.argument(
    "directory",
    type=click.Path(file_okay=False, path_type=Path),
    required=False,
)
@config_option
@click.pass_context
def plan(ctx: Any, directory: Optional[Path], config_path: Path) -> None:
    """List the keys a publish would upload and delete.

    Nothing is changed remotely. With --json the full plan, including the
    patched manifest, is printed.
    """
    out: OutputFormatter = ctx.obj["out"]
    target, client = _load(ctx, config_path)

    try:
        with client:
            sync_plan = SiteEngine(client, out).plan(target, directory)
    except KeyboardInterrupt:
        ctx.exit(130)
    except KVSitesError as e:
        out.error(format_error(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(
            {
                "to_upload": [pair.key for pair in sync_plan.to_upload],
                "to_delete": sync_plan.to_delete,
                "unchanged": sync_plan.unchanged,
                "manifest": sync_plan.manifest,
            }
        )
        return

    for pair in sync_plan.to_upload:
        out.print(f"+ {pair.key}")
    for key in sync_plan.to_delete:
        out.print(f"- {key}")
    if not sync_plan.to_upload and not sync_plan.to_delete:
        out.info("No changes needed - everything is in sync!")


@main.command()
@click.argument("script", required=False)
@config_option
@click.option(
    "--multiscript/--single-script",
    default=None,
    help="Account capability (defaults to KVSITES_MULTISCRIPT)",
)
@click.pass_context
def route(
    ctx: Any, script: Optional[str], config_path: Path, multiscript: Optional[bool]
) -> None:
    """Create the route configured in the project file.

    SCRIPT names the script to bind and is required on multi-script
    accounts.
    """
    out: OutputFormatter = ctx.obj["out"]
    target, client = _load(ctx, config_path)

    if multiscript is None:
        multiscript = config.multiscript
    mode = AccountMode.from_multiscript(multiscript)

    out.info("Creating a route...")
    try:
        with client:
            created = create_route(client, target, mode, script)
    except KVSitesError as e:
        out.error(format_error(e))
        ctx.exit(1)
        return

    if out.json_output:
        out.output_json(created.to_dict())
    else:
        out.success(f"Route created: {created.pattern}")


if __name__ == "__main__":
    main()
