"""Command line interface for SmolKV."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, NoReturn, Optional, Tuple

import click
from rich.console import Console

from . import __version__
from .api_clients import QueryBuilder, SmolKVClient, SmolKVError
from .config import ConfigManager

logger = logging.getLogger(__name__)

console = Console()


def run_async(coro: Awaitable[Any]) -> Any:
    """Run a coroutine to completion from synchronous CLI code."""
    return asyncio.run(coro)  # type: ignore[arg-type]


def parse_key_path(path: str) -> Tuple[str, str]:
    """Split ``<collection>/<key>``; the key may itself contain slashes.

    Raises:
        ValueError: If the path has no key part
    """
    collection, sep, key = path.partition("/")
    if not sep or not collection or not key:
        raise ValueError("Invalid path format. Use <collection>/<key>")
    return collection, key


class AliasedGroup(click.Group):
    """Group that resolves short command aliases (``ls``, ``rm``, ``s``)."""

    aliases = {"s": "set", "ls": "list", "rm": "remove"}

    def get_command(self, ctx, cmd_name):
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))


def _print_json(value: Any) -> None:
    console.print_json(data=value)


def _fail(error: Exception) -> NoReturn:
    console.print(f"❌ {error}", style="red", markup=False)
    sys.exit(1)


def _execute(
    ctx: click.Context, operation: Callable[[SmolKVClient], Awaitable[Any]]
) -> None:
    """Run one client operation against the default endpoint and print its result."""
    try:
        _, endpoint = ctx.obj["config_manager"].get_default_endpoint()
    except ValueError as e:
        _fail(e)

    client_factory = ctx.obj.get("client_factory", SmolKVClient)

    async def runner() -> Any:
        async with client_factory(endpoint.url, endpoint.secret) as client:
            return await operation(client)

    try:
        result = run_async(runner())
    except (SmolKVError, ValueError) as e:
        _fail(e)

    _print_json(result)


def _build_query(
    query: Optional[str],
    limit: Optional[int],
    order: str,
    keys: bool,
    from_key: Optional[str],
    to_key: Optional[str],
) -> QueryBuilder:
    builder = (
        QueryBuilder()
        .keys(keys)
        .from_(from_key)
        .to(to_key)
        .limit(limit)
        .order(order)
    )
    # Only add the filter when it has content
    if query:
        builder = builder.query(query)
    return builder


@click.group()
@click.option("--config", "-c", type=click.Path(), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__, prog_name="smolkv")
@click.pass_context
def cli(ctx, config: Optional[str], verbose: bool):
    """SmolKV CLI client.

    \b
    GETTING STARTED:
      smolkv endpoint set local http://localhost:8080
      smolkv endpoint use local
      smolkv collection create users
      smolkv put users/1 '{"name": "a"}'
      smolkv collection list users --keys
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_manager"] = ConfigManager(Path(config) if config else None)


# endpoint management


@cli.group(cls=AliasedGroup)
def endpoint():
    """Manage server endpoints in the configuration file."""


@endpoint.command("set")
@click.argument("name")
@click.argument("url")
@click.option("--secret", help="Secret key (optional)")
@click.pass_context
def endpoint_set(ctx, name: str, url: str, secret: Optional[str]):
    """Add or replace an endpoint."""
    try:
        ctx.obj["config_manager"].set_endpoint(name, url, secret)
    except ValueError as e:
        _fail(e)
    console.print(f"Endpoint '{name}' set successfully", markup=False)


@endpoint.command("list")
@click.pass_context
def endpoint_list(ctx):
    """List configured endpoints."""
    try:
        settings = ctx.obj["config_manager"].load()
    except ValueError as e:
        _fail(e)

    console.print("SmolKV Configuration:")
    console.print(
        f"Default endpoint: {settings.default_endpoint or '<not set>'}", markup=False
    )
    console.print("\nConfigured endpoints:")
    if not settings.endpoints:
        console.print("  <none>", markup=False)
    for name, config in settings.endpoints.items():
        console.print(f"  {name}: {config.url}", markup=False)


@endpoint.command("remove")
@click.argument("name")
@click.pass_context
def endpoint_remove(ctx, name: str):
    """Remove an endpoint."""
    try:
        removed = ctx.obj["config_manager"].remove_endpoint(name)
    except ValueError as e:
        _fail(e)
    if removed:
        console.print(f"Endpoint '{name}' removed successfully", markup=False)
    else:
        console.print(f"Endpoint '{name}' not found in config", markup=False)


@endpoint.command("use")
@click.argument("name")
@click.pass_context
def endpoint_use(ctx, name: str):
    """Set the default endpoint."""
    try:
        ctx.obj["config_manager"].use_endpoint(name)
    except ValueError as e:
        _fail(e)
    console.print(f"Using endpoint '{name}'", markup=False)


# collections


@cli.group()
def collection():
    """Collection management commands."""


@collection.command("create")
@click.argument("name")
@click.pass_context
def collection_create(ctx, name: str):
    """Create a new collection."""
    _execute(ctx, lambda kv: kv.create_collection(name))


@collection.command("drop")
@click.argument("name")
@click.pass_context
def collection_drop(ctx, name: str):
    """Drop (delete) a collection."""
    _execute(ctx, lambda kv: kv.drop_collection(name))


@collection.command("list")
@click.argument("name")
@click.option("--query", help="Filter expression evaluated by the server")
@click.option("--limit", type=click.IntRange(min=0), help="Maximum number of results")
@click.option(
    "--order",
    type=click.Choice(["asc", "desc"], case_sensitive=False),
    default="asc",
    show_default=True,
    help="Sort order",
)
@click.option("--keys", is_flag=True, help="Include keys in results")
@click.option("--from", "from_key", help="Start key for range queries")
@click.option("--to", "to_key", help="End key for range queries")
@click.pass_context
def collection_list(
    ctx,
    name: str,
    query: Optional[str],
    limit: Optional[int],
    order: str,
    keys: bool,
    from_key: Optional[str],
    to_key: Optional[str],
):
    """List items in a collection with an optional query."""
    builder = _build_query(query, limit, order, keys, from_key, to_key)
    _execute(ctx, lambda kv: kv.query_collection(name, builder))


@collection.command("watch")
@click.argument("name")
@click.pass_context
def collection_watch(ctx, name: str):
    """Watch for changes in a collection."""

    async def watch(kv: SmolKVClient) -> Any:
        async with await kv.watch(name) as feed:
            async for event in feed:
                _print_json(event.model_dump())
        return {"message": "streaming connection closed"}

    try:
        _execute(ctx, watch)
    except KeyboardInterrupt:
        logger.debug(f"Stopped watching {name}")


@collection.group("backup")
def backup():
    """Backup commands."""


@backup.command("create")
@click.argument("name")
@click.pass_context
def backup_create(ctx, name: str):
    """Create a new backup."""
    _execute(ctx, lambda kv: kv.start_backup(name))


@backup.command("status")
@click.argument("name")
@click.option("--id", "backup_id", required=True, help="Backup ID")
@click.pass_context
def backup_status(ctx, name: str, backup_id: str):
    """Get backup status."""
    _execute(ctx, lambda kv: kv.backup_status(name, backup_id))


@backup.command("upload")
@click.argument("name")
@click.option("--file", "file_path", required=True, help="Path to backup file")
@click.pass_context
def backup_upload(ctx, name: str, file_path: str):
    """Upload a backup file."""
    _execute(ctx, lambda kv: kv.upload_backup_file(name, file_path))


@backup.command("download")
@click.argument("name")
@click.option("--id", "backup_id", required=True, help="Backup ID")
@click.option("--output", help="Output file path (default: <collection>-<backup_id>.sst)")
@click.pass_context
def backup_download(ctx, name: str, backup_id: str, output: Optional[str]):
    """Download a backup file."""
    output_path = output or f"{name}-{backup_id}.sst"
    console.print(f"Downloading backup to {output_path}...", markup=False)

    async def download(kv: SmolKVClient) -> Any:
        path = await kv.download_backup_to(name, backup_id, output_path)
        return {"message": f"Backup downloaded successfully to {path}"}

    _execute(ctx, download)


@collection.group("restore")
def restore():
    """Restore commands."""


@restore.command("create")
@click.argument("name")
@click.option("--id", "backup_id", required=True, help="Backup ID")
@click.pass_context
def restore_create(ctx, name: str, backup_id: str):
    """Restore a collection from a backup."""
    _execute(ctx, lambda kv: kv.start_restore(name, backup_id))


@restore.command("status")
@click.argument("name")
@click.option("--id", "restore_id", required=True, help="Restore ID")
@click.pass_context
def restore_status(ctx, name: str, restore_id: str):
    """Get restore status."""
    _execute(ctx, lambda kv: kv.restore_status(name, restore_id))


# keys


def _key_path(path: str) -> Tuple[str, str]:
    try:
        return parse_key_path(path)
    except ValueError as e:
        _fail(e)


@cli.command("put")
@click.argument("path")
@click.argument("value")
@click.pass_context
def put(ctx, path: str, value: str):
    """Put a JSON VALUE at PATH (collection/key)."""
    collection_name, key = _key_path(path)
    try:
        document = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Invalid JSON value: {e}", param_hint="VALUE")
    _execute(ctx, lambda kv: kv.put(collection_name, key, document))


@cli.command("get")
@click.argument("path")
@click.pass_context
def get(ctx, path: str):
    """Get the value at PATH (collection/key)."""
    collection_name, key = _key_path(path)
    _execute(ctx, lambda kv: kv.get(collection_name, key))


@cli.command("del")
@click.argument("path")
@click.pass_context
def delete(ctx, path: str):
    """Delete the value at PATH (collection/key)."""
    collection_name, key = _key_path(path)

    async def remove(kv: SmolKVClient) -> Any:
        deleted = await kv.delete(collection_name, key)
        return {"path": path, "deleted": deleted}

    _execute(ctx, remove)


@cli.command("import")
@click.argument("collection_name", metavar="COLLECTION")
@click.option(
    "--key",
    help="JSON property to use as the key for each object. Supports dot notation "
    "for nested properties (e.g., 'owner.login', 'metadata.id')",
)
@click.option(
    "--file",
    "file_path",
    required=True,
    help="Path to the JSON file to import. File must contain an array of objects.",
)
@click.pass_context
def import_(ctx, collection_name: str, key: Optional[str], file_path: str):
    """Import an array of values from a JSON file into a collection."""
    _execute(ctx, lambda kv: kv.import_file(collection_name, file_path, key))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
