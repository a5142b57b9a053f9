"""
esdocs CLI — Command-Line Interface
===================================

Command-line interface for esdocs operations. Each command is a direct
pass-through to one service call and prints its payload as JSON.

Usage:
    esdocs create movies --movies-mapping
    esdocs mapping movies mapping.json
    esdocs load movies data/movies.json --strict
    esdocs put movies doc.json
    esdocs get movies 1
    esdocs remove movies 1
    esdocs remove-bulk movies 1 2 3
    esdocs autocomplete movies "iron"
    esdocs delete movies
    esdocs delete -f              # every index

Connection settings come from ``--hosts``/``--api-key`` or the ES_*
environment variables (a ``.env`` file is honored).
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, List, Optional

from dotenv import load_dotenv

from .config import load_config
from .documents import DocumentService
from .engine import EngineClient
from .errors import StoreError
from .fixtures import MOVIES_MAPPING, SAMPLE_FIXTURE, load_fixture
from .indices import IndexService
from .search import DEFAULT_SUGGEST_FIELDS, SearchService

logger = logging.getLogger(__name__)

Handler = Callable[[argparse.Namespace, EngineClient], Awaitable[Any]]


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _emit(payload: Any):
    if hasattr(payload, "to_dict"):
        payload = payload.to_dict()
    print(json.dumps(payload, indent=2, default=str))


async def cmd_create(args, engine: EngineClient):
    """Create an index."""
    mapping = MOVIES_MAPPING if args.movies_mapping else None
    return await IndexService(engine).create_index(args.index, mapping=mapping)


async def cmd_delete(args, engine: EngineClient):
    """Delete one index, or every index when no name is given."""
    indices = IndexService(engine)
    if args.index:
        return await indices.delete_index(args.index)
    return await indices.delete_all_indices()


async def cmd_mapping(args, engine: EngineClient):
    """Apply a mapping from a JSON file."""
    return await IndexService(engine).apply_mapping(args.index, _read_json(args.file))


async def cmd_put(args, engine: EngineClient):
    """Create or replace one document from a JSON file."""
    return await DocumentService(engine).upsert(args.index, _read_json(args.file))


async def cmd_get(args, engine: EngineClient):
    """Show a stored document."""
    return await DocumentService(engine).get(args.index, args.id)


async def cmd_remove(args, engine: EngineClient):
    """Delete one document."""
    return await DocumentService(engine).remove(args.index, args.id)


async def cmd_load(args, engine: EngineClient):
    """Bulk-load a JSON fixture."""
    records = load_fixture(args.file or SAMPLE_FIXTURE, key=args.key)
    logger.info("Loading %d records into %s", len(records), args.index)
    return await DocumentService(engine).bulk_upsert(args.index, records, strict=args.strict)


async def cmd_remove_bulk(args, engine: EngineClient):
    """Delete many documents by id."""
    return await DocumentService(engine).bulk_remove(args.index, args.ids, strict=args.strict)


async def cmd_autocomplete(args, engine: EngineClient):
    """Suggest completions for a prefix."""
    fields = tuple(args.fields.split(",")) if args.fields else DEFAULT_SUGGEST_FIELDS
    return await SearchService(engine).autocomplete(
        args.index, args.prefix, size=args.size, fields=fields
    )


async def run(args: argparse.Namespace, handler: Handler) -> int:
    """Build the engine client, run one handler, and report the outcome."""
    overrides = {}
    if args.hosts:
        overrides["url"] = args.hosts
    if args.api_key:
        overrides["api_key"] = args.api_key
    config = load_config(**overrides)

    async with EngineClient(config) as engine:
        try:
            payload = await handler(args, engine)
        except StoreError as err:
            print(f"Error: {err}", file=sys.stderr)
            _emit(err.to_dict())
            return 1
        except (OSError, ValueError) as err:
            # unreadable or malformed input file
            print(f"Error: {err}", file=sys.stderr)
            return 1

    _emit(payload)
    return 0


COMMANDS = {
    "create": cmd_create,
    "delete": cmd_delete,
    "mapping": cmd_mapping,
    "put": cmd_put,
    "get": cmd_get,
    "remove": cmd_remove,
    "load": cmd_load,
    "remove-bulk": cmd_remove_bulk,
    "autocomplete": cmd_autocomplete,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="esdocs",
        description="esdocs — Elasticsearch document lifecycle service"
    )

    # Global options
    parser.add_argument(
        "--hosts",
        help="Elasticsearch hosts (comma-separated, default: $ES_URL)",
        default=None
    )
    parser.add_argument(
        "--api-key",
        dest="api_key",
        help="Elasticsearch API key",
        default=None
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ...)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # create command
    create_parser = subparsers.add_parser("create", help="Create an index")
    create_parser.add_argument("index", help="Index name")
    create_parser.add_argument(
        "--movies-mapping",
        action="store_true",
        help="Apply the movies demo mapping at creation"
    )

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Delete an index (all if omitted)")
    delete_parser.add_argument("index", nargs="?", help="Index name")
    delete_parser.add_argument("-f", "--force", action="store_true", help="Skip confirmation")

    # mapping command
    mapping_parser = subparsers.add_parser("mapping", help="Apply a mapping")
    mapping_parser.add_argument("index", help="Index name")
    mapping_parser.add_argument("file", help="JSON mapping file")

    # put command
    put_parser = subparsers.add_parser("put", help="Create or replace a document")
    put_parser.add_argument("index", help="Index name")
    put_parser.add_argument("file", help="JSON document file")

    # get command
    get_parser = subparsers.add_parser("get", help="Show a document")
    get_parser.add_argument("index", help="Index name")
    get_parser.add_argument("id", help="Document id")

    # remove command
    remove_parser = subparsers.add_parser("remove", help="Delete a document")
    remove_parser.add_argument("index", help="Index name")
    remove_parser.add_argument("id", help="Document id")

    # load command
    load_parser = subparsers.add_parser("load", help="Bulk-load a JSON fixture")
    load_parser.add_argument("index", help="Target index name")
    load_parser.add_argument("file", nargs="?", help="Fixture file (default: bundled movies)")
    load_parser.add_argument("--key", help="Member holding the record array")
    load_parser.add_argument("--strict", action="store_true", help="Fail on any item error")

    # remove-bulk command
    rm_bulk_parser = subparsers.add_parser("remove-bulk", help="Delete many documents")
    rm_bulk_parser.add_argument("index", help="Index name")
    rm_bulk_parser.add_argument("ids", nargs="+", help="Document ids")
    rm_bulk_parser.add_argument("--strict", action="store_true", help="Fail on any item error")

    # autocomplete command
    ac_parser = subparsers.add_parser("autocomplete", help="Suggest completions")
    ac_parser.add_argument("index", help="Index name")
    ac_parser.add_argument("prefix", help="Text typed so far")
    ac_parser.add_argument("--size", type=int, default=5, help="Suggestions per field")
    ac_parser.add_argument("--fields", help="Comma-separated completion fields")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 2

    if args.command == "delete" and not args.force:
        target = f"index '{args.index}'" if args.index else "ALL indices"
        confirm = input(f"Delete {target}? [y/N] ")
        if confirm.lower() != "y":
            print("Aborted.")
            return 1

    return asyncio.run(run(args, handler))


if __name__ == "__main__":
    sys.exit(main())
