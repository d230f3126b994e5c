"""Command-line interface for pgshift - PostgreSQL table migration."""
import argparse
import asyncio
import json  # pylint: disable=import-self
import logging
import signal
import sys
from typing import List

from pgshift.config.connection import load_connection_config, validate_connection_config
from pgshift.core.errors import MigrationError, NoActiveMigrationError
from pgshift.core.service import MigrationService
from pgshift.database.connection import ConnectionManager
from pgshift.models.migration import MigrationOptions, MigrationProgress
from pgshift.output.json import render_json
from pgshift.output.markdown import render_markdown
from pgshift.sql.identifiers import parse_table_references

logger = logging.getLogger(__name__)


def _print_progress(_event: str, progress: MigrationProgress) -> None:
    """Write one progress line to stderr."""
    line = (
        f"[{progress.current_table}/{progress.total_tables}] "
        f"{progress.table_name}: {progress.status.value}"
    )
    if progress.total_rows:
        line += f" {progress.rows_transferred}/{progress.total_rows} rows"
    if progress.error:
        line += f" ({progress.error})"
    print(line, file=sys.stderr)


def _build_options(args) -> MigrationOptions:
    return MigrationOptions(
        create_table_if_not_exists=not getattr(args, 'no_create_table', False),
        truncate_before_insert=getattr(args, 'truncate', False),
        disable_constraints=not getattr(args, 'keep_constraints', False),
        batch_size=getattr(args, 'batch_size', 1000),
    )


async def _connect(manager: ConnectionManager, conn_file, profile: str) -> str:
    config = load_connection_config(conn_file, profile)
    validate_connection_config(config, profile)
    status = await manager.connect(config)
    return status.id


def _cancel_on_interrupt(service: MigrationService) -> None:
    try:
        service.cancel_migration()
        print("Cancelling after the current batch...", file=sys.stderr)
    except NoActiveMigrationError:
        logger.debug("Interrupt received with no migration running")


async def run_migrate(args):
    """Async execution wrapper for migrate command."""
    manager = ConnectionManager()
    service = MigrationService(manager)
    loop = asyncio.get_running_loop()
    interrupt_installed = False
    try:
        tables = parse_table_references(args.table)
        options = _build_options(args)

        source_id = await _connect(manager, args.source_conn, 'source')
        target_id = await _connect(manager, args.target_conn, 'target')

        if args.sort:
            tables = await service.sort_tables_by_dependency(source_id, tables)

        service.progress.subscribe(_print_progress)
        try:
            loop.add_signal_handler(signal.SIGINT, _cancel_on_interrupt, service)
            interrupt_installed = True
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handlers unavailable; Ctrl-C will abort immediately")

        result = await service.start_migration(
            source_id, target_id, tables, options, args.target_schema
        )

        if args.format == "json":
            print(render_json(result))
        else:
            print(render_markdown(result))

        sys.exit(0 if result.success else 1)

    except (MigrationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        if interrupt_installed:
            loop.remove_signal_handler(signal.SIGINT)
        await manager.disconnect_all()


async def run_sort(args):
    """Print selected tables in foreign-key order."""
    manager = ConnectionManager()
    service = MigrationService(manager)
    try:
        tables = parse_table_references(args.table)
        source_id = await _connect(manager, args.source_conn, 'source')
        ordered = await service.sort_tables_by_dependency(source_id, tables)
        for table in ordered:
            print(table.qualified_name)
        sys.exit(0)
    except (MigrationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await manager.disconnect_all()


async def run_compare(args):
    """Compare source tables with their target counterparts."""
    manager = ConnectionManager()
    service = MigrationService(manager)
    try:
        tables = parse_table_references(args.table)
        source_id = await _connect(manager, args.source_conn, 'source')
        target_id = await _connect(manager, args.target_conn, 'target')
        comparisons = await service.analyze_schema(
            source_id, target_id, tables, args.target_schema
        )
        print(json.dumps([c.model_dump(by_alias=True) for c in comparisons], indent=2))
        sys.exit(0)
    except (MigrationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await manager.disconnect_all()


async def run_tables(args):
    """List base tables of the source database."""
    manager = ConnectionManager()
    service = MigrationService(manager)
    try:
        source_id = await _connect(manager, args.source_conn, 'source')
        for info in await service.list_tables(source_id):
            print(f"{info.schema_name}.{info.name}\t{info.row_count}\t{info.size_bytes}")
        sys.exit(0)
    except (MigrationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await manager.disconnect_all()


def _add_table_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--table", action="append", required=True, metavar="SCHEMA.TABLE",
        help="Table to include (repeatable). Bare names default to the public schema."
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        description="pgshift - copy PostgreSQL tables between databases",
        epilog="Examples:\n"
               "  pgshift migrate --source-conn src.yaml --target-conn dst.yaml "
               "--table public.orders --sort\n"
               "  pgshift sort --source-conn src.yaml --table orders --table customers",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command")

    migrate_parser = subparsers.add_parser(
        "migrate",
        help="Copy table structure and data from source to target",
        description="Copy tables batch by batch; Ctrl-C cancels after the current batch"
    )
    migrate_parser.add_argument(
        "--source-conn",
        help="Source connection file (default: ~/.pgshift/source.yaml)"
    )
    migrate_parser.add_argument(
        "--target-conn",
        help="Target connection file (default: ~/.pgshift/target.yaml)"
    )
    _add_table_args(migrate_parser)
    migrate_parser.add_argument(
        "--batch-size", type=int, default=1000,
        help="Rows per fetch/insert batch (default: 1000)"
    )
    migrate_parser.add_argument(
        "--no-create-table", action="store_true",
        help="Do not create missing target tables"
    )
    migrate_parser.add_argument(
        "--truncate", action="store_true",
        help="Truncate target tables (CASCADE) before inserting"
    )
    migrate_parser.add_argument(
        "--keep-constraints", action="store_true",
        help="Leave target triggers and FK checks enabled during the copy"
    )
    migrate_parser.add_argument(
        "--target-schema",
        help="Write all tables into this schema on the target"
    )
    migrate_parser.add_argument(
        "--sort", action="store_true",
        help="Order tables by foreign-key dependencies before migrating"
    )
    migrate_parser.add_argument(
        "--format", choices=["json", "markdown"], default="json",
        help="Output format (default: json)"
    )

    sort_parser = subparsers.add_parser("sort", help="Print tables in dependency order")
    sort_parser.add_argument("--source-conn")
    _add_table_args(sort_parser)

    compare_parser = subparsers.add_parser(
        "compare", help="Compare source and target table definitions"
    )
    compare_parser.add_argument("--source-conn")
    compare_parser.add_argument("--target-conn")
    compare_parser.add_argument("--target-schema")
    _add_table_args(compare_parser)

    tables_parser = subparsers.add_parser("tables", help="List source tables")
    tables_parser.add_argument("--source-conn")

    return parser


COMMANDS = {
    "migrate": run_migrate,
    "sort": run_sort,
    "compare": run_compare,
    "tables": run_tables,
}


def main(argv: List[str] = None):
    """Parse command line arguments and execute appropriate command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)
    asyncio.run(handler(args))


if __name__ == "__main__":
    main()
