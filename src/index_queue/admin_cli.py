#!/usr/bin/env python3
"""
CLI entry point for the index queue administration layer.

Usage:
    index-queue-admin --config config/index_queue.yaml --site 1 overview
    index-queue-admin --config config/index_queue.yaml --site 1 initialize pages news
    index-queue-admin --config config/index_queue.yaml --site 1 reset-errors
    index-queue-admin --config config/index_queue.yaml --site 1 requeue pages 12
    index-queue-admin --config config/index_queue.yaml --site 1 show-error 345
    index-queue-admin --config config/index_queue.yaml --site 1 index --batch-size 10
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from dotenv import load_dotenv

from index_queue.admin import (
    AdminRequestContext,
    InitializationService,
    QueueAdministrationFacade,
    QueueRegistry,
)
from index_queue.backends import create_backend
from index_queue.config import AdminConfig
from index_queue.core.logging import configure_logging
from index_queue.core.queue import PRIMARY_QUEUE_ID
from index_queue.core.site import Site
from index_queue.queues import build_queue_factories, create_queue
from index_queue.runner import IndexService
from index_queue.sources import ContentSource, SqliteContentSource


logger = logging.getLogger(__name__)


def build_content_source(config: AdminConfig) -> ContentSource:
    """Build the content source from configuration."""
    content_config = config.get_content_config()
    return SqliteContentSource(
        db_path=Path(content_config.get("db_path", "local/content/content.db")),
        uid_column=content_config.get("uid_column", "uid"),
        changed_column=content_config.get("changed_column", "tstamp"),
    )


def build_index_service_factory(
    config: AdminConfig,
    content_source: ContentSource,
) -> Callable[[Site], IndexService]:
    """Build the factory creating an indexing execution service per site."""
    indexing_config = config.get_indexing_config()

    def factory(site: Site) -> IndexService:
        queue = create_queue(indexing_config.get("queue", PRIMARY_QUEUE_ID), config)
        backends = []
        try:
            for connection in site.get_backend_connections():
                backends.append(create_backend(
                    connection,
                    timeout=indexing_config.get("timeout", 30),
                    max_retries=indexing_config.get("max_retries", 3),
                ))
        except Exception:
            for backend in backends:
                backend.close()
            queue.close()
            raise

        return IndexService(
            site=site,
            queue=queue,
            content_source=content_source,
            backends=backends,
        )

    return factory


def build_facade(config: AdminConfig, content_source: ContentSource) -> QueueAdministrationFacade:
    """Wire registry, initialization service and facade."""
    registry = QueueRegistry(build_queue_factories(config))
    return QueueAdministrationFacade(
        registry=registry,
        initialization_service=InitializationService(registry, content_source),
        index_service_factory=build_index_service_factory(config, content_source),
    )


def print_overview(facade: QueueAdministrationFacade, context: AdminRequestContext) -> None:
    """Print statistics and errors of the site's default queue."""
    overview = facade.get_overview(context)
    if not overview.can_proceed:
        print(f"Site {context.site_id}: index queue cannot be managed "
              "(no backend connection, no queue or no enabled configuration).")
        return

    stats = overview.statistics
    print(f"Site {context.site_id} ({context.site.label})")
    print(f"  Total:   {stats.total}")
    print(f"  Pending: {stats.pending} ({stats.pending_percentage}%)")
    print(f"  Indexed: {stats.success} ({stats.success_percentage}%)")
    print(f"  Errors:  {stats.failed} ({stats.failed_percentage}%)")
    print(f"  Configurations: {', '.join(overview.configuration_names)}")

    if overview.errors:
        print("Errors:")
        for item in overview.errors:
            print(f"  #{item.item_id} {item.item_type}:{item.item_uid} - {item.errors}")


def print_item(facade: QueueAdministrationFacade, context: AdminRequestContext, item_id: int) -> None:
    """Print one queue item with its error message."""
    item = facade.get_item(context, item_id)
    if item is None:
        return
    for key, value in item.to_dict().items():
        print(f"  {key}: {value}")


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Index Queue Administration CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration YAML file",
    )

    parser.add_argument(
        "--site",
        type=int,
        required=True,
        help="Id of the site to administer",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose/debug logging",
    )

    parser.add_argument(
        "--structured-logs",
        action="store_true",
        help="Emit JSON log lines",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("overview", help="Show queue statistics and errors")

    initialize = subparsers.add_parser("initialize", help="Initialize indexing configurations")
    initialize.add_argument("configurations", nargs="*", help="Configuration names")

    subparsers.add_parser("reset-errors", help="Reset the errors of all queues")

    requeue = subparsers.add_parser("requeue", help="Requeue a single record")
    requeue.add_argument("item_type", help="Content type (table) of the record")
    requeue.add_argument("uid", type=int, help="Record id")

    show_error = subparsers.add_parser("show-error", help="Show a queue item with its error")
    show_error.add_argument("item_id", type=int, help="Queue item id")

    index = subparsers.add_parser("index", help="Run an incremental indexing pass")
    index.add_argument("--batch-size", type=int, default=None, help="Number of items to index")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()
    args = parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        structured=args.structured_logs,
    )

    config = AdminConfig(config_path=args.config)
    site = config.get_site(args.site)
    if site is None:
        logger.error(f"Unknown site: {args.site}")
        return 1

    content_source = build_content_source(config)
    facade = build_facade(config, content_source)
    context = facade.create_context(site)

    try:
        if args.command == "overview":
            print_overview(facade, context)
        elif args.command == "initialize":
            facade.initialize_configurations(context, args.configurations)
        elif args.command == "reset-errors":
            facade.reset_all_errors(context)
        elif args.command == "requeue":
            facade.requeue_item(context, args.item_type, args.uid)
        elif args.command == "show-error":
            print_item(facade, context, args.item_id)
        elif args.command == "index":
            batch_size = args.batch_size or config.get("indexing.batch_size", 1)
            facade.run_incremental_indexing(context, batch_size=batch_size)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1
    finally:
        for message in context.messages:
            print(message)
        context.close()
        content_source.close()

    return 1 if context.messages.has_errors() else 0


if __name__ == "__main__":
    sys.exit(main())
