"""Datastore runner entry point.

Runs a single datastore operation against the datastore configured in the
environment (DATASTORE_ID, DATASTORE_TYPE, DATASTORE_<TYPE>_BASE_URL, ...).

Usage:
    python -m services.datastore_runner ingest --datasource-id ds1 --type web_page --source https://example.com
    python -m services.datastore_runner query --text "how do I reset my password" --top-k 5
    python -m services.datastore_runner remove --datasource-id ds1
    python -m services.datastore_runner delete
"""

import argparse
import asyncio
import sys

from services.ingestion.IngestionService import IngestionService
from services.query.QueryService import QueryService
from shared.clients.ClientErrors import ClientError
from shared.clients.datastore.DatastoreManagerFactory import DatastoreManagerFactory
from shared.clients.datastore.DatastoreManagerInterface import DatastoreManagerInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.loader.LoaderManager import LoaderManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.datastore import Datasource, Datastore, DatasourceType
from shared.models.search import SearchQuery


def build_datastore(config: HelperConfig) -> Datastore:
    """Build the Datastore record from environment configuration.

    Args:
        config (HelperConfig): The configuration helper.

    Returns:
        Datastore: The datastore with its backend configuration.

    Raises:
        ConfigurationError: If DATASTORE_ID or the backend base URL is missing.
    """
    datastore_type = config.get_string_val("DATASTORE_TYPE", default="qdrant").lower()
    prefix = f"DATASTORE_{datastore_type.upper()}"
    backend_config = {
        "base_url": config.get_string_val(f"{prefix}_BASE_URL"),
        "api_key": config.get_string_val(f"{prefix}_API_KEY", default="") or None,
        "distance": config.get_string_val(f"{prefix}_DISTANCE", default="Cosine"),
        "batch_size": int(config.get_number_val(f"{prefix}_BATCH_SIZE", default=50)),
    }
    return Datastore(
        id=config.get_string_val("DATASTORE_ID"),
        type=datastore_type,
        config=backend_config,
        owner_id=config.get_string_val("DATASTORE_OWNER_ID", default="cli"),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="datastore_runner", description="Run one datastore operation.")
    commands = parser.add_subparsers(dest="command", required=True)

    ingest = commands.add_parser("ingest", help="Load a datasource and replace its vectors.")
    ingest.add_argument("--datasource-id", required=True)
    ingest.add_argument("--type", required=True, choices=[t.value for t in DatasourceType])
    ingest.add_argument("--source", help="URL or file path of the datasource.")
    ingest.add_argument("--text", help="Inline text for datasources of type 'text'.")
    ingest.add_argument("--tags", default="", help="Comma separated tags.")
    ingest.add_argument("--skip-unchanged", action="store_true")

    query = commands.add_parser("query", help="Search the datastore.")
    query.add_argument("--text", required=True)
    query.add_argument("--top-k", type=int, required=True)
    query.add_argument("--tags", default="", help="Comma separated tags; matches any.")
    query.add_argument("--unique-sources", action="store_true")

    remove = commands.add_parser("remove", help="Remove all vectors of a datasource.")
    remove.add_argument("--datasource-id", required=True)

    commands.add_parser("delete", help="Delete the whole datastore collection.")
    return parser


def _split_tags(raw: str) -> list[str]:
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


async def run(args: argparse.Namespace, config: HelperConfig, manager: DatastoreManagerInterface) -> None:
    """Execute the parsed command with a booted manager."""
    datastore = manager.datastore
    if args.command == "ingest":
        source_config = {key: value for key, value in (("source", args.source), ("text", args.text)) if value}
        datasource = Datasource(
            id=args.datasource_id,
            datastore_id=datastore.id,
            owner_id=datastore.owner_id or "cli",
            type=DatasourceType(args.type),
            config=source_config,
            tags=_split_tags(args.tags),
        )
        service = IngestionService(helper_config=config, loader_manager=LoaderManager(helper_config=config))
        await service.do_ingest(datasource, manager, skip_unchanged=args.skip_unchanged)
    elif args.command == "query":
        query = SearchQuery(
            text=args.text,
            top_k=args.top_k,
            tags=_split_tags(args.tags) or None,
            unique_sources=args.unique_sources,
        )
        response = await QueryService(helper_config=config).do_query(query, manager)
        print(response.model_dump_json(indent=2))
    elif args.command == "remove":
        await manager.do_remove(args.datasource_id)
    elif args.command == "delete":
        await manager.do_delete()


async def main(argv: list[str] | None = None) -> int:
    """Run one datastore operation. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    try:
        embed_client = EmbedClientManager(helper_config=config).get_client()
        manager = DatastoreManagerFactory(helper_config=config, embed_client=embed_client).create_manager(build_datastore(config))
    except ClientError as e:
        logger.error(f"Invalid configuration: {e}. Aborting.")
        return 2

    try:
        await embed_client.boot()
        await manager.boot()
        await run(args, config, manager)
    except (ClientError, ValueError) as e:
        logger.error(f"Command '{args.command}' failed: {e}")
        return 1
    finally:
        await embed_client.close()
        await manager.close()
    logger.info(f"Command '{args.command}' on datastore '{manager.datastore.id}' finished.", color="green")
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
