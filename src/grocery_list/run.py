"""
CLI runner for grocery-list.

Usage:
    python -m grocery_list.run [OPTIONS] NAME [NAME ...]

    # Add items and print them with suggestions and images
    python -m grocery_list.run "whole milk" "white bread"

    # Save API keys first (stored in the credentials database)
    python -m grocery_list.run --credentials-db creds.db \\
        --openrouter-key sk-or-... --pexels-key abc123 "potato chips"

    # Accept every suggestion that comes back
    python -m grocery_list.run --accept "soda"
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .config import GroceryConfig
from .coordinator import EnrichmentCoordinator
from .credentials import (
    IMAGE_CREDENTIAL,
    SUGGESTION_CREDENTIAL,
    CredentialGate,
    MemoryCredentialStore,
    SQLiteCredentialStore,
)
from .errors import CredentialError
from .images import ImageClient
from .models import Item, Notice
from .store import ItemStore
from .suggestions import SuggestionClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("grocery-list")


def build_gate(config: GroceryConfig) -> CredentialGate:
    """Create the credential gate described by ``config``."""
    if config.credentials_db_path:
        store = SQLiteCredentialStore(config.credentials_db_path)
    else:
        store = MemoryCredentialStore()

    gate = CredentialGate(store)
    loaded = gate.load_from_env(config.credential_env_names())
    if loaded:
        logger.info(f"Loaded credentials from environment: {', '.join(loaded)}")
    return gate


async def run_list(
    config: GroceryConfig,
    gate: CredentialGate,
    names: list[str],
    accept: bool = False,
) -> tuple[list[Item], list[Notice], list[str]]:
    """
    Add ``names``, enrich them concurrently and optionally accept suggestions.

    Returns (items, notices, requested_credentials).
    """
    notices: list[Notice] = []
    requested: list[str] = []
    remove_prompt = gate.add_prompt(requested.append)

    store = ItemStore()
    coordinator = EnrichmentCoordinator(
        store,
        gate,
        suggestion_client=SuggestionClient(config=config.suggestions),
        image_client=ImageClient(config=config.images),
        on_notice=notices.append,
    )

    try:
        for name in names:
            if not name.strip():
                logger.warning("Skipping blank item name")
                continue
            item_id = store.add(name)
            coordinator.dispatch(item_id, store.get(item_id).name)

        await coordinator.drain()

        if accept:
            accepted = await asyncio.gather(
                *(coordinator.accept_suggestion(item.id) for item in store.items() if item.showing_suggestion)
            )
            for new_name in accepted:
                if new_name:
                    logger.info(f"Accepted suggestion: {new_name}")
    finally:
        remove_prompt()

    return store.items(), notices, requested


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="grocery-list: grocery items with healthier alternatives",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Enrich two items
    python -m grocery_list.run "whole milk" "white bread"

    # Use a specific config file
    python -m grocery_list.run --config grocery.yaml "soda"
        """,
    )

    parser.add_argument("names", nargs="*", help="Grocery items to add")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("grocery.yaml"),
        help="Path to config file (default: grocery.yaml)",
    )
    parser.add_argument(
        "--credentials-db",
        type=Path,
        help="Override credentials database path from config",
    )
    parser.add_argument("--openrouter-key", type=str, help="Save an OpenRouter API key")
    parser.add_argument("--pexels-key", type=str, help="Save a Pexels API key")
    parser.add_argument(
        "--accept",
        action="store_true",
        help="Accept every suggestion and fetch images for the new names",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = GroceryConfig.from_yaml(args.config)
    if args.credentials_db:
        config.credentials_db_path = args.credentials_db

    try:
        gate = build_gate(config)
        if args.openrouter_key or args.pexels_key:
            saved = gate.save(
                {
                    SUGGESTION_CREDENTIAL: args.openrouter_key or "",
                    IMAGE_CREDENTIAL: args.pexels_key or "",
                }
            )
            logger.info(f"Saved credentials: {', '.join(saved)}")
    except CredentialError as e:
        logger.error(str(e))
        return 1

    for name in gate.missing():
        logger.warning(f"Credential not configured: {name}")

    if not args.names:
        if args.openrouter_key or args.pexels_key:
            return 0
        parser.print_help()
        return 0

    items, notices, requested = asyncio.run(run_list(config, gate, args.names, accept=args.accept))

    for notice in notices:
        logger.error(f"{notice.title}: {notice.message}")

    print(json.dumps([item.to_dict() for item in items], indent=2))

    if requested:
        logger.error(f"Missing credential(s): {', '.join(sorted(set(requested)))}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
