"""
Build the consolidated catalog document.

Walks PokeAPI with the remote loader (one request per entry plus its
species record) and writes everything to one JSON file that the file
loader can read in a single fetch.
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path

from hundodex.config import settings
from hundodex.services.catalog import RemoteCatalogLoader

logger = logging.getLogger(__name__)


async def build_catalog(
    output_path: Path | None = None,
    max_id: int | None = None,
    loader: RemoteCatalogLoader | None = None,
) -> Path:
    """
    Fetch the remote catalog and write it to output_path.

    Args:
        output_path: Where to save the document. Defaults to settings.catalog_path
        max_id: Highest entry id to fetch. Defaults to settings.catalog_max_id
        loader: Loader to use, mainly for tests

    Returns:
        Path to the written document.

    Raises:
        RuntimeError: If the fetch produced no entries
    """
    if output_path is None:
        output_path = Path(settings.catalog_path)
    if loader is None:
        loader = RemoteCatalogLoader(max_id=max_id)

    entries = await loader.load_all()
    if not entries:
        raise RuntimeError("Catalog fetch returned no entries")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump({"entries": [entry.to_dict() for entry in entries]}, f, indent=2)

    return output_path


async def run_build(output_path: Path | None, max_id: int | None) -> None:
    logger.info("Fetching catalog from %s...", settings.pokeapi_url)

    try:
        path = await build_catalog(output_path, max_id)
        logger.info("Wrote catalog to %s", path)
    except Exception as e:
        logger.error("Failed to build catalog: %s", e)
        raise


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Snapshot the remote catalog to a JSON file")
    parser.add_argument("output", nargs="?", type=Path, help="Output path")
    parser.add_argument("--max-id", type=int, default=None, help="Highest entry id to fetch")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_build(args.output, args.max_id))


if __name__ == "__main__":
    main()
