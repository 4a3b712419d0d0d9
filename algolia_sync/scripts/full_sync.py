"""
Rebuild the search index for one language from the command line.

Same pipeline as POST /api/algolia/init, for scheduled or manual runs.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import List, Optional, Sequence

from algolia_sync.core.logging import setup_logging
from algolia_sync.core.settings import check_required_env, settings
from algolia_sync.integrations.algolia_client import AlgoliaClient
from algolia_sync.integrations.kontent_client import KontentDeliveryClient
from algolia_sync.services.full_sync import run_full_sync


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reindex a Kontent.ai language into Algolia")
    parser.add_argument("--project-id", required=True, help="Kontent.ai environment ID")
    parser.add_argument("--language", required=True, help="Language codename")
    parser.add_argument("--slug", required=True, help="Codename of the slug element")
    parser.add_argument("--app-id", required=True, help="Algolia application ID")
    parser.add_argument("--index", required=True, help="Algolia index name")
    return parser.parse_args(argv)


async def _sync(args: argparse.Namespace, api_key: str) -> List[str]:
    async with AlgoliaClient(args.app_id, api_key) as algolia:
        index = algolia.init_index(args.index)
        async with KontentDeliveryClient(args.project_id) as delivery:
            return await run_full_sync(delivery, index, args.language, args.slug)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging()

    env = check_required_env(settings, ["ALGOLIA_API_KEY"])
    if not env.ok:
        print(f"{', '.join(env.missing)} environment variable(s) are missing")
        return 1

    try:
        object_ids = asyncio.run(_sync(args, env.values["ALGOLIA_API_KEY"]))
    except Exception as exc:
        print(f"Full sync failed: {exc}")
        return 1

    print(json.dumps(object_ids))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
