#!/usr/bin/env python3
"""
NASA Explorer driver: wires the key store to the API client.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""
import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Mapping, Optional

from nasa_explorer.client import NASAClient
from nasa_explorer.config import Config
from nasa_explorer.errors import NASAAPIError
from nasa_explorer.keystore import APIKeyStore
from nasa_explorer.models import parse_rate_limit_headers
from nasa_explorer.urls import build_epic_image_url, build_osdr_file_url

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)8s | %(name)s | %(message)s"
)
logging.getLogger("aiohttp").setLevel(logging.WARNING)

_LOG = logging.getLogger(__name__)

# feed name -> (client method, takes api_key)
FEEDS = {
    "apod": ("fetch_apod", True),
    "rover-photos": ("fetch_mars_rover_photos", True),
    "rover-manifest": ("fetch_rover_manifest", True),
    "neo": ("fetch_near_earth_objects", True),
    "mars-weather": ("fetch_mars_weather", True),
    "media": ("search_media", False),
    "tech-transfer": ("search_tech_transfer", True),
    "events": ("fetch_eonet_events", False),
    "event-categories": ("fetch_eonet_categories", False),
    "epic": ("fetch_epic_images", True),
    "epic-dates": ("fetch_epic_available_dates", True),
    "osdr-search": ("search_osdr_studies", False),
    "osdr-metadata": ("fetch_osdr_study_metadata", False),
    "osdr-files": ("fetch_osdr_study_files", False),
    "osdr-experiments": ("fetch_osdr_experiments", False),
    "osdr-missions": ("fetch_osdr_missions", False),
}


class Dashboard:
    """Consumer glue: reads the current key, calls the client, records rate limits."""

    def __init__(self, config: Config, store: Optional[APIKeyStore] = None, client: Optional[NASAClient] = None):
        self.config = config
        self.store = store or APIKeyStore(config)
        self.client = client or NASAClient(config, on_response_headers=self.observe_headers)

    def observe_headers(self, headers: Mapping[str, str]) -> None:
        """Copy rate-limit headers of a response into the store."""
        snapshot = parse_rate_limit_headers(headers)
        if snapshot is not None:
            self.store.record_rate_limit(snapshot.remaining, snapshot.limit, snapshot.reset_time)

    async def load(self, feed: str, **filters: Any) -> Any:
        """Fetch one feed with the key that is current at call time."""
        if feed not in FEEDS:
            raise ValueError(f"Unknown feed '{feed}'")
        method_name, needs_key = FEEDS[feed]
        method = getattr(self.client, method_name)
        if needs_key:
            return await method(self.store.api_key, **filters)
        return await method(**filters)

    def status(self) -> Dict[str, Any]:
        rate_limit = self.store.rate_limit
        return {
            "apiKey": "DEMO_KEY" if self.store.is_fallback() else "custom",
            "isDemo": self.store.is_fallback(),
            "rateLimit": rate_limit.as_dict() if rate_limit else None,
        }

    async def close(self) -> None:
        await self.client.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nasa-explorer", description="Query public NASA data feeds.")
    parser.add_argument("--config", help="path of the JSON config file")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("apod")
    p.add_argument("--date")

    p = sub.add_parser("rover-photos")
    p.add_argument("rover")
    p.add_argument("--sol", type=int)
    p.add_argument("--earth-date", dest="earth_date")
    p.add_argument("--camera")
    p.add_argument("--page", type=int, default=1)

    p = sub.add_parser("rover-manifest")
    p.add_argument("rover")

    p = sub.add_parser("neo")
    p.add_argument("start_date")
    p.add_argument("end_date")

    sub.add_parser("mars-weather")

    p = sub.add_parser("media")
    p.add_argument("query")
    p.add_argument("--media-type", dest="media_type")
    p.add_argument("--year-start", dest="year_start")
    p.add_argument("--year-end", dest="year_end")
    p.add_argument("--page", type=int, default=1)

    p = sub.add_parser("tech-transfer")
    p.add_argument("category", choices=["patent", "patent_issued", "software", "spinoff"])
    p.add_argument("--query")
    p.add_argument("--page", type=int, default=1)

    p = sub.add_parser("events")
    p.add_argument("--days", type=int)
    p.add_argument("--category")

    sub.add_parser("event-categories")

    p = sub.add_parser("epic")
    p.add_argument("--image-type", dest="image_type", choices=["natural", "enhanced"], default="natural")
    p.add_argument("--date")

    p = sub.add_parser("epic-dates")
    p.add_argument("--image-type", dest="image_type", choices=["natural", "enhanced"], default="natural")

    p = sub.add_parser("epic-url")
    p.add_argument("image_name")
    p.add_argument("date")
    p.add_argument("--image-type", dest="image_type", choices=["natural", "enhanced"], default="natural")

    p = sub.add_parser("osdr-search")
    p.add_argument("term")
    p.add_argument("--offset", type=int, default=0)
    p.add_argument("--size", type=int, default=20)

    for name in ("osdr-metadata", "osdr-files"):
        p = sub.add_parser(name)
        p.add_argument("study_id")

    p = sub.add_parser("osdr-file-url")
    p.add_argument("remote_url")

    sub.add_parser("osdr-experiments")
    sub.add_parser("osdr-missions")

    p = sub.add_parser("set-key")
    p.add_argument("key")

    sub.add_parser("status")
    return parser


def _print(data: Any) -> None:
    print(json.dumps(data, indent=2))


async def run(argv: Optional[List[str]] = None) -> int:
    """Run one command and return the process exit code."""
    args = build_parser().parse_args(argv)
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    config = Config(args.config)
    dashboard = Dashboard(config)
    dashboard.store.initialize()

    filters = {
        k: v for k, v in vars(args).items()
        if k not in ("command", "config", "debug")
    }

    try:
        if args.command == "set-key":
            dashboard.store.set_key(args.key)
            _print(dashboard.status())
        elif args.command == "status":
            _print(dashboard.status())
        elif args.command == "epic-url":
            _print(build_epic_image_url(args.image_name, args.date, args.image_type, dashboard.store.api_key))
        elif args.command == "osdr-file-url":
            _print(build_osdr_file_url(args.remote_url))
        else:
            _print(await dashboard.load(args.command, **filters))
            _LOG.info("Rate limit: %s", dashboard.status()["rateLimit"])
        return 0
    except NASAAPIError as ex:
        _LOG.error("%s (%s)", ex.message, ex.kind.name)
        return 1
    except ValueError as ex:
        _LOG.error("Invalid arguments: %s", ex)
        return 2
    finally:
        await dashboard.close()


def main() -> None:
    """Main entry point."""
    try:
        sys.exit(asyncio.run(run()))
    except KeyboardInterrupt:
        _LOG.info("Stopped by user")


if __name__ == "__main__":
    main()
