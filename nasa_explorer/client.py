"""
NASA API client for the dashboard data feeds.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import logging
import ssl
from typing import Any, Callable, Dict, Mapping, Optional

import aiohttp
import certifi

from nasa_explorer import __version__
from nasa_explorer.config import (
    DEMO_KEY_HOURLY_QUOTA,
    EONET_URL,
    NASA_API_URL,
    NASA_IMAGES_URL,
    OSDR_URL,
    Config,
)
from nasa_explorer.errors import ErrorKind, NASAAPIError
from nasa_explorer.models import DEMO_KEY, StudySearchResult
from nasa_explorer.urls import EPIC_IMAGE_TYPES

_LOG = logging.getLogger(__name__)

HeadersCallback = Callable[[Mapping[str, str]], None]

SERVICE_NAMES = {
    "apod": "Astronomy Picture of the Day API",
    "mars_photos": "Mars Rover Photos API",
    "neo": "Near Earth Object Web Service",
    "insight": "InSight Mars Weather API",
    "images": "NASA Image and Video Library",
    "techtransfer": "NASA Technology Transfer API",
    "eonet": "EONET natural event tracker",
    "epic": "EPIC Earth imagery API",
    "osdr": "Open Science Data Repository",
}

TECH_TRANSFER_CATEGORIES = {
    "patent": "patents",
    "patent_issued": "issued patents",
    "software": "software",
    "spinoff": "spinoffs",
}


def _build_params(**params: Any) -> Dict[str, str]:
    """Keep only supplied parameters. Zero is a valid value, None and blank are not."""
    return {
        name: str(value)
        for name, value in params.items()
        if value is not None and str(value).strip() != ""
    }


def _require(name: str, value: Any) -> None:
    if value is None or str(value).strip() == "":
        raise ValueError(f"{name} is required")


def _upstream_message(body: Any) -> Optional[str]:
    """Pull the error text out of the various NASA error bodies."""
    if not isinstance(body, Mapping):
        return None
    error = body.get("error")
    if isinstance(error, Mapping) and error.get("message"):
        return str(error["message"])
    for key in ("error_message", "msg", "message", "reason"):
        if body.get(key):
            return str(body[key])
    if isinstance(error, str) and error:
        return error
    return None


def _osdr_study_number(study_id: str) -> str:
    """'OSD-87' and '87' both address study 87."""
    _require("study_id", study_id)
    number = str(study_id).strip()
    if number.upper().startswith("OSD-"):
        number = number[4:]
    if not number:
        raise ValueError(f"Invalid OSDR study identifier '{study_id}'")
    return number


class NASAClient:
    """NASA API client with per-endpoint error classification."""

    def __init__(self, config: Config, on_response_headers: Optional[HeadersCallback] = None):
        """Initialize NASA client."""
        self._config = config
        self._on_response_headers = on_response_headers
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure aiohttp session exists."""
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            ssl_context.check_hostname = True
            ssl_context.verify_mode = ssl.CERT_REQUIRED

            connector = aiohttp.TCPConnector(
                ssl=ssl_context,
                limit=10,
                limit_per_host=5,
                ttl_dns_cache=300,
                use_dns_cache=True,
                keepalive_timeout=30,
            )

            headers = {
                "User-Agent": f"nasa-explorer/{__version__}",
                "Accept": "application/json, text/plain, */*",
            }

            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.long_timeout),
                connector=connector,
                headers=headers,
            )

            _LOG.info("NASA HTTP session created")

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    def _rate_limited_message(self, endpoint: str, service: str, params: Mapping[str, str]) -> str:
        if params.get("api_key") == DEMO_KEY:
            return (
                f"{service} rate limit exceeded for {DEMO_KEY}, which allows "
                f"{DEMO_KEY_HOURLY_QUOTA} requests per hour. Add your own NASA API key "
                "or wait before trying again."
            )
        quota = self._config.rate_limit_quota(endpoint)
        if quota:
            return f"{service} rate limit exceeded ({quota} requests per hour). Please wait before trying again."
        return f"{service} rate limit exceeded. Please wait before trying again."

    def _classify_status(
        self,
        endpoint: str,
        status: int,
        body: Any,
        params: Mapping[str, str],
        not_found: str,
        bad_request: str,
    ) -> NASAAPIError:
        """Map a non-2xx status to a classified error."""
        service = SERVICE_NAMES.get(endpoint, endpoint)
        upstream = _upstream_message(body)

        if status == 404:
            kind = ErrorKind.NOT_FOUND
            message = not_found or f"{service} returned no data for this request."
        elif status == 429:
            kind = ErrorKind.RATE_LIMITED
            message = self._rate_limited_message(endpoint, service, params)
        elif status == 400:
            kind = ErrorKind.BAD_REQUEST
            message = bad_request or f"{service} rejected the request parameters."
        elif status >= 500:
            kind = ErrorKind.SERVER_ERROR
            message = f"{service} is temporarily unavailable (HTTP {status}). Please try again later."
        else:
            kind = ErrorKind.UNKNOWN
            message = f"{service} request failed with HTTP {status}"
            message = f"{message}: {upstream}" if upstream else f"{message}."

        return NASAAPIError(kind, message, endpoint=endpoint, status=status, upstream_message=upstream)

    async def _make_request(
        self,
        endpoint: str,
        url: str,
        params: Optional[Dict[str, str]] = None,
        *,
        long_running: bool = False,
        not_found: str = "",
        bad_request: str = "",
    ) -> Any:
        """Issue one GET and return the decoded JSON body or raise NASAAPIError."""
        await self._ensure_session()

        params = params or {}
        service = SERVICE_NAMES.get(endpoint, endpoint)
        seconds = self._config.long_timeout if long_running else self._config.short_timeout
        timeout = aiohttp.ClientTimeout(total=seconds)

        _LOG.debug("GET %s params=%s", url, {k: v for k, v in params.items() if k != "api_key"})

        try:
            async with self._session.get(url, params=params, timeout=timeout) as response:
                _LOG.debug("Response: HTTP %s from %s", response.status, url)

                if 200 <= response.status < 300:
                    if self._on_response_headers is not None:
                        self._on_response_headers(response.headers)
                    try:
                        return await response.json(content_type=None)
                    except ValueError as ex:
                        raise NASAAPIError(
                            ErrorKind.UNKNOWN,
                            f"{service} returned a response that is not valid JSON.",
                            endpoint=endpoint,
                            status=response.status,
                        ) from ex

                try:
                    body = await response.json(content_type=None)
                except (ValueError, aiohttp.ClientError):
                    body = None

                error = self._classify_status(endpoint, response.status, body, params, not_found, bad_request)
                _LOG.warning("%s: %s", endpoint, error.message)
                raise error

        except asyncio.TimeoutError as ex:
            _LOG.warning("Timeout after %ss for %s", seconds, url)
            raise NASAAPIError(
                ErrorKind.TIMEOUT,
                f"{service} did not respond within {seconds:g} seconds. Please try again.",
                endpoint=endpoint,
            ) from ex
        except aiohttp.ClientConnectionError as ex:
            _LOG.warning("Connection error for %s: %s", url, ex)
            raise NASAAPIError(
                ErrorKind.NETWORK_UNREACHABLE,
                f"Could not reach the {service}. Check your internet connection and try again.",
                endpoint=endpoint,
            ) from ex
        except aiohttp.ClientError as ex:
            _LOG.warning("Client error for %s: %s", url, ex)
            raise NASAAPIError(
                ErrorKind.UNKNOWN,
                f"{service} request failed: {ex}",
                endpoint=endpoint,
            ) from ex

    # Astronomy Picture of the Day

    async def fetch_apod(self, api_key: str, date: Optional[str] = None) -> Any:
        """Fetch the picture of the day, optionally for a given YYYY-MM-DD date."""
        _require("api_key", api_key)
        day = date or "today"
        return await self._make_request(
            "apod",
            f"{NASA_API_URL}/planetary/apod",
            _build_params(api_key=api_key, date=date),
            not_found=f"No Astronomy Picture of the Day found for {day}.",
            bad_request=f"Invalid APOD date '{day}'. Use YYYY-MM-DD between 1995-06-16 and today.",
        )

    # Mars rovers

    async def fetch_mars_rover_photos(
        self,
        api_key: str,
        rover: str,
        sol: Optional[int] = None,
        earth_date: Optional[str] = None,
        camera: Optional[str] = None,
        page: int = 1,
    ) -> Any:
        """Fetch rover photos filtered by sol or Earth date and camera."""
        _require("api_key", api_key)
        _require("rover", rover)
        camera = camera.lower() if camera else None

        criteria = [f"rover '{rover}'"]
        if sol is not None:
            criteria.append(f"sol {sol}")
        if earth_date:
            criteria.append(f"Earth date {earth_date}")
        if camera:
            criteria.append(f"camera {camera.upper()}")

        if camera:
            bad_request = f"Invalid camera '{camera.upper()}' for rover '{rover}'."
        elif earth_date:
            bad_request = f"Invalid Earth date '{earth_date}' for rover '{rover}'. Use YYYY-MM-DD."
        else:
            bad_request = f"Invalid sol '{sol}' for rover '{rover}'."

        return await self._make_request(
            "mars_photos",
            f"{NASA_API_URL}/mars-photos/api/v1/rovers/{rover}/photos",
            _build_params(api_key=api_key, sol=sol, earth_date=earth_date, camera=camera, page=page),
            long_running=True,
            not_found=f"No Mars rover photos found for {', '.join(criteria)}.",
            bad_request=bad_request,
        )

    async def fetch_rover_manifest(self, api_key: str, rover: str) -> Any:
        """Fetch the mission manifest of a rover."""
        _require("api_key", api_key)
        _require("rover", rover)
        return await self._make_request(
            "mars_photos",
            f"{NASA_API_URL}/mars-photos/api/v1/manifests/{rover}",
            _build_params(api_key=api_key),
            not_found=f"No mission manifest found for rover '{rover}'.",
            bad_request=f"Invalid rover name '{rover}'.",
        )

    # Near Earth Objects

    async def fetch_near_earth_objects(self, api_key: str, start_date: str, end_date: str) -> Any:
        """Fetch the NeoWs feed for a date window."""
        _require("api_key", api_key)
        _require("start_date", start_date)
        _require("end_date", end_date)
        return await self._make_request(
            "neo",
            f"{NASA_API_URL}/neo/rest/v1/feed",
            _build_params(api_key=api_key, start_date=start_date, end_date=end_date),
            long_running=True,
            not_found=f"No near-Earth object data found between {start_date} and {end_date}.",
            bad_request=(
                f"Invalid date range {start_date} to {end_date}. "
                "The feed accepts YYYY-MM-DD dates at most 7 days apart."
            ),
        )

    # Mars weather

    async def fetch_mars_weather(self, api_key: str) -> Any:
        """Fetch the InSight weather feed."""
        _require("api_key", api_key)
        return await self._make_request(
            "insight",
            f"{NASA_API_URL}/insight_weather/",
            _build_params(api_key=api_key, feedtype="json", ver="1.0"),
            not_found=(
                "Mars weather data not found. The InSight mission has ended "
                "and the service may have been discontinued."
            ),
            bad_request="Invalid Mars weather feed request (feedtype/ver).",
        )

    # Image and Video Library

    async def search_media(
        self,
        query: str,
        media_type: Optional[str] = None,
        year_start: Optional[str] = None,
        year_end: Optional[str] = None,
        page: int = 1,
    ) -> Any:
        """Search the NASA Image and Video Library."""
        _require("query", query)

        criteria = f"'{query}'"
        if media_type:
            criteria += f" ({media_type})"
        if year_start or year_end:
            criteria += f" between {year_start or 'any year'} and {year_end or 'today'}"

        if year_start or year_end:
            bad_request = f"Invalid year range {year_start or ''}-{year_end or ''}. Use four-digit years."
        elif media_type:
            bad_request = f"Invalid media type '{media_type}'. Use image, video or audio."
        else:
            bad_request = f"Invalid search query '{query}'."

        return await self._make_request(
            "images",
            f"{NASA_IMAGES_URL}/search",
            _build_params(q=query, media_type=media_type, year_start=year_start, year_end=year_end, page=page),
            long_running=True,
            not_found=f"No media found for {criteria}.",
            bad_request=bad_request,
        )

    # Technology Transfer

    async def search_tech_transfer(
        self, api_key: str, category: str, query: Optional[str] = None, page: int = 1
    ) -> Any:
        """Search one Technology Transfer collection."""
        _require("api_key", api_key)
        if category not in TECH_TRANSFER_CATEGORIES:
            raise ValueError(f"Invalid tech transfer category '{category}'")
        label = TECH_TRANSFER_CATEGORIES[category]
        criteria = f" matching '{query}'" if query else ""
        return await self._make_request(
            "techtransfer",
            f"{NASA_API_URL}/techtransfer/{category}/",
            _build_params(api_key=api_key, query=query, page=page),
            long_running=True,
            not_found=f"No NASA {label} found{criteria}.",
            bad_request=f"Invalid {label} search query '{query or ''}'.",
        )

    async def search_patents(self, api_key: str, query: Optional[str] = None, page: int = 1) -> Any:
        """Search NASA patents."""
        return await self.search_tech_transfer(api_key, "patent", query, page)

    async def search_patents_issued(self, api_key: str, query: Optional[str] = None, page: int = 1) -> Any:
        """Search issued NASA patents."""
        return await self.search_tech_transfer(api_key, "patent_issued", query, page)

    async def search_software(self, api_key: str, query: Optional[str] = None, page: int = 1) -> Any:
        """Search the NASA software catalogue."""
        return await self.search_tech_transfer(api_key, "software", query, page)

    async def search_spinoffs(self, api_key: str, query: Optional[str] = None, page: int = 1) -> Any:
        """Search NASA spinoff stories."""
        return await self.search_tech_transfer(api_key, "spinoff", query, page)

    # EONET

    async def fetch_eonet_events(self, days: Optional[int] = None, category: Optional[str] = None) -> Any:
        """Fetch natural events, optionally limited by age in days and category."""
        criteria = ""
        if category:
            criteria += f" in category '{category}'"
        if days:
            criteria += f" in the last {days} days"

        if category:
            bad_request = f"Invalid event category '{category}'."
        else:
            bad_request = f"Invalid number of days '{days}'."

        return await self._make_request(
            "eonet",
            f"{EONET_URL}/events",
            _build_params(days=days or None, category=category),
            long_running=True,
            not_found=f"No natural events found{criteria}.",
            bad_request=bad_request,
        )

    async def fetch_eonet_categories(self) -> Any:
        """Fetch the list of EONET event categories."""
        return await self._make_request(
            "eonet",
            f"{EONET_URL}/categories",
            not_found="EONET event categories are not available.",
        )

    # EPIC

    async def fetch_epic_images(self, api_key: str, image_type: str = "natural", date: Optional[str] = None) -> Any:
        """List EPIC images of a collection, latest day or a given date."""
        _require("api_key", api_key)
        if image_type not in EPIC_IMAGE_TYPES:
            raise ValueError(f"Invalid EPIC image type '{image_type}'")

        url = f"{NASA_API_URL}/EPIC/api/{image_type}"
        if date:
            url = f"{url}/date/{date}"
        day = date or "the most recent day"

        return await self._make_request(
            "epic",
            url,
            _build_params(api_key=api_key),
            long_running=True,
            not_found=f"No {image_type} EPIC imagery found for {day}.",
            bad_request=f"Invalid EPIC date '{date}'. Use YYYY-MM-DD.",
        )

    async def fetch_epic_natural_images(self, api_key: str, date: Optional[str] = None) -> Any:
        """List natural-color EPIC images."""
        return await self.fetch_epic_images(api_key, "natural", date)

    async def fetch_epic_enhanced_images(self, api_key: str, date: Optional[str] = None) -> Any:
        """List enhanced-color EPIC images."""
        return await self.fetch_epic_images(api_key, "enhanced", date)

    async def fetch_epic_available_dates(self, api_key: str, image_type: str = "natural") -> Any:
        """Fetch the index of dates that have EPIC imagery."""
        _require("api_key", api_key)
        if image_type not in EPIC_IMAGE_TYPES:
            raise ValueError(f"Invalid EPIC image type '{image_type}'")
        return await self._make_request(
            "epic",
            f"{NASA_API_URL}/EPIC/api/{image_type}/all",
            _build_params(api_key=api_key),
            not_found=f"No available dates found for {image_type} EPIC imagery.",
        )

    # Open Science Data Repository

    async def search_osdr_studies(
        self, term: str, offset: int = 0, size: int = 20, data_source: str = "cgene"
    ) -> Dict[str, Any]:
        """
        Search OSDR studies and flatten the result.

        Returns ``{"hits": int, "studies": [...]}``. A network failure or
        timeout is retried once after a fixed delay with the same parameters.
        """
        _require("term", term)
        params = _build_params(term=term, **{"from": offset}, size=size, type=data_source)

        for attempt in range(2):
            try:
                payload = await self._make_request(
                    "osdr",
                    f"{OSDR_URL}/osdr/data/search",
                    params,
                    long_running=True,
                    not_found=f"No OSDR studies found for '{term}'.",
                    bad_request=f"Invalid OSDR search term '{term}'.",
                )
                break
            except NASAAPIError as ex:
                if attempt == 0 and ex.retryable:
                    delay = self._config.osdr_retry_delay
                    _LOG.warning("OSDR search failed (%s), retrying in %ss", ex.kind.name, delay)
                    await asyncio.sleep(delay)
                    continue
                raise

        result = StudySearchResult.from_response(payload)
        _LOG.info("OSDR search '%s': %d hits", term, result.hits)
        return result.as_dict()

    async def fetch_osdr_study_metadata(self, study_id: str) -> Any:
        """Fetch the metadata document of one study."""
        number = _osdr_study_number(study_id)
        return await self._make_request(
            "osdr",
            f"{OSDR_URL}/osdr/data/osd/meta/{number}",
            long_running=True,
            not_found=f"OSDR study {study_id} was not found.",
            bad_request=f"Invalid OSDR study identifier '{study_id}'.",
        )

    async def fetch_osdr_study_files(self, study_id: str) -> Any:
        """Fetch the file listing of one study."""
        number = _osdr_study_number(study_id)
        return await self._make_request(
            "osdr",
            f"{OSDR_URL}/osdr/data/osd/files/{number}",
            long_running=True,
            not_found=f"No files found for OSDR study {study_id}.",
            bad_request=f"Invalid OSDR study identifier '{study_id}'.",
        )

    async def fetch_osdr_experiments(self) -> Any:
        """Fetch the OSDR experiment catalogue."""
        return await self._make_request(
            "osdr",
            f"{OSDR_URL}/geode-py/ws/api/experiments",
            long_running=True,
            not_found="The OSDR experiment catalogue was not found.",
        )

    async def fetch_osdr_missions(self) -> Any:
        """Fetch the OSDR mission catalogue."""
        return await self._make_request(
            "osdr",
            f"{OSDR_URL}/geode-py/ws/api/missions",
            long_running=True,
            not_found="The OSDR mission catalogue was not found.",
        )
