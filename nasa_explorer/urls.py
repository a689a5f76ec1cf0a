"""
Direct resource URL builders for EPIC imagery and OSDR downloads.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

from urllib.parse import urlencode

from nasa_explorer.config import NASA_API_URL, OSDR_URL

EPIC_IMAGE_TYPES = ("natural", "enhanced")


def epic_date_path(date: str) -> str:
    """Convert ``YYYY-MM-DD`` (optionally followed by a time) to ``YYYY/MM/DD``."""
    tokens = date.split()
    if not tokens:
        raise ValueError(f"Invalid EPIC date '{date}', expected YYYY-MM-DD")
    parts = tokens[0].split("T")[0].split("-")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid EPIC date '{date}', expected YYYY-MM-DD")
    return "/".join(parts)


def build_epic_image_url(image_name: str, date: str, image_type: str, api_key: str) -> str:
    """Archive URL of a full-resolution EPIC PNG."""
    if image_type not in EPIC_IMAGE_TYPES:
        raise ValueError(f"Invalid EPIC image type '{image_type}'")
    query = urlencode({"api_key": api_key})
    return f"{NASA_API_URL}/EPIC/archive/{image_type}/{epic_date_path(date)}/png/{image_name}.png?{query}"


def build_osdr_file_url(remote_url: str) -> str:
    """Prefix a relative OSDR ``remote_url`` with the OSDR host."""
    if remote_url.startswith(("http://", "https://")):
        return remote_url
    if not remote_url.startswith("/"):
        remote_url = "/" + remote_url
    return f"{OSDR_URL}{remote_url}"
