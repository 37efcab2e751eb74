"""
Raw CSV text acquisition from local files or http(s) URLs.
Single-shot reads: no retries and no partial results.
"""
from pathlib import Path
from typing import Optional

import requests

from core.config import get_settings
from core.exceptions import FetchError
from core.logger import setup_logger

logger = setup_logger(__name__)


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def fetch_text(source: str, timeout: Optional[int] = None) -> str:
    """
    Read raw text from a file path or URL.

    Args:
        source: Local path or http(s) URL
        timeout: Request timeout in seconds (defaults to configured value)

    Returns:
        Text content

    Raises:
        FetchError: If the source cannot be read
    """
    if is_url(source):
        timeout = timeout or get_settings().fetch_timeout
        logger.info(f"Fetching CSV from {source}")
        try:
            response = requests.get(source, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch {source}: {e}")
            raise FetchError(
                "Failed to fetch CSV from URL",
                details={"source": source, "error": str(e)}
            )
        return response.text

    path = Path(source)
    if not path.is_file():
        raise FetchError(
            f"File not found: {source}",
            details={"source": source}
        )
    try:
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read {source}: {e}")
        raise FetchError(
            "Failed to read CSV file",
            details={"source": source, "error": str(e)}
        )
