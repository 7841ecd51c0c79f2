"""Shared HTTP handling for the job board sources."""

import requests

from ..logger import get_logger
from ..retry import RetryError, exponential_backoff, should_retry_http_status

logger = get_logger()

REQUEST_TIMEOUT = 15
USER_AGENT = "jobtracker/0.1 (+https://github.com/)"


class SourceError(ValueError):
    """A board or posting could not be fetched or understood."""


class RetryableStatusError(Exception):
    def __init__(self, response: requests.Response):
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


@exponential_backoff(
    max_retries=3,
    base_delay=1.0,
    exceptions=(requests.exceptions.Timeout, requests.exceptions.ConnectionError, RetryableStatusError),
    on_retry=lambda attempt, e, delay: logger.debug(f"Retry {attempt} in {delay:.1f}s: {e}"),
)
def _fetch_with_retry(url: str) -> requests.Response:
    """GET with retries on timeouts, dropped connections and 408/429/5xx."""
    logger.record_api_call()
    resp = requests.get(url, timeout=REQUEST_TIMEOUT, headers={"User-Agent": USER_AGENT})
    if should_retry_http_status(resp.status_code):
        raise RetryableStatusError(resp)
    return resp


def fetch_with_error_handling(url: str, platform: str) -> requests.Response:
    """Fetch URL with standardized error handling and logging.

    Args:
        url: The URL to fetch
        platform: Board name for logs and metrics (e.g. 'greenhouse')

    Returns:
        Response object on success

    Raises:
        SourceError: on any HTTP error, timeout, or request failure
    """
    name = platform.capitalize()
    logger.record_scrape_attempt(platform)
    try:
        resp = _fetch_with_retry(url)
        resp.raise_for_status()
    except RetryError as e:
        cause = e.__cause__
        if isinstance(cause, RetryableStatusError):
            error_type = f"HTTPError_{cause.response.status_code}"
        else:
            error_type = type(cause).__name__ if cause else "RetryError"
        logger.record_scrape_failure(platform, error_type)
        logger.warning(f"{name} request kept failing", url=url, error=str(cause or e))
        raise SourceError(f"{name} request failed after retries ({error_type}): {url}") from e
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "HTTPError"
        logger.record_scrape_failure(platform, f"HTTPError_{status}")
        if status == 404:
            logger.warning(f"{name} URL not found", url=url, status=404)
            raise SourceError(f"{name} URL not found (404): {url}") from e
        logger.error(f"{name} request failed", url=url, status=status)
        raise SourceError(f"{name} request failed ({status}): {url}") from e
    except requests.exceptions.RequestException as e:
        logger.record_scrape_failure(platform, "RequestException")
        logger.error(f"{name} request error", url=url, error=str(e))
        raise SourceError(f"{name} request error: {e}") from e

    logger.record_scrape_success(platform)
    return resp


def deduplicate_urls(urls: list) -> list:
    """Deduplicate URLs while preserving order."""
    seen = set()
    result = []
    for url in urls:
        if url not in seen:
            seen.add(url)
            result.append(url)
    return result


def heading_text(soup, *tags: str) -> str:
    """Text of the first non-empty tag among tags, with any ' - Company' suffix cut."""
    for tag in tags:
        el = soup.find(tag)
        if el and el.get_text(strip=True):
            text = el.get_text(" ", strip=True)
            if " - " in text:
                text = text.split(" - ")[0].strip()
            return text
    return ""
