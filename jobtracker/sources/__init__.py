"""
Job board sources that feed candidates into the job store.

Each source module exposes ``list_company_posting_urls(slug)`` and
``parse(url)``; ``parse`` returns a candidate ready for ``JobStore.add_job``.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse

from ..logger import get_logger
from ..retry import CircuitBreaker, CircuitOpenError
from ..schema import InvalidJobError
from . import greenhouse, lever
from .common import SourceError

logger = get_logger()

PLATFORMS = {
    greenhouse.PLATFORM: greenhouse,
    lever.PLATFORM: lever,
}


def get_source(platform: str):
    try:
        return PLATFORMS[platform.lower()]
    except KeyError:
        raise SourceError(
            f"Unsupported platform '{platform}'. Use one of: {', '.join(sorted(PLATFORMS))}"
        ) from None


def source_for_url(url: str):
    host = urlparse(url.strip()).netloc.lower()
    if host.endswith("greenhouse.io"):
        return greenhouse
    if host.endswith("lever.co"):
        return lever
    raise SourceError(f"Unsupported URL host '{host}'. Use boards.greenhouse.io or jobs.lever.co")


@dataclass
class IngestReport:
    platform: str
    company_slug: str
    found: int = 0
    added: int = 0
    duplicates: int = 0
    failed: int = 0
    indices: List[int] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "platform": self.platform,
            "companySlug": self.company_slug,
            "found": self.found,
            "added": self.added,
            "duplicates": self.duplicates,
            "failed": self.failed,
            "indices": list(self.indices),
        }


def ingest_board(
    store,
    platform: str,
    company_slug: str,
    limit: Optional[int] = None,
    search_query: Optional[str] = None,
    failure_threshold: int = 5,
) -> IngestReport:
    """
    Scrape a company board and add every posting to the store.

    Postings that fail are logged and counted. After failure_threshold
    consecutive failures the remaining postings are skipped as failed.

    Raises:
        SourceError: the platform is unknown or the board itself cannot be listed
    """
    source = get_source(platform)
    report = IngestReport(platform=source.PLATFORM, company_slug=company_slug)

    urls = source.list_company_posting_urls(company_slug)
    if limit is not None:
        urls = urls[:limit]
    report.found = len(urls)
    logger.info(f"Searching {source.PLATFORM} board '{company_slug}'", postings=len(urls))

    breaker = CircuitBreaker(failure_threshold=failure_threshold, expected_exception=SourceError)
    for url in urls:
        try:
            candidate = breaker.call(source.parse, url)
        except CircuitOpenError:
            report.failed += 1
            continue
        except SourceError as e:
            logger.warning("Skipping posting", url=url, error=str(e))
            report.failed += 1
            continue

        if search_query:
            candidate["additionalInfo"]["searchQuery"] = search_query

        before = len(store)
        try:
            index = store.add_job(candidate)
        except InvalidJobError as e:
            logger.warning("Skipping invalid posting", url=url, error=str(e))
            report.failed += 1
            continue
        report.indices.append(index)
        if len(store) > before:
            report.added += 1
        else:
            report.duplicates += 1

    if breaker.state == CircuitBreaker.OPEN:
        logger.warning(f"Stopped scraping {source.PLATFORM} board '{company_slug}' after repeated failures")
    logger.info(f"Finished {source.PLATFORM} board '{company_slug}'", **report.as_dict())
    return report
