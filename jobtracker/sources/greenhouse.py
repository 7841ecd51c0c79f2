import re
from typing import Any, Dict, List
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from ..normalize import canonical_url, clean_text, company_from_slug, normalize_location
from .common import SourceError, deduplicate_urls, fetch_with_error_handling, heading_text

PLATFORM = "greenhouse"
BOARD_ROOT = "https://boards.greenhouse.io"

# <title>Job Application for Data Engineer at Acme</title>
_APPLICATION_TITLE = re.compile(r"^Job Application for (?P<title>.+?) at (?P<company>.+)$")


def _slug_and_id(url: str):
    parts = [x for x in urlparse(url).path.split("/") if x]
    slug = parts[0] if parts else ""
    source_id = parts[2] if len(parts) > 2 and parts[1] == "jobs" else None
    return slug, source_id


def parse(url: str) -> Dict[str, Any]:
    """Fetch a Greenhouse posting page and return a job candidate.

    Raises SourceError when the page cannot be fetched or has no title.
    """
    u = canonical_url(url)
    slug, source_id = _slug_and_id(u)
    resp = fetch_with_error_handling(u, PLATFORM)
    soup = BeautifulSoup(resp.text, "html.parser")

    company = company_from_slug(slug)
    title = heading_text(soup, "h1")
    if not title:
        page_title = soup.find("title")
        text = clean_text(page_title.get_text()) if page_title else ""
        match = _APPLICATION_TITLE.match(text)
        if match:
            title = match.group("title")
            company = match.group("company")
        elif " - " in text:
            title = text.split(" - ")[0].strip()
        else:
            title = text
    if not title:
        raise SourceError(f"Greenhouse posting has no title: {u}")

    loc_el = soup.find(class_=re.compile("location|opening-location"))
    salary_el = soup.find(class_=re.compile("pay-range|salary"))

    return {
        "company": company,
        "jobTitle": clean_text(title),
        "location": normalize_location(loc_el.get_text(" ", strip=True) if loc_el else ""),
        "jobUrl": u,
        "salaryRange": clean_text(salary_el.get_text(" ", strip=True)) if salary_el else "",
        "jobBoard": PLATFORM,
        "additionalInfo": {"sourceId": source_id, "boardSlug": slug},
    }


def list_company_posting_urls(company_slug: str) -> List[str]:
    """List posting URLs from the company's Greenhouse board page."""
    board_url = f"{BOARD_ROOT}/{company_slug}"
    resp = fetch_with_error_handling(board_url, PLATFORM)
    soup = BeautifulSoup(resp.text, "html.parser")

    links = []
    for a in soup.find_all("a", href=True):
        href = a["href"]
        if "/jobs/" not in href or company_slug not in href:
            continue
        absolute = href if href.startswith("http") else f"{BOARD_ROOT}{href}"
        links.append(canonical_url(absolute))
    return deduplicate_urls(links)
