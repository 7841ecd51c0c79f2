import re
from typing import Any, Dict, List
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from ..normalize import canonical_url, clean_text, company_from_slug, normalize_location
from .common import SourceError, deduplicate_urls, fetch_with_error_handling, heading_text

PLATFORM = "lever"
BOARD_ROOT = "https://jobs.lever.co"


def _path_parts(url: str) -> List[str]:
    return [x for x in urlparse(url).path.split("/") if x]


def _location(soup) -> str:
    el = soup.find(class_="location") or soup.find(class_=re.compile("posting-categories"))
    if not el or not el.get_text(strip=True):
        return ""
    text = el.get_text(" ", strip=True)
    # The categories block mixes location, team and commitment; location comes first
    candidates = [x for x in re.split(r"[,|/]", text) if x.strip()]
    return candidates[0] if candidates else text


def parse(url: str) -> Dict[str, Any]:
    """Fetch a Lever posting page and return a job candidate.

    Raises SourceError when the page cannot be fetched or has no title.
    """
    u = canonical_url(url)
    parts = _path_parts(u)
    slug = parts[0] if parts else ""
    source_id = parts[1] if len(parts) > 1 else None

    resp = fetch_with_error_handling(u, PLATFORM)
    soup = BeautifulSoup(resp.text, "html.parser")

    title = heading_text(soup, "h2", "h1", "title")
    if not title:
        raise SourceError(f"Lever posting has no title: {u}")

    return {
        "company": company_from_slug(slug),
        "jobTitle": clean_text(title),
        "location": normalize_location(_location(soup)),
        "jobUrl": u,
        "jobBoard": PLATFORM,
        "additionalInfo": {"sourceId": source_id, "boardSlug": slug},
    }


def list_company_posting_urls(company_slug: str) -> List[str]:
    """List posting URLs (/<slug>/<posting id>) from the company's Lever board."""
    board_url = f"{BOARD_ROOT}/{company_slug}"
    resp = fetch_with_error_handling(board_url, PLATFORM)
    soup = BeautifulSoup(resp.text, "html.parser")

    links = []
    for a in soup.find_all("a", href=True):
        absolute = a["href"] if a["href"].startswith("http") else f"{BOARD_ROOT}{a['href']}"
        url = canonical_url(absolute)
        parts = _path_parts(url)
        if url.startswith(BOARD_ROOT) and len(parts) == 2 and parts[0] == company_slug:
            links.append(url)
    return deduplicate_urls(links)
