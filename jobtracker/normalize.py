import re
from typing import Optional
from urllib.parse import urlparse


def clean_text(s: Optional[str]) -> str:
    return " ".join((s or "").split())


def url_key(url: Optional[str]) -> str:
    """Dedup key for a job URL: trimmed and lower-cased, '' when absent."""
    return (url or "").strip().lower()


def name_key(s: Optional[str]) -> str:
    """Dedup key for company and title: case-insensitive, otherwise exact."""
    return (s or "").lower()


REMOTE_SYNS = {"remote", "remote - us", "remote - usa", "fully remote"}
HYBRID_SYNS = {"hybrid", "flexible", "part-remote"}
ONSITE_SYNS = {"onsite", "on-site", "on site"}


def normalize_location(location: Optional[str]) -> str:
    loc = clean_text(location)
    low = loc.lower()
    if low in REMOTE_SYNS:
        return "Remote"
    if low in HYBRID_SYNS:
        return "Hybrid"
    if low in ONSITE_SYNS:
        return "On-site"
    return loc


def company_from_slug(slug: str) -> str:
    """'acme-corp' -> 'Acme Corp'. Board slugs are the only company name we get."""
    words = [w for w in re.split(r"[-_\s]+", slug or "") if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)


def canonical_url(url: str) -> str:
    parsed = urlparse(url.strip())
    path = parsed.path.rstrip("/")
    # Drop query and fragment to avoid source-specific tracking
    return f"{parsed.scheme}://{parsed.netloc}{path}" if parsed.scheme and parsed.netloc else path
