"""
Pytest configuration and shared fixtures.
"""

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from jobtracker.storage import JobStore


@pytest.fixture
def sample_greenhouse_html() -> str:
    """Sample Greenhouse job page HTML."""
    return """
    <html>
    <head><title>Job Application for Software Engineer at Acme</title></head>
    <body>
        <div class="app-wrapper">
            <h1>Software Engineer</h1>
            <div class="location">San Francisco, CA</div>
            <div class="pay-range">$150,000 - $180,000</div>
            <div class="content">
                <p>We are looking for a talented software engineer...</p>
            </div>
        </div>
    </body>
    </html>
    """


@pytest.fixture
def sample_lever_html() -> str:
    """Sample Lever job page HTML."""
    return """
    <html>
    <head><title>Acme - Product Manager</title></head>
    <body>
        <div class="posting-headline">
            <h2>Product Manager</h2>
            <div class="posting-categories">
                <div class="location">Remote</div>
                <div class="department">Product</div>
            </div>
        </div>
        <div class="content"><p>Join our product team...</p></div>
    </body>
    </html>
    """


@pytest.fixture
def valid_candidate() -> Dict[str, Any]:
    """Valid job candidate as produced by a search source."""
    return {
        "company": "Acme Corp",
        "jobTitle": "Software Engineer",
        "location": "San Francisco, CA",
        "jobUrl": "https://boards.greenhouse.io/acme/jobs/12345",
        "salaryRange": "$150k - $180k",
        "jobBoard": "greenhouse",
        "additionalInfo": {"matchReason": "Python backend", "searchQuery": "python"},
    }


@pytest.fixture
def invalid_candidate() -> Dict[str, Any]:
    """Invalid candidate (missing job title)."""
    return {
        "company": "Acme",
        "location": "Remote",
    }


@pytest.fixture
def store_path(tmp_path) -> Path:
    """Path for a job file that does not exist yet."""
    return tmp_path / "data" / "jobs.json"


@pytest.fixture
def store(store_path) -> JobStore:
    return JobStore(store_path)


@pytest.fixture
def populated_store_path(tmp_path) -> Path:
    """Job file in list format with three records."""
    path = tmp_path / "jobs.json"
    jobs = [
        {
            "company": "Acme",
            "jobTitle": "Software Engineer",
            "location": "Remote",
            "jobUrl": "https://boards.greenhouse.io/acme/jobs/1",
            "salaryRange": "",
            "jobBoard": "greenhouse",
            "status": "found",
            "lastUpdated": "2024-05-01T10:00:00+00:00",
        },
        {
            "company": "Beta Labs",
            "jobTitle": "Data Scientist",
            "location": "New York, NY",
            "jobUrl": "https://jobs.lever.co/beta/2",
            "salaryRange": "",
            "jobBoard": "lever",
            "status": "found",
            "lastUpdated": "2024-05-02T10:00:00+00:00",
        },
        {
            "company": "Acme",
            "jobTitle": "Product Manager",
            "location": "Austin, TX",
            "jobUrl": "",
            "salaryRange": "",
            "status": "applied",
            "lastUpdated": "2024-05-03T10:00:00+00:00",
        },
    ]
    path.write_text(json.dumps(jobs, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def legacy_store_path(tmp_path) -> Path:
    """Job file in the old object-keyed-by-id format."""
    path = tmp_path / "legacy.json"
    data = {
        "0": {
            "company": "Acme",
            "jobTitle": "Software Engineer",
            "jobUrl": "https://acme.example/jobs/1",
            "status": "found",
            "lastUpdated": "2024-01-01T00:00:00+00:00",
        },
        "1": {
            "company": "Beta",
            "jobTitle": "Designer",
            "jobUrl": "https://beta.example/jobs/2",
            "status": "reviewed",
            "lastUpdated": "2024-01-02T00:00:00+00:00",
        },
    }
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path
