"""
Tests for the Greenhouse and Lever board sources.
"""

import pytest
import requests
import responses

from jobtracker.sources import SourceError, get_source, ingest_board, source_for_url
from jobtracker.sources import greenhouse, lever
from jobtracker.sources.common import fetch_with_error_handling
from jobtracker.storage import JobStore

GREENHOUSE_BOARD = """
<html><body>
  <a href="/acme/jobs/1">Software Engineer</a>
  <a href="https://boards.greenhouse.io/acme/jobs/2/">Data Engineer</a>
  <a href="/acme/jobs/1">Software Engineer (again)</a>
  <a href="/about">About</a>
</body></html>
"""

LEVER_BOARD = """
<html><body>
  <a href="https://jobs.lever.co/acme/abc-123">Product Manager</a>
  <a href="https://jobs.lever.co/acme/abc-123/apply">Apply</a>
  <a href="https://jobs.lever.co/acme">All jobs</a>
  <a href="https://jobs.lever.co/other/xyz">Other company</a>
</body></html>
"""


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("jobtracker.retry.time.sleep", lambda s: None)


class TestFetch:

    @responses.activate
    def test_not_found(self):
        responses.add(responses.GET, "https://boards.greenhouse.io/acme/jobs/9", status=404)
        with pytest.raises(SourceError, match="404"):
            fetch_with_error_handling("https://boards.greenhouse.io/acme/jobs/9", "greenhouse")

    @responses.activate
    def test_retries_server_errors(self):
        url = "https://jobs.lever.co/acme"
        responses.add(responses.GET, url, status=503)
        responses.add(responses.GET, url, body="ok", status=200)

        resp = fetch_with_error_handling(url, "lever")
        assert resp.text == "ok"
        assert len(responses.calls) == 2

    @responses.activate
    def test_gives_up_after_retries(self):
        url = "https://jobs.lever.co/acme"
        responses.add(responses.GET, url, body=requests.exceptions.Timeout("slow"))

        with pytest.raises(SourceError, match="after retries"):
            fetch_with_error_handling(url, "lever")
        assert len(responses.calls) == 4


class TestGreenhouse:

    @responses.activate
    def test_parse_posting(self, sample_greenhouse_html):
        responses.add(responses.GET, "https://boards.greenhouse.io/acme/jobs/12345", body=sample_greenhouse_html)

        candidate = greenhouse.parse("https://boards.greenhouse.io/acme/jobs/12345/?gh_src=abc")

        assert candidate["company"] == "Acme"
        assert candidate["jobTitle"] == "Software Engineer"
        assert candidate["location"] == "San Francisco, CA"
        assert candidate["salaryRange"] == "$150,000 - $180,000"
        assert candidate["jobUrl"] == "https://boards.greenhouse.io/acme/jobs/12345"
        assert candidate["jobBoard"] == "greenhouse"
        assert candidate["additionalInfo"]["sourceId"] == "12345"

    @responses.activate
    def test_parse_uses_application_page_title(self):
        html = "<html><head><title>Job Application for Data Engineer at Acme Robotics</title></head></html>"
        responses.add(responses.GET, "https://boards.greenhouse.io/acme/jobs/7", body=html)

        candidate = greenhouse.parse("https://boards.greenhouse.io/acme/jobs/7")

        assert candidate["jobTitle"] == "Data Engineer"
        assert candidate["company"] == "Acme Robotics"

    @responses.activate
    def test_parse_without_title(self):
        responses.add(responses.GET, "https://boards.greenhouse.io/acme/jobs/8", body="<html></html>")
        with pytest.raises(SourceError, match="no title"):
            greenhouse.parse("https://boards.greenhouse.io/acme/jobs/8")

    @responses.activate
    def test_list_postings(self):
        responses.add(responses.GET, "https://boards.greenhouse.io/acme", body=GREENHOUSE_BOARD)

        urls = greenhouse.list_company_posting_urls("acme")

        assert urls == [
            "https://boards.greenhouse.io/acme/jobs/1",
            "https://boards.greenhouse.io/acme/jobs/2",
        ]


class TestLever:

    @responses.activate
    def test_parse_posting(self, sample_lever_html):
        responses.add(responses.GET, "https://jobs.lever.co/acme/abc-123", body=sample_lever_html)

        candidate = lever.parse("https://jobs.lever.co/acme/abc-123")

        assert candidate["company"] == "Acme"
        assert candidate["jobTitle"] == "Product Manager"
        assert candidate["location"] == "Remote"
        assert candidate["jobBoard"] == "lever"
        assert candidate["additionalInfo"]["sourceId"] == "abc-123"

    @responses.activate
    def test_list_postings(self):
        responses.add(responses.GET, "https://jobs.lever.co/acme", body=LEVER_BOARD)
        assert lever.list_company_posting_urls("acme") == ["https://jobs.lever.co/acme/abc-123"]


class TestRegistry:

    def test_get_source(self):
        assert get_source("Greenhouse") is greenhouse
        with pytest.raises(SourceError, match="Unsupported platform"):
            get_source("ashby")

    def test_source_for_url(self):
        assert source_for_url("https://jobs.lever.co/acme/1") is lever
        assert source_for_url("https://boards.greenhouse.io/acme/jobs/1") is greenhouse
        with pytest.raises(SourceError):
            source_for_url("https://example.com/jobs/1")


class TestIngestBoard:

    @responses.activate
    def test_adds_postings_and_counts_duplicates(self, tmp_path, sample_greenhouse_html):
        responses.add(responses.GET, "https://boards.greenhouse.io/acme", body=GREENHOUSE_BOARD)
        responses.add(responses.GET, "https://boards.greenhouse.io/acme/jobs/1", body=sample_greenhouse_html)
        responses.add(
            responses.GET,
            "https://boards.greenhouse.io/acme/jobs/2",
            body="<html><body><h1>Data Engineer</h1></body></html>",
        )
        store = JobStore(tmp_path / "jobs.json")
        store.add_job({"company": "Acme", "jobTitle": "Data Engineer"})

        report = ingest_board(store, "greenhouse", "acme", search_query="engineer")

        assert report.found == 2
        assert report.added == 1
        assert report.duplicates == 1
        assert report.failed == 0
        assert report.indices == [1, 0]
        assert store.get_job(1)["additionalInfo"]["searchQuery"] == "engineer"

    @responses.activate
    def test_failures_are_counted_not_raised(self, tmp_path):
        responses.add(responses.GET, "https://boards.greenhouse.io/acme", body=GREENHOUSE_BOARD)
        responses.add(responses.GET, "https://boards.greenhouse.io/acme/jobs/1", status=404)
        responses.add(responses.GET, "https://boards.greenhouse.io/acme/jobs/2", status=404)
        store = JobStore(tmp_path / "jobs.json")

        report = ingest_board(store, "greenhouse", "acme")

        assert report.failed == 2
        assert report.added == 0
        assert len(store) == 0

    @responses.activate
    def test_breaker_skips_rest_of_board(self, tmp_path):
        responses.add(responses.GET, "https://boards.greenhouse.io/acme", body=GREENHOUSE_BOARD)
        responses.add(responses.GET, "https://boards.greenhouse.io/acme/jobs/1", status=404)
        responses.add(responses.GET, "https://boards.greenhouse.io/acme/jobs/2", status=404)

        report = ingest_board(JobStore(tmp_path / "jobs.json"), "greenhouse", "acme", failure_threshold=1)

        assert report.failed == 2
        # second posting is never requested once the breaker opens
        posting_calls = [c for c in responses.calls if "/jobs/" in c.request.url]
        assert len(posting_calls) == 1

    @responses.activate
    def test_limit(self, tmp_path, sample_greenhouse_html):
        responses.add(responses.GET, "https://boards.greenhouse.io/acme", body=GREENHOUSE_BOARD)
        responses.add(responses.GET, "https://boards.greenhouse.io/acme/jobs/1", body=sample_greenhouse_html)

        report = ingest_board(JobStore(tmp_path / "jobs.json"), "greenhouse", "acme", limit=1)

        assert report.found == 1
        assert report.added == 1
