"""
JSON-file job store.

The record file holds a JSON array of job records. An older layout, an
object keyed by arbitrary ids, is still accepted on read and rewritten as
an array by an explicit migrate step.

Every mutation rewrites the whole file through a temp file + rename, and a
re-entrant lock serialises read-modify-write cycles within the process.
"""

import copy
import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from .logger import get_logger
from .normalize import name_key, url_key
from .schema import (
    CANDIDATE_FIELDS,
    InvalidJobError,
    JobStatus,
    coerce_status,
    validate_candidate,
)

logger = get_logger()

FORMAT_LIST = "list"
FORMAT_LEGACY_MAP = "legacy-map"
FORMAT_MISSING = "missing"
FORMAT_EMPTY = "empty"
FORMAT_UNKNOWN = "unknown"


class LoadResult(NamedTuple):
    records: List[Dict[str, Any]]
    fmt: str
    error: Optional[str] = None
    skipped: int = 0


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def detect_format(data: Any) -> str:
    if isinstance(data, list):
        return FORMAT_LIST
    if isinstance(data, dict):
        return FORMAT_LEGACY_MAP
    return FORMAT_UNKNOWN


def load_records(path: Path) -> LoadResult:
    """
    Read the record file and detect its layout. Never raises.

    Args:
        path: Path to the JSON record file

    Returns:
        LoadResult with the records in file order, the detected format,
        an error message for unreadable or malformed files and the number
        of entries dropped because they were not objects
    """
    path = Path(path)
    if not path.exists():
        return LoadResult([], FORMAT_MISSING)
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
        if not content:
            return LoadResult([], FORMAT_EMPTY)
        data = json.loads(content)
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.error("Error loading job data", path=str(path), error=str(e))
        return LoadResult([], FORMAT_UNKNOWN, str(e))

    fmt = detect_format(data)
    if fmt in (FORMAT_LIST, FORMAT_LEGACY_MAP):
        entries = data if fmt == FORMAT_LIST else list(data.values())
        records = [entry for entry in entries if isinstance(entry, dict)]
        skipped = len(entries) - len(records)
        if skipped:
            logger.error("Skipping job entries that are not objects", path=str(path), skipped=skipped)
        return LoadResult(records, fmt, skipped=skipped)

    message = f"Unsupported top-level JSON type: {type(data).__name__}"
    logger.error("Error loading job data", path=str(path), error=message)
    return LoadResult([], fmt, message)


def save_records(path: Path, records: List[Dict[str, Any]]) -> None:
    """Write records as a 2-space indented JSON array, atomically.

    Raises OSError (after logging) when the file cannot be written.
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        logger.error("Error saving data", path=str(path), error=str(e))
        logger.record_write_failure(type(e).__name__)
        if tmp_path.exists():
            tmp_path.unlink()
        raise
    logger.debug(f"Saved {len(records)} jobs to {path}")


def migrate_legacy(path: Path, records: List[Dict[str, Any]]) -> bool:
    """Rewrite a legacy map-format file as a JSON array.

    Returns True on success. A failed write is logged and reported as False
    so the caller can keep serving the converted records from memory.
    """
    logger.info("Migrating job file from map to list format", path=str(path), jobs=len(records))
    try:
        save_records(path, records)
    except OSError:
        logger.warning("Legacy migration was not persisted", path=str(path))
        return False
    return True


class JobStore:
    """
    Ordered collection of job records backed by one JSON file.

    A record's index is its identity: records are only ever appended and
    mutated in place, never removed or reordered.
    """

    def __init__(self, path: Union[str, Path], duplicate_detection: bool = True):
        self.path = Path(path)
        self.duplicate_detection = duplicate_detection
        self.last_load: Optional[LoadResult] = None
        self._jobs: List[Dict[str, Any]] = []
        self._initialized = False
        self._lock = threading.RLock()

    def __len__(self) -> int:
        self.initialize()
        return len(self._jobs)

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def lock(self):
        """Re-entrant store lock. Hold it to run several operations as one step."""
        return self._lock

    def initialize(self) -> None:
        """Load the record file on first use. Later calls do nothing."""
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            result = load_records(self.path)
            if result.fmt == FORMAT_LEGACY_MAP:
                migrate_legacy(self.path, result.records)
            self.last_load = result
            self._jobs = result.records
            self._initialized = True
        logger.info(f"Job tracker initialized with {len(self._jobs)} existing jobs", path=str(self.path))

    def _save(self) -> None:
        save_records(self.path, self._jobs)

    def _in_range(self, index: int) -> bool:
        return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(self._jobs)

    # Mutations

    def add_job(self, candidate: Dict[str, Any]) -> int:
        """
        Add a job unless it duplicates an existing record.

        Args:
            candidate: company, jobTitle and optional location, jobUrl,
                salaryRange, jobBoard, additionalInfo

        Returns:
            Index of the new record, or of the existing duplicate

        Raises:
            InvalidJobError: candidate fails validation
            OSError: the record file could not be written
        """
        errors = validate_candidate(candidate)
        if errors:
            raise InvalidJobError("; ".join(errors))

        with self._lock:
            self.initialize()

            if self.duplicate_detection:
                duplicate_idx = self.check_duplicate(
                    candidate["company"], candidate["jobTitle"], candidate.get("jobUrl")
                )
                if duplicate_idx is not None:
                    logger.info(
                        f"Job already exists at index {duplicate_idx}: "
                        f"{candidate['jobTitle']} at {candidate['company']}"
                    )
                    logger.record_duplicate()
                    return duplicate_idx

            record = {k: copy.deepcopy(candidate[k]) for k in CANDIDATE_FIELDS if candidate.get(k) is not None}
            record["status"] = JobStatus.FOUND.value
            record["lastUpdated"] = _now()

            self._jobs.append(record)
            self._save()
            index = len(self._jobs) - 1

        logger.record_job_added()
        logger.info(f"Found: {record['jobTitle']} at {record['company']}", index=index, status=record["status"])
        return index

    def update_job_status(
        self,
        index: int,
        status: Union[str, JobStatus],
        note: Optional[str] = None,
    ) -> bool:
        """
        Set a record's status.

        The note is written to the log only. Use add_note for notes that
        should be kept on the record.

        Returns:
            False when the index is out of range, True otherwise
        """
        new_status = coerce_status(status)
        with self._lock:
            self.initialize()
            if not self._in_range(index):
                logger.error(f"Job index out of range: {index}", total=len(self._jobs))
                return False

            job = self._jobs[index]
            old_status = job.get("status")
            job["status"] = new_status.value
            job["lastUpdated"] = _now()
            self._save()

        logger.record_status_update()
        if new_status is JobStatus.APPLIED:
            logger.info(f"Applied: {job.get('jobTitle')} at {job.get('company')}")
        logger.info(f"Updated job at index {index}: {old_status} -> {new_status.value}")
        if note:
            logger.info(f"Note for job {index}: {note}")
        return True

    def add_note(self, index: int, note: str) -> bool:
        """Append a timestamped note to a record. False when out of range."""
        with self._lock:
            self.initialize()
            if not self._in_range(index):
                logger.error(f"Job index out of range: {index}", total=len(self._jobs))
                return False

            job = self._jobs[index]
            now = _now()
            job.setdefault("notes", []).append({"timestamp": now, "note": note})
            job["lastUpdated"] = now
            self._save()

        logger.record_note_added()
        logger.debug(f"Added note to job {index}")
        return True

    def merge_additional_info(self, index: int, info: Dict[str, Any]) -> bool:
        """Shallow-merge info into a record's additionalInfo. False when out of range."""
        if not isinstance(info, dict):
            raise InvalidJobError("additionalInfo must be a mapping")
        with self._lock:
            self.initialize()
            if not self._in_range(index):
                logger.error(f"Job index out of range: {index}", total=len(self._jobs))
                return False

            job = self._jobs[index]
            merged = dict(job.get("additionalInfo") or {})
            merged.update(copy.deepcopy(info))
            job["additionalInfo"] = merged
            job["lastUpdated"] = _now()
            self._save()

        logger.debug(f"Merged additional info into job {index}", keys=sorted(info))
        return True

    # Queries

    def check_duplicate(
        self,
        company: str,
        job_title: str,
        job_url: Optional[str] = None,
    ) -> Optional[int]:
        """Index of the record matching by URL, else by company + title, else None."""
        with self._lock:
            self.initialize()
            wanted_url = url_key(job_url)
            if wanted_url:
                for i, job in enumerate(self._jobs):
                    if url_key(job.get("jobUrl")) == wanted_url:
                        return i

            wanted_company = name_key(company)
            wanted_title = name_key(job_title)
            for i, job in enumerate(self._jobs):
                if name_key(job.get("company")) == wanted_company and name_key(job.get("jobTitle")) == wanted_title:
                    return i
        return None

    def get_job(self, index: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            self.initialize()
            if not self._in_range(index):
                return None
            return copy.deepcopy(self._jobs[index])

    def find_jobs(
        self,
        status: Optional[Union[str, JobStatus]] = None,
        company: Optional[str] = None,
        query: Optional[str] = None,
    ) -> List[Tuple[int, Dict[str, Any]]]:
        """
        Jobs matching every given filter, as (index, copy) pairs in store order.

        Args:
            status: exact status
            company: case-insensitive substring of company
            query: case-insensitive substring of title, company or location
        """
        wanted_status = status.value if isinstance(status, JobStatus) else status
        company_needle = company.lower() if company else None
        query_needle = query.lower() if query else None

        def matches(job: Dict[str, Any]) -> bool:
            if wanted_status is not None and job.get("status") != wanted_status:
                return False
            if company_needle is not None and company_needle not in (job.get("company") or "").lower():
                return False
            if query_needle is not None:
                fields = (job.get("jobTitle"), job.get("company"), job.get("location"))
                if not any(query_needle in value.lower() for value in fields if isinstance(value, str)):
                    return False
            return True

        with self._lock:
            self.initialize()
            return [(i, copy.deepcopy(job)) for i, job in enumerate(self._jobs) if matches(job)]

    def get_jobs_by_status(self, status: Union[str, JobStatus]) -> List[Dict[str, Any]]:
        return [job for _, job in self.find_jobs(status=status)]

    def get_jobs_by_company(self, company: str) -> List[Dict[str, Any]]:
        return [job for _, job in self.find_jobs(company=company)]

    def search_jobs(self, query: str) -> List[Dict[str, Any]]:
        """Case-insensitive substring match on title, company or location."""
        return [job for _, job in self.find_jobs(query=query)]

    def get_statistics(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = {
            "totalJobs": 0,
            "byStatus": {},
            "byCompany": {},
            "byJobBoard": {},
            "appliedCount": 0,
        }
        with self._lock:
            self.initialize()
            stats["totalJobs"] = len(self._jobs)
            for job in self._jobs:
                status = job.get("status") or "unknown"
                stats["byStatus"][status] = stats["byStatus"].get(status, 0) + 1

                company = job.get("company")
                stats["byCompany"][company] = stats["byCompany"].get(company, 0) + 1

                board = job.get("jobBoard") or "unknown"
                stats["byJobBoard"][board] = stats["byJobBoard"].get(board, 0) + 1

                if job.get("status") == JobStatus.APPLIED.value:
                    stats["appliedCount"] += 1
        return stats

    def get_all_jobs(self) -> List[Dict[str, Any]]:
        return [job for _, job in self.find_jobs()]
