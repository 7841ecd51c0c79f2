from enum import Enum
from typing import Any, Dict, List, Union

REQUIRED_STR_FIELDS = ["company", "jobTitle"]
OPTIONAL_STR_FIELDS = [
    "location",
    "jobUrl",
    "salaryRange",
    "jobBoard",
]
CANDIDATE_FIELDS = REQUIRED_STR_FIELDS + OPTIONAL_STR_FIELDS + ["additionalInfo"]


class JobStatus(str, Enum):
    FOUND = "found"
    REVIEWED = "reviewed"
    APPLIED = "applied"


class InvalidJobError(ValueError):
    """Raised when a candidate or status cannot be accepted by the store."""


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def validate_candidate(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.

    status and lastUpdated are assigned by the store and are not checked here.
    """
    if not isinstance(data, dict):
        return ["Candidate must be a JSON object"]

    errors: List[str] = []

    for f in REQUIRED_STR_FIELDS:
        if f not in data or data[f] is None:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    # Optional strings may be empty, but must be strings when present
    for f in OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    if data.get("additionalInfo") is not None and not isinstance(data["additionalInfo"], dict):
        errors.append("Field 'additionalInfo' must be an object if provided")

    return errors


def coerce_status(value: Union[str, JobStatus]) -> JobStatus:
    """Accept a JobStatus or its string value (any case)."""
    if isinstance(value, JobStatus):
        return value
    if isinstance(value, str):
        try:
            return JobStatus(value.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(s.value for s in JobStatus)
    raise InvalidJobError(f"Unknown status {value!r} (expected one of: {allowed})")
