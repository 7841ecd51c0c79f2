"""
Recording the outcome of an application attempt.

Whatever submitted the application (a person, a browser session) reports
back an ApplicationResult. A successful result becomes an
``applicationProof`` block in the record's additionalInfo and moves the
record to APPLIED.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .logger import get_logger
from .schema import JobStatus
from .storage import JobStore

logger = get_logger()

PROOF_FULL_RECORDING = "full_recording_with_screenshots"
PROOF_SESSION_ONLY = "browser_session_only"


@dataclass
class ApplicationResult:
    success: bool
    result: Optional[str] = None
    error: Optional[str] = None
    session_id: Optional[str] = None
    steps_taken: Optional[int] = None
    browser_url: Optional[str] = None
    recording_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApplicationResult":
        """Build from a camelCase mapping as written by the application runner."""
        return cls(
            success=bool(data.get("success")),
            result=data.get("result"),
            error=data.get("error"),
            session_id=data.get("sessionId"),
            steps_taken=data.get("stepsTaken"),
            browser_url=data.get("browserUrl"),
            recording_url=data.get("recordingUrl"),
        )


def build_application_proof(result: ApplicationResult) -> Dict[str, Any]:
    return {
        "applicationTimestamp": datetime.now(timezone.utc).isoformat(),
        "applicationResult": result.result,
        "browserUrl": result.browser_url,
        "recordingUrl": result.recording_url,
        "sessionId": result.session_id,
        "stepsTaken": result.steps_taken,
        "screenshotTaken": "screenshot" in (result.result or "").lower(),
        "proofType": PROOF_FULL_RECORDING if result.recording_url else PROOF_SESSION_ONLY,
    }


def record_application(store: JobStore, index: int, result: ApplicationResult) -> bool:
    """
    Apply an application result to the record at index.

    Returns:
        True when the record was marked APPLIED. False when the record is
        missing, was already applied to, or the result reports a failure.
    """
    # The applied check and both writes run under one lock hold
    with store.lock:
        job = store.get_job(index)
        if job is None:
            logger.error(f"Job not found at index {index}")
            return False
        if job.get("status") == JobStatus.APPLIED.value:
            logger.warning(f"Already applied to job {index}: {job.get('jobTitle')} at {job.get('company')}")
            return False
        if not result.success:
            logger.error(f"Application failed for job {index}: {result.error}", browserUrl=result.browser_url)
            return False

        store.merge_additional_info(index, {"applicationProof": build_application_proof(result)})
        return store.update_job_status(
            index,
            JobStatus.APPLIED,
            f"Application submitted - Session: {result.session_id or 'N/A'}",
        )
