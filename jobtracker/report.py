from typing import Any, Dict, List, Optional

from .logger import StructuredLogger, get_logger

SEPARATOR = "=" * 60


def summary_lines(stats: Dict[str, Any]) -> List[str]:
    lines = [SEPARATOR, "JOB TRACKER SUMMARY", SEPARATOR]
    lines.append(f"Total Jobs Tracked: {stats.get('totalJobs', 0)}")

    by_status = stats.get("byStatus") or {}
    if by_status:
        lines.append("Jobs by Status:")
        for status, count in sorted(by_status.items()):
            lines.append(f"  - {status[:1].upper() + status[1:]}: {count}")

    if stats.get("appliedCount", 0) > 0:
        lines.append(f"Applications Submitted: {stats['appliedCount']}")

    lines.append(SEPARATOR)
    return lines


def print_summary(stats: Dict[str, Any], logger: Optional[StructuredLogger] = None) -> List[str]:
    """Log the store summary line by line and return the lines."""
    logger = logger or get_logger()
    lines = summary_lines(stats)
    for line in lines:
        if line == SEPARATOR:
            logger.separator("=", len(SEPARATOR))
        else:
            logger.info(line)
    return lines
