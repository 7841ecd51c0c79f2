import argparse
import json
from pathlib import Path
from typing import List, Optional

from . import __version__
from .applications import ApplicationResult, record_application
from .config import Settings, load_settings
from .env import load_env
from .logger import get_logger
from .report import print_summary
from .schema import InvalidJobError, JobStatus
from .sources import SourceError, ingest_board, source_for_url
from .storage import FORMAT_LEGACY_MAP, JobStore, load_records, migrate_legacy


def open_store(args: argparse.Namespace) -> JobStore:
    settings: Settings = args.settings
    store_path = Path(args.store) if args.store else settings.store_path
    return JobStore(store_path, duplicate_detection=settings.duplicate_detection)


def _read_json(path_str: str):
    input_path = Path(path_str)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise SystemExit(f"Invalid JSON in {input_path}: {e}")


def _dump(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _job_line(index: int, job: dict) -> str:
    line = f"[{index}] {job.get('status', 'unknown'):<8} {job.get('jobTitle')} at {job.get('company')}"
    if job.get("location"):
        line += f" ({job['location']})"
    if job.get("jobUrl"):
        line += f" {job['jobUrl']}"
    return line


def _add(store: JobStore, candidate: dict) -> int:
    try:
        return store.add_job(candidate)
    except InvalidJobError as e:
        raise SystemExit(f"Invalid job: {e}")


def cmd_add(args: argparse.Namespace) -> None:
    candidate = {
        "company": args.company,
        "jobTitle": args.title,
        "location": args.location or "",
        "jobUrl": args.url or "",
        "salaryRange": args.salary or "",
        "jobBoard": args.board or "",
    }
    if args.info:
        try:
            candidate["additionalInfo"] = json.loads(args.info)
        except json.JSONDecodeError as e:
            raise SystemExit(f"--info must be a JSON object: {e}")
    store = open_store(args)
    before = len(store)
    index = _add(store, candidate)
    outcome = "added" if len(store) > before else "duplicate"
    print(f"Index: {index}")
    print(f"Status: {outcome}")


def cmd_import(args: argparse.Namespace) -> None:
    data = _read_json(args.input)
    candidates = data if isinstance(data, list) else [data]
    store = open_store(args)
    added = duplicates = invalid = 0
    for candidate in candidates:
        before = len(store)
        try:
            index = store.add_job(candidate)
        except InvalidJobError as e:
            print(f"[invalid] {e}")
            invalid += 1
            continue
        if len(store) > before:
            added += 1
            print(f"[added] {index}")
        else:
            duplicates += 1
            print(f"[duplicate] {index}")
    print(f"Done. total={len(candidates)} added={added} duplicates={duplicates} invalid={invalid}")


def cmd_status(args: argparse.Namespace) -> None:
    store = open_store(args)
    try:
        ok = store.update_job_status(args.index, args.status, args.note)
    except InvalidJobError as e:
        raise SystemExit(str(e))
    if not ok:
        raise SystemExit(f"Job index out of range: {args.index}")
    print(_job_line(args.index, store.get_job(args.index)))


def cmd_note(args: argparse.Namespace) -> None:
    store = open_store(args)
    if not store.add_note(args.index, args.text):
        raise SystemExit(f"Job index out of range: {args.index}")
    print(f"Note added to job {args.index}")


def cmd_show(args: argparse.Namespace) -> None:
    job = open_store(args).get_job(args.index)
    if job is None:
        raise SystemExit(f"Job not found at index {args.index}")
    _dump(job)


def cmd_list(args: argparse.Namespace) -> None:
    store = open_store(args)
    jobs = store.find_jobs(status=args.status, company=args.company, query=args.search)
    if not jobs:
        print("No jobs found.")
        return
    print(f"Found {len(jobs)} jobs in {store.path}:\n")
    for index, job in jobs:
        print(_job_line(index, job))


def cmd_stats(args: argparse.Namespace) -> None:
    _dump(open_store(args).get_statistics())


def cmd_summary(args: argparse.Namespace) -> None:
    print_summary(open_store(args).get_statistics())


def cmd_migrate(args: argparse.Namespace) -> None:
    store_path = Path(args.store) if args.store else args.settings.store_path
    result = load_records(store_path)
    if result.error:
        raise SystemExit(f"Cannot migrate {store_path}: {result.error}")
    if result.fmt != FORMAT_LEGACY_MAP:
        print(f"Nothing to migrate ({result.fmt}, {len(result.records)} jobs)")
        return
    if not migrate_legacy(store_path, result.records):
        raise SystemExit(f"Migration of {store_path} failed")
    print(f"Migrated {len(result.records)} jobs to list format")


def cmd_scrape(args: argparse.Namespace) -> None:
    try:
        candidate = source_for_url(args.url).parse(args.url)
    except SourceError as e:
        raise SystemExit(str(e))
    store = open_store(args)
    before = len(store)
    index = _add(store, candidate)
    print(f"[{'added' if len(store) > before else 'duplicate'}] {index} {candidate['jobTitle']} at {candidate['company']}")


def cmd_scrape_board(args: argparse.Namespace) -> None:
    store = open_store(args)
    limit = args.limit if args.limit is not None else args.settings.max_jobs_per_platform
    try:
        report = ingest_board(store, args.platform, args.company, limit=limit, search_query=args.query)
    except SourceError as e:
        raise SystemExit(str(e))
    if not report.found:
        print("No postings found.")
        return
    print(
        f"Done. found={report.found} added={report.added} "
        f"duplicates={report.duplicates} failed={report.failed}"
    )


def cmd_apply_result(args: argparse.Namespace) -> None:
    data = _read_json(args.input)
    if not isinstance(data, dict):
        raise SystemExit("Application result must be a JSON object")
    store = open_store(args)
    if not record_application(store, args.index, ApplicationResult.from_dict(data)):
        raise SystemExit(f"Application result not recorded for job {args.index}")
    print(_job_line(args.index, store.get_job(args.index)))


def _add_store_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--store", help="Path to JSON job file (default: $JOBTRACKER_STORE or data/jobs.json)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobtracker", description="Track job postings and applications in a JSON file")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--log-level", help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)")

    subparsers = parser.add_subparsers(dest="command")
    statuses = [s.value for s in JobStatus]

    add = subparsers.add_parser("add", help="Add a job (duplicates return the existing index)")
    add.add_argument("--company", required=True)
    add.add_argument("--title", required=True, help="Job title")
    add.add_argument("--location")
    add.add_argument("--url", help="Job posting URL")
    add.add_argument("--salary", help="Salary range text")
    add.add_argument("--board", help="Job board the posting came from")
    add.add_argument("--info", help="Extra metadata as a JSON object")
    _add_store_arg(add)
    add.set_defaults(func=cmd_add)

    imp = subparsers.add_parser("import", help="Add jobs from a JSON file (one object or a list)")
    imp.add_argument("--input", required=True, help="Path to JSON input")
    _add_store_arg(imp)
    imp.set_defaults(func=cmd_import)

    sts = subparsers.add_parser("status", help="Set the status of a job")
    sts.add_argument("--index", type=int, required=True)
    sts.add_argument("--status", required=True, choices=statuses)
    sts.add_argument("--note", help="Logged with the update; not stored on the job")
    _add_store_arg(sts)
    sts.set_defaults(func=cmd_status)

    note = subparsers.add_parser("note", help="Append a note to a job")
    note.add_argument("--index", type=int, required=True)
    note.add_argument("--text", required=True)
    _add_store_arg(note)
    note.set_defaults(func=cmd_note)

    show = subparsers.add_parser("show", help="Print one job as JSON")
    show.add_argument("--index", type=int, required=True)
    _add_store_arg(show)
    show.set_defaults(func=cmd_show)

    lst = subparsers.add_parser("list", help="List jobs")
    lst.add_argument("--status", choices=statuses)
    lst.add_argument("--company", help="Case-insensitive company substring")
    lst.add_argument("--search", help="Case-insensitive match on title, company or location")
    _add_store_arg(lst)
    lst.set_defaults(func=cmd_list)

    sta = subparsers.add_parser("stats", help="Print statistics as JSON")
    _add_store_arg(sta)
    sta.set_defaults(func=cmd_stats)

    smy = subparsers.add_parser("summary", help="Log a summary of the tracked jobs")
    _add_store_arg(smy)
    smy.set_defaults(func=cmd_summary)

    mig = subparsers.add_parser("migrate", help="Rewrite a legacy map-format job file as a list")
    _add_store_arg(mig)
    mig.set_defaults(func=cmd_migrate)

    scr = subparsers.add_parser("scrape", help="Scrape one Greenhouse or Lever posting URL and add it")
    scr.add_argument("--url", required=True)
    _add_store_arg(scr)
    scr.set_defaults(func=cmd_scrape)

    scrb = subparsers.add_parser("scrape-board", help="Scrape postings from a company board and add them")
    scrb.add_argument("--platform", required=True, choices=["greenhouse", "lever"])
    scrb.add_argument("--company", required=True, help="Company slug on the chosen platform")
    scrb.add_argument("--limit", type=int, help="Max postings to scrape (default: $MAX_JOBS_PER_PLATFORM)")
    scrb.add_argument("--query", help="Search query recorded in each job's additionalInfo")
    _add_store_arg(scrb)
    scrb.set_defaults(func=cmd_scrape_board)

    apl = subparsers.add_parser("apply-result", help="Record an application result JSON for a job")
    apl.add_argument("--index", type=int, required=True)
    apl.add_argument("--input", required=True, help="Path to application result JSON")
    _add_store_arg(apl)
    apl.set_defaults(func=cmd_apply_result)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    settings = load_settings()
    args.settings = settings
    logger = get_logger()
    logger.configure(
        level=args.log_level or settings.log_level,
        log_dir=settings.log_dir,
        enable_file=settings.log_to_file,
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        args.func(args)
    except OSError as e:
        raise SystemExit(f"Could not write job file: {e}")


if __name__ == "__main__":
    main()
