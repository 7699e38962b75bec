from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from models.hcp_profile import HcpProfile
from models.upload import UploadEvent, UploadFailed, UploadProgress, UploadSucceeded


def _remote_calls_for_run(run_id: str) -> Dict[str, Dict[str, int]]:
    """Aggregate traced remote calls from the JSONL log for the given run_id.

    Returns dict like { 'firestore.create': {'calls': N, 'errors': E, 'ms': T} }
    """
    result: Dict[str, Dict[str, int]] = {}
    from config.settings import get_settings
    log_path = Path(get_settings().remote_log_path)
    if not log_path.exists():
        return result
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            try:
                rec = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(rec, dict) or rec.get("run_id") != run_id:
                continue
            bucket = result.setdefault(rec.get("operation") or "unknown", {"calls": 0, "errors": 0, "ms": 0})
            bucket["calls"] += 1
            if rec.get("status") != "ok":
                bucket["errors"] += 1
            bucket["ms"] += int(rec.get("duration_ms") or 0)
    return result


def print_profiles(profiles: Iterable[HcpProfile]) -> None:
    """Print one line per profile."""
    rows = list(profiles)
    if not rows:
        print("No HCP profiles found.")
        return
    for p in rows:
        status = p.internal_status.value if p.internal_status else "-"
        print(f"{p.id}  {p.full_name}  | {p.primary_skill} | {p.experience_years} yrs | "
              f"{p.location_preference} | {status}")
    print(f"\n{len(rows)} profile(s)")


def print_profile(profile: HcpProfile) -> None:
    data: Dict[str, Any] = profile.model_dump(by_alias=True, mode="json", exclude_none=True)
    data["profilePhotoUrl"] = profile.profile_photo_url
    print(json.dumps(data, indent=2, ensure_ascii=False))


def format_upload_event(event: UploadEvent) -> str:
    if isinstance(event, UploadProgress):
        return f"Uploading: {event.percent:.0f}% ({event.bytes_transferred}/{event.total_bytes} bytes)"
    if isinstance(event, UploadSucceeded):
        return f"Upload complete: {event.url}"
    if isinstance(event, UploadFailed):
        return event.error
    return str(event)


def print_import_summary(meta: dict, source: Optional[str] = None) -> None:
    """Print summary of a bulk import run."""
    stats = meta.get("validation_stats", {})
    failed = meta.get("failed", [])

    print("\n" + "=" * 60)
    print("HCP PROFILE IMPORT - SUMMARY")
    print("=" * 60)
    if source:
        print(f"Source File: {source}")
    print(f"Rows Read: {stats.get('total_profiles', 0)}")
    print(f"Valid Rows: {stats.get('valid_profiles', 0)}")
    print(f"Invalid Rows: {stats.get('invalid_profiles', 0)}")
    print(f"Created: {len(meta.get('created_ids', []))}")
    print(f"Failed To Save: {len(failed)}")
    for entry in stats.get("validation_errors", []):
        print(f"  - {entry.get('profile')}: {'; '.join(entry.get('errors', []))}")
    for entry in failed:
        print(f"  - {entry.get('profile')}: {entry.get('error')}")

    from config.settings import get_settings
    run_id = os.getenv("RUN_ID")
    if run_id and get_settings().remote_trace:
        calls = _remote_calls_for_run(run_id)
        if calls:
            print("Remote Calls:")
            for op, bucket in sorted(calls.items()):
                print(f"  {op}: calls={bucket['calls']}, errors={bucket['errors']}, ms={bucket['ms']}")
    print("=" * 60)
