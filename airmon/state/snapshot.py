"""Best-effort snapshot of the retained samples across restarts."""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List

from .sample import Sample
from .sample_store import AppendOutcome, SampleStore

logger = logging.getLogger(__name__)


def write_snapshot(path: Path, records: List[Dict[str, Any]]) -> None:
    """
    Write ``{"m", "t", "v"}`` records (oldest first) as a JSON array.

    The file is written next to the target and renamed over it, so a crash
    mid-write leaves the previous snapshot intact.
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(records, f)
    os.replace(tmp_path, path)
    logger.info("Wrote %d samples to %s", len(records), path)


def read_snapshot(path: Path) -> List[Dict[str, Any]]:
    """Return snapshot records, or an empty list if the file is missing or unreadable."""
    path = Path(path)
    if not path.exists():
        logger.info("No snapshot at %s, starting empty", path)
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.error("Could not read snapshot %s: %s", path, exc)
        return []
    if not isinstance(data, list):
        logger.error("Snapshot %s is not a JSON array, ignoring it", path)
        return []
    return data


def load_snapshot(path: Path, store: SampleStore) -> int:
    """
    Replay snapshot records through ``store.append`` in file order.

    Malformed or out-of-order records are skipped. Returns the number of
    samples accepted.
    """
    accepted = 0
    for record in read_snapshot(path):
        try:
            sample = Sample.from_record(record)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping malformed snapshot record %r: %s", record, exc)
            continue
        outcome = store.append(sample)
        if outcome is AppendOutcome.ACCEPTED:
            accepted += 1
        elif outcome is AppendOutcome.CORRUPTED:
            break
    if accepted:
        logger.info("Restored %d samples from %s", accepted, path)
    return accepted
