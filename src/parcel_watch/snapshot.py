"""Persisted parcel snapshot.

The snapshot file maps every occupied parcel id to the content root deployed
on it. It is written as a versioned envelope::

    {"version": 1, "regions": {"-10,4": "Qm...", ...}}

Older files holding the bare mapping are still readable.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from parcel_watch.errors import SnapshotError

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class SnapshotStore:
    """Loads and atomically replaces the snapshot file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, str]:
        """Return the previous run's snapshot, or an empty one."""
        if not self.path.exists():
            logger.info("No snapshot at %s, starting empty", self.path)
            return {}

        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise SnapshotError(f"{self.path} is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise SnapshotError(f"{self.path} does not hold a JSON object")

        if "version" in payload and "regions" in payload:
            if payload["version"] != SNAPSHOT_VERSION:
                raise SnapshotError(
                    f"{self.path} has unsupported snapshot version {payload['version']!r}"
                )
            regions = payload["regions"]
        else:
            regions = payload

        if not isinstance(regions, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in regions.items()
        ):
            raise SnapshotError(f"{self.path} regions must map strings to strings")

        logger.info("Loaded snapshot with %d parcels from %s", len(regions), self.path)
        return dict(regions)

    def persist(self, snapshot: dict[str, str]) -> None:
        """Replace the snapshot file with ``snapshot``.

        The data is written to a temporary file next to the target and then
        renamed over it, so readers see either the old or the new file.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document = {"version": SNAPSHOT_VERSION, "regions": snapshot}
        data = json.dumps(document, indent=2, sort_keys=True) + "\n"

        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info("Wrote snapshot with %d parcels to %s", len(snapshot), self.path)
