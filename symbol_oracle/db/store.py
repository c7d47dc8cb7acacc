"""JSON file persistence for the statistics snapshot."""

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

import structlog

from symbol_oracle.core.errors import PersistenceReadError, PersistenceWriteError
from symbol_oracle.db.models import StatisticsSnapshot

logger = structlog.get_logger()


class PersistenceStore(Protocol):
    def load(self) -> StatisticsSnapshot: ...

    def save(self, snapshot: StatisticsSnapshot) -> None: ...


class JsonFileStore:
    """Stores the snapshot as one JSON document.

    Loading never fails: a missing or unreadable file yields defaults, and
    invalid fields fall back one by one. Saving writes a temp file next to the
    target and renames it over, so readers see either the old or the new
    document, never half of one.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def load(self) -> StatisticsSnapshot:
        try:
            raw = self._read()
        except PersistenceReadError as e:
            logger.warning("snapshot_load_failed", path=str(self.path), error=str(e))
            return StatisticsSnapshot()
        if raw is None:
            return StatisticsSnapshot()
        snapshot = StatisticsSnapshot.model_validate(raw)
        logger.info("snapshot_loaded", path=str(self.path), total_observed=snapshot.total_observed)
        return snapshot

    def _read(self) -> dict | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PersistenceReadError(str(e)) from e
        if not isinstance(data, dict):
            raise PersistenceReadError(f"expected a JSON object, got {type(data).__name__}")
        return data

    def save(self, snapshot: StatisticsSnapshot) -> None:
        payload = json.dumps(snapshot.to_document(), indent=2)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.path.parent, prefix=f".{self.path.name}.", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.error("snapshot_save_failed", path=str(self.path), error=str(e))
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceWriteError(str(e)) from e
