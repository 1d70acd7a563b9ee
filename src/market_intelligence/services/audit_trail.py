"""Audit Trail -- append-only, serializable record of one run.

Every pipeline stage and every agent outcome appends one ``AuditEntry``.
Entries are frozen and their ``data`` is converted to JSON primitives at
record time, so the trail can always be exported and reloaded.
"""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Mapping, Sequence
from typing import Any

from market_intelligence.domain.values import AuditEntry
from market_intelligence.infrastructure.serialization import to_jsonable


class AuditTrail:
    """Ordered log of ``AuditEntry`` objects for one analysis run.

    Entries are never mutated or removed; ``record`` is the only write.
    """

    def __init__(self, run_id: str = "") -> None:
        self.run_id = run_id
        self._entries: list[AuditEntry] = []
        self._lock = threading.Lock()

    def record(
        self,
        stage: str,
        data: Mapping[str, Any] | None = None,
        errors: Sequence[Any] = (),
        duration: float = 0.0,
    ) -> AuditEntry:
        """Append an entry for *stage* and return it."""
        entry = AuditEntry(
            stage=stage,
            timestamp=time.time(),
            duration=duration,
            data=to_jsonable(dict(data or {})),
            errors=tuple(to_jsonable(e) for e in errors),
        )
        with self._lock:
            self._entries.append(entry)
        return entry

    def query(
        self,
        stage: str | None = None,
        errors_only: bool = False,
        prefix: str | None = None,
    ) -> list[AuditEntry]:
        """Entries matching *stage* exactly, or *prefix*, in record order."""
        with self._lock:
            results = list(self._entries)
        if stage is not None:
            results = [e for e in results if e.stage == stage]
        if prefix is not None:
            results = [e for e in results if e.stage.startswith(prefix)]
        if errors_only:
            results = [e for e in results if e.errors]
        return results

    @property
    def entries(self) -> list[AuditEntry]:
        with self._lock:
            return list(self._entries)

    @property
    def stages(self) -> list[str]:
        return [e.stage for e in self.entries]

    @property
    def total_duration(self) -> float:
        return sum(e.duration for e in self.entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self):
        return iter(self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "entries": [
                {
                    "entry_id": e.entry_id,
                    "stage": e.stage,
                    "timestamp": e.timestamp,
                    "duration": e.duration,
                    "data": dict(e.data),
                    "errors": list(e.errors),
                }
                for e in self.entries
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AuditTrail:
        trail = cls(run_id=str(data.get("run_id", "")))
        for d in data.get("entries", []):
            trail._entries.append(
                AuditEntry(
                    stage=d["stage"],
                    timestamp=d.get("timestamp", 0.0),
                    duration=d.get("duration", 0.0),
                    data=d.get("data", {}),
                    errors=tuple(d.get("errors", ())),
                    entry_id=d.get("entry_id", ""),
                )
            )
        return trail

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> AuditTrail:
        return cls.from_dict(json.loads(json_str))
