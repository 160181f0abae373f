"""Archival gatekeeper — moves finished pipelines from live state to history.

Given a batch of live snapshots, the gatekeeper selects those in a
terminal status that are not yet archived and shapes one
``HistoryRecord`` for each.  Archival is at-most-once per pipeline id:

- Snapshots with no usable id are dropped (they could never be
  deduplicated later).
- Ids the history lookup already knows are skipped.
- Within one batch, the first occurrence of an id wins.

The gatekeeper does not write anything itself.  The caller persists the
returned records, and must serialize gatekeeper runs against the same
history store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from opsboard.core.timeutil import format_duration, parse_timestamp, utc_now
from opsboard.models.history import HistoryRecord
from opsboard.models.pipeline import DEFAULT_PIPELINE_NAME, PipelineSnapshot

logger = logging.getLogger(__name__)

UNKNOWN_PIPELINE_ID = "unknown"

HistoryLookup = Callable[[str], bool]


class ArchivalGatekeeper:
    """Decides which terminal snapshots become history records.

    Parameters
    ----------
    clock:
        Returns the current time; used for ``completed_at`` when the
        caller does not pass ``now`` explicitly.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def archive(
        self,
        snapshots: Iterable[PipelineSnapshot],
        history_lookup: HistoryLookup,
        now: datetime | None = None,
    ) -> list[HistoryRecord]:
        """Return the history records to persist for this batch.

        Records come back in the relative order of their snapshots.
        Errors raised by *history_lookup* propagate unchanged.
        """
        completed_at = parse_timestamp(now) if now is not None else self._clock()
        seen: set[str] = set()
        records: list[HistoryRecord] = []

        for snapshot in snapshots:
            if not snapshot.is_terminal:
                continue

            pipeline_id = snapshot.id
            if not pipeline_id or pipeline_id == UNKNOWN_PIPELINE_ID:
                logger.debug(
                    "Dropping terminal pipeline %r without a usable id", snapshot.name
                )
                continue

            if pipeline_id in seen:
                logger.warning(
                    "Duplicate terminal pipeline %s in one batch; keeping the first",
                    pipeline_id,
                )
                continue
            seen.add(pipeline_id)

            if history_lookup(pipeline_id):
                logger.info("Pipeline %s already archived, skipping", pipeline_id)
                continue

            records.append(self.build_record(snapshot, completed_at))

        return records

    @staticmethod
    def build_record(
        snapshot: PipelineSnapshot, completed_at: datetime
    ) -> HistoryRecord:
        """Shape a single history record from a terminal snapshot."""
        return HistoryRecord(
            pipeline_id=snapshot.id,
            name=snapshot.name or DEFAULT_PIPELINE_NAME,
            stages=list(snapshot.stages),
            completed_stages=list(snapshot.completed_stages),
            started_at=snapshot.started_at,
            completed_at=completed_at,
            status=snapshot.status,
            duration=format_duration(snapshot.started_at, completed_at),
            tasks=list(snapshot.tasks) if snapshot.tasks is not None else None,
        )
