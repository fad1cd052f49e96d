"""Caller-owned run state that keeps two UPH calculations from interleaving."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone

from uph_pipeline.utils.types import PipelineStatus

logger = logging.getLogger(__name__)


class CalculationInProgressError(RuntimeError):
    """Raised when a calculation starts while another one holds the run state."""


@dataclass
class RunState:
    status: PipelineStatus = PipelineStatus.PENDING
    run_id: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    last_summary_count: int | None = None

    @property
    def is_calculating(self) -> bool:
        return self.status == PipelineStatus.RUNNING

    @contextmanager
    def calculating(self, run_id: str) -> Iterator["RunState"]:
        """Hold the state as RUNNING for the duration of one calculation."""
        if self.is_calculating:
            raise CalculationInProgressError(
                f"UPH calculation {self.run_id} is already running, rejected {run_id}"
            )

        self.status = PipelineStatus.RUNNING
        self.run_id = run_id
        self.started_at = datetime.now(timezone.utc)
        self.finished_at = None
        try:
            yield self
        except Exception:
            self.status = PipelineStatus.FAILED
            logger.error(f"UPH calculation {run_id} failed")
            raise
        else:
            self.status = PipelineStatus.SUCCESS
        finally:
            self.finished_at = datetime.now(timezone.utc)
