"""Scrape job model — audit log and progress record per directory scrape."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime, Text

from affiliate_hub.exceptions import InvalidJobTransition
from affiliate_hub.models.base import Base, UUIDMixin

JOB_RUNNING = "running"
JOB_SUCCESS = "success"
JOB_ERROR = "error"
TERMINAL_STATUSES = (JOB_SUCCESS, JOB_ERROR)

MAX_ERROR_LENGTH = 2000


class ScrapeJob(UUIDMixin, Base):
    __tablename__ = "scrape_jobs"

    software = Column(String(100), nullable=False, default="all")
    status = Column(String(20), nullable=False, default=JOB_RUNNING, index=True)  # running, success, error
    programs_found = Column(Integer, nullable=False, default=0)
    current_progress = Column(String(255))
    started_at = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True))
    error = Column(Text)

    @classmethod
    def start(cls, software: str | None = None) -> "ScrapeJob":
        """New job in the running state, stamped now."""
        return cls(
            id=uuid.uuid4(),
            software=software or "all",
            status=JOB_RUNNING,
            programs_found=0,
            started_at=datetime.now(timezone.utc),
        )

    @property
    def is_running(self) -> bool:
        return self.status == JOB_RUNNING

    def record_progress(self, saved: int, total: int) -> None:
        """Write a "Saved N/M programs" checkpoint. Never moves the counter backwards."""
        if not self.is_running:
            raise InvalidJobTransition(self.status, JOB_RUNNING)
        saved = max(saved, self.programs_found or 0)
        self.programs_found = saved
        self.current_progress = f"Saved {saved}/{total} programs"

    def transition(self, status: str, *, programs_found: int | None = None, error: str | None = None) -> None:
        """Move a running job to a terminal state.

        Only ``running -> success`` and ``running -> error`` are legal; a job
        that already finished keeps its outcome.
        """
        if not self.is_running or status not in TERMINAL_STATUSES:
            raise InvalidJobTransition(self.status, status)

        self.status = status
        self.completed_at = datetime.now(timezone.utc)
        if programs_found is not None:
            self.programs_found = programs_found
        if error is not None:
            self.error = error[:MAX_ERROR_LENGTH]
