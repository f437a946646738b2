"""Live progress for pipeline runs.

A ProgressTracker owns the snapshot of the current run and publishes a
copy of it to every observer on each change. Each Pipeline instance has
its own tracker, so several pipelines (tests, tenants) can coexist.
"""

import asyncio
import copy
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Iterator, Literal, Optional

from ..collectors.base import utc_now
from ..utils import get_logger

logger = get_logger(__name__)

PENDING, RUNNING, DONE, ERROR = "pending", "running", "done", "error"

StepStatus = Literal["pending", "running", "done", "error"]
RunStatus = Literal["running", "done", "error"]

FULL_STEPS = [
    ("collect_rss", "Collecting RSS feeds"),
    ("collect_hn", "Fetching Hacker News"),
    ("collect_reddit", "Fetching Reddit"),
    ("dedup", "Deduplicating articles"),
    ("filter", "Filtering recent (24h)"),
    ("enrich", "AI processing (summarize, rank, insights)"),
    ("breaking", "Checking breaking news alerts"),
    ("save", "Saving to database"),
    ("github", "Fetching GitHub Trending"),
    ("compose", "Composing newsletter"),
    ("email", "Sending emails"),
    ("telegram", "Sending Telegram"),
]

COLLECT_STEPS = [
    ("collect_rss", "Collecting RSS feeds"),
    ("collect_hn", "Fetching Hacker News"),
    ("dedup", "Deduplicating articles"),
    ("save", "Saving to database"),
]

STEPS_BY_MODE = {"full": FULL_STEPS, "collect": COLLECT_STEPS}

Observer = Callable[["PipelineProgress"], Any]


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class PipelineStep:
    id: str
    label: str
    status: StepStatus = PENDING
    detail: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "status": self.status,
            "detail": self.detail,
            "started_at": _iso(self.started_at),
            "finished_at": _iso(self.finished_at),
        }


@dataclass
class PipelineProgress:
    run_id: str
    mode: str
    status: RunStatus = RUNNING
    steps: list[PipelineStep] = field(default_factory=list)
    current_step: int = -1
    started_at: datetime = field(default_factory=utc_now)
    finished_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (DONE, ERROR)

    def step(self, step_id: str) -> Optional[PipelineStep]:
        return next((s for s in self.steps if s.id == step_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "mode": self.mode,
            "status": self.status,
            "steps": [s.to_dict() for s in self.steps],
            "current_step": self.current_step,
            "started_at": _iso(self.started_at),
            "finished_at": _iso(self.finished_at),
            "error": self.error,
        }


class StepHandle:
    """Yielded by ProgressTracker.step(); set `detail`, or call fail()."""

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        self.error: Optional[str] = None

    def fail(self, message: str) -> None:
        self.error = message


class ProgressTracker:
    """Progress state machine and observer fan-out for one pipeline."""

    def __init__(self):
        self._progress: Optional[PipelineProgress] = None
        self._observers: dict[int, Observer] = {}
        self._next_token = 0

    def get_progress(self) -> Optional[PipelineProgress]:
        """Copy of the current snapshot, or None before the first run."""
        return copy.deepcopy(self._progress)

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; it immediately receives the current snapshot.

        Observers are called synchronously inside every transition, on the
        pipeline's event loop, so they must return quickly and never block.
        Slow consumers should read from stream() instead.
        """
        token = self._next_token
        self._next_token += 1
        self._observers[token] = observer
        if self._progress is not None:
            self._notify(token, observer)

        def unsubscribe() -> None:
            self._observers.pop(token, None)

        return unsubscribe

    async def stream(self) -> AsyncIterator[PipelineProgress]:
        """Yield snapshots until the run reaches a terminal state."""
        queue: asyncio.Queue[PipelineProgress] = asyncio.Queue()
        unsubscribe = self.subscribe(queue.put_nowait)
        try:
            while True:
                snapshot = await queue.get()
                yield snapshot
                if snapshot.is_terminal:
                    return
        finally:
            unsubscribe()

    def _notify(self, token: int, observer: Observer) -> None:
        try:
            observer(copy.deepcopy(self._progress))
        except Exception as e:
            logger.warning(f"Dropping progress observer after error: {e}")
            self._observers.pop(token, None)

    def _emit(self) -> None:
        for token, observer in list(self._observers.items()):
            self._notify(token, observer)

    def start(self, mode: str) -> str:
        """Begin a new run, replacing the previous snapshot."""
        if mode not in STEPS_BY_MODE:
            raise ValueError(f"Unknown pipeline mode: {mode}")
        run_id = f"run_{int(time.time() * 1000)}"
        self._progress = PipelineProgress(
            run_id=run_id,
            mode=mode,
            steps=[PipelineStep(id=step_id, label=label) for step_id, label in STEPS_BY_MODE[mode]],
        )
        self._emit()
        return run_id

    def _transition(self, step_id: str, expected: str, status: str, detail: Optional[str]) -> bool:
        progress = self._progress
        if progress is None or progress.is_terminal:
            logger.warning(f"Ignoring {status} for step '{step_id}': no active run")
            return False

        index = next((i for i, s in enumerate(progress.steps) if s.id == step_id), -1)
        if index == -1:
            logger.warning(f"Ignoring {status} for unknown step '{step_id}'")
            return False

        step = progress.steps[index]
        if step.status != expected:
            logger.warning(f"Ignoring {step.status} -> {status} for step '{step_id}'")
            return False

        step.status = status
        if detail:
            step.detail = detail
        if status == RUNNING:
            step.started_at = utc_now()
            progress.current_step = index
        else:
            step.finished_at = utc_now()

        self._emit()
        return True

    def step_start(self, step_id: str, detail: Optional[str] = None) -> bool:
        return self._transition(step_id, PENDING, RUNNING, detail)

    def step_done(self, step_id: str, detail: Optional[str] = None) -> bool:
        return self._transition(step_id, RUNNING, DONE, detail)

    def step_error(self, step_id: str, detail: Optional[str] = None) -> bool:
        return self._transition(step_id, RUNNING, ERROR, detail)

    def finish(self, error: Optional[str] = None) -> None:
        """Close the run as done, or as error when a message is given."""
        progress = self._progress
        if progress is None or progress.is_terminal:
            logger.warning("Ignoring finish: no active run")
            return
        progress.status = ERROR if error else DONE
        progress.finished_at = utc_now()
        progress.error = error
        self._emit()

    @contextmanager
    def step(self, step_id: str, detail: Optional[str] = None) -> Iterator[StepHandle]:
        """Run a block as one step: done on exit, error if it raises or fail() was called."""
        self.step_start(step_id, detail)
        handle = StepHandle(detail)
        try:
            yield handle
        except Exception as e:
            self.step_error(step_id, str(e))
            raise
        if handle.error is not None:
            self.step_error(step_id, handle.error)
        else:
            self.step_done(step_id, handle.detail)
