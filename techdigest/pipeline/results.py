"""Result types returned by the pipeline triggers."""

from dataclasses import asdict, dataclass, field
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    """Result of a best-effort step.

    `skipped` separates "ran and produced nothing" from "failed or was
    not attempted"; `reason` says why.
    """

    value: T
    skipped: bool = False
    reason: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def skip(cls, default: T, reason: str) -> "Outcome[T]":
        return cls(value=default, skipped=True, reason=reason)


@dataclass
class PipelineResult:
    success: bool = True
    articles_collected: int = 0
    articles_after_dedup: int = 0
    articles_processed: int = 0
    articles_saved: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    telegram_sent: int = 0
    breaking_alerts_sent: int = 0
    duration: str = "0.0s"
    subject: Optional[str] = None
    skipped: dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CollectionResult:
    success: bool = True
    collected: int = 0
    saved: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class WeeklyResult:
    success: bool = True
    emails_sent: int = 0
    emails_failed: int = 0
    articles_count: int = 0
    duration: str = "0.0s"
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
