from .orchestrator import Pipeline, PipelineBusyError
from .progress import (
    COLLECT_STEPS,
    FULL_STEPS,
    PipelineProgress,
    PipelineStep,
    ProgressTracker,
    RunStatus,
    StepStatus,
)
from .results import CollectionResult, Outcome, PipelineResult, WeeklyResult

__all__ = [
    "COLLECT_STEPS",
    "CollectionResult",
    "FULL_STEPS",
    "Outcome",
    "Pipeline",
    "PipelineBusyError",
    "PipelineProgress",
    "PipelineResult",
    "PipelineStep",
    "ProgressTracker",
    "RunStatus",
    "StepStatus",
    "WeeklyResult",
]
