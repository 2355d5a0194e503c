"""Publish jobs, job status and device deployment results."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class JobState(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED)


@dataclass
class JobProgress:
    completed: int = 0
    total: int = 0


@dataclass
class PublishJob:
    """Submitted card creation/update. card_id must be persisted by the caller."""
    job_id: Optional[str]
    card_id: Optional[str]
    status: JobState
    progress: JobProgress = field(default_factory=JobProgress)
    is_update: bool = False
    message: str = ""


@dataclass
class JobStatus:
    """One status query of a TTS job."""
    job_id: str
    status: JobState
    progress: JobProgress
    card_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Device:
    device_id: str
    name: str = ""
    online: Optional[bool] = None


@dataclass
class DeviceOutcome:
    device_id: str
    name: str
    ok: bool
    error: Optional[str] = None


@dataclass
class DeploymentResult:
    """Per-publish fan-out summary; success_count + failed_count == total_devices."""
    success_count: int
    failed_count: int
    total_devices: int
    outcomes: List[DeviceOutcome] = field(default_factory=list)
    error: Optional[str] = None
