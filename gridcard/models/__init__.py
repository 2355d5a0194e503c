"""Data models for races, playlist content, uploads, and jobs."""
from gridcard.models.card import Chapter, Track
from gridcard.models.jobs import (
    DeploymentResult,
    Device,
    DeviceOutcome,
    JobProgress,
    JobState,
    JobStatus,
    PublishJob,
)
from gridcard.models.media import TranscodedAudio, UploadSession, UploadStatus
from gridcard.models.race import DriverStanding, RaceRecord, TeamStanding, WeatherReport

__all__ = [
    "Chapter",
    "Track",
    "DeploymentResult",
    "Device",
    "DeviceOutcome",
    "JobProgress",
    "JobState",
    "JobStatus",
    "PublishJob",
    "TranscodedAudio",
    "UploadSession",
    "UploadStatus",
    "DriverStanding",
    "RaceRecord",
    "TeamStanding",
    "WeatherReport",
]
