"""Upload session state for media sent to the Yoto platform."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class UploadStatus(str, Enum):
    REQUESTED = "requested"
    UPLOADED = "uploaded"
    TRANSCODING = "transcoding"
    TRANSCODED = "transcoded"
    FAILED = "failed"


@dataclass
class UploadSession:
    """Audio upload in flight: pre-signed URL plus the id used to poll transcoding."""
    upload_id: str
    upload_url: Optional[str]
    status: UploadStatus = UploadStatus.REQUESTED
    attempts: int = 0


@dataclass(frozen=True)
class TranscodedAudio:
    """Result of a finished transcode; sha256 identifies the asset in playlists."""
    sha256: str
    duration: Optional[float] = None
    file_size: Optional[int] = None
    channels: Optional[str] = None
    format: Optional[str] = None

    @property
    def track_url(self) -> str:
        return f"yoto:#{self.sha256}"
