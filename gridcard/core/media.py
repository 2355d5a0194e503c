"""Media uploads to Yoto: cover image, 16x16 icons, and audio with transcoding.

Audio goes through three steps: request a pre-signed URL, PUT the bytes, then
poll the transcode status until a sha256 digest appears or the attempt budget
runs out. Image uploads are best-effort; a None reference means "leave the
field out" and never aborts a publish.
"""
import hashlib
import logging
import mimetypes
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import requests

from gridcard.config import (
    FETCH_TIMEOUT_SEC,
    TRANSCODE_MAX_ATTEMPTS,
    TRANSCODE_POLL_INTERVAL_SEC,
)
from gridcard.core.errors import GridcardError, TranscodeTimeout, UpstreamError
from gridcard.core.http import send
from gridcard.core.yoto_api import YotoApi
from gridcard.models.media import TranscodedAudio, UploadSession, UploadStatus

logger = logging.getLogger(__name__)


def load_cover_image(path: Path) -> Optional[Tuple[bytes, str]]:
    """Read a local image; returns (bytes, content type) or None if missing."""
    try:
        data = path.read_bytes()
    except OSError as e:
        logger.info("No cover image at %s: %s", path, e)
        return None
    content_type = "image/png" if path.suffix.lower() == ".png" else "image/jpeg"
    return data, content_type


def fetch_image(session: requests.Session, url: Optional[str], timeout: float = FETCH_TIMEOUT_SEC) -> Optional[bytes]:
    """Download a remote image (e.g. a country flag); None on any failure."""
    if not url:
        return None
    try:
        return send(session, "GET", url, timeout=timeout).content
    except UpstreamError as e:
        logger.info("Could not download image %s: %s", url, e)
        return None


def _transcoded_from(transcode: Dict[str, Any]) -> TranscodedAudio:
    info = transcode.get("transcodedInfo") or {}
    return TranscodedAudio(
        sha256=transcode["transcodedSha256"],
        duration=info.get("duration"),
        file_size=info.get("fileSize"),
        channels=info.get("channels"),
        format=info.get("format"),
    )


class MediaUploader:
    """Uploads media with one YotoApi. sleep is injectable so polling runs without delays in tests."""

    def __init__(
        self,
        api: YotoApi,
        *,
        poll_interval: float = TRANSCODE_POLL_INTERVAL_SEC,
        max_attempts: int = TRANSCODE_MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.api = api
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    def upload_cover_image(self, data: bytes, content_type: str = "image/png") -> Optional[str]:
        """Upload card art; returns its media URL, or None if the upload failed."""
        try:
            body = self.api.post_bytes(
                "/media/coverImage/user/me/upload",
                data,
                content_type,
                params={"autoconvert": "true"},
            )
            media_url = (body.get("coverImage") or {}).get("mediaUrl")
        except (GridcardError, AttributeError) as e:
            logger.warning("Cover image upload failed: %s", e)
            return None
        if not media_url:
            logger.warning("Cover image upload returned no mediaUrl")
        return media_url or None

    def upload_icon(self, data: bytes, filename: str = "icon.png") -> Optional[str]:
        """Upload a 16x16 display icon; returns a 'yoto:#<mediaId>' reference or None."""
        content_type = mimetypes.guess_type(filename)[0] or "image/png"
        try:
            body = self.api.post_bytes(
                "/media/displayIcons/user/me/upload",
                data,
                content_type,
                params={"autoConvert": "true", "filename": filename},
            )
            media_id = (body.get("displayIcon") or {}).get("mediaId")
        except (GridcardError, AttributeError) as e:
            logger.warning("Icon upload failed for %s: %s", filename, e)
            return None
        return f"yoto:#{media_id}" if media_id else None

    def request_upload(self, data: bytes, filename: Optional[str] = None) -> UploadSession:
        """Ask for a pre-signed URL. The URL is None when Yoto already has these bytes."""
        params = {"sha256": hashlib.sha256(data).hexdigest()}
        if filename:
            params["filename"] = filename
        body = self.api.get_json("/media/transcode/audio/uploadUrl", params=params)
        upload = body.get("upload") or {}
        if not upload.get("uploadId"):
            raise UpstreamError("Upload URL response has no uploadId")
        return UploadSession(upload_id=upload["uploadId"], upload_url=upload.get("uploadUrl"))

    def wait_for_transcoding(self, upload: UploadSession, loudnorm: bool = False) -> TranscodedAudio:
        """Poll until the transcoded digest appears; raises TranscodeTimeout after max_attempts."""
        upload.status = UploadStatus.TRANSCODING
        path = f"/media/upload/{upload.upload_id}/transcoded"
        params = {"loudnorm": "true" if loudnorm else "false"}
        for attempt in range(1, self.max_attempts + 1):
            upload.attempts = attempt
            try:
                body = self.api.get_json(path, params=params)
            except UpstreamError as e:
                # 404 until the transcode record exists
                if e.status != 404:
                    upload.status = UploadStatus.FAILED
                    raise
                body = {}
            transcode = (body or {}).get("transcode") or {}
            if transcode.get("transcodedSha256"):
                upload.status = UploadStatus.TRANSCODED
                logger.info("Transcoded upload %s after %d attempt(s)", upload.upload_id, attempt)
                return _transcoded_from(transcode)
            if attempt < self.max_attempts:
                self._sleep(self.poll_interval)
        upload.status = UploadStatus.FAILED
        raise TranscodeTimeout(upload.upload_id, self.max_attempts)

    def upload_audio(
        self,
        data: bytes,
        content_type: str = "audio/mpeg",
        filename: Optional[str] = None,
    ) -> TranscodedAudio:
        """Upload raw audio and wait for the transcoded asset."""
        upload = self.request_upload(data, filename)
        if upload.upload_url:
            logger.info("Uploading %d bytes of audio (upload %s)", len(data), upload.upload_id)
            self.api.put_presigned(upload.upload_url, data, content_type)
        else:
            logger.info("Audio already on Yoto (upload %s), skipping PUT", upload.upload_id)
        upload.status = UploadStatus.UPLOADED
        return self.wait_for_transcoding(upload)
