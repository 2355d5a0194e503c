"""Build Yoto playlist documents and submit them as card creation/update requests."""
import logging
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from gridcard.config import DEFAULT_VOICE_ID
from gridcard.core.errors import InvalidContent, UpstreamError
from gridcard.core.jobs import parse_job_state
from gridcard.core.yoto_api import YotoApi
from gridcard.models.card import Chapter, Track
from gridcard.models.jobs import JobProgress, JobState, PublishJob

logger = logging.getLogger(__name__)


class PublishMode(Enum):
    """Upstream submission mode. supports_update says whether a cardId updates in place."""

    TTS = ("tts", False)  # Labs text-to-speech jobs always allocate a new card
    AUDIO = ("audio", True)

    def __init__(self, label: str, supports_update: bool) -> None:
        self.label = label
        self.supports_update = supports_update


def _key(index: int) -> str:
    return f"{index + 1:02d}"


def _display(icon: Optional[str]) -> Optional[Dict[str, str]]:
    return {"icon16x16": icon} if icon else None


def _track_doc(mode: PublishMode, track: Track, index: int, voice_id: str) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "key": _key(index),
        "title": track.title,
        "overlayLabel": str(index + 1),
    }
    if mode is PublishMode.TTS:
        if not track.text:
            raise InvalidContent(f"Track {track.title!r} has no text for text-to-speech")
        doc.update(trackUrl=track.text, type="elevenlabs", voiceId=voice_id)
    else:
        if track.audio is None:
            raise InvalidContent(f"Track {track.title!r} has no uploaded audio")
        audio = track.audio
        doc.update(trackUrl=audio.track_url, type="audio")
        for field, value in (
            ("format", audio.format),
            ("duration", audio.duration),
            ("fileSize", audio.file_size),
            ("channels", audio.channels),
        ):
            if value is not None:
                doc[field] = value
    display = _display(track.icon)
    if display:
        doc["display"] = display
    return doc


def _chapter_doc(mode: PublishMode, chapter: Chapter, index: int, voice_id: str) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "key": _key(index),
        "title": chapter.title,
        "overlayLabel": str(index + 1),
        "tracks": [_track_doc(mode, t, i, voice_id) for i, t in enumerate(chapter.tracks)],
    }
    display = _display(chapter.icon)
    if display:
        doc["display"] = display
    return doc


def build_document(
    mode: PublishMode,
    title: str,
    chapters: Sequence[Chapter],
    *,
    card_id: Optional[str] = None,
    cover_url: Optional[str] = None,
    voice_id: str = DEFAULT_VOICE_ID,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Nested card document. cardId is set only when given and the mode can update in place."""
    if not chapters:
        raise InvalidContent("A card needs at least one chapter")
    today = today or date.today()
    metadata: Dict[str, Any] = {
        "title": title,
        "description": f"F1 Update - {today.isoformat()}",
    }
    if cover_url:
        metadata["cover"] = {"imageL": cover_url}
    doc: Dict[str, Any] = {
        "title": title,
        "content": {"chapters": [_chapter_doc(mode, c, i, voice_id) for i, c in enumerate(chapters)]},
        "metadata": metadata,
    }
    if card_id and mode.supports_update:
        doc["cardId"] = card_id
    return doc


def publish_tts(
    api: YotoApi,
    title: str,
    chapters: Sequence[Chapter],
    *,
    card_id: Optional[str] = None,
    cover_url: Optional[str] = None,
    voice_id: str = DEFAULT_VOICE_ID,
    today: Optional[date] = None,
) -> PublishJob:
    """Submit a Labs text-to-speech job and return at once with its id."""
    mode = PublishMode.TTS
    if card_id and not mode.supports_update:
        logger.info("TTS jobs cannot update card %s in place; a new card will be created", card_id)
    doc = build_document(
        mode, title, chapters, card_id=card_id, cover_url=cover_url, voice_id=voice_id, today=today
    )
    body = api.post_json("/content/job", doc, params={"voiceId": voice_id}, labs=True)
    job = (body or {}).get("job") or {}
    if not job.get("jobId"):
        raise UpstreamError("Text-to-speech job response has no jobId")
    logger.info("Text-to-speech job created: %s", job.get("jobId"))
    is_update = "cardId" in doc
    progress = job.get("progress") or {}
    return PublishJob(
        job_id=job["jobId"],
        card_id=job.get("cardId") or doc.get("cardId"),
        status=parse_job_state(job.get("status")),
        progress=JobProgress(
            completed=int(progress.get("completed") or 0),
            total=int(progress.get("total") or 0),
        ),
        is_update=is_update,
        message=(
            "Card update job started successfully!"
            if is_update
            else "New card creation job started successfully!"
        ),
    )


def publish_audio(
    api: YotoApi,
    title: str,
    chapters: Sequence[Chapter],
    *,
    card_id: Optional[str] = None,
    cover_url: Optional[str] = None,
    today: Optional[date] = None,
) -> PublishJob:
    """Create or update a card from transcoded audio. The content API answers synchronously."""
    doc = build_document(
        PublishMode.AUDIO, title, chapters, card_id=card_id, cover_url=cover_url, today=today
    )
    body = api.post_json("/content", doc)
    card = (body or {}).get("card") or {}
    new_card_id = card.get("cardId") or doc.get("cardId")
    if not new_card_id:
        raise UpstreamError("Content response has no cardId")
    is_update = "cardId" in doc
    logger.info("%s audio card %s", "Updated" if is_update else "Created", new_card_id)
    return PublishJob(
        job_id=None,
        card_id=new_card_id,
        status=JobState.COMPLETED,
        is_update=is_update,
        message="Card updated successfully!" if is_update else "Card created successfully!",
    )
