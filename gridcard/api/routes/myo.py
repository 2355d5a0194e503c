"""Upload recorded audio and turn it into a MYO (make-your-own) card."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from gridcard.api.responses import error_response
from gridcard.api.state import AppState, get_state
from gridcard.config import COVER_IMAGE_PATH, MYO_CARD_TITLE
from gridcard.core.media import MediaUploader, load_cover_image
from gridcard.core.publisher import publish_audio
from gridcard.core.store import MYO_CARD_ID_KEY
from gridcard.core.yoto_api import YotoApi
from gridcard.core.yoto_auth import require_access_token
from gridcard.models.card import Chapter, Track

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload-to-myo")
def upload_to_myo(
    audio: Optional[UploadFile] = File(None),
    title: str = Form(MYO_CARD_TITLE),
    updateExisting: str = Form("false"),
    state: AppState = Depends(get_state),
):
    """Upload audio, wait for transcoding, then create or update the stored MYO card."""
    token = require_access_token(state.store, state.session)
    if audio is None:
        return error_response(400, "No audio file provided")
    data = audio.file.read()
    if not data:
        return error_response(400, "Audio file is empty")
    logger.info("Uploading audio file: %s, size: %d bytes", audio.filename, len(data))

    api = YotoApi(state.session, token)
    uploader = MediaUploader(api, sleep=state.sleep)
    transcoded = uploader.upload_audio(
        data, content_type=audio.content_type or "audio/mpeg", filename=audio.filename
    )

    cover_url = None
    cover = load_cover_image(COVER_IMAGE_PATH)
    if cover:
        cover_url = uploader.upload_cover_image(*cover)

    existing_card_id = state.store.get(MYO_CARD_ID_KEY) if updateExisting.lower() == "true" else None
    chapters = [Chapter(title=title, tracks=[Track(title=title, audio=transcoded)])]
    job = publish_audio(api, title, chapters, card_id=existing_card_id, cover_url=cover_url)
    if job.card_id and not existing_card_id:
        state.store.set(MYO_CARD_ID_KEY, job.card_id)

    return {
        "success": True,
        "card": {"cardId": job.card_id, "title": title},
        "coverImage": "Uploaded" if cover_url else "None",
        "isUpdate": job.is_update,
        "message": (
            "MYO card updated successfully! Link it to your physical card in the Yoto app."
            if job.is_update
            else "MYO card created successfully! Link it to your physical card in the Yoto app."
        ),
    }
