"""Race card: fetch F1 data and script, publish to Yoto with text-to-speech, poll the job."""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from gridcard.api.responses import error_response
from gridcard.api.serializers import (
    chapter_to_dict,
    deployment_to_dict,
    driver_to_dict,
    job_status_to_dict,
    publish_job_to_dict,
    race_to_dict,
    team_to_dict,
    weather_to_dict,
)
from gridcard.api.state import AppState, get_state
from gridcard.config import (
    COVER_IMAGE_PATH,
    DEFAULT_VOICE_ID,
    OPENF1_MIN_INTERVAL_SEC,
    TTS_CARD_TITLE,
)
from gridcard.core.devices import deploy_to_all_devices
from gridcard.core.f1_client import F1Client
from gridcard.core.http import Throttle
from gridcard.core.jobs import check_job_status
from gridcard.core.media import MediaUploader, fetch_image, load_cover_image
from gridcard.core.publisher import publish_tts
from gridcard.core.script import build_race_chapters, compose_script, script_text
from gridcard.core.store import TTS_CARD_ID_KEY
from gridcard.core.timefmt import resolve_zone
from gridcard.core.weather_client import WeatherClient, lookup_timezone
from gridcard.core.yoto_api import YotoApi
from gridcard.core.yoto_auth import require_access_token
from gridcard.models.card import Chapter, Track
from gridcard.models.jobs import DeploymentResult

logger = logging.getLogger(__name__)

router = APIRouter()


class GenerateCardBody(BaseModel):
    timezone: Optional[str] = None


class TrackBody(BaseModel):
    title: str
    text: str
    icon: Optional[str] = None


class ChapterBody(BaseModel):
    title: str
    tracks: List[TrackBody]
    icon: Optional[str] = None


class SendToYotoBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chapters: List[ChapterBody] = Field(default_factory=list)
    title: str = TTS_CARD_TITLE
    update_existing: bool = Field(True, alias="updateExisting")
    voice_id: str = Field(DEFAULT_VOICE_ID, alias="voiceId")
    flag_url: Optional[str] = Field(None, alias="flagUrl")


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _to_chapters(items: List[ChapterBody]) -> List[Chapter]:
    return [
        Chapter(
            title=c.title,
            tracks=[Track(title=t.title, text=t.text, icon=t.icon) for t in c.tracks],
            icon=c.icon,
        )
        for c in items
    ]


@router.post("/generate-card")
def generate_card(
    request: Request,
    body: GenerateCardBody | None = Body(None),
    state: AppState = Depends(get_state),
):
    """Fetch race, standings and weather; return them with the card chapters and full script."""
    requested = body.timezone if body and body.timezone else lookup_timezone(state.session, _client_ip(request))
    tz_name = resolve_zone(requested).key
    now = datetime.now(timezone.utc)
    f1 = F1Client(state.session, throttle=Throttle(OPENF1_MIN_INTERVAL_SEC, sleep=state.sleep))
    race = f1.get_next_race(now=now, tz_name=tz_name)
    drivers = f1.get_driver_standings(now=now)
    teams = f1.get_team_standings(now=now)
    weather = WeatherClient(state.session).get_weather(race.location)

    script = compose_script(race, drivers, teams, weather)
    return {
        "success": True,
        "timezone": tz_name,
        "race": race_to_dict(race),
        "drivers": [driver_to_dict(d) for d in drivers],
        "teams": [team_to_dict(t) for t in teams],
        "weather": weather_to_dict(weather),
        "chapters": [chapter_to_dict(c) for c in build_race_chapters(race, weather)],
        "script": {
            "chapters": [chapter_to_dict(c) for c in script],
            "full": script_text(script),
        },
        "message": "Formula 1 data retrieved successfully!",
    }


@router.post("/send-to-yoto")
def send_to_yoto(body: SendToYotoBody, state: AppState = Depends(get_state)):
    """Publish chapters as a text-to-speech card, remember its id, and push it to devices."""
    token = require_access_token(state.store, state.session)
    if not body.chapters:
        return error_response(400, "No chapters data provided")

    api = YotoApi(state.session, token)
    uploader = MediaUploader(api, sleep=state.sleep)
    existing_card_id = state.store.get(TTS_CARD_ID_KEY) if body.update_existing else None

    cover_url = None
    cover = load_cover_image(COVER_IMAGE_PATH)
    if cover:
        cover_url = uploader.upload_cover_image(*cover)

    chapters = _to_chapters(body.chapters)
    flag = fetch_image(state.session, body.flag_url)
    if flag:
        icon = uploader.upload_icon(flag, "flag.png")
        if icon and chapters and not chapters[0].icon:
            chapters[0].icon = icon

    job = publish_tts(
        api,
        body.title,
        chapters,
        card_id=existing_card_id,
        cover_url=cover_url,
        voice_id=body.voice_id,
    )
    if job.card_id and job.card_id != existing_card_id:
        state.store.set(TTS_CARD_ID_KEY, job.card_id)

    deployment = None
    if job.card_id:
        try:
            deployment = deploy_to_all_devices(api, job.card_id)
        except Exception as e:
            # the card already exists; deployment problems are reported, not raised
            logger.exception("Failed to deploy to devices: %s", e)
            deployment = DeploymentResult(
                success_count=0, failed_count=0, total_devices=0, error=str(e)
            )

    return {
        "success": True,
        "yoto": publish_job_to_dict(job),
        "deviceDeployment": deployment_to_dict(deployment),
        "isUpdate": job.is_update,
        "message": (
            "Formula 1 card updated successfully! Changes will appear in your Yoto library shortly."
            if job.is_update
            else "Formula 1 card created successfully! Check your Yoto library."
        ),
    }


@router.get("/job-status")
def job_status(jobId: str | None = None, state: AppState = Depends(get_state)):
    """One status check of a text-to-speech job."""
    token = require_access_token(state.store, state.session)
    if not jobId:
        return error_response(400, "Missing jobId parameter")
    status = check_job_status(YotoApi(state.session, token), jobId)
    return {"success": True, "job": job_status_to_dict(status)}
