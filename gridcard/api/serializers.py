"""Map models to the camelCase JSON shapes the web UI consumes."""
from typing import Any, Dict, Optional

from gridcard.models.card import Chapter, Track
from gridcard.models.jobs import DeploymentResult, JobProgress, JobStatus, PublishJob
from gridcard.models.race import DriverStanding, RaceRecord, TeamStanding, WeatherReport


def race_to_dict(race: RaceRecord) -> Dict[str, Any]:
    return {
        "name": race.name,
        "location": race.location,
        "country": race.country,
        "circuit": race.circuit,
        "circuitType": race.circuit_type,
        "dateStart": race.date_start,
        "date": race.date,
        "time": race.time,
        "year": race.year,
        "meetingKey": race.meeting_key,
        "sessionKey": race.session_key,
        "countryFlagUrl": race.country_flag_url,
    }


def driver_to_dict(d: DriverStanding) -> Dict[str, Any]:
    return {"position": d.position, "driver": d.driver, "team": d.team, "points": d.points}


def team_to_dict(t: TeamStanding) -> Dict[str, Any]:
    return {"position": t.position, "team": t.team, "points": t.points}


def weather_to_dict(w: Optional[WeatherReport]) -> Optional[Dict[str, Any]]:
    if w is None:
        return None
    return {
        "location": w.location,
        "temperature": w.temperature,
        "description": w.description,
        "humidity": w.humidity,
        "windSpeed": w.wind_speed,
    }


def _track_to_dict(t: Track) -> Dict[str, Any]:
    out: Dict[str, Any] = {"title": t.title, "text": t.text, "icon": t.icon}
    if t.audio is not None:
        out["trackUrl"] = t.audio.track_url
    return out


def chapter_to_dict(c: Chapter) -> Dict[str, Any]:
    return {"title": c.title, "icon": c.icon, "tracks": [_track_to_dict(t) for t in c.tracks]}


def _progress(p: JobProgress) -> Dict[str, int]:
    return {"completed": p.completed, "total": p.total}


def publish_job_to_dict(job: PublishJob) -> Dict[str, Any]:
    return {
        "jobId": job.job_id,
        "cardId": job.card_id,
        "status": job.status.value,
        "progress": _progress(job.progress),
        "message": job.message,
    }


def job_status_to_dict(status: JobStatus) -> Dict[str, Any]:
    return {
        "jobId": status.job_id,
        "status": status.status.value,
        "done": status.status.is_terminal,
        "progress": _progress(status.progress),
        "cardId": status.card_id,
        "upstreamStatus": status.raw.get("status"),
    }


def deployment_to_dict(result: Optional[DeploymentResult]) -> Optional[Dict[str, Any]]:
    if result is None:
        return None
    out: Dict[str, Any] = {
        "success": result.success_count,
        "failed": result.failed_count,
        "total": result.total_devices,
        "devices": [
            {"deviceId": o.device_id, "name": o.name, "ok": o.ok, "error": o.error}
            for o in result.outcomes
        ],
    }
    if result.error:
        out["error"] = result.error
    return out
