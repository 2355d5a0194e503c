"""Single-shot status query for Labs text-to-speech jobs. Callers repeat it (the UI polls every 3s)."""
from typing import Optional

from gridcard.core.errors import UpstreamError
from gridcard.core.yoto_api import YotoApi
from gridcard.models.jobs import JobProgress, JobState, JobStatus

_STATE_ALIASES = {
    "queued": JobState.QUEUED,
    "pending": JobState.QUEUED,
    "created": JobState.QUEUED,
    "processing": JobState.PROCESSING,
    "running": JobState.PROCESSING,
    "in_progress": JobState.PROCESSING,
    "completed": JobState.COMPLETED,
    "complete": JobState.COMPLETED,
    "done": JobState.COMPLETED,
    "succeeded": JobState.COMPLETED,
    "failed": JobState.FAILED,
    "error": JobState.FAILED,
}


def parse_job_state(value: Optional[str]) -> JobState:
    """Map an upstream status string onto JobState; unknown values count as still processing."""
    if not value:
        return JobState.QUEUED
    return _STATE_ALIASES.get(value.strip().lower().replace("-", "_"), JobState.PROCESSING)


def check_job_status(api: YotoApi, job_id: str) -> JobStatus:
    body = api.get_json(f"/content/job/{job_id}", labs=True)
    job = (body or {}).get("job")
    if not isinstance(job, dict):
        raise UpstreamError(f"Job status response for {job_id} has no job")
    progress = job.get("progress") or {}
    return JobStatus(
        job_id=job.get("jobId") or job_id,
        status=parse_job_state(job.get("status")),
        progress=JobProgress(
            completed=int(progress.get("completed") or 0),
            total=int(progress.get("total") or 0),
        ),
        card_id=job.get("cardId"),
        raw=job,
    )
