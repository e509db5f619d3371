"""URL and playlist import endpoints for the trackdrop Web API."""

import time
import uuid
from threading import Lock
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from loguru import logger

from trackdrop.context import AppContext
from trackdrop.domain.importing import (
    ErrorEvent,
    ImportEvent,
    ImportEventBus,
    ImportStep,
    PlaylistProgressEvent,
    StatusEvent,
)
from trackdrop.domain.library.providers import AcquisitionError

from ..deps import get_app_context
from ..schemas import (
    FailureInfo,
    ImportJobResponse,
    ImportJobStatusResponse,
    ImportPlaylistRequest,
    ImportResultResponse,
    ImportUrlRequest,
    JobStatus,
)

router = APIRouter()

# Job storage (in-memory for single-instance deployment)
# Jobs are cleaned up after JOB_TTL_SECONDS to prevent memory leaks
_jobs: dict[str, dict] = {}
_jobs_lock = Lock()
JOB_TTL_SECONDS = 3600  # 1 hour

# Overall job progress once each step is reached (downloading scales 0-80)
_STEP_PROGRESS = {
    ImportStep.METADATA: 80,
    ImportStep.AI_SEARCHING: 85,
    ImportStep.AI_CLASSIFYING: 95,
    ImportStep.DONE: 99,  # 100 is set when the job completes
}


# Job management functions


def _cleanup_old_jobs() -> None:
    """Remove jobs older than JOB_TTL_SECONDS. Must be called with _jobs_lock held."""
    cutoff = time.time() - JOB_TTL_SECONDS
    expired_ids = [
        job_id for job_id, job in _jobs.items() if job.get("created_at", 0) < cutoff
    ]
    for job_id in expired_ids:
        del _jobs[job_id]
    if expired_ids:
        logger.debug(f"Cleaned up {len(expired_ids)} expired import jobs")


def create_job() -> str:
    """Create a new import job and return its ID."""
    job_id = str(uuid.uuid4())
    with _jobs_lock:
        _cleanup_old_jobs()
        _jobs[job_id] = {
            "status": JobStatus.PENDING,
            "progress": 0,
            "current_step": None,
            "current_item": None,
            "total_items": None,
            "failures": [],
            "result": None,
            "error": None,
            "created_at": time.time(),
        }
    return job_id


def update_job(job_id: str, **kwargs) -> None:
    """Update job status and metadata."""
    with _jobs_lock:
        if job_id in _jobs:
            _jobs[job_id].update(kwargs)


def add_failure(job_id: str, track_id: str, error: str) -> None:
    with _jobs_lock:
        if job_id in _jobs:
            _jobs[job_id]["failures"].append({"track_id": track_id, "error": error})


def get_job(job_id: str) -> Optional[dict]:
    """Get job status and metadata."""
    with _jobs_lock:
        job = _jobs.get(job_id)
        if job:
            # Return copy without internal fields
            result = {k: v for k, v in job.items() if k != "created_at"}
            result["failures"] = [FailureInfo(**f) for f in result.get("failures", [])]
            return result
        return None


# Event listeners


def make_url_listener(job_id: str):
    """Map single-import status events onto job progress."""

    def listener(event: ImportEvent) -> None:
        if not isinstance(event, StatusEvent) or event.step == ImportStep.ERROR:
            return
        if event.step == ImportStep.DOWNLOADING:
            progress = int(event.percent * 0.8)
        else:
            progress = _STEP_PROGRESS[event.step]
        update_job(job_id, progress=progress, current_step=event.step.value)

    return listener


def make_playlist_listener(job_id: str):
    """Map playlist events onto job progress and live failures."""

    def listener(event: ImportEvent) -> None:
        if isinstance(event, PlaylistProgressEvent):
            update_job(
                job_id,
                progress=min(event.percent, 99),
                current_item=event.index + 1,
                total_items=event.total,
            )
        elif isinstance(event, StatusEvent):
            update_job(job_id, current_step=event.step.value)
        elif isinstance(event, ErrorEvent):
            add_failure(job_id, event.track_id, event.message)

    return listener


def job_bus(ctx: AppContext, listener) -> ImportEventBus:
    """A bus for one job that also forwards everything to the shared bus."""
    bus = ImportEventBus()
    bus.subscribe(ctx.events.publish)
    bus.subscribe(listener)
    return bus


# Background task workers


async def run_url_import(job_id: str, ctx: AppContext, url: str) -> None:
    """Background worker for single URL import."""
    update_job(job_id, status=JobStatus.RUNNING, progress=0)
    bus = job_bus(ctx, make_url_listener(job_id))
    try:
        result = await ctx.importer(bus).import_url(url)
        update_job(
            job_id,
            status=JobStatus.COMPLETED,
            progress=100,
            result=ImportResultResponse.from_result(result).model_dump(),
        )
        logger.info(f"Import job {job_id} completed: track {result.track_id} ({result.import_status})")
    except AcquisitionError as e:
        update_job(job_id, status=JobStatus.FAILED, error=str(e))
        logger.warning(f"Import job {job_id} failed: {e}")
    except Exception as e:
        update_job(job_id, status=JobStatus.FAILED, error=f"Unexpected error: {e}")
        logger.exception(f"Import job {job_id} failed with unexpected error")


async def run_playlist_import(job_id: str, ctx: AppContext, url: str) -> None:
    """Background worker for playlist import."""
    update_job(job_id, status=JobStatus.RUNNING, progress=0)
    bus = job_bus(ctx, make_playlist_listener(job_id))
    try:
        result = await ctx.playlist_importer(bus).import_playlist(url)
        update_job(
            job_id,
            status=JobStatus.COMPLETED,
            progress=100,
            result={"track_ids": result.track_ids, "count": result.count},
        )
        logger.info(f"Playlist import job {job_id} completed: {result.count} imported")
    except Exception as e:
        update_job(job_id, status=JobStatus.FAILED, error=f"Unexpected error: {e}")
        logger.exception(f"Playlist import job {job_id} failed with unexpected error")


# API Endpoints


@router.post("/import", response_model=ImportJobResponse)
async def import_url(
    req: ImportUrlRequest,
    background_tasks: BackgroundTasks,
    ctx: AppContext = Depends(get_app_context),
) -> ImportJobResponse:
    """Start background import of a single URL.

    Returns job_id immediately. Poll /import/{job_id} for status.
    """
    job_id = create_job()
    background_tasks.add_task(run_url_import, job_id, ctx, req.url)
    logger.info(f"Started import job {job_id} for URL: {req.url}")
    return ImportJobResponse(job_id=job_id, status=JobStatus.PENDING)


@router.get("/import/{job_id}", response_model=ImportJobStatusResponse)
async def get_import_status(job_id: str) -> ImportJobStatusResponse:
    """Get status of import job. Poll until status is COMPLETED or FAILED.

    Raises:
        HTTPException: 404 if job not found
    """
    job = get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return ImportJobStatusResponse(job_id=job_id, **job)


@router.post("/import-playlist", response_model=ImportJobResponse)
async def import_playlist(
    req: ImportPlaylistRequest,
    background_tasks: BackgroundTasks,
    ctx: AppContext = Depends(get_app_context),
) -> ImportJobResponse:
    """Start background import of every item of a playlist URL."""
    job_id = create_job()
    background_tasks.add_task(run_playlist_import, job_id, ctx, req.url)
    logger.info(f"Started playlist import job {job_id} for URL: {req.url}")
    return ImportJobResponse(job_id=job_id, status=JobStatus.PENDING)
