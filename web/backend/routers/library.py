from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from trackdrop.context import AppContext
from trackdrop.domain.importing import TrackNotFoundError

from ..deps import get_app_context
from ..schemas import CreditsResponse, EnrichResponse, SetCreditsRequest, TrackResponse

router = APIRouter()


@router.get("/tracks/{track_id}", response_model=TrackResponse)
async def get_track(track_id: str, ctx: AppContext = Depends(get_app_context)) -> TrackResponse:
    track = ctx.store.get(track_id)
    if track is None or track.is_deleted:
        raise HTTPException(404, "Track not found")
    return TrackResponse.from_track(track)


@router.post("/tracks/{track_id}/enrich", response_model=EnrichResponse)
async def enrich_track(
    track_id: str, ctx: AppContext = Depends(get_app_context)
) -> EnrichResponse:
    """Retry AI enrichment for a stored track.

    Enrichment failures are reported in the track's import status, not as an
    HTTP error.
    """
    try:
        outcome = await ctx.enrichment().reenrich(track_id)
    except TrackNotFoundError:
        raise HTTPException(404, "Track not found")

    logger.info(f"Re-enriched track {track_id}: {outcome.value}")
    return EnrichResponse(
        outcome=outcome.value,
        track=TrackResponse.from_track(ctx.store.get(track_id)),
    )


@router.get("/credits", response_model=CreditsResponse)
async def get_credits(ctx: AppContext = Depends(get_app_context)) -> CreditsResponse:
    return CreditsResponse(credits=ctx.credits.get())


@router.put("/credits", response_model=CreditsResponse)
async def set_credits(
    req: SetCreditsRequest, ctx: AppContext = Depends(get_app_context)
) -> CreditsResponse:
    ctx.credits.set(req.credits)
    return CreditsResponse(credits=ctx.credits.get())
