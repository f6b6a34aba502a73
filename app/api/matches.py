from fastapi import APIRouter, HTTPException
from typing import List

from app.models.ids import (
    ClaimedIdentity, ConfirmMatchRequest, ConfirmMatchResponse, ConsistencyResponse,
    MatchSearchResponse, MatchStatistics,
)
from app.services import match_finder, match_confirmation

router = APIRouter(prefix="/matches", tags=["matches"])


@router.post("/search", response_model=MatchSearchResponse)
async def search_matches(req: ClaimedIdentity):
    matches = await match_finder.find_matches(req)
    return MatchSearchResponse(
        registration_number=req.registration_number,
        full_name=req.full_name,
        matches=matches,
    )


@router.post("/confirm", response_model=ConfirmMatchResponse)
async def confirm(req: ConfirmMatchRequest):
    ok = await match_confirmation.confirm_match(req.found_item_id, req.lost_item_id, req.student_id)
    if not ok:
        raise HTTPException(status_code=409, detail="confirm_failed")
    return ConfirmMatchResponse(
        found_item_id=req.found_item_id,
        lost_item_id=req.lost_item_id,
        student_id=req.student_id,
        confirmed=True,
    )


@router.get("/student/{student_id}")
async def student_matches(student_id: str) -> List[dict]:
    return await match_finder.get_student_matches(student_id)


@router.get("/stats", response_model=MatchStatistics)
async def stats():
    return await match_finder.get_matching_statistics()


@router.get("/consistency/{found_item_id}", response_model=ConsistencyResponse)
async def consistency(found_item_id: str):
    problems = await match_confirmation.check_match_consistency(found_item_id)
    return ConsistencyResponse(found_item_id=found_item_id, consistent=not problems, problems=problems)
