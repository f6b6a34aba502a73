from fastapi import APIRouter, HTTPException

from app.models.ids import ClaimedIdentity, LostReportRequest, LostReportResponse
from app.services import id_records

router = APIRouter(prefix="/lost", tags=["lost-id"])


@router.post("/report", response_model=LostReportResponse)
async def report_lost(req: LostReportRequest):
    student_id = (req.student_id or "").strip()
    reg = (req.registration_number or "").strip()
    if not student_id:
        raise HTTPException(status_code=400, detail="missing_student_id")
    if not reg:
        raise HTTPException(status_code=400, detail="missing_registration_number")
    claimed = ClaimedIdentity(registration_number=reg, full_name=req.full_name)
    lost_item_id = await id_records.report_lost_id(student_id, claimed)
    return LostReportResponse(lost_item_id=lost_item_id, student_id=student_id, registration_number=reg)
