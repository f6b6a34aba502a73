from pydantic import BaseModel
from typing import Optional, List


class ClaimedIdentity(BaseModel):
    registration_number: str
    full_name: str


class ExtractedIdentity(BaseModel):
    name: Optional[str] = None
    registration_number: Optional[str] = None


class CandidateMatch(BaseModel):
    found_item_id: str
    extracted_name: Optional[str] = None
    extracted_admission: Optional[str] = None
    match_score: int
    match_confidence: str
    # finder contact details copied from the found item
    finder_name: Optional[str] = None
    finder_phone: Optional[str] = None
    location_found: Optional[str] = None
    upload_date: Optional[str] = None


class MatchStatistics(BaseModel):
    total_lost: int = 0
    total_found: int = 0
    total_matched: int = 0
    success_rate: float = 0.0


class OCRAttempt(BaseModel):
    text: str
    confidence: float
    psm: int
    variant: str


class ExtractResponse(BaseModel):
    name: Optional[str] = None
    registration_number: Optional[str] = None
    display_name: str
    display_registration_number: str
    passes: int


class FoundUploadResponse(ExtractResponse):
    found_item_id: str


class LostReportRequest(BaseModel):
    student_id: str
    registration_number: str
    full_name: str


class LostReportResponse(BaseModel):
    lost_item_id: str
    student_id: str
    registration_number: str


class MatchSearchResponse(BaseModel):
    registration_number: str
    full_name: str
    matches: List[CandidateMatch]


class ConfirmMatchRequest(BaseModel):
    found_item_id: str
    lost_item_id: str
    student_id: str


class ConfirmMatchResponse(BaseModel):
    found_item_id: str
    lost_item_id: str
    student_id: str
    confirmed: bool


class ConsistencyResponse(BaseModel):
    found_item_id: str
    consistent: bool
    problems: List[str]
