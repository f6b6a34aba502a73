import asyncio
from fastapi import APIRouter, UploadFile, File, HTTPException, Form
from typing import Optional

from config import settings
from app.domain import id_card_schema as schema
from app.models.ids import ExtractResponse, ExtractedIdentity, FoundUploadResponse
from app.services import ocr_engine, id_records
from app.scripts.logging_config import get_logger

logger = get_logger("api.found")

router = APIRouter(prefix="/found", tags=["found-id"])


async def _read_upload(image: UploadFile) -> bytes:
    if not (image.content_type or "").startswith("image/"):
        raise HTTPException(415, detail="unsupported_type")
    raw = await image.read()
    if not raw:
        raise HTTPException(400, detail="empty_image")
    if len(raw) > settings.OCR_MAX_IMAGE_BYTES:
        raise HTTPException(413, detail="file_too_large")
    logger.info("found.upload name=%s ct=%s bytes=%d", image.filename, image.content_type, len(raw))
    return raw


async def _ocr(raw: bytes):
    try:
        await asyncio.to_thread(ocr_engine.ensure_tesseract)
        return await ocr_engine.read_identity(raw)
    except RuntimeError as e:
        logger.error("ocr unavailable: %s", e)
        raise HTTPException(503, detail="ocr_unavailable")
    except OSError as e:
        # PIL could not decode the upload
        logger.warning("unreadable image: %s", e)
        raise HTTPException(400, detail="unreadable_image")


def _display(identity: ExtractedIdentity) -> dict:
    return {
        "name": identity.name,
        "registration_number": identity.registration_number,
        "display_name": identity.name or schema.NOT_DETECTED,
        "display_registration_number": identity.registration_number or schema.NOT_DETECTED,
    }


@router.post("/extract", response_model=ExtractResponse)
async def extract_only(image: UploadFile = File(...)):
    raw = await _read_upload(image)
    identity, attempts = await _ocr(raw)
    return ExtractResponse(passes=len(attempts), **_display(identity))


@router.post("/upload", response_model=FoundUploadResponse)
async def upload_found_id(
    image: UploadFile = File(...),
    finder_name: Optional[str] = Form(None),
    finder_phone: Optional[str] = Form(None),
    location_found: Optional[str] = Form(None),
    additional_notes: Optional[str] = Form(None),
):
    raw = await _read_upload(image)
    identity, attempts = await _ocr(raw)
    found_item_id = await id_records.register_found_item(identity, {
        "finderName": finder_name,
        "finderPhone": finder_phone,
        "locationFound": location_found,
        "additionalNotes": additional_notes,
    }, passes=len(attempts))
    return FoundUploadResponse(found_item_id=found_item_id, passes=len(attempts), **_display(identity))
