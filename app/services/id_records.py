from __future__ import annotations
from typing import Dict, Optional
from datetime import datetime, timezone

from app.domain import id_card_schema as schema
from app.models.ids import ClaimedIdentity, ExtractedIdentity
from app.services.id_store import BaseIdStore, get_store
from app.scripts.logging_config import get_logger

logger = get_logger("id_records")


async def report_lost_id(student_id: str, claimed: ClaimedIdentity, store: Optional[BaseIdStore] = None) -> str:
    """Record a lost ID claim and flag the student. Returns the lost item id."""
    store = store or get_store()
    now = datetime.now(timezone.utc).isoformat()
    lost_item_id = await store.add_document(schema.LOST_ITEMS, {
        "registrationNumber": claimed.registration_number.strip(),
        "fullName": claimed.full_name.strip(),
        "studentId": student_id,
        "found": False,
        "foundAt": None,
        "matchedWith": None,
        "reportedAt": now,
    })
    student_fields = {"hasLostID": True, "idFound": False, "idFoundAt": None}
    try:
        if not await store.update_fields(schema.STUDENTS, student_id, student_fields):
            await store.set_document(schema.STUDENTS, student_id, {
                "regNumber": claimed.registration_number.strip(),
                "fullName": claimed.full_name.strip(),
                **student_fields,
            })
            logger.info("student record created student=%s", student_id)
    except Exception as e:
        # no lost record without a flagged student
        logger.error("student flag failed student=%s, removing lost=%s: %s", student_id, lost_item_id, e)
        await store.delete_document(schema.LOST_ITEMS, lost_item_id)
        raise
    logger.info("lost id reported lost=%s student=%s reg=%s", lost_item_id, student_id, claimed.registration_number)
    return lost_item_id


async def register_found_item(identity: ExtractedIdentity, finder: Dict[str, Optional[str]],
                              passes: int = 0, store: Optional[BaseIdStore] = None) -> str:
    """Store an uploaded found ID as unmatched. Returns the found item id."""
    store = store or get_store()
    found_item_id = await store.add_document(schema.FOUND_ITEMS, {
        "extractedName": identity.name,
        "extractedAdmission": identity.registration_number,
        "finderName": finder.get("finderName"),
        "finderPhone": finder.get("finderPhone"),
        "locationFound": finder.get("locationFound"),
        "additionalNotes": finder.get("additionalNotes"),
        "uploadDate": datetime.now(timezone.utc).isoformat(),
        "ocrPasses": passes,
        "matched": False,
        "matchedWith": None,
        "matchedAt": None,
        "matchedBy": None,
    })
    logger.info("found id registered found=%s name=%s reg=%s", found_item_id, identity.name, identity.registration_number)
    return found_item_id
