import asyncio

import pytest

from app.domain import id_card_schema as schema
from app.models.ids import ClaimedIdentity
from app.services import id_records
from app.services.id_store import MemoryIdStore


CLAIM = ClaimedIdentity(registration_number=" C123-45-678/2021 ", full_name="John Smith")


class _StudentWriteFails(MemoryIdStore):
    async def update_fields(self, collection, doc_id, fields):
        if collection == schema.STUDENTS:
            raise ConnectionError("firestore unreachable")
        return await super().update_fields(collection, doc_id, fields)


def test_report_creates_missing_student():
    store = MemoryIdStore()
    lost_id = asyncio.run(id_records.report_lost_id("s1", CLAIM, store=store))
    lost = asyncio.run(store.get_document(schema.LOST_ITEMS, lost_id))
    student = asyncio.run(store.get_document(schema.STUDENTS, "s1"))
    assert lost["registrationNumber"] == "C123-45-678/2021"
    assert lost["found"] is False
    assert student["hasLostID"] is True and student["idFound"] is False
    assert student["regNumber"] == "C123-45-678/2021"


def test_report_flags_existing_student_without_overwriting():
    store = MemoryIdStore()
    asyncio.run(store.set_document(schema.STUDENTS, "s1", {"regNumber": "C123-45-678/2021", "fullName": "John"}))
    asyncio.run(id_records.report_lost_id("s1", CLAIM, store=store))
    student = asyncio.run(store.get_document(schema.STUDENTS, "s1"))
    assert student["fullName"] == "John"
    assert student["hasLostID"] is True


def test_failed_student_write_leaves_no_lost_record():
    store = _StudentWriteFails()
    with pytest.raises(ConnectionError):
        asyncio.run(id_records.report_lost_id("s1", CLAIM, store=store))
    assert asyncio.run(store.get_all(schema.LOST_ITEMS)) == []
