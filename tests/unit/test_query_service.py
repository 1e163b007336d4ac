"""Unit tests for QueryService: pending counts, ordering and pagination."""

from datetime import datetime, timedelta, timezone

import pytest

from reviewflow.engines.queries.query_service import PendingScope, QueryService, RecordFilter
from reviewflow.kernel.errors import ValidationError
from reviewflow.kernel.models.verification import Decision, ItemType, VerificationStatus
from reviewflow.orchestration.ledger import VerificationLedger

BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


async def _open(db_session, make_item, owner, item_type=ItemType.QUALIFICATION, minutes=0):
    item_id = await make_item(owner, item_type)
    record = await VerificationLedger(db_session).open(item_type, item_id, owner.id)
    record.opened_at = BASE_TIME + timedelta(minutes=minutes)
    await db_session.flush()
    return record


class TestPendingCounts:
    """Tests for dashboard counters."""

    @pytest.mark.asyncio
    async def test_counts_by_type_include_every_type(self, db_session, student, make_item):
        await _open(db_session, make_item, student, ItemType.QUALIFICATION)
        await _open(db_session, make_item, student, ItemType.QUALIFICATION)
        await _open(db_session, make_item, student, ItemType.SESSION)
        await db_session.commit()

        counts = await QueryService(db_session).pending_counts_by_type(PendingScope.global_())

        assert set(counts) == set(ItemType)
        assert counts[ItemType.QUALIFICATION] == 2
        assert counts[ItemType.SESSION] == 1
        assert counts[ItemType.PROFILE] == 0

    @pytest.mark.asyncio
    async def test_decided_records_are_not_pending(self, db_session, student, mentor, make_item):
        pending = await _open(db_session, make_item, student)
        decided = await _open(db_session, make_item, student)
        await VerificationLedger(db_session).decide(decided.id, mentor.id, Decision.APPROVE)
        await db_session.commit()

        assert await QueryService(db_session).pending_count() == 1
        assert pending.status == VerificationStatus.PENDING

    @pytest.mark.asyncio
    async def test_mentor_scope_only_counts_assigned_students(
        self, db_session, student, other_student, mentor, assigned, make_item
    ):
        await _open(db_session, make_item, student)
        await _open(db_session, make_item, other_student)
        await _open(db_session, make_item, other_student)
        await db_session.commit()

        service = QueryService(db_session)

        assert await service.pending_count(PendingScope.for_mentor(mentor.id)) == 1
        assert await service.pending_count(PendingScope.global_()) == 3

    @pytest.mark.asyncio
    async def test_mentor_without_students_counts_zero(self, db_session, student, other_mentor, make_item):
        await _open(db_session, make_item, student)
        await db_session.commit()

        counts = await QueryService(db_session).pending_counts_by_type(PendingScope.for_mentor(other_mentor.id))

        assert sum(counts.values()) == 0


class TestListings:
    """Tests for paginated listings."""

    @pytest.mark.asyncio
    async def test_newest_first_with_id_tiebreak(self, db_session, student, make_item):
        oldest = await _open(db_session, make_item, student, minutes=0)
        tie_a = await _open(db_session, make_item, student, minutes=10)
        tie_b = await _open(db_session, make_item, student, minutes=10)
        await db_session.commit()

        page = await QueryService(db_session).list_for_student(student.id)

        ties = sorted([tie_a.id, tie_b.id])
        assert [r.id for r in page.items] == ties + [oldest.id]
        assert page.total == 3
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_ordering_is_stable_across_calls(self, db_session, student, make_item):
        for _ in range(4):
            await _open(db_session, make_item, student, minutes=5)
        await db_session.commit()
        service = QueryService(db_session)

        first = await service.list_for_student(student.id)
        second = await service.list_for_student(student.id)

        assert [r.id for r in first.items] == [r.id for r in second.items]

    @pytest.mark.asyncio
    async def test_pagination(self, db_session, student, make_item):
        for minutes in range(5):
            await _open(db_session, make_item, student, minutes=minutes)
        await db_session.commit()
        service = QueryService(db_session)

        page_1 = await service.list_for_student(student.id, page=1, page_size=2)
        page_3 = await service.list_for_student(student.id, page=3, page_size=2)

        assert len(page_1.items) == 2
        assert page_1.has_more is True
        assert len(page_3.items) == 1
        assert page_3.has_more is False

    @pytest.mark.asyncio
    async def test_page_beyond_range_is_empty(self, db_session, student, make_item):
        await _open(db_session, make_item, student)
        await db_session.commit()

        page = await QueryService(db_session).list_for_student(student.id, page=5, page_size=10)

        assert page.items == []
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_invalid_paging_rejected(self, db_session, student):
        service = QueryService(db_session, max_page_size=50)
        with pytest.raises(ValidationError):
            await service.list_for_student(student.id, page=0)
        with pytest.raises(ValidationError):
            await service.list_for_student(student.id, page_size=51)

    @pytest.mark.asyncio
    async def test_filters(self, db_session, student, mentor, make_item):
        await _open(db_session, make_item, student, ItemType.QUALIFICATION)
        session_record = await _open(db_session, make_item, student, ItemType.SESSION)
        await VerificationLedger(db_session).decide(session_record.id, mentor.id, Decision.REJECT)
        await db_session.commit()
        service = QueryService(db_session)

        rejected = await service.list_for_student(
            student.id, RecordFilter(status=VerificationStatus.REJECTED)
        )
        qualifications = await service.list_for_student(
            student.id, RecordFilter(item_type=ItemType.QUALIFICATION)
        )

        assert [r.id for r in rejected.items] == [session_record.id]
        assert qualifications.total == 1

    @pytest.mark.asyncio
    async def test_mentor_listing_follows_assignments(
        self, db_session, student, other_student, mentor, assigned, make_item
    ):
        mine = await _open(db_session, make_item, student)
        await _open(db_session, make_item, other_student)
        await db_session.commit()

        page = await QueryService(db_session).list_for_mentor(mentor.id)

        assert [r.id for r in page.items] == [mine.id]

    @pytest.mark.asyncio
    async def test_admin_listing_sees_everyone(self, db_session, student, other_student, make_item):
        await _open(db_session, make_item, student)
        await _open(db_session, make_item, other_student)
        await db_session.commit()

        page = await QueryService(db_session).list_all()

        assert page.total == 2
