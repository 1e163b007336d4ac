"""Unit tests for the verification ledger: state machine, versioning, history."""

import uuid

import pytest
from sqlalchemy import select

from reviewflow.kernel.errors import (
    AlreadyOpenError,
    ConcurrencyConflict,
    InvalidTransitionError,
    NotFoundError,
)
from reviewflow.kernel.models.user import User, UserRole
from reviewflow.kernel.models.verification import (
    Decision,
    ItemType,
    VerificationRecord,
    VerificationStatus,
)
from reviewflow.orchestration.ledger import (
    RESUBMIT,
    SUBMIT,
    VerificationLedger,
    next_status,
    valid_actions,
)


class TestTransitionTable:
    """Tests for the pure transition table."""

    def test_submit_only_from_nothing(self):
        assert next_status(None, SUBMIT) == VerificationStatus.PENDING
        assert next_status(VerificationStatus.PENDING, SUBMIT) is None

    def test_pending_decisions(self):
        assert next_status(VerificationStatus.PENDING, "approve") == VerificationStatus.VERIFIED
        assert next_status(VerificationStatus.PENDING, "reject") == VerificationStatus.REJECTED

    def test_rejected_can_only_resubmit(self):
        assert valid_actions(VerificationStatus.REJECTED) == [RESUBMIT]

    def test_verified_is_terminal(self):
        assert valid_actions(VerificationStatus.VERIFIED) == []
        for action in ("approve", "reject", RESUBMIT, SUBMIT):
            assert next_status(VerificationStatus.VERIFIED, action) is None


class TestVerificationLedger:
    """Tests for VerificationLedger against SQLite."""

    @pytest.mark.asyncio
    async def test_open_creates_pending_record(self, db_session, student, make_item):
        item_id = await make_item(student)
        ledger = VerificationLedger(db_session)

        record = await ledger.open(ItemType.QUALIFICATION, item_id, student.id)

        assert record.status == VerificationStatus.PENDING
        assert record.version == 0
        assert record.verifier_id is None
        assert record.feedback is None
        assert record.owner_id == student.id

    @pytest.mark.asyncio
    async def test_open_twice_raises_already_open(self, db_session, student, make_item):
        item_id = await make_item(student)
        ledger = VerificationLedger(db_session)
        first = await ledger.open(ItemType.QUALIFICATION, item_id, student.id)
        await db_session.commit()

        with pytest.raises(AlreadyOpenError) as exc_info:
            await ledger.open(ItemType.QUALIFICATION, item_id, student.id)

        assert exc_info.value.status_code == 409
        assert exc_info.value.context["record_id"] == first.id

    @pytest.mark.asyncio
    async def test_lost_open_race_keeps_callers_unit_of_work(
        self, db_session, session_maker, student, make_item, monkeypatch
    ):
        """A duplicate insert discards only itself, not the caller's earlier writes."""
        item_id = await make_item(student)
        async with session_maker() as session_b:
            await VerificationLedger(session_b).open(ItemType.QUALIFICATION, item_id, student.id)
            await session_b.commit()

        bystander = User(
            id=uuid.uuid4(),
            email=f"bystander-{uuid.uuid4().hex[:8]}@example.com",
            full_name="Bystander",
            role=UserRole.STUDENT.value,
        )
        db_session.add(bystander)
        await db_session.flush()

        ledger = VerificationLedger(db_session)

        async def missed_read(item_type, item_id):
            return None

        monkeypatch.setattr(ledger, "get", missed_read)
        with pytest.raises(AlreadyOpenError):
            await ledger.open(ItemType.QUALIFICATION, item_id, student.id)
        await db_session.commit()

        result = await db_session.execute(select(User).where(User.id == bystander.id))
        assert result.scalar_one_or_none() is not None
        records = await db_session.execute(
            select(VerificationRecord).where(VerificationRecord.item_id == item_id)
        )
        assert len(records.scalars().all()) == 1

    @pytest.mark.asyncio
    async def test_same_id_different_type_is_a_different_item(self, db_session, student, make_item):
        await make_item(student, ItemType.QUALIFICATION, item_id="shared-1")
        await make_item(student, ItemType.ACTIVITY, item_id="shared-1")
        ledger = VerificationLedger(db_session)

        a = await ledger.open(ItemType.QUALIFICATION, "shared-1", student.id)
        b = await ledger.open(ItemType.ACTIVITY, "shared-1", student.id)

        assert a.id != b.id

    @pytest.mark.asyncio
    async def test_approve_sets_verifier_and_bumps_version(self, db_session, student, mentor, make_item):
        item_id = await make_item(student)
        ledger = VerificationLedger(db_session)
        record = await ledger.open(ItemType.QUALIFICATION, item_id, student.id)

        record = await ledger.decide(record.id, mentor.id, Decision.APPROVE, feedback="Looks good")

        assert record.status == VerificationStatus.VERIFIED
        assert record.verifier_id == mentor.id
        assert record.feedback == "Looks good"
        assert record.version == 1

    @pytest.mark.asyncio
    async def test_verified_cannot_be_decided_again(self, db_session, student, mentor, make_item):
        item_id = await make_item(student)
        ledger = VerificationLedger(db_session)
        record = await ledger.open(ItemType.QUALIFICATION, item_id, student.id)
        await ledger.decide(record.id, mentor.id, Decision.APPROVE)

        with pytest.raises(InvalidTransitionError):
            await ledger.decide(record.id, mentor.id, Decision.REJECT)
        with pytest.raises(InvalidTransitionError):
            await ledger.resubmit(record.id, student.id)

        unchanged = await ledger.get_by_id(record.id)
        assert unchanged.status == VerificationStatus.VERIFIED
        assert unchanged.version == 1

    @pytest.mark.asyncio
    async def test_resubmit_clears_verifier_and_feedback(self, db_session, student, mentor, make_item):
        item_id = await make_item(student)
        ledger = VerificationLedger(db_session)
        record = await ledger.open(ItemType.QUALIFICATION, item_id, student.id)
        await ledger.decide(record.id, mentor.id, Decision.REJECT, feedback="Missing date")

        record = await ledger.resubmit(record.id, student.id)

        assert record.status == VerificationStatus.PENDING
        assert record.verifier_id is None
        assert record.feedback is None
        assert record.version == 2

    @pytest.mark.asyncio
    async def test_resubmit_pending_is_invalid(self, db_session, student, make_item):
        item_id = await make_item(student)
        ledger = VerificationLedger(db_session)
        record = await ledger.open(ItemType.QUALIFICATION, item_id, student.id)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await ledger.resubmit(record.id, student.id)
        assert exc_info.value.from_status == "pending"

    @pytest.mark.asyncio
    async def test_stale_expected_version_conflicts(self, db_session, student, mentor, make_item):
        item_id = await make_item(student)
        ledger = VerificationLedger(db_session)
        record = await ledger.open(ItemType.QUALIFICATION, item_id, student.id)
        await ledger.decide(record.id, mentor.id, Decision.REJECT)
        await ledger.resubmit(record.id, student.id)

        with pytest.raises(ConcurrencyConflict) as exc_info:
            await ledger.decide(record.id, mentor.id, Decision.APPROVE, expected_version=1)

        assert exc_info.value.actual_version == 2
        assert "Refresh and retry" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_lost_compare_and_swap_conflicts(
        self, db_session, session_maker, student, mentor, admin, make_item, monkeypatch
    ):
        """Two reviewers read v0; the second write finds the version moved."""
        item_id = await make_item(student)
        ledger_a = VerificationLedger(db_session)
        record = await ledger_a.open(ItemType.QUALIFICATION, item_id, student.id)
        await db_session.commit()

        async with session_maker() as session_b:
            ledger_b = VerificationLedger(session_b)
            stale = await ledger_b.get_by_id(record.id)
            assert stale.version == 0
            await session_b.commit()

            await ledger_a.decide(record.id, mentor.id, Decision.APPROVE)
            await db_session.commit()

            async def stale_load(record_id):
                return stale

            monkeypatch.setattr(ledger_b, "_load", stale_load)
            with pytest.raises(ConcurrencyConflict):
                await ledger_b.decide(record.id, admin.id, Decision.REJECT, feedback="late")
            await session_b.rollback()

        final = await ledger_a.get_by_id(record.id)
        await db_session.refresh(final)
        assert final.status == VerificationStatus.VERIFIED
        assert final.verifier_id == mentor.id
        assert final.version == 1
        assert len(await ledger_a.history(record.id)) == 2

    @pytest.mark.asyncio
    async def test_history_round_trip(self, db_session, student, mentor, admin, make_item):
        item_id = await make_item(student)
        ledger = VerificationLedger(db_session)
        record = await ledger.open(ItemType.QUALIFICATION, item_id, student.id)
        await ledger.decide(record.id, mentor.id, Decision.REJECT, feedback="Blurry scan")
        await ledger.resubmit(record.id, student.id)
        await ledger.decide(record.id, admin.id, Decision.APPROVE, admin_override=True)

        history = await ledger.history(record.id)

        assert [h.version for h in history] == [0, 1, 2, 3]
        assert [(h.from_status, h.to_status) for h in history] == [
            (None, "pending"),
            ("pending", "rejected"),
            ("rejected", "pending"),
            ("pending", "verified"),
        ]
        assert history[1].feedback == "Blurry scan"
        assert history[1].actor_id == mentor.id
        assert history[2].actor_id == student.id
        assert history[3].admin_override is True
        assert history[1].admin_override is False

    @pytest.mark.asyncio
    async def test_unknown_record_not_found(self, db_session, mentor):
        ledger = VerificationLedger(db_session)
        with pytest.raises(NotFoundError):
            await ledger.decide(uuid.uuid4(), mentor.id, Decision.APPROVE)
