"""Tests for the hash-chained accounting audit trail."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from econova_api.audit.service import AuditTrail
from econova_api.models import AuditEvent, Tenant, TenantSequence


class TestAuditChain:
    """Test audit hash chain integrity."""

    def test_empty_chain_is_valid(self, db: Session, test_tenant):
        """Test a tenant without events verifies."""
        assert AuditTrail(db).verify_chain(test_tenant.id) == (True, None)

    def test_accounting_operations_are_chained(self, db: Session, service, make_entry):
        """Test entries, close and transfer each append a linked event."""
        service.record_entry(make_entry(), correlation_id="corr-1")
        service.record_entry(make_entry(category="landfill", material="Orgánico", kg=5.0))
        service.close_month(2025, 1, "Equipo de Seguridad")
        service.transfer_month(2025, 1)
        service.transfer_month(2025, 1)

        events = db.query(AuditEvent).order_by(AuditEvent.id.asc()).all()
        assert [event.event_type for event in events] == [
            "entry.recorded",
            "entry.recorded",
            "month.closed",
            "month.transferred",
        ]
        assert events[0].previous_event_hash is None
        assert events[0].correlation_id == "corr-1"
        for previous, current in zip(events, events[1:]):
            assert current.previous_event_hash == previous.event_hash

        assert AuditTrail(db).verify_chain(service.tenant_id) == (True, None)

    def test_chain_survives_reload(self, db: Session, service, make_entry):
        """Test hashes still verify after the events are reloaded from the database."""
        service.record_entry(make_entry(kg=12.345))
        db.commit()
        db.expire_all()

        assert AuditTrail(db).verify_chain(service.tenant_id) == (True, None)

    def test_tampered_payload_is_detected(self, db: Session, service, make_entry):
        """Test that rewriting a stored payload breaks verification."""
        service.record_entry(make_entry(kg=10.0))
        service.record_entry(make_entry(kg=20.0))

        event = db.query(AuditEvent).order_by(AuditEvent.id.asc()).first()
        event.payload_json = {**event.payload_json, "kg": 1.0}
        db.flush()

        valid, error = AuditTrail(db).verify_chain(service.tenant_id)
        assert valid is False
        assert f"Event {event.id}" in error

    def test_broken_link_is_detected(self, db: Session, service, make_entry):
        """Test that removing an event from the middle breaks the chain."""
        for kg in (1.0, 2.0, 3.0):
            service.record_entry(make_entry(kg=kg))

        middle = db.query(AuditEvent).order_by(AuditEvent.id.asc()).offset(1).first()
        db.delete(middle)
        db.flush()

        valid, error = AuditTrail(db).verify_chain(service.tenant_id)
        assert valid is False
        assert "expected 2" in error

    def test_relinked_event_is_detected(self, db: Session, service, make_entry):
        """Test that pointing an event at the wrong predecessor breaks the chain."""
        for kg in (1.0, 2.0):
            service.record_entry(make_entry(kg=kg))

        last = db.query(AuditEvent).order_by(AuditEvent.tenant_sequence.desc()).first()
        last.previous_event_hash = None
        db.flush()

        valid, error = AuditTrail(db).verify_chain(service.tenant_id)
        assert valid is False
        assert "does not link" in error

    def test_chains_are_per_tenant(self, db: Session, test_tenant):
        """Test each tenant has an independent chain."""
        neighbour = Tenant(label="neighbour", status="active")
        db.add(neighbour)
        db.flush()

        trail = AuditTrail(db)
        first = trail.append_event(test_tenant.id, "c1", "entry.recorded", {"kg": 1})
        other = trail.append_event(neighbour.id, "c2", "entry.recorded", {"kg": 2})

        assert first.previous_event_hash is None
        assert other.previous_event_hash is None


class TestAuditSequence:
    """Test per-tenant sequence allocation."""

    def test_sequences_are_contiguous_across_months(self, db: Session, service, make_entry):
        """Test events for different months share one ordered chain."""
        service.record_entry(make_entry(day="2025-01-10"))
        service.record_entry(make_entry(day="2025-02-10"))
        service.close_month(2025, 1, "Equipo de Seguridad")

        events = db.query(AuditEvent).order_by(AuditEvent.tenant_sequence.asc()).all()
        assert [event.tenant_sequence for event in events] == [1, 2, 3]
        assert db.get(TenantSequence, service.tenant_id).last_sequence == 3

    def test_rolled_back_append_releases_sequence(self, db: Session, test_tenant):
        """Test an append undone with its savepoint leaves no gap."""
        trail = AuditTrail(db)
        trail.append_event(test_tenant.id, "c1", "entry.recorded", {"kg": 1})

        with pytest.raises(RuntimeError):
            with db.begin_nested():
                trail.append_event(test_tenant.id, "c2", "entry.recorded", {"kg": 2})
                raise RuntimeError("entry insert failed")

        event = trail.append_event(test_tenant.id, "c3", "entry.recorded", {"kg": 3})

        assert event.tenant_sequence == 2
        assert trail.verify_chain(test_tenant.id) == (True, None)

    def test_forked_event_is_rejected(self, db: Session, test_tenant):
        """Test a second event at an existing position cannot be stored."""
        trail = AuditTrail(db)
        head = trail.append_event(test_tenant.id, "c1", "entry.recorded", {"kg": 1})
        trail.append_event(test_tenant.id, "c2", "entry.recorded", {"kg": 2})
        db.commit()

        # Same predecessor and position as the second event, as a concurrent writer would produce.
        fork = AuditEvent(
            tenant_sequence=2,
            event_hash="f" * 64,
            previous_event_hash=head.event_hash,
            correlation_id="c3",
            tenant_id=test_tenant.id,
            event_type="entry.recorded",
            payload_json={"kg": 3},
        )
        db.add(fork)
        with pytest.raises(IntegrityError):
            db.flush()
        db.rollback()

        assert AuditTrail(db).verify_chain(test_tenant.id) == (True, None)

    def test_sequence_row_is_locked(self, db: Session, test_tenant):
        """Test the tenant sequence is read FOR UPDATE before the chain head."""
        trail = AuditTrail(db)
        trail.append_event(test_tenant.id, "c1", "entry.recorded", {"kg": 1})

        with patch.object(Query, "with_for_update", autospec=True, side_effect=Query.with_for_update) as lock:
            trail.append_event(test_tenant.id, "c2", "entry.recorded", {"kg": 2})

        locked_entities = [call.args[0].column_descriptions[0]["entity"] for call in lock.call_args_list]
        assert locked_entities == [TenantSequence]
