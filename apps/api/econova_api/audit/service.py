"""Accounting audit trail with hash chaining."""

import hashlib
import json
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from econova_api.models import AuditEvent, TenantSequence
from econova_api.utils.clock import utcnow


class AuditTrail:
    """Tamper-evident audit trail of accounting events."""

    def __init__(self, db: Session):
        """Initialize audit trail."""
        self.db = db

    def _hash_event(self, event_data: dict) -> str:
        """Compute hash of event data."""
        event_str = json.dumps(event_data, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(event_str.encode()).hexdigest()

    def _event_data(
        self,
        tenant_id: int,
        tenant_sequence: int,
        correlation_id: str,
        event_type: str,
        payload: dict,
        previous_hash: Optional[str],
        timestamp,
    ) -> dict:
        return {
            "tenant_id": tenant_id,
            "tenant_sequence": tenant_sequence,
            "correlation_id": correlation_id,
            "event_type": event_type,
            "payload": payload,
            "previous_hash": previous_hash,
            "timestamp": timestamp.isoformat(),
        }

    def _allocate_sequence(self, tenant_id: int) -> int:
        """Lock the tenant's sequence row and take the next position.

        The lock is held until the transaction ends, so appends for the same
        tenant run one after another even when they touch different months.
        """
        query = (
            self.db.query(TenantSequence)
            .filter(TenantSequence.tenant_id == tenant_id)
            .populate_existing()
            .with_for_update()
        )
        sequence = query.first()
        if sequence is None:
            try:
                with self.db.begin_nested():
                    sequence = TenantSequence(tenant_id=tenant_id, last_sequence=0)
                    self.db.add(sequence)
                    self.db.flush()
            except IntegrityError:
                # Another request created the row first; wait for its lock.
                sequence = query.one()

        sequence.last_sequence += 1
        sequence.updated_at = utcnow()
        self.db.flush()
        return sequence.last_sequence

    def _get_last_event_hash(self, tenant_id: int) -> Optional[str]:
        """Get hash of last event for tenant."""
        last_event = (
            self.db.query(AuditEvent)
            .filter(AuditEvent.tenant_id == tenant_id)
            .order_by(AuditEvent.tenant_sequence.desc())
            .first()
        )
        return last_event.event_hash if last_event else None

    def append_event(
        self,
        tenant_id: int,
        correlation_id: str,
        event_type: str,
        payload: dict,
    ) -> AuditEvent:
        """Append event to the tenant's chain."""
        tenant_sequence = self._allocate_sequence(tenant_id)
        previous_hash = self._get_last_event_hash(tenant_id)
        timestamp = utcnow()

        # Round-trip through JSON so the stored payload hashes the same after reload.
        payload = json.loads(json.dumps(payload, default=str))
        event_hash = self._hash_event(
            self._event_data(
                tenant_id, tenant_sequence, correlation_id, event_type, payload, previous_hash, timestamp
            )
        )

        event = AuditEvent(
            tenant_sequence=tenant_sequence,
            event_hash=event_hash,
            previous_event_hash=previous_hash,
            correlation_id=correlation_id,
            tenant_id=tenant_id,
            event_type=event_type,
            payload_json=payload,
            event_timestamp=timestamp,
        )
        self.db.add(event)
        self.db.flush()
        return event

    def verify_chain(self, tenant_id: int) -> tuple[bool, Optional[str]]:
        """Verify hash chain integrity for tenant."""
        events = (
            self.db.query(AuditEvent)
            .filter(AuditEvent.tenant_id == tenant_id)
            .order_by(AuditEvent.tenant_sequence.asc())
            .all()
        )

        previous_hash = None
        for expected_sequence, event in enumerate(events, start=1):
            if event.tenant_sequence != expected_sequence:
                return False, f"Event {event.id} has sequence {event.tenant_sequence}, expected {expected_sequence}"
            if event.previous_event_hash != previous_hash:
                return False, f"Event {event.id} does not link to its predecessor"

            computed_hash = self._hash_event(
                self._event_data(
                    event.tenant_id,
                    event.tenant_sequence,
                    event.correlation_id,
                    event.event_type,
                    event.payload_json,
                    event.previous_event_hash,
                    event.event_timestamp,
                )
            )
            if computed_hash != event.event_hash:
                return False, f"Event {event.id} hash mismatch"

            previous_hash = event.event_hash

        return True, None
