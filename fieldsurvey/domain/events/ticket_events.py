"""Eventos de auditoria de Tickets — append-only, nunca alterados."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import UUID

from fieldsurvey.domain.events.base import DomainEvent


class AuditEventType(str, enum.Enum):
    CREATED = "ticket.created"
    SUBMITTED = "ticket.submitted"
    APPROVED = "ticket.approved"
    REJECTED = "ticket.rejected"
    REJECTION_OVERRIDDEN = "ticket.rejection_overridden"
    PRIORITY_SET_BY_WHITELIST = "ticket.priority_set_by_whitelist"
    PRIORITY_ELEVATED = "ticket.priority_elevated"
    ASSIGNED = "ticket.assigned"
    IN_PROGRESS = "ticket.in_progress"
    COMPLETED = "ticket.completed"
    CLOSED = "ticket.closed"
    CANCEL_REQUESTED = "ticket.cancel_requested"
    CANCEL_APPROVED = "ticket.cancel_approved"
    CANCEL_REJECTED = "ticket.cancel_rejected"


@dataclass(frozen=True)
class TicketEvent(DomainEvent):
    """Registro de auditoria de uma ação que afetou o ticket."""
    ticket_id: Optional[UUID] = None
    tenant_id: Optional[UUID] = None
    actor_id: Optional[UUID] = None
    event_type: AuditEventType = AuditEventType.CREATED
    payload: dict[str, Any] = field(default_factory=dict)
