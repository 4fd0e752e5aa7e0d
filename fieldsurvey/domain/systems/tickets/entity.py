"""Entidade de domínio Ticket — status, marcos de tempo, prioridade e eventos."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional
from uuid import UUID

from fieldsurvey.domain.events.base import AggregateRoot
from fieldsurvey.domain.events.ticket_events import AuditEventType, TicketEvent
from fieldsurvey.domain.shared.errors import ValidationError
from fieldsurvey.domain.systems.workflow.transitions import (
    TicketStatus,
    WorkflowVariant,
    is_terminal,
)

# Regra das 48 horas: antecedência mínima entre submissão e data solicitada.
MIN_NOTICE_PERIOD = timedelta(hours=48)


class TicketType(str, enum.Enum):
    LAYOUT = "LAYOUT"
    CHECK_OUT = "CHECK_OUT"
    AS_BUILT = "AS_BUILT"
    TOPO = "TOPO"
    PERMIT = "PERMIT"


# Campos que uma ação de workflow pode alterar (além do status).
PATCHABLE_FIELDS: frozenset[str] = frozenset({
    "submitted_at",
    "approved_at",
    "assigned_at",
    "started_at",
    "completed_at",
    "closed_at",
    "rejection_reason",
    "assigned_party_chief_id",
    "assigned_instrument_man_id",
    "survey_lead_id",
    "is_priority",
    "priority_elevated_by",
    "priority_elevated_reason",
})


def as_utc(value: datetime) -> datetime:
    """SQLite devolve datetimes naive; tratamos como UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class Ticket(AggregateRoot):
    id: Optional[UUID] = None
    tenant_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    area_id: Optional[UUID] = None
    subarea_id: Optional[UUID] = None
    company_id: Optional[UUID] = None
    ticket_number: str = ""
    ticket_type: TicketType = TicketType.LAYOUT
    workflow_variant: WorkflowVariant = WorkflowVariant.STANDARD_APPROVAL
    status: TicketStatus = TicketStatus.DRAFT
    requester_id: Optional[UUID] = None
    assigned_party_chief_id: Optional[UUID] = None
    assigned_instrument_man_id: Optional[UUID] = None
    survey_lead_id: Optional[UUID] = None
    craft: str = ""
    description: str = ""
    requested_date: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    assigned_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    parent_ticket_id: Optional[UUID] = None
    is_priority: bool = False
    priority_elevated_by: Optional[UUID] = None
    priority_elevated_reason: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        AggregateRoot.__init__(self)

    # ── Regras de negócio ──

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    def ensure_notice_period(self, now: datetime) -> None:
        """Data solicitada precisa estar ao menos 48h à frente de `now`."""
        if self.requested_date is None:
            raise ValidationError("requested_date é obrigatório para submeter")
        if as_utc(self.requested_date) < as_utc(now) + MIN_NOTICE_PERIOD:
            raise ValidationError(
                "A data solicitada deve estar pelo menos 48 horas no futuro"
            )

    def apply_changes(
        self,
        status: TicketStatus,
        changes: Mapping[str, Any],
        now: datetime,
    ) -> None:
        """
        Aplica o novo status e os campos do patch. A legalidade da transição
        é responsabilidade de quem chama (TransitionExecutor).
        """
        unknown = set(changes) - PATCHABLE_FIELDS
        if unknown:
            raise ValidationError(f"Campos não alteráveis: {', '.join(sorted(unknown))}")

        elevated_by = changes.get("priority_elevated_by", self.priority_elevated_by)
        elevated_reason = changes.get("priority_elevated_reason", self.priority_elevated_reason)
        if elevated_by is not None and not (elevated_reason or "").strip():
            raise ValidationError("priority_elevated_reason é obrigatório quando há elevação")

        for name, value in changes.items():
            setattr(self, name, value)
        self.status = TicketStatus(status)
        self.updated_at = now

    # ── Eventos ──

    def record_event(
        self,
        event_type: AuditEventType,
        actor_id: UUID,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> TicketEvent:
        event = TicketEvent(
            ticket_id=self.id,
            tenant_id=self.tenant_id,
            actor_id=actor_id,
            event_type=event_type,
            payload=dict(payload or {}),
        )
        self._record_event(event)
        return event
