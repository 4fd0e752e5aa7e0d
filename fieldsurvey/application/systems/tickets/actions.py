"""
Ações nomeadas do workflow — descritores declarativos consumidos pelo
TransitionExecutor. Cada ação define roles permitidas, status alvo,
marco de tempo, guards extras e o tipo do evento de auditoria.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from fieldsurvey.domain.events.ticket_events import AuditEventType
from fieldsurvey.domain.systems.identity.authorization_service import (
    ActorContext,
    AuthorizationService,
)
from fieldsurvey.domain.systems.identity.roles import ProjectRole
from fieldsurvey.domain.systems.tickets.entity import Ticket
from fieldsurvey.domain.systems.workflow.transitions import TicketStatus

Guard = Callable[[Ticket, ActorContext, datetime], None]

R = ProjectRole


def require_own_ticket(ticket: Ticket, actor: ActorContext, now: datetime) -> None:
    AuthorizationService.ensure_owner(actor.actor_id, ticket.requester_id)


def require_notice_period(ticket: Ticket, actor: ActorContext, now: datetime) -> None:
    ticket.ensure_notice_period(now)


@dataclass(frozen=True)
class TicketAction:
    name: str
    permitted_roles: frozenset[ProjectRole]
    event_type: AuditEventType
    # None = status inalterado (ex.: elevação de prioridade)
    target_status: Optional[TicketStatus] = None
    # Campo de marco preenchido com o instante da ação
    timestamp_field: Optional[str] = None
    guards: tuple[Guard, ...] = ()


SUBMIT = TicketAction(
    name="submit",
    permitted_roles=frozenset({R.REQUESTER}),
    target_status=TicketStatus.SUBMITTED,
    timestamp_field="submitted_at",
    event_type=AuditEventType.SUBMITTED,
    guards=(require_own_ticket, require_notice_period),
)

APPROVE = TicketAction(
    name="approve",
    permitted_roles=frozenset({R.APPROVER}),
    target_status=TicketStatus.APPROVED,
    timestamp_field="approved_at",
    event_type=AuditEventType.APPROVED,
)

REJECT = TicketAction(
    name="reject",
    permitted_roles=frozenset({R.APPROVER}),
    target_status=TicketStatus.REJECTED,
    event_type=AuditEventType.REJECTED,
)

OVERRIDE_REJECTION = TicketAction(
    name="override-rejection",
    permitted_roles=frozenset({R.APPROVER}),
    target_status=TicketStatus.APPROVED,
    timestamp_field="approved_at",
    event_type=AuditEventType.REJECTION_OVERRIDDEN,
)

ASSIGN = TicketAction(
    name="assign",
    permitted_roles=frozenset({R.SURVEY_LEAD}),
    target_status=TicketStatus.ASSIGNED,
    timestamp_field="assigned_at",
    event_type=AuditEventType.ASSIGNED,
)

START = TicketAction(
    name="start",
    permitted_roles=frozenset({R.PARTY_CHIEF, R.INSTRUMENT_MAN, R.SURVEY_LEAD}),
    target_status=TicketStatus.IN_PROGRESS,
    timestamp_field="started_at",
    event_type=AuditEventType.IN_PROGRESS,
)

COMPLETE = TicketAction(
    name="complete",
    permitted_roles=frozenset({R.PARTY_CHIEF, R.INSTRUMENT_MAN, R.SURVEY_LEAD}),
    target_status=TicketStatus.COMPLETED,
    timestamp_field="completed_at",
    event_type=AuditEventType.COMPLETED,
)

CLOSE = TicketAction(
    name="close",
    permitted_roles=frozenset({R.SURVEY_LEAD}),
    target_status=TicketStatus.CLOSED,
    timestamp_field="closed_at",
    event_type=AuditEventType.CLOSED,
)

# Todas as roles de projeto, exceto AREA_VIEWER.
REQUEST_CANCEL = TicketAction(
    name="cancel-request",
    permitted_roles=frozenset({
        R.REQUESTER, R.APPROVER, R.SURVEY_LEAD, R.PARTY_CHIEF,
        R.INSTRUMENT_MAN, R.CAD_TECHNICIAN, R.CAD_LEAD, R.VIEWER,
    }),
    target_status=TicketStatus.CANCEL_REQUESTED,
    event_type=AuditEventType.CANCEL_REQUESTED,
)

APPROVE_CANCEL = TicketAction(
    name="approve-cancel",
    permitted_roles=frozenset({R.APPROVER, R.SURVEY_LEAD}),
    target_status=TicketStatus.CANCEL_APPROVED,
    event_type=AuditEventType.CANCEL_APPROVED,
)

REJECT_CANCEL = TicketAction(
    name="reject-cancel",
    permitted_roles=frozenset({R.APPROVER, R.SURVEY_LEAD}),
    target_status=TicketStatus.CANCEL_REJECTED,
    event_type=AuditEventType.CANCEL_REJECTED,
)

ELEVATE_PRIORITY = TicketAction(
    name="elevate-priority",
    permitted_roles=frozenset({R.SURVEY_LEAD, R.APPROVER}),
    event_type=AuditEventType.PRIORITY_ELEVATED,
)

ACTIONS: dict[str, TicketAction] = {
    a.name: a
    for a in (
        SUBMIT, APPROVE, REJECT, OVERRIDE_REJECTION, ASSIGN, START, COMPLETE,
        CLOSE, REQUEST_CANCEL, APPROVE_CANCEL, REJECT_CANCEL, ELEVATE_PRIORITY,
    )
}
