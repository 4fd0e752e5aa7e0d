"""DTOs da camada de aplicação para Tickets — commands e queries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from fieldsurvey.domain.systems.identity.roles import RoleValue
from fieldsurvey.domain.systems.tickets.entity import TicketType
from fieldsurvey.domain.systems.tickets.visibility import VisibilityScope
from fieldsurvey.domain.systems.workflow.transitions import WorkflowVariant


# ════════════════════════════════════════════════════════════════
# COMMANDS
# ════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CreateTicketCommand:
    tenant_id: UUID
    project_id: UUID
    area_id: UUID
    subarea_id: UUID
    company_id: UUID
    requester_id: UUID
    ticket_type: TicketType
    workflow_variant: WorkflowVariant
    requested_date: datetime
    craft: str = ""
    description: str = ""
    requester_email: str = ""
    parent_ticket_id: Optional[UUID] = None
    # Resultado da consulta à whitelist feita antes do use case.
    is_whitelisted: bool = False


@dataclass(frozen=True)
class TicketActionCommand:
    """Base de toda ação de workflow: quem age, sobre qual ticket."""
    tenant_id: UUID
    ticket_id: UUID
    actor_id: UUID
    actor_role: RoleValue


@dataclass(frozen=True)
class RejectTicketCommand(TicketActionCommand):
    rejection_reason: str = ""


@dataclass(frozen=True)
class OverrideRejectionCommand(TicketActionCommand):
    reason: str = ""


@dataclass(frozen=True)
class AssignTicketCommand(TicketActionCommand):
    party_chief_id: Optional[UUID] = None
    instrument_man_id: Optional[UUID] = None


@dataclass(frozen=True)
class ElevatePriorityCommand(TicketActionCommand):
    reason: str = ""


# ════════════════════════════════════════════════════════════════
# QUERIES
# ════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GetTicketQuery:
    tenant_id: UUID
    ticket_id: UUID
    scope: VisibilityScope


@dataclass(frozen=True)
class ListTicketsQuery:
    tenant_id: UUID
    project_id: UUID
    scope: VisibilityScope
    limit: int = 50
    offset: int = 0
