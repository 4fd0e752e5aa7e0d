"""
Schemas Pydantic — camada de Apresentação.

Requests das ações de workflow, saída de tickets/eventos, paginação e
error model para OpenAPI.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field

from fieldsurvey.domain.events.ticket_events import AuditEventType
from fieldsurvey.domain.systems.tickets.entity import TicketType
from fieldsurvey.domain.systems.workflow.transitions import TicketStatus, WorkflowVariant


# ════════════════════════════════════════════════════════════════
# GENERICS — Pagination wrapper
# ════════════════════════════════════════════════════════════════
T = TypeVar("T")


class PageResponse(BaseModel, Generic[T]):
    """Envelope de paginação por limit/offset — total é o conjunto filtrado."""
    items: list[T]
    total: int
    limit: int
    offset: int


# ════════════════════════════════════════════════════════════════
# ERROR MODEL (para Swagger docs)
# ════════════════════════════════════════════════════════════════
class ErrorResponse(BaseModel):
    error: str = Field(..., examples=["conflict"])
    detail: str = Field(..., examples=["Transição inválida: DRAFT → CLOSED na variante STANDARD_APPROVAL"])
    request_id: Optional[str] = None


# ════════════════════════════════════════════════════════════════
# TICKETS — requests
# ════════════════════════════════════════════════════════════════
class TicketCreate(BaseModel):
    project_id: UUID
    area_id: UUID
    subarea_id: UUID
    company_id: UUID
    ticket_type: TicketType
    workflow_variant: WorkflowVariant
    requested_date: datetime
    craft: str = Field("", max_length=255)
    description: str = ""
    parent_ticket_id: Optional[UUID] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "project_id": "5f0c7a8e-1c55-4a38-9d0e-2b1e3c4d5e6f",
                "area_id": "0b8f3a52-6c1d-4e7f-8a9b-0c1d2e3f4a5b",
                "subarea_id": "9a8b7c6d-5e4f-4a3b-2c1d-0e9f8a7b6c5d",
                "company_id": "1a2b3c4d-5e6f-4a7b-8c9d-0e1f2a3b4c5d",
                "ticket_type": "LAYOUT",
                "workflow_variant": "STANDARD_APPROVAL",
                "requested_date": "2026-11-02T07:00:00Z",
                "craft": "Concreto",
                "description": "Locação de estacas do bloco B",
            }
        }
    }


class RejectRequest(BaseModel):
    rejection_reason: str = Field(..., examples=["Falta licença"])


class ReasonRequest(BaseModel):
    reason: str = Field(..., examples=["Licença recebida"])


class AssignRequest(BaseModel):
    party_chief_id: Optional[UUID] = None
    instrument_man_id: Optional[UUID] = None


# ════════════════════════════════════════════════════════════════
# TICKETS — responses
# ════════════════════════════════════════════════════════════════
class TicketOut(BaseModel):
    id: UUID
    tenant_id: UUID
    project_id: UUID
    area_id: UUID
    subarea_id: UUID
    company_id: UUID
    ticket_number: str
    ticket_type: TicketType
    workflow_variant: WorkflowVariant
    status: TicketStatus
    requester_id: UUID
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
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TicketEventOut(BaseModel):
    id: UUID = Field(..., validation_alias="event_id")
    ticket_id: UUID
    actor_id: UUID
    event_type: AuditEventType
    payload: dict[str, Any] = {}
    created_at: datetime = Field(..., validation_alias="occurred_at")

    model_config = {"from_attributes": True}
