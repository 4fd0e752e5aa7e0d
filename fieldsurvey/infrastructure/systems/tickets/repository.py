"""
Implementação concreta do repositório de Tickets — SQLAlchemy.

A visibilidade vira um predicado SQL escolhido por tabela indexada pela
role do ator; roles fora da tabela não enxergam nada.
"""

from __future__ import annotations

import uuid
from typing import Callable, Iterable, Optional

from sqlalchemy import ColumnElement, false, func, or_, select, true, update
from sqlalchemy.ext.asyncio import AsyncSession

from fieldsurvey.domain.shared.errors import ConflictError
from fieldsurvey.domain.shared.value_objects import Page
from fieldsurvey.domain.systems.identity.roles import ProjectRole
from fieldsurvey.domain.systems.tickets.entity import Ticket, TicketType, as_utc
from fieldsurvey.domain.systems.tickets.repository import ITicketRepository
from fieldsurvey.domain.systems.tickets.visibility import (
    FULL_VISIBILITY_ROLES,
    VisibilityScope,
)
from fieldsurvey.domain.systems.workflow.transitions import TicketStatus, WorkflowVariant
from fieldsurvey.infrastructure.database.models import AreaModel, CadWorkModel, TicketModel


# ── Predicados de visibilidade por role ──

def _requester(scope: VisibilityScope) -> ColumnElement[bool]:
    return TicketModel.requester_id == scope.actor_id


def _party_chief(scope: VisibilityScope) -> ColumnElement[bool]:
    return TicketModel.assigned_party_chief_id == scope.actor_id


def _instrument_man(scope: VisibilityScope) -> ColumnElement[bool]:
    own = TicketModel.assigned_instrument_man_id == scope.actor_id
    if scope.party_chief_id is None:
        return own
    return or_(TicketModel.assigned_party_chief_id == scope.party_chief_id, own)


def _area_viewer(scope: VisibilityScope) -> ColumnElement[bool]:
    if not scope.area_ids:
        return false()
    return TicketModel.area_id.in_(list(scope.area_ids))


def _everything(scope: VisibilityScope) -> ColumnElement[bool]:
    return true()


_VISIBILITY_PREDICATES: dict[ProjectRole, Callable[[VisibilityScope], ColumnElement[bool]]] = {
    **{role: _everything for role in FULL_VISIBILITY_ROLES},
    ProjectRole.REQUESTER: _requester,
    ProjectRole.PARTY_CHIEF: _party_chief,
    ProjectRole.INSTRUMENT_MAN: _instrument_man,
    ProjectRole.AREA_VIEWER: _area_viewer,
}


def visibility_predicate(scope: VisibilityScope) -> ColumnElement[bool]:
    build = _VISIBILITY_PREDICATES.get(scope.actor_role)
    if build is None:
        return false()
    return build(scope)


class TicketRepository(ITicketRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _to_entity(model: TicketModel) -> Ticket:
        def _dt(value):
            return as_utc(value) if value is not None else None

        return Ticket(
            id=model.id,
            tenant_id=model.tenant_id,
            project_id=model.project_id,
            area_id=model.area_id,
            subarea_id=model.subarea_id,
            company_id=model.company_id,
            ticket_number=model.ticket_number,
            ticket_type=TicketType(model.ticket_type),
            workflow_variant=WorkflowVariant(model.workflow_variant),
            status=TicketStatus(model.status),
            requester_id=model.requester_id,
            assigned_party_chief_id=model.assigned_party_chief_id,
            assigned_instrument_man_id=model.assigned_instrument_man_id,
            survey_lead_id=model.survey_lead_id,
            craft=model.craft or "",
            description=model.description or "",
            requested_date=_dt(model.requested_date),
            submitted_at=_dt(model.submitted_at),
            approved_at=_dt(model.approved_at),
            assigned_at=_dt(model.assigned_at),
            started_at=_dt(model.started_at),
            completed_at=_dt(model.completed_at),
            closed_at=_dt(model.closed_at),
            rejection_reason=model.rejection_reason,
            parent_ticket_id=model.parent_ticket_id,
            is_priority=bool(model.is_priority),
            priority_elevated_by=model.priority_elevated_by,
            priority_elevated_reason=model.priority_elevated_reason,
            created_at=_dt(model.created_at),
            updated_at=_dt(model.updated_at),
        )

    def _scoped(self, stmt, tenant_id: uuid.UUID, scope: VisibilityScope):
        return stmt.where(TicketModel.tenant_id == tenant_id, visibility_predicate(scope))

    # ── Leitura ──

    async def get_by_id_internal(self, tenant_id: uuid.UUID, ticket_id: uuid.UUID) -> Optional[Ticket]:
        stmt = select(TicketModel).where(
            TicketModel.id == ticket_id,
            TicketModel.tenant_id == tenant_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_visible(
        self, tenant_id: uuid.UUID, ticket_id: uuid.UUID, scope: VisibilityScope,
    ) -> Optional[Ticket]:
        stmt = self._scoped(select(TicketModel), tenant_id, scope).where(TicketModel.id == ticket_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_visible(
        self,
        tenant_id: uuid.UUID,
        project_id: uuid.UUID,
        scope: VisibilityScope,
        *,
        limit: int,
        offset: int,
    ) -> Page[Ticket]:
        count_stmt = self._scoped(select(func.count(TicketModel.id)), tenant_id, scope)
        count_stmt = count_stmt.where(TicketModel.project_id == project_id)
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = self._scoped(select(TicketModel), tenant_id, scope)
        stmt = (
            stmt.where(TicketModel.project_id == project_id)
            .order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        items = [self._to_entity(m) for m in result.scalars().all()]
        return Page(items=items, total=total, limit=limit, offset=offset)

    async def get_project_id(self, tenant_id: uuid.UUID, ticket_id: uuid.UUID) -> Optional[uuid.UUID]:
        stmt = select(TicketModel.project_id).where(
            TicketModel.id == ticket_id,
            TicketModel.tenant_id == tenant_id,
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def find_area_code(self, tenant_id: uuid.UUID, area_id: uuid.UUID) -> Optional[str]:
        stmt = select(AreaModel.code).where(
            AreaModel.id == area_id,
            AreaModel.tenant_id == tenant_id,
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    # ── Escrita ──

    async def add(self, ticket: Ticket) -> Ticket:
        model = TicketModel(
            id=ticket.id or uuid.uuid4(),
            tenant_id=ticket.tenant_id,
            project_id=ticket.project_id,
            area_id=ticket.area_id,
            subarea_id=ticket.subarea_id,
            company_id=ticket.company_id,
            ticket_number=ticket.ticket_number,
            ticket_type=ticket.ticket_type.value,
            workflow_variant=ticket.workflow_variant.value,
            status=ticket.status.value,
            requester_id=ticket.requester_id,
            craft=ticket.craft,
            description=ticket.description,
            requested_date=ticket.requested_date,
            parent_ticket_id=ticket.parent_ticket_id,
            is_priority=ticket.is_priority,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        ticket.id = model.id
        return ticket

    async def add_cad_work(self, ticket: Ticket) -> None:
        self._session.add(CadWorkModel(
            id=uuid.uuid4(),
            ticket_id=ticket.id,
            tenant_id=ticket.tenant_id,
            cad_status="NOT_REQUIRED",
        ))
        await self._session.flush()

    async def update_if_status(
        self,
        ticket: Ticket,
        expected_status: TicketStatus,
        changed_fields: Iterable[str],
    ) -> None:
        # Só as colunas do patch; o resto pode ter sido gravado por outra ação.
        values = {name: getattr(ticket, name) for name in changed_fields}
        values["status"] = ticket.status.value
        values["updated_at"] = ticket.updated_at

        stmt = (
            update(TicketModel)
            .where(
                TicketModel.id == ticket.id,
                TicketModel.tenant_id == ticket.tenant_id,
                TicketModel.status == TicketStatus(expected_status).value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:
            raise ConflictError(
                f"Ticket {ticket.ticket_number} foi alterado por outra requisição"
            )
