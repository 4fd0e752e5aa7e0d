"""Audit log de tickets — só inserção e leitura."""

from __future__ import annotations

import uuid
from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldsurvey.domain.events.ticket_events import AuditEventType, TicketEvent
from fieldsurvey.domain.systems.audit.repository import IAuditLogRepository
from fieldsurvey.domain.systems.tickets.entity import as_utc
from fieldsurvey.infrastructure.database.models import TicketEventModel


class AuditLogRepository(IAuditLogRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _to_event(model: TicketEventModel) -> TicketEvent:
        return TicketEvent(
            event_id=model.event_id,
            occurred_at=as_utc(model.created_at),
            ticket_id=model.ticket_id,
            tenant_id=model.tenant_id,
            actor_id=model.actor_id,
            event_type=AuditEventType(model.event_type),
            payload=dict(model.payload or {}),
        )

    async def append(
        self,
        ticket_id: uuid.UUID,
        tenant_id: uuid.UUID,
        actor_id: uuid.UUID,
        event_type: AuditEventType,
        payload: dict[str, Any],
    ) -> TicketEvent:
        model = TicketEventModel(
            event_id=uuid.uuid4(),
            ticket_id=ticket_id,
            tenant_id=tenant_id,
            actor_id=actor_id,
            event_type=AuditEventType(event_type).value,
            payload=dict(payload or {}),
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_event(model)

    async def list_for_ticket(self, tenant_id: uuid.UUID, ticket_id: uuid.UUID) -> Sequence[TicketEvent]:
        stmt = (
            select(TicketEventModel)
            .where(
                TicketEventModel.tenant_id == tenant_id,
                TicketEventModel.ticket_id == ticket_id,
            )
            .order_by(TicketEventModel.id)
        )
        result = await self._session.execute(stmt)
        return [self._to_event(m) for m in result.scalars().all()]
