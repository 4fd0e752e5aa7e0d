from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence
from uuid import UUID

from fieldsurvey.domain.events.ticket_events import AuditEventType, TicketEvent


class IAuditLogRepository(ABC):
    """Log append-only: não existe operação de update nem de delete."""

    @abstractmethod
    async def append(
        self,
        ticket_id: UUID,
        tenant_id: UUID,
        actor_id: UUID,
        event_type: AuditEventType,
        payload: dict[str, Any],
    ) -> TicketEvent:
        ...

    @abstractmethod
    async def list_for_ticket(self, tenant_id: UUID, ticket_id: UUID) -> Sequence[TicketEvent]:
        ...
