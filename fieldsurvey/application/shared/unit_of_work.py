"""
Unit of Work — garante transacionalidade da mutação + auditoria.

Encapsula a sessão do banco. No commit, grava os eventos coletados das
entidades no audit log usando a MESMA sessão, e só então confirma a
transação: ticket e log ficam sempre consistentes entre si.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from fieldsurvey.domain.events.base import AggregateRoot, DomainEvent
from fieldsurvey.domain.events.ticket_events import TicketEvent
from fieldsurvey.domain.systems.audit.repository import IAuditLogRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, session: AsyncSession, audit_log: IAuditLogRepository) -> None:
        self._session = session
        self._audit_log = audit_log
        self._pending_events: list[DomainEvent] = []

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        # Qualquer exceção antes do commit desfaz ticket e auditoria juntos.
        if exc_type is not None:
            await self.rollback()

    def collect_events_from(self, *aggregates: AggregateRoot) -> None:
        """Coleta eventos pendentes de um ou mais aggregates."""
        for agg in aggregates:
            self._pending_events.extend(agg.collect_events())

    async def commit(self) -> None:
        """Grava eventos pendentes no audit log + commit da sessão."""
        for event in self._pending_events:
            if isinstance(event, TicketEvent):
                await self._audit_log.append(
                    ticket_id=event.ticket_id,
                    tenant_id=event.tenant_id,
                    actor_id=event.actor_id,
                    event_type=event.event_type,
                    payload=event.payload,
                )
        await self._session.commit()
        self._pending_events.clear()

    async def rollback(self) -> None:
        await self._session.rollback()
        if self._pending_events:
            logger.debug("Descartando %d evento(s) pendente(s)", len(self._pending_events))
        self._pending_events.clear()

    async def flush(self) -> None:
        await self._session.flush()
