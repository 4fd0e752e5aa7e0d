"""
TransitionExecutor — único ponto de mutação de tickets existentes.

Carrega (sem filtro de visibilidade), autoriza a role, valida a transição,
aplica o patch e registra exatamente um evento de auditoria. Tudo dentro do
mesmo UnitOfWork: qualquer falha desfaz ticket e auditoria juntos.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from fieldsurvey.application.dtos.ticket_dtos import TicketActionCommand
from fieldsurvey.application.shared.unit_of_work import UnitOfWork
from fieldsurvey.domain.shared.errors import NotFoundError
from fieldsurvey.domain.systems.identity.authorization_service import (
    ActorContext,
    AuthorizationService,
)
from fieldsurvey.domain.systems.tickets.entity import Ticket
from fieldsurvey.domain.systems.tickets.repository import ITicketRepository
from fieldsurvey.domain.systems.workflow.transitions import validate_transition

from .actions import TicketAction

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TransitionExecutor:
    def __init__(
        self,
        repo: ITicketRepository,
        uow: UnitOfWork,
        clock: Clock = utc_now,
    ) -> None:
        self._repo = repo
        self._uow = uow
        self._clock = clock

    async def perform(
        self,
        action: TicketAction,
        cmd: TicketActionCommand,
        changes: Optional[Mapping[str, Any]] = None,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> Ticket:
        async with self._uow:
            ticket = await self._repo.get_by_id_internal(cmd.tenant_id, cmd.ticket_id)
            if ticket is None:
                raise NotFoundError("Ticket", str(cmd.ticket_id))

            AuthorizationService.ensure_actor_has_role(cmd.actor_role, action.permitted_roles)

            now = self._clock()
            actor = ActorContext(
                tenant_id=cmd.tenant_id,
                actor_id=cmd.actor_id,
                role=cmd.actor_role,
            )
            for guard in action.guards:
                guard(ticket, actor, now)

            expected_status = ticket.status
            target_status = action.target_status or expected_status
            if action.target_status is not None:
                validate_transition(ticket.workflow_variant, expected_status, target_status)

            patch = dict(changes or {})
            if action.timestamp_field:
                patch[action.timestamp_field] = now

            ticket.apply_changes(target_status, patch, now)
            ticket.record_event(action.event_type, cmd.actor_id, payload)

            await self._repo.update_if_status(ticket, expected_status, patch.keys())
            self._uow.collect_events_from(ticket)
            await self._uow.commit()

        logger.info(
            "Ticket %s: %s por %s (%s → %s)",
            ticket.ticket_number, action.name, cmd.actor_id,
            expected_status.value, ticket.status.value,
        )
        return ticket
