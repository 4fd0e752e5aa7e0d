"""
Use Cases de Tickets — camada de Aplicação.

Criação, ações de workflow (via TransitionExecutor) e leituras filtradas
por visibilidade.
"""

from __future__ import annotations

import logging
import uuid
from typing import Sequence

from fieldsurvey.application.dtos.ticket_dtos import (
    AssignTicketCommand,
    CreateTicketCommand,
    ElevatePriorityCommand,
    GetTicketQuery,
    ListTicketsQuery,
    OverrideRejectionCommand,
    RejectTicketCommand,
    TicketActionCommand,
)
from fieldsurvey.application.shared.unit_of_work import UnitOfWork
from fieldsurvey.domain.events.ticket_events import AuditEventType, TicketEvent
from fieldsurvey.domain.shared.errors import NotFoundError, ValidationError
from fieldsurvey.domain.shared.value_objects import Page, TicketNumber
from fieldsurvey.domain.systems.audit.repository import IAuditLogRepository
from fieldsurvey.domain.systems.identity.authorization_service import AuthorizationService
from fieldsurvey.domain.systems.tickets.entity import Ticket
from fieldsurvey.domain.systems.tickets.repository import (
    ISequenceAllocator,
    ITicketRepository,
)
from fieldsurvey.domain.systems.workflow.transitions import initial_status

from . import actions
from .executor import Clock, TransitionExecutor, utc_now

logger = logging.getLogger(__name__)

DEFAULT_TICKET_PREFIX = "FSS"


def _require_text(value: str, field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} é obrigatório")
    return text


# ════════════════════════════════════════════════════════════════
# CRIAÇÃO
# ════════════════════════════════════════════════════════════════

class CreateTicketUseCase:
    def __init__(
        self,
        repo: ITicketRepository,
        sequence: ISequenceAllocator,
        uow: UnitOfWork,
        clock: Clock = utc_now,
        prefix: str = DEFAULT_TICKET_PREFIX,
    ) -> None:
        self._repo = repo
        self._sequence = sequence
        self._uow = uow
        self._clock = clock
        self._prefix = prefix

    async def execute(self, cmd: CreateTicketCommand) -> Ticket:
        async with self._uow:
            area_code = await self._repo.find_area_code(cmd.tenant_id, cmd.area_id)
            if area_code is None:
                raise NotFoundError("Área", str(cmd.area_id))

            if cmd.parent_ticket_id is not None:
                parent = await self._repo.get_by_id_internal(cmd.tenant_id, cmd.parent_ticket_id)
                if parent is None:
                    raise NotFoundError("Ticket", str(cmd.parent_ticket_id))

            # Transação própria: o número não volta a ser usado mesmo que esta falhe.
            seq = await self._sequence.next_sequence(cmd.project_id)
            number = TicketNumber(prefix=self._prefix, area_code=area_code, sequence=seq)

            now = self._clock()
            ticket = Ticket(
                id=uuid.uuid4(),
                tenant_id=cmd.tenant_id,
                project_id=cmd.project_id,
                area_id=cmd.area_id,
                subarea_id=cmd.subarea_id,
                company_id=cmd.company_id,
                ticket_number=str(number),
                ticket_type=cmd.ticket_type,
                workflow_variant=cmd.workflow_variant,
                status=initial_status(cmd.workflow_variant),
                requester_id=cmd.requester_id,
                craft=cmd.craft,
                description=cmd.description,
                requested_date=cmd.requested_date,
                parent_ticket_id=cmd.parent_ticket_id,
                is_priority=cmd.is_whitelisted,
                created_at=now,
                updated_at=now,
            )

            created = await self._repo.add(ticket)
            await self._repo.add_cad_work(created)

            created.record_event(
                AuditEventType.CREATED,
                cmd.requester_id,
                {
                    "ticket_number": created.ticket_number,
                    "workflow_variant": created.workflow_variant.value,
                },
            )
            if cmd.is_whitelisted:
                created.record_event(
                    AuditEventType.PRIORITY_SET_BY_WHITELIST,
                    cmd.requester_id,
                    {"requester_email": cmd.requester_email},
                )

            self._uow.collect_events_from(created)
            await self._uow.commit()

        logger.info(
            "Ticket criado: %s (%s, status=%s)",
            created.ticket_number, created.workflow_variant.value, created.status.value,
        )
        return created


# ════════════════════════════════════════════════════════════════
# AÇÕES DE WORKFLOW
# ════════════════════════════════════════════════════════════════

class _ActionUseCase:
    """Ações sem dados extras: só delegam o descritor ao executor."""
    action: actions.TicketAction

    def __init__(self, executor: TransitionExecutor) -> None:
        self._executor = executor

    async def execute(self, cmd: TicketActionCommand) -> Ticket:
        return await self._executor.perform(self.action, cmd)


class SubmitTicketUseCase(_ActionUseCase):
    action = actions.SUBMIT


class ApproveTicketUseCase(_ActionUseCase):
    action = actions.APPROVE


class StartTicketUseCase(_ActionUseCase):
    action = actions.START


class CompleteTicketUseCase(_ActionUseCase):
    action = actions.COMPLETE


class CloseTicketUseCase(_ActionUseCase):
    action = actions.CLOSE


class RequestCancelUseCase(_ActionUseCase):
    action = actions.REQUEST_CANCEL


class ApproveCancelUseCase(_ActionUseCase):
    action = actions.APPROVE_CANCEL


class RejectCancelUseCase(_ActionUseCase):
    action = actions.REJECT_CANCEL


class RejectTicketUseCase:
    def __init__(self, executor: TransitionExecutor) -> None:
        self._executor = executor

    async def execute(self, cmd: RejectTicketCommand) -> Ticket:
        reason = _require_text(cmd.rejection_reason, "rejection_reason")
        return await self._executor.perform(
            actions.REJECT,
            cmd,
            changes={"rejection_reason": reason},
            payload={"rejection_reason": reason},
        )


class OverrideRejectionUseCase:
    def __init__(self, executor: TransitionExecutor) -> None:
        self._executor = executor

    async def execute(self, cmd: OverrideRejectionCommand) -> Ticket:
        reason = _require_text(cmd.reason, "reason")
        return await self._executor.perform(
            actions.OVERRIDE_REJECTION,
            cmd,
            changes={"rejection_reason": None},
            payload={"reason": reason},
        )


class AssignTicketUseCase:
    def __init__(self, executor: TransitionExecutor) -> None:
        self._executor = executor

    async def execute(self, cmd: AssignTicketCommand) -> Ticket:
        if cmd.party_chief_id is None:
            raise ValidationError("party_chief_id é obrigatório")

        instrument_man = str(cmd.instrument_man_id) if cmd.instrument_man_id else None
        return await self._executor.perform(
            actions.ASSIGN,
            cmd,
            changes={
                "assigned_party_chief_id": cmd.party_chief_id,
                "assigned_instrument_man_id": cmd.instrument_man_id,
                "survey_lead_id": cmd.actor_id,
            },
            payload={
                "assigned_party_chief_id": str(cmd.party_chief_id),
                "assigned_instrument_man_id": instrument_man,
            },
        )


class ElevatePriorityUseCase:
    def __init__(self, executor: TransitionExecutor) -> None:
        self._executor = executor

    async def execute(self, cmd: ElevatePriorityCommand) -> Ticket:
        # Role antes do motivo: quem não pode elevar recebe 403, não 400.
        AuthorizationService.ensure_actor_has_role(
            cmd.actor_role, actions.ELEVATE_PRIORITY.permitted_roles,
        )
        reason = _require_text(cmd.reason, "reason")
        return await self._executor.perform(
            actions.ELEVATE_PRIORITY,
            cmd,
            changes={
                "is_priority": True,
                "priority_elevated_by": cmd.actor_id,
                "priority_elevated_reason": reason,
            },
            payload={"reason": reason},
        )


# ════════════════════════════════════════════════════════════════
# LEITURAS
# ════════════════════════════════════════════════════════════════

class GetTicketUseCase:
    def __init__(self, repo: ITicketRepository) -> None:
        self._repo = repo

    async def execute(self, query: GetTicketQuery) -> Ticket:
        ticket = await self._repo.find_visible(query.tenant_id, query.ticket_id, query.scope)
        if ticket is None:
            # Inexistente e invisível são indistinguíveis.
            raise NotFoundError("Ticket", str(query.ticket_id))
        return ticket


class ListTicketsUseCase:
    def __init__(self, repo: ITicketRepository) -> None:
        self._repo = repo

    async def execute(self, query: ListTicketsQuery) -> Page[Ticket]:
        if query.limit < 1:
            raise ValidationError("limit deve ser >= 1")
        if query.offset < 0:
            raise ValidationError("offset deve ser >= 0")
        return await self._repo.list_visible(
            query.tenant_id,
            query.project_id,
            query.scope,
            limit=query.limit,
            offset=query.offset,
        )


class ListTicketEventsUseCase:
    """Histórico de auditoria — exige que o ticket seja visível ao ator."""

    def __init__(self, repo: ITicketRepository, audit_log: IAuditLogRepository) -> None:
        self._repo = repo
        self._audit_log = audit_log

    async def execute(self, query: GetTicketQuery) -> Sequence[TicketEvent]:
        ticket = await self._repo.find_visible(query.tenant_id, query.ticket_id, query.scope)
        if ticket is None:
            raise NotFoundError("Ticket", str(query.ticket_id))
        return await self._audit_log.list_for_ticket(query.tenant_id, ticket.id)
