"""Testes das ações com regras próprias — 48h, motivos, atribuição e prioridade."""

from datetime import datetime, timedelta, timezone

import pytest

from fieldsurvey.application.dtos.ticket_dtos import (
    AssignTicketCommand,
    ElevatePriorityCommand,
    OverrideRejectionCommand,
    RejectTicketCommand,
    TicketActionCommand,
)
from fieldsurvey.application.systems.tickets.use_cases import (
    AssignTicketUseCase,
    CloseTicketUseCase,
    CompleteTicketUseCase,
    ElevatePriorityUseCase,
    OverrideRejectionUseCase,
    RejectTicketUseCase,
    StartTicketUseCase,
    SubmitTicketUseCase,
)
from fieldsurvey.domain.events.ticket_events import AuditEventType
from fieldsurvey.domain.shared.errors import ConflictError, ForbiddenError, ValidationError
from fieldsurvey.domain.systems.identity.roles import ProjectRole
from fieldsurvey.domain.systems.workflow.transitions import TicketStatus, WorkflowVariant
from tests.conftest import load_events, load_ticket, run_action

R = ProjectRole
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def fixed_clock():
    return NOW


def _cmd(world, ticket, actor_id, role, cls=TicketActionCommand, **extra):
    return cls(
        tenant_id=world.tenant_id,
        ticket_id=ticket.id,
        actor_id=actor_id,
        actor_role=role,
        **extra,
    )


async def _submitted(world, session_factory):
    requester = await world.add_user(R.REQUESTER.value)
    ticket = await world.create_ticket(requester)
    await run_action(session_factory, SubmitTicketUseCase, _cmd(world, ticket, requester, R.REQUESTER))
    return ticket


# ════════════════════════════════════════════════════════════════
# SUBMIT — regra das 48h e dono do ticket
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_submit_just_over_48h_succeeds(world, session_factory):
    requester = await world.add_user(R.REQUESTER.value)
    ticket = await world.create_ticket(
        requester, requested_date=NOW + timedelta(hours=48, seconds=1),
    )

    submitted = await run_action(
        session_factory, SubmitTicketUseCase,
        _cmd(world, ticket, requester, R.REQUESTER),
        clock=fixed_clock,
    )
    assert submitted.status == TicketStatus.SUBMITTED
    assert submitted.submitted_at == NOW


@pytest.mark.asyncio
async def test_submit_under_48h_is_validation_error(world, session_factory):
    requester = await world.add_user(R.REQUESTER.value)
    ticket = await world.create_ticket(
        requester, requested_date=NOW + timedelta(hours=47),
    )

    with pytest.raises(ValidationError):
        await run_action(
            session_factory, SubmitTicketUseCase,
            _cmd(world, ticket, requester, R.REQUESTER),
            clock=fixed_clock,
        )

    stored = await load_ticket(session_factory, world.tenant_id, ticket.id)
    assert stored.status == TicketStatus.DRAFT
    assert stored.submitted_at is None


@pytest.mark.asyncio
async def test_submit_someone_elses_ticket_is_forbidden(world, session_factory):
    owner = await world.add_user(R.REQUESTER.value)
    intruder = await world.add_user(R.REQUESTER.value)
    ticket = await world.create_ticket(owner)

    with pytest.raises(ForbiddenError):
        await run_action(session_factory, SubmitTicketUseCase, _cmd(world, ticket, intruder, R.REQUESTER))


# ════════════════════════════════════════════════════════════════
# REJECT / OVERRIDE
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
@pytest.mark.parametrize("reason", ["", "   "])
async def test_reject_requires_reason(world, session_factory, reason):
    approver = await world.add_user(R.APPROVER.value)
    ticket = await _submitted(world, session_factory)

    with pytest.raises(ValidationError):
        await run_action(
            session_factory, RejectTicketUseCase,
            _cmd(world, ticket, approver, R.APPROVER, RejectTicketCommand, rejection_reason=reason),
        )
    stored = await load_ticket(session_factory, world.tenant_id, ticket.id)
    assert stored.status == TicketStatus.SUBMITTED


@pytest.mark.asyncio
async def test_override_clears_rejection_reason(world, session_factory):
    approver = await world.add_user(R.APPROVER.value)
    ticket = await _submitted(world, session_factory)
    rejected = await run_action(
        session_factory, RejectTicketUseCase,
        _cmd(world, ticket, approver, R.APPROVER, RejectTicketCommand, rejection_reason="missing permit"),
    )
    assert rejected.rejection_reason == "missing permit"

    with pytest.raises(ValidationError):
        await run_action(
            session_factory, OverrideRejectionUseCase,
            _cmd(world, ticket, approver, R.APPROVER, OverrideRejectionCommand, reason=""),
        )

    approved = await run_action(
        session_factory, OverrideRejectionUseCase,
        _cmd(world, ticket, approver, R.APPROVER, OverrideRejectionCommand, reason="permit received"),
    )
    assert approved.status == TicketStatus.APPROVED
    assert approved.rejection_reason is None
    assert approved.approved_at is not None

    events = await load_events(session_factory, world.tenant_id, ticket.id)
    assert events[-1].event_type == AuditEventType.REJECTION_OVERRIDDEN
    assert events[-1].payload == {"reason": "permit received"}


# ════════════════════════════════════════════════════════════════
# ASSIGN
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_assign_requires_party_chief(world, session_factory):
    requester = await world.add_user(R.REQUESTER.value)
    lead = await world.add_user(R.SURVEY_LEAD.value)
    ticket = await world.create_ticket(requester, variant=WorkflowVariant.DIRECT_ASSIGNMENT)

    with pytest.raises(ValidationError):
        await run_action(
            session_factory, AssignTicketUseCase,
            _cmd(world, ticket, lead, R.SURVEY_LEAD, AssignTicketCommand),
        )


@pytest.mark.asyncio
async def test_assign_without_instrument_man(world, session_factory):
    requester = await world.add_user(R.REQUESTER.value)
    lead = await world.add_user(R.SURVEY_LEAD.value)
    pc = await world.add_user(R.PARTY_CHIEF.value)
    ticket = await world.create_ticket(requester, variant=WorkflowVariant.DIRECT_ASSIGNMENT)

    assigned = await run_action(
        session_factory, AssignTicketUseCase,
        _cmd(world, ticket, lead, R.SURVEY_LEAD, AssignTicketCommand, party_chief_id=pc),
    )
    assert assigned.assigned_party_chief_id == pc
    assert assigned.assigned_instrument_man_id is None

    events = await load_events(session_factory, world.tenant_id, ticket.id)
    assert events[-1].payload == {
        "assigned_party_chief_id": str(pc),
        "assigned_instrument_man_id": None,
    }


@pytest.mark.asyncio
async def test_assign_from_submitted_is_conflict(world, session_factory):
    lead = await world.add_user(R.SURVEY_LEAD.value)
    pc = await world.add_user(R.PARTY_CHIEF.value)
    ticket = await _submitted(world, session_factory)

    with pytest.raises(ConflictError):
        await run_action(
            session_factory, AssignTicketUseCase,
            _cmd(world, ticket, lead, R.SURVEY_LEAD, AssignTicketCommand, party_chief_id=pc),
        )


# ════════════════════════════════════════════════════════════════
# ELEVATE PRIORITY
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_elevate_priority_keeps_status(world, session_factory):
    lead = await world.add_user(R.SURVEY_LEAD.value)
    ticket = await _submitted(world, session_factory)

    elevated = await run_action(
        session_factory, ElevatePriorityUseCase,
        _cmd(world, ticket, lead, R.SURVEY_LEAD, ElevatePriorityCommand, reason="concretagem amanhã"),
    )
    assert elevated.status == TicketStatus.SUBMITTED
    assert elevated.is_priority is True
    assert elevated.priority_elevated_by == lead
    assert elevated.priority_elevated_reason == "concretagem amanhã"

    stored = await load_ticket(session_factory, world.tenant_id, ticket.id)
    assert stored.is_priority is True
    events = await load_events(session_factory, world.tenant_id, ticket.id)
    assert events[-1].event_type == AuditEventType.PRIORITY_ELEVATED
    assert events[-1].payload == {"reason": "concretagem amanhã"}


@pytest.mark.asyncio
async def test_elevate_priority_rules(world, session_factory):
    requester = await world.add_user(R.REQUESTER.value)
    approver = await world.add_user(R.APPROVER.value)
    ticket = await world.create_ticket(requester)

    with pytest.raises(ValidationError):
        await run_action(
            session_factory, ElevatePriorityUseCase,
            _cmd(world, ticket, approver, R.APPROVER, ElevatePriorityCommand, reason=""),
        )
    with pytest.raises(ForbiddenError):
        await run_action(
            session_factory, ElevatePriorityUseCase,
            _cmd(world, ticket, requester, R.REQUESTER, ElevatePriorityCommand, reason="urgente"),
        )
    # Sem role, o motivo nem chega a ser validado.
    with pytest.raises(ForbiddenError):
        await run_action(
            session_factory, ElevatePriorityUseCase,
            _cmd(world, ticket, requester, R.REQUESTER, ElevatePriorityCommand, reason="  "),
        )

    stored = await load_ticket(session_factory, world.tenant_id, ticket.id)
    assert stored.is_priority is False
    assert stored.priority_elevated_by is None


@pytest.mark.asyncio
async def test_elevate_priority_on_closed_ticket(world, session_factory):
    requester = await world.add_user(R.REQUESTER.value)
    lead = await world.add_user(R.SURVEY_LEAD.value)
    pc = await world.add_user(R.PARTY_CHIEF.value)
    ticket = await world.create_ticket(requester, variant=WorkflowVariant.DIRECT_ASSIGNMENT)
    await run_action(
        session_factory, AssignTicketUseCase,
        _cmd(world, ticket, lead, R.SURVEY_LEAD, AssignTicketCommand, party_chief_id=pc),
    )
    for use_case in (StartTicketUseCase, CompleteTicketUseCase, CloseTicketUseCase):
        await run_action(session_factory, use_case, _cmd(world, ticket, lead, R.SURVEY_LEAD))

    elevated = await run_action(
        session_factory, ElevatePriorityUseCase,
        _cmd(world, ticket, lead, R.SURVEY_LEAD, ElevatePriorityCommand, reason="retrabalho"),
    )
    assert elevated.status == TicketStatus.CLOSED
    assert elevated.is_priority is True
