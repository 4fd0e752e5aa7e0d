"""
Endpoints de Tickets — /api/v1/tickets

Criação, listagem paginada por visibilidade, detalhe, histórico de
auditoria e uma rota POST por ação de workflow.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

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
from fieldsurvey.application.systems.tickets.executor import TransitionExecutor
from fieldsurvey.application.systems.tickets.use_cases import (
    ApproveCancelUseCase,
    ApproveTicketUseCase,
    AssignTicketUseCase,
    CloseTicketUseCase,
    CompleteTicketUseCase,
    CreateTicketUseCase,
    ElevatePriorityUseCase,
    GetTicketUseCase,
    ListTicketEventsUseCase,
    ListTicketsUseCase,
    OverrideRejectionUseCase,
    RejectCancelUseCase,
    RejectTicketUseCase,
    RequestCancelUseCase,
    StartTicketUseCase,
    SubmitTicketUseCase,
)
from fieldsurvey.application.systems.tickets.visibility import VisibilityResolver
from fieldsurvey.domain.systems.tickets.visibility import VisibilityScope
from fieldsurvey.infrastructure.config import get_settings
from fieldsurvey.infrastructure.systems.audit.repository import AuditLogRepository
from fieldsurvey.infrastructure.systems.memberships.repository import MembershipDirectory
from fieldsurvey.infrastructure.systems.tickets.repository import TicketRepository
from fieldsurvey.infrastructure.systems.tickets.sequence import SequenceAllocator
from fieldsurvey.presentation.api.v1.deps import (
    AuthContext,
    TicketActorContext,
    get_audit_repo,
    get_auth_context,
    get_executor,
    get_membership_directory,
    get_sequence_allocator,
    get_ticket_actor,
    get_ticket_repo,
    get_ticket_scope,
    get_uow,
    get_visibility_resolver,
)
from fieldsurvey.presentation.api.v1.schemas import (
    AssignRequest,
    PageResponse,
    ReasonRequest,
    RejectRequest,
    TicketCreate,
    TicketEventOut,
    TicketOut,
)

settings = get_settings()
router = APIRouter()


def _to_out(ticket) -> TicketOut:
    return TicketOut.model_validate(ticket)


def _action_cmd(ctx: TicketActorContext) -> TicketActionCommand:
    return TicketActionCommand(
        tenant_id=ctx.tenant_id,
        ticket_id=ctx.ticket_id,
        actor_id=ctx.actor_id,
        actor_role=ctx.actor_role,
    )


# ════════════════════════════════════════════════════════════════
# CRIAÇÃO / LEITURA
# ════════════════════════════════════════════════════════════════

@router.post(
    "/",
    response_model=TicketOut,
    status_code=status.HTTP_201_CREATED,
    summary="Criar ticket",
)
async def create_ticket(
    payload: TicketCreate,
    auth: AuthContext = Depends(get_auth_context),
    repo: TicketRepository = Depends(get_ticket_repo),
    directory: MembershipDirectory = Depends(get_membership_directory),
    sequence: SequenceAllocator = Depends(get_sequence_allocator),
    uow: UnitOfWork = Depends(get_uow),
):
    # Só membros do projeto criam tickets nele.
    await directory.get_project_role(auth.tenant_id, payload.project_id, auth.user_id)

    requester_email = await directory.find_user_email(auth.tenant_id, auth.user_id) or ""
    is_whitelisted = await directory.is_email_whitelisted(
        auth.tenant_id, payload.project_id, requester_email,
    )

    uc = CreateTicketUseCase(repo, sequence, uow, prefix=settings.TICKET_NUMBER_PREFIX)
    ticket = await uc.execute(CreateTicketCommand(
        tenant_id=auth.tenant_id,
        project_id=payload.project_id,
        area_id=payload.area_id,
        subarea_id=payload.subarea_id,
        company_id=payload.company_id,
        requester_id=auth.user_id,
        ticket_type=payload.ticket_type,
        workflow_variant=payload.workflow_variant,
        requested_date=payload.requested_date,
        craft=payload.craft,
        description=payload.description,
        requester_email=requester_email,
        parent_ticket_id=payload.parent_ticket_id,
        is_whitelisted=is_whitelisted,
    ))
    return _to_out(ticket)


@router.get(
    "/",
    response_model=PageResponse[TicketOut],
    summary="Listar tickets visíveis do projeto",
)
async def list_tickets(
    project_id: uuid.UUID = Query(..., description="Projeto"),
    limit: int = Query(default=settings.DEFAULT_PAGE_LIMIT, description="Itens por página"),
    offset: int = Query(default=0),
    auth: AuthContext = Depends(get_auth_context),
    repo: TicketRepository = Depends(get_ticket_repo),
    resolver: VisibilityResolver = Depends(get_visibility_resolver),
):
    scope = await resolver.resolve(auth.tenant_id, project_id, auth.user_id)
    page = await ListTicketsUseCase(repo).execute(ListTicketsQuery(
        tenant_id=auth.tenant_id,
        project_id=project_id,
        scope=scope,
        limit=min(limit, settings.MAX_PAGE_LIMIT),
        offset=offset,
    ))
    return PageResponse[TicketOut](
        items=[_to_out(t) for t in page.items],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/{ticket_id}", response_model=TicketOut, summary="Detalhe do ticket")
async def get_ticket(
    ticket_id: uuid.UUID,
    auth: AuthContext = Depends(get_auth_context),
    scope: VisibilityScope = Depends(get_ticket_scope),
    repo: TicketRepository = Depends(get_ticket_repo),
):
    ticket = await GetTicketUseCase(repo).execute(
        GetTicketQuery(tenant_id=auth.tenant_id, ticket_id=ticket_id, scope=scope)
    )
    return _to_out(ticket)


@router.get(
    "/{ticket_id}/events",
    response_model=list[TicketEventOut],
    summary="Histórico de auditoria do ticket",
)
async def list_ticket_events(
    ticket_id: uuid.UUID,
    auth: AuthContext = Depends(get_auth_context),
    scope: VisibilityScope = Depends(get_ticket_scope),
    repo: TicketRepository = Depends(get_ticket_repo),
    audit: AuditLogRepository = Depends(get_audit_repo),
):
    events = await ListTicketEventsUseCase(repo, audit).execute(
        GetTicketQuery(tenant_id=auth.tenant_id, ticket_id=ticket_id, scope=scope)
    )
    return [TicketEventOut.model_validate(e) for e in events]


# ════════════════════════════════════════════════════════════════
# AÇÕES DE WORKFLOW
# ════════════════════════════════════════════════════════════════

@router.post("/{ticket_id}/submit", response_model=TicketOut, summary="Submeter (DRAFT → SUBMITTED)")
async def submit_ticket(
    ctx: TicketActorContext = Depends(get_ticket_actor),
    executor: TransitionExecutor = Depends(get_executor),
):
    return _to_out(await SubmitTicketUseCase(executor).execute(_action_cmd(ctx)))


@router.post("/{ticket_id}/approve", response_model=TicketOut, summary="Aprovar (SUBMITTED → APPROVED)")
async def approve_ticket(
    ctx: TicketActorContext = Depends(get_ticket_actor),
    executor: TransitionExecutor = Depends(get_executor),
):
    return _to_out(await ApproveTicketUseCase(executor).execute(_action_cmd(ctx)))


@router.post("/{ticket_id}/reject", response_model=TicketOut, summary="Rejeitar (SUBMITTED → REJECTED)")
async def reject_ticket(
    body: RejectRequest,
    ctx: TicketActorContext = Depends(get_ticket_actor),
    executor: TransitionExecutor = Depends(get_executor),
):
    cmd = RejectTicketCommand(**vars(_action_cmd(ctx)), rejection_reason=body.rejection_reason)
    return _to_out(await RejectTicketUseCase(executor).execute(cmd))


@router.post(
    "/{ticket_id}/override-rejection",
    response_model=TicketOut,
    summary="Reverter rejeição (REJECTED → APPROVED)",
)
async def override_rejection(
    body: ReasonRequest,
    ctx: TicketActorContext = Depends(get_ticket_actor),
    executor: TransitionExecutor = Depends(get_executor),
):
    cmd = OverrideRejectionCommand(**vars(_action_cmd(ctx)), reason=body.reason)
    return _to_out(await OverrideRejectionUseCase(executor).execute(cmd))


@router.post("/{ticket_id}/assign", response_model=TicketOut, summary="Atribuir equipe de campo")
async def assign_ticket(
    body: AssignRequest,
    ctx: TicketActorContext = Depends(get_ticket_actor),
    executor: TransitionExecutor = Depends(get_executor),
):
    cmd = AssignTicketCommand(
        **vars(_action_cmd(ctx)),
        party_chief_id=body.party_chief_id,
        instrument_man_id=body.instrument_man_id,
    )
    return _to_out(await AssignTicketUseCase(executor).execute(cmd))


@router.post("/{ticket_id}/start", response_model=TicketOut, summary="Iniciar (ASSIGNED → IN_PROGRESS)")
async def start_ticket(
    ctx: TicketActorContext = Depends(get_ticket_actor),
    executor: TransitionExecutor = Depends(get_executor),
):
    return _to_out(await StartTicketUseCase(executor).execute(_action_cmd(ctx)))


@router.post("/{ticket_id}/complete", response_model=TicketOut, summary="Concluir (IN_PROGRESS → COMPLETED)")
async def complete_ticket(
    ctx: TicketActorContext = Depends(get_ticket_actor),
    executor: TransitionExecutor = Depends(get_executor),
):
    return _to_out(await CompleteTicketUseCase(executor).execute(_action_cmd(ctx)))


@router.post("/{ticket_id}/close", response_model=TicketOut, summary="Fechar (COMPLETED → CLOSED)")
async def close_ticket(
    ctx: TicketActorContext = Depends(get_ticket_actor),
    executor: TransitionExecutor = Depends(get_executor),
):
    return _to_out(await CloseTicketUseCase(executor).execute(_action_cmd(ctx)))


@router.post("/{ticket_id}/cancel-request", response_model=TicketOut, summary="Pedir cancelamento")
async def request_cancel(
    ctx: TicketActorContext = Depends(get_ticket_actor),
    executor: TransitionExecutor = Depends(get_executor),
):
    return _to_out(await RequestCancelUseCase(executor).execute(_action_cmd(ctx)))


@router.post("/{ticket_id}/approve-cancel", response_model=TicketOut, summary="Aprovar cancelamento")
async def approve_cancel(
    ctx: TicketActorContext = Depends(get_ticket_actor),
    executor: TransitionExecutor = Depends(get_executor),
):
    return _to_out(await ApproveCancelUseCase(executor).execute(_action_cmd(ctx)))


@router.post("/{ticket_id}/reject-cancel", response_model=TicketOut, summary="Rejeitar cancelamento")
async def reject_cancel(
    ctx: TicketActorContext = Depends(get_ticket_actor),
    executor: TransitionExecutor = Depends(get_executor),
):
    return _to_out(await RejectCancelUseCase(executor).execute(_action_cmd(ctx)))


@router.post("/{ticket_id}/elevate-priority", response_model=TicketOut, summary="Elevar prioridade")
async def elevate_priority(
    body: ReasonRequest,
    ctx: TicketActorContext = Depends(get_ticket_actor),
    executor: TransitionExecutor = Depends(get_executor),
):
    cmd = ElevatePriorityCommand(**vars(_action_cmd(ctx)), reason=body.reason)
    return _to_out(await ElevatePriorityUseCase(executor).execute(cmd))
