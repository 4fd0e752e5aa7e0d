"""
Dependências de autenticação JWT, contexto de ticket e factories de DI.

Tokens são emitidos por outro serviço; aqui só verificamos assinatura e
extraímos `sub` (usuário) e `tenant_id`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fieldsurvey.application.shared.unit_of_work import UnitOfWork
from fieldsurvey.application.systems.tickets.executor import TransitionExecutor
from fieldsurvey.application.systems.tickets.visibility import VisibilityResolver
from fieldsurvey.domain.shared.errors import ForbiddenError, NotFoundError, UnauthorizedError
from fieldsurvey.domain.systems.identity.roles import RoleValue
from fieldsurvey.domain.systems.tickets.visibility import VisibilityScope
from fieldsurvey.infrastructure.config import get_settings
from fieldsurvey.infrastructure.database import get_db, get_session_factory
from fieldsurvey.infrastructure.systems.audit.repository import AuditLogRepository
from fieldsurvey.infrastructure.systems.memberships.repository import MembershipDirectory
from fieldsurvey.infrastructure.systems.tickets.repository import TicketRepository
from fieldsurvey.infrastructure.systems.tickets.sequence import SequenceAllocator

settings = get_settings()
bearer_scheme = HTTPBearer(auto_error=False)


# ════════════════════════════════════════════════════════════════
# JWT
# ════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AuthContext:
    user_id: uuid.UUID
    tenant_id: uuid.UUID


def decode_token(token: str) -> dict:
    """Decodifica e valida um token JWT. Raises JWTError."""
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


async def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthContext:
    """Extrai usuário e tenant do bearer token."""
    if credentials is None:
        raise UnauthorizedError()
    try:
        payload = decode_token(credentials.credentials)
        return AuthContext(
            user_id=uuid.UUID(str(payload["sub"])),
            tenant_id=uuid.UUID(str(payload["tenant_id"])),
        )
    except (JWTError, KeyError, ValueError) as exc:
        raise UnauthorizedError("Token inválido ou expirado") from exc


# ════════════════════════════════════════════════════════════════
# DI FACTORIES — Repositórios, UoW e executor
# ════════════════════════════════════════════════════════════════

def get_ticket_repo(db: AsyncSession = Depends(get_db)) -> TicketRepository:
    return TicketRepository(db)


def get_audit_repo(db: AsyncSession = Depends(get_db)) -> AuditLogRepository:
    return AuditLogRepository(db)


def get_membership_directory(db: AsyncSession = Depends(get_db)) -> MembershipDirectory:
    return MembershipDirectory(db)


def get_uow(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogRepository = Depends(get_audit_repo),
) -> UnitOfWork:
    return UnitOfWork(db, audit)


def get_sequence_allocator(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> SequenceAllocator:
    return SequenceAllocator(session_factory)


def get_executor(
    repo: TicketRepository = Depends(get_ticket_repo),
    uow: UnitOfWork = Depends(get_uow),
) -> TransitionExecutor:
    return TransitionExecutor(repo, uow)


def get_visibility_resolver(
    directory: MembershipDirectory = Depends(get_membership_directory),
) -> VisibilityResolver:
    return VisibilityResolver(directory)


# ════════════════════════════════════════════════════════════════
# CONTEXTO DE TICKET
# ════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TicketActorContext:
    tenant_id: uuid.UUID
    ticket_id: uuid.UUID
    project_id: uuid.UUID
    actor_id: uuid.UUID
    actor_role: RoleValue


async def get_ticket_actor(
    ticket_id: uuid.UUID,
    auth: AuthContext = Depends(get_auth_context),
    repo: TicketRepository = Depends(get_ticket_repo),
    directory: MembershipDirectory = Depends(get_membership_directory),
) -> TicketActorContext:
    """Projeto do ticket + role do ator nele. Base de toda ação de workflow."""
    project_id = await repo.get_project_id(auth.tenant_id, ticket_id)
    if project_id is None:
        raise NotFoundError("Ticket", str(ticket_id))
    role = await directory.get_project_role(auth.tenant_id, project_id, auth.user_id)
    return TicketActorContext(
        tenant_id=auth.tenant_id,
        ticket_id=ticket_id,
        project_id=project_id,
        actor_id=auth.user_id,
        actor_role=role,
    )


async def get_ticket_scope(
    ticket_id: uuid.UUID,
    auth: AuthContext = Depends(get_auth_context),
    repo: TicketRepository = Depends(get_ticket_repo),
    resolver: VisibilityResolver = Depends(get_visibility_resolver),
) -> VisibilityScope:
    """
    Escopo para leituras de um ticket. Ator fora do projeto recebe o mesmo
    404 de um ticket inexistente.
    """
    project_id = await repo.get_project_id(auth.tenant_id, ticket_id)
    if project_id is None:
        raise NotFoundError("Ticket", str(ticket_id))
    try:
        return await resolver.resolve(auth.tenant_id, project_id, auth.user_id)
    except ForbiddenError as exc:
        raise NotFoundError("Ticket", str(ticket_id)) from exc
