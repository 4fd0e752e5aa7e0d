"""
Serviço de domínio para autorização (RBAC por projeto).

Centraliza regras de permissão — lógica pura de domínio, sem dependências externas.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable
from uuid import UUID

from fieldsurvey.domain.shared.errors import ForbiddenError
from fieldsurvey.domain.systems.identity.roles import ProjectRole, RoleValue


@dataclass(frozen=True)
class ActorContext:
    """Quem está agindo, em qual tenant, com qual role no projeto do ticket."""
    tenant_id: UUID
    actor_id: UUID
    role: RoleValue


class AuthorizationService:
    """Regras RBAC centralizadas no domínio."""

    @staticmethod
    def ensure_actor_has_role(role: RoleValue, permitted: Iterable[ProjectRole]) -> None:
        permitted = frozenset(permitted)
        if role not in permitted:
            names = ", ".join(sorted(r.value for r in permitted))
            raise ForbiddenError(f"Esta ação requer uma das roles: {names}")

    @staticmethod
    def ensure_owner(actor_id: UUID, owner_id: UUID) -> None:
        if actor_id != owner_id:
            raise ForbiddenError("Você só pode submeter os seus próprios tickets")
