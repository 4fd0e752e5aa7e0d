"""Escopo de visibilidade — calculado por requisição, nunca persistido."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fieldsurvey.domain.systems.identity.roles import ProjectRole, RoleValue

# Roles que enxergam todos os tickets do projeto.
FULL_VISIBILITY_ROLES: frozenset[ProjectRole] = frozenset({
    ProjectRole.APPROVER,
    ProjectRole.SURVEY_LEAD,
    ProjectRole.CAD_LEAD,
    ProjectRole.CAD_TECHNICIAN,
    ProjectRole.VIEWER,
})


@dataclass(frozen=True)
class VisibilityScope:
    actor_id: UUID
    actor_role: RoleValue
    company_id: Optional[UUID] = None
    # Só AREA_VIEWER
    area_ids: Optional[frozenset[UUID]] = None
    # Só INSTRUMENT_MAN — party chief do crew roster
    party_chief_id: Optional[UUID] = None

    @property
    def is_unrestricted(self) -> bool:
        return self.actor_role in FULL_VISIBILITY_ROLES
