"""
VisibilityResolver — monta o VisibilityScope do ator a partir da role
no projeto. Cada role aponta, via tabela, para os colaboradores que
precisam ser consultados; roles sem entrada não consultam nada.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional
from uuid import UUID

from fieldsurvey.domain.systems.identity.roles import ProjectRole, RoleValue
from fieldsurvey.domain.systems.memberships.directory import IMembershipDirectory
from fieldsurvey.domain.systems.tickets.visibility import VisibilityScope

Enricher = Callable[[UUID, UUID, UUID], Awaitable[dict[str, Any]]]


class VisibilityResolver:
    def __init__(self, directory: IMembershipDirectory) -> None:
        self._directory = directory
        self._enrichers: dict[ProjectRole, Enricher] = {
            ProjectRole.INSTRUMENT_MAN: self._roster_party_chief,
            ProjectRole.AREA_VIEWER: self._member_areas,
        }

    async def resolve(
        self,
        tenant_id: UUID,
        project_id: UUID,
        actor_id: UUID,
        actor_role: Optional[RoleValue] = None,
    ) -> VisibilityScope:
        """ForbiddenError (do diretório) se o ator não for membro do projeto."""
        if actor_role is None:
            actor_role = await self._directory.get_project_role(tenant_id, project_id, actor_id)

        company_id = await self._directory.find_user_company_id(tenant_id, actor_id)

        extra: dict[str, Any] = {}
        enricher = self._enrichers.get(actor_role)
        if enricher is not None:
            extra = await enricher(tenant_id, project_id, actor_id)

        return VisibilityScope(
            actor_id=actor_id,
            actor_role=actor_role,
            company_id=company_id,
            **extra,
        )

    # ── Colaboradores por role ──

    async def _roster_party_chief(self, tenant_id: UUID, project_id: UUID, actor_id: UUID) -> dict[str, Any]:
        party_chief = await self._directory.find_party_chief(tenant_id, project_id, actor_id)
        return {"party_chief_id": party_chief}

    async def _member_areas(self, tenant_id: UUID, project_id: UUID, actor_id: UUID) -> dict[str, Any]:
        area_ids = await self._directory.find_area_ids(project_id, actor_id)
        return {"area_ids": frozenset(area_ids)}
