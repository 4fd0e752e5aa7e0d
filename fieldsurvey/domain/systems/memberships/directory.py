"""
Porta para os colaboradores de tenancy/identidade consumidos pelo core:
resolução de role, crew roster, áreas do usuário e whitelist de prioridade.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from uuid import UUID

from fieldsurvey.domain.systems.identity.roles import RoleValue, TenantRole


class IMembershipDirectory(ABC):

    @abstractmethod
    async def get_project_role(self, tenant_id: UUID, project_id: UUID, user_id: UUID) -> RoleValue:
        """Levanta ForbiddenError se o usuário não for membro do projeto."""
        ...

    @abstractmethod
    async def get_tenant_role(self, tenant_id: UUID, user_id: UUID) -> Optional[TenantRole]:
        """None (não erro) quando não há membership no tenant."""
        ...

    @abstractmethod
    async def find_party_chief(
        self, tenant_id: UUID, project_id: UUID, instrument_man_id: UUID,
    ) -> Optional[UUID]:
        ...

    @abstractmethod
    async def find_area_ids(self, project_id: UUID, user_id: UUID) -> Sequence[UUID]:
        ...

    @abstractmethod
    async def is_email_whitelisted(self, tenant_id: UUID, project_id: UUID, email: str) -> bool:
        ...

    @abstractmethod
    async def find_user_company_id(self, tenant_id: UUID, user_id: UUID) -> Optional[UUID]:
        ...

    @abstractmethod
    async def find_user_email(self, tenant_id: UUID, user_id: UUID) -> Optional[str]:
        ...
