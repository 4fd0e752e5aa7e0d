"""Diretório de memberships — roles, crew roster, áreas e whitelist."""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldsurvey.domain.shared.errors import ForbiddenError
from fieldsurvey.domain.systems.identity.roles import (
    RoleValue,
    TenantRole,
    coerce_project_role,
)
from fieldsurvey.domain.systems.memberships.directory import IMembershipDirectory
from fieldsurvey.infrastructure.database.models import (
    AreaMembershipModel,
    CrewRosterModel,
    PriorityWhitelistModel,
    ProjectMembershipModel,
    ProjectModel,
    TenantMembershipModel,
    UserModel,
)


class MembershipDirectory(IMembershipDirectory):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_project_role(
        self, tenant_id: uuid.UUID, project_id: uuid.UUID, user_id: uuid.UUID,
    ) -> RoleValue:
        stmt = (
            select(ProjectMembershipModel.role)
            .join(ProjectModel, ProjectModel.id == ProjectMembershipModel.project_id)
            .where(
                ProjectMembershipModel.project_id == project_id,
                ProjectMembershipModel.user_id == user_id,
                ProjectModel.tenant_id == tenant_id,
            )
            .limit(1)
        )
        role = (await self._session.execute(stmt)).scalar_one_or_none()
        if role is None:
            raise ForbiddenError("Você não é membro deste projeto")
        return coerce_project_role(role)

    async def get_tenant_role(self, tenant_id: uuid.UUID, user_id: uuid.UUID) -> Optional[TenantRole]:
        stmt = (
            select(TenantMembershipModel.role)
            .where(
                TenantMembershipModel.tenant_id == tenant_id,
                TenantMembershipModel.user_id == user_id,
            )
            .limit(1)
        )
        role = (await self._session.execute(stmt)).scalar_one_or_none()
        if role is None:
            return None
        try:
            return TenantRole(role)
        except ValueError:
            return None

    async def find_party_chief(
        self, tenant_id: uuid.UUID, project_id: uuid.UUID, instrument_man_id: uuid.UUID,
    ) -> Optional[uuid.UUID]:
        stmt = (
            select(CrewRosterModel.party_chief_id)
            .where(
                CrewRosterModel.tenant_id == tenant_id,
                CrewRosterModel.project_id == project_id,
                CrewRosterModel.instrument_man_id == instrument_man_id,
            )
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def find_area_ids(self, project_id: uuid.UUID, user_id: uuid.UUID) -> Sequence[uuid.UUID]:
        stmt = select(AreaMembershipModel.area_id).where(
            AreaMembershipModel.project_id == project_id,
            AreaMembershipModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def is_email_whitelisted(self, tenant_id: uuid.UUID, project_id: uuid.UUID, email: str) -> bool:
        if not email:
            return False
        stmt = (
            select(PriorityWhitelistModel.id)
            .where(
                PriorityWhitelistModel.tenant_id == tenant_id,
                PriorityWhitelistModel.project_id == project_id,
                PriorityWhitelistModel.email == email.strip().lower(),
            )
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none() is not None

    async def find_user_company_id(self, tenant_id: uuid.UUID, user_id: uuid.UUID) -> Optional[uuid.UUID]:
        stmt = select(UserModel.company_id).where(
            UserModel.id == user_id,
            UserModel.tenant_id == tenant_id,
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def find_user_email(self, tenant_id: uuid.UUID, user_id: uuid.UUID) -> Optional[str]:
        stmt = select(UserModel.email).where(
            UserModel.id == user_id,
            UserModel.tenant_id == tenant_id,
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()
