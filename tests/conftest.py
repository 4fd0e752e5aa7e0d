"""
Fixtures de teste — banco SQLite descartável por teste + client HTTP.

Cada teste recebe um arquivo SQLite próprio (tmp_path): o alocador de
sequência abre sessões independentes, então um banco em memória
compartilhado não serviria.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fieldsurvey.application.dtos.ticket_dtos import CreateTicketCommand
from fieldsurvey.application.shared.unit_of_work import UnitOfWork
from fieldsurvey.application.systems.tickets.executor import TransitionExecutor, utc_now
from fieldsurvey.application.systems.tickets.use_cases import CreateTicketUseCase
from fieldsurvey.domain.systems.tickets.entity import Ticket, TicketType
from fieldsurvey.domain.systems.workflow.transitions import TicketStatus, WorkflowVariant
from fieldsurvey.infrastructure.config import get_settings
from fieldsurvey.infrastructure.database.models import (
    AreaMembershipModel,
    AreaModel,
    CompanyModel,
    CrewRosterModel,
    PriorityWhitelistModel,
    ProjectMembershipModel,
    ProjectModel,
    SubareaModel,
    TenantMembershipModel,
    TenantModel,
    TicketModel,
    UserModel,
)
from fieldsurvey.infrastructure.database.session import Base, build_engine, get_db, get_session_factory
from fieldsurvey.infrastructure.systems.audit.repository import AuditLogRepository
from fieldsurvey.infrastructure.systems.tickets.repository import TicketRepository
from fieldsurvey.infrastructure.systems.tickets.sequence import SequenceAllocator
from fieldsurvey.main import app

settings = get_settings()


# ════════════════════════════════════════════════════════════════
# BANCO
# ════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as s:
        yield s


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as s:
            try:
                yield s
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


# ════════════════════════════════════════════════════════════════
# CENÁRIO — tenant, projeto, área e membros
# ════════════════════════════════════════════════════════════════

@dataclass
class World:
    session_factory: async_sessionmaker[AsyncSession]
    tenant_id: uuid.UUID
    company_id: uuid.UUID
    project_id: uuid.UUID
    area_id: uuid.UUID
    subarea_id: uuid.UUID

    async def add_user(
        self,
        role: Optional[str] = None,
        email: Optional[str] = None,
        company_id: Optional[uuid.UUID] = None,
    ) -> uuid.UUID:
        """Cria usuário no tenant e, se `role` for dada, membership no projeto."""
        user_id = uuid.uuid4()
        async with self.session_factory() as s:
            s.add(UserModel(
                id=user_id,
                tenant_id=self.tenant_id,
                company_id=company_id or self.company_id,
                email=email or f"user-{user_id.hex[:8]}@example.com",
                name="Test User",
            ))
            await s.flush()
            if role is not None:
                s.add(ProjectMembershipModel(
                    id=uuid.uuid4(), project_id=self.project_id, user_id=user_id, role=role,
                ))
            await s.commit()
        return user_id

    async def add_tenant_role(self, user_id: uuid.UUID, role: str) -> None:
        async with self.session_factory() as s:
            s.add(TenantMembershipModel(
                id=uuid.uuid4(), tenant_id=self.tenant_id, user_id=user_id, role=role,
            ))
            await s.commit()

    async def add_area(self, code: str) -> tuple[uuid.UUID, uuid.UUID]:
        area_id, subarea_id = uuid.uuid4(), uuid.uuid4()
        async with self.session_factory() as s:
            s.add(AreaModel(
                id=area_id, tenant_id=self.tenant_id, project_id=self.project_id,
                name=f"Unit {code}", code=code,
            ))
            await s.flush()
            s.add(SubareaModel(
                id=subarea_id, tenant_id=self.tenant_id, project_id=self.project_id,
                area_id=area_id, name=f"{code}-A",
            ))
            await s.commit()
        return area_id, subarea_id

    async def add_crew(self, party_chief_id: uuid.UUID, instrument_man_id: uuid.UUID) -> None:
        async with self.session_factory() as s:
            s.add(CrewRosterModel(
                id=uuid.uuid4(), tenant_id=self.tenant_id, project_id=self.project_id,
                party_chief_id=party_chief_id, instrument_man_id=instrument_man_id,
            ))
            await s.commit()

    async def add_area_member(self, user_id: uuid.UUID, area_id: uuid.UUID) -> None:
        async with self.session_factory() as s:
            s.add(AreaMembershipModel(
                id=uuid.uuid4(), project_id=self.project_id, area_id=area_id, user_id=user_id,
            ))
            await s.commit()

    async def whitelist(self, email: str) -> None:
        async with self.session_factory() as s:
            s.add(PriorityWhitelistModel(
                id=uuid.uuid4(), tenant_id=self.tenant_id, project_id=self.project_id,
                email=email.lower(),
            ))
            await s.commit()

    async def insert_ticket(self, requester_id: uuid.UUID, ticket_number: str, **fields) -> uuid.UUID:
        """Insere ticket direto na tabela, com status arbitrário (cenários de leitura)."""
        ticket_id = uuid.uuid4()
        values = dict(
            id=ticket_id,
            tenant_id=self.tenant_id,
            project_id=self.project_id,
            area_id=self.area_id,
            subarea_id=self.subarea_id,
            company_id=self.company_id,
            ticket_number=ticket_number,
            ticket_type=TicketType.LAYOUT.value,
            workflow_variant=WorkflowVariant.STANDARD_APPROVAL.value,
            status=TicketStatus.SUBMITTED.value,
            requester_id=requester_id,
            requested_date=datetime.now(timezone.utc) + timedelta(days=5),
        )
        values.update(fields)
        async with self.session_factory() as s:
            s.add(TicketModel(**values))
            await s.commit()
        return ticket_id

    async def create_ticket(
        self,
        requester_id: uuid.UUID,
        variant: WorkflowVariant = WorkflowVariant.STANDARD_APPROVAL,
        requested_date: Optional[datetime] = None,
        area_id: Optional[uuid.UUID] = None,
        subarea_id: Optional[uuid.UUID] = None,
        **extra,
    ) -> Ticket:
        """Cria ticket pelo use case real (sequência + auditoria)."""
        async with self.session_factory() as s:
            uc = CreateTicketUseCase(
                TicketRepository(s),
                SequenceAllocator(self.session_factory),
                UnitOfWork(s, AuditLogRepository(s)),
            )
            return await uc.execute(CreateTicketCommand(
                tenant_id=self.tenant_id,
                project_id=self.project_id,
                area_id=area_id or self.area_id,
                subarea_id=subarea_id or self.subarea_id,
                company_id=self.company_id,
                requester_id=requester_id,
                ticket_type=TicketType.LAYOUT,
                workflow_variant=variant,
                requested_date=requested_date or datetime.now(timezone.utc) + timedelta(hours=72),
                craft="Concreto",
                description="Locação de estacas",
                **extra,
            ))


async def create_world(session_factory, area_code: str = "U1") -> World:
    tenant_id, company_id, project_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    area_id, subarea_id = uuid.uuid4(), uuid.uuid4()
    async with session_factory() as s:
        s.add(TenantModel(id=tenant_id, name="Test Tenant"))
        await s.flush()
        s.add(CompanyModel(id=company_id, tenant_id=tenant_id, name="GC", company_type="GC"))
        s.add(ProjectModel(id=project_id, tenant_id=tenant_id, name="Test Project"))
        await s.flush()
        s.add(AreaModel(
            id=area_id, tenant_id=tenant_id, project_id=project_id, name="Unit 1", code=area_code,
        ))
        await s.flush()
        s.add(SubareaModel(
            id=subarea_id, tenant_id=tenant_id, project_id=project_id, area_id=area_id, name="U1-A",
        ))
        await s.commit()
    return World(
        session_factory=session_factory,
        tenant_id=tenant_id,
        company_id=company_id,
        project_id=project_id,
        area_id=area_id,
        subarea_id=subarea_id,
    )


@pytest_asyncio.fixture
async def world(session_factory) -> World:
    return await create_world(session_factory)


# ════════════════════════════════════════════════════════════════
# HELPERS
# ════════════════════════════════════════════════════════════════

async def run_action(session_factory, use_case_cls, cmd, clock=utc_now):
    """Executa um use case de ação numa sessão nova, como um request faria."""
    async with session_factory() as s:
        executor = TransitionExecutor(
            TicketRepository(s),
            UnitOfWork(s, AuditLogRepository(s)),
            clock,
        )
        return await use_case_cls(executor).execute(cmd)


async def load_ticket(session_factory, tenant_id, ticket_id) -> Optional[Ticket]:
    async with session_factory() as s:
        return await TicketRepository(s).get_by_id_internal(tenant_id, ticket_id)


async def load_events(session_factory, tenant_id, ticket_id):
    async with session_factory() as s:
        return await AuditLogRepository(s).list_for_ticket(tenant_id, ticket_id)


def make_token(user_id: uuid.UUID, tenant_id: uuid.UUID) -> str:
    payload = {
        "sub": str(user_id),
        "tenant_id": str(tenant_id),
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
