"""
Visibilidade por role — o mesmo predicado filtra listagem e detalhe.

Cenário base: T1 (requester R1, PC1 + IM1 atribuídos), T2 (requester R2,
PC2), T3 (requester R1, sem atribuição, em outra área).
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from fieldsurvey.application.dtos.ticket_dtos import GetTicketQuery, ListTicketsQuery
from fieldsurvey.application.systems.tickets.use_cases import GetTicketUseCase, ListTicketsUseCase
from fieldsurvey.application.systems.tickets.visibility import VisibilityResolver
from fieldsurvey.domain.shared.errors import ForbiddenError, NotFoundError, ValidationError
from fieldsurvey.domain.systems.identity.roles import ProjectRole
from fieldsurvey.domain.systems.tickets.visibility import VisibilityScope
from fieldsurvey.infrastructure.systems.memberships.repository import MembershipDirectory
from fieldsurvey.infrastructure.systems.tickets.repository import TicketRepository
from tests.conftest import create_world

R = ProjectRole
BASE = datetime(2026, 10, 1, 8, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def scenario(world):
    r1 = await world.add_user(R.REQUESTER.value)
    r2 = await world.add_user(R.REQUESTER.value)
    pc1 = await world.add_user(R.PARTY_CHIEF.value)
    pc2 = await world.add_user(R.PARTY_CHIEF.value)
    im1 = await world.add_user(R.INSTRUMENT_MAN.value)
    other_area, other_subarea = await world.add_area("U2")

    t1 = await world.insert_ticket(
        r1, "FSS-U1-00001",
        status="ASSIGNED",
        assigned_party_chief_id=pc1,
        assigned_instrument_man_id=im1,
        created_at=BASE,
    )
    t2 = await world.insert_ticket(
        r2, "FSS-U1-00002",
        status="ASSIGNED",
        assigned_party_chief_id=pc2,
        created_at=BASE + timedelta(hours=1),
    )
    t3 = await world.insert_ticket(
        r1, "FSS-U2-00003",
        area_id=other_area,
        subarea_id=other_subarea,
        created_at=BASE + timedelta(hours=2),
    )
    return dict(
        r1=r1, r2=r2, pc1=pc1, pc2=pc2, im1=im1,
        t1=t1, t2=t2, t3=t3, other_area=other_area,
    )


async def _resolve(world, actor_id):
    async with world.session_factory() as s:
        return await VisibilityResolver(MembershipDirectory(s)).resolve(
            world.tenant_id, world.project_id, actor_id,
        )


async def _list_page(world, scope, limit=50, offset=0):
    async with world.session_factory() as s:
        page = await ListTicketsUseCase(TicketRepository(s)).execute(ListTicketsQuery(
            tenant_id=world.tenant_id,
            project_id=world.project_id,
            scope=scope,
            limit=limit,
            offset=offset,
        ))
    return page


async def _get(world, scope, ticket_id):
    async with world.session_factory() as s:
        return await GetTicketUseCase(TicketRepository(s)).execute(
            GetTicketQuery(tenant_id=world.tenant_id, ticket_id=ticket_id, scope=scope)
        )


# ════════════════════════════════════════════════════════════════
# PREDICADOS POR ROLE
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_requester_sees_only_own_tickets(world, scenario):
    scope = await _resolve(world, scenario["r1"])
    page = await _list_page(world, scope)
    assert {t.id for t in page.items} == {scenario["t1"], scenario["t3"]}
    assert page.total == 2


@pytest.mark.asyncio
async def test_party_chief_sees_assigned_tickets(world, scenario):
    scope = await _resolve(world, scenario["pc1"])
    page = await _list_page(world, scope)
    assert [t.id for t in page.items] == [scenario["t1"]]


@pytest.mark.asyncio
async def test_instrument_man_sees_roster_party_chief_tickets(world, scenario):
    im2 = await world.add_user(R.INSTRUMENT_MAN.value)
    await world.add_crew(scenario["pc2"], im2)

    scope = await _resolve(world, im2)
    assert scope.party_chief_id == scenario["pc2"]
    page = await _list_page(world, scope)
    assert [t.id for t in page.items] == [scenario["t2"]]


@pytest.mark.asyncio
async def test_instrument_man_without_roster_sees_own_assignments(world, scenario):
    scope = await _resolve(world, scenario["im1"])
    assert scope.party_chief_id is None
    page = await _list_page(world, scope)
    assert [t.id for t in page.items] == [scenario["t1"]]


@pytest.mark.asyncio
async def test_instrument_man_roster_and_own_assignment_combined(world, scenario):
    await world.add_crew(scenario["pc2"], scenario["im1"])

    scope = await _resolve(world, scenario["im1"])
    page = await _list_page(world, scope)
    assert {t.id for t in page.items} == {scenario["t1"], scenario["t2"]}


@pytest.mark.asyncio
async def test_area_viewer_sees_tickets_in_member_areas(world, scenario):
    viewer = await world.add_user(R.AREA_VIEWER.value)
    await world.add_area_member(viewer, scenario["other_area"])

    scope = await _resolve(world, viewer)
    assert scope.area_ids == frozenset({scenario["other_area"]})
    page = await _list_page(world, scope)
    assert [t.id for t in page.items] == [scenario["t3"]]


@pytest.mark.asyncio
async def test_area_viewer_without_areas_sees_nothing(world, scenario):
    viewer = await world.add_user(R.AREA_VIEWER.value)
    scope = await _resolve(world, viewer)
    page = await _list_page(world, scope)
    assert page.items == []
    assert page.total == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [R.APPROVER, R.SURVEY_LEAD, R.CAD_LEAD, R.CAD_TECHNICIAN, R.VIEWER])
async def test_full_visibility_roles_see_everything(world, scenario, role):
    actor = await world.add_user(role.value)
    scope = await _resolve(world, actor)
    page = await _list_page(world, scope)
    assert page.total == 3


@pytest.mark.asyncio
async def test_unknown_role_sees_nothing(world, scenario):
    actor = await world.add_user("SUPERINTENDENT")
    scope = await _resolve(world, actor)
    assert scope.actor_role == "SUPERINTENDENT"
    page = await _list_page(world, scope)
    assert page.total == 0


@pytest.mark.asyncio
async def test_non_member_cannot_resolve_scope(world, scenario):
    outsider = await world.add_user()
    with pytest.raises(ForbiddenError):
        await _resolve(world, outsider)


# ════════════════════════════════════════════════════════════════
# DETALHE — inexistente e invisível são indistinguíveis
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_get_visible_ticket(world, scenario):
    scope = await _resolve(world, scenario["r1"])
    ticket = await _get(world, scope, scenario["t1"])
    assert ticket.ticket_number == "FSS-U1-00001"
    assert ticket.created_at == BASE


@pytest.mark.asyncio
async def test_invisible_and_missing_give_same_not_found(world, scenario):
    scope = await _resolve(world, scenario["r1"])

    with pytest.raises(NotFoundError) as invisible:
        await _get(world, scope, scenario["t2"])
    missing_id = uuid.uuid4()
    with pytest.raises(NotFoundError) as missing:
        await _get(world, scope, missing_id)

    assert invisible.value.code == missing.value.code
    assert str(invisible.value).replace(str(scenario["t2"]), "X") == \
        str(missing.value).replace(str(missing_id), "X")


@pytest.mark.asyncio
async def test_other_tenant_ticket_is_not_found(session_factory, world, scenario):
    other = await create_world(session_factory, area_code="Z9")
    approver = await other.add_user(R.APPROVER.value)
    async with other.session_factory() as s:
        scope = await VisibilityResolver(MembershipDirectory(s)).resolve(
            other.tenant_id, other.project_id, approver,
        )
    async with other.session_factory() as s:
        with pytest.raises(NotFoundError):
            await GetTicketUseCase(TicketRepository(s)).execute(
                GetTicketQuery(tenant_id=other.tenant_id, ticket_id=scenario["t1"], scope=scope)
            )


# ════════════════════════════════════════════════════════════════
# PAGINAÇÃO
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_pagination_orders_newest_first(world, scenario):
    scope = VisibilityScope(actor_id=scenario["r1"], actor_role=R.APPROVER)

    first = await _list_page(world, scope, limit=2, offset=0)
    second = await _list_page(world, scope, limit=2, offset=2)

    assert [t.id for t in first.items] == [scenario["t3"], scenario["t2"]]
    assert [t.id for t in second.items] == [scenario["t1"]]
    assert first.total == second.total == 3
    assert (first.limit, first.offset) == (2, 0)


@pytest.mark.asyncio
async def test_offset_past_the_end_is_empty(world, scenario):
    scope = VisibilityScope(actor_id=scenario["r1"], actor_role=R.APPROVER)
    page = await _list_page(world, scope, limit=10, offset=10)
    assert page.items == []
    assert page.total == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("limit,offset", [(0, 0), (-1, 0), (10, -1)])
async def test_invalid_paging_is_validation_error(world, limit, offset):
    scope = VisibilityScope(actor_id=world.tenant_id, actor_role=R.APPROVER)
    with pytest.raises(ValidationError):
        await _list_page(world, scope, limit=limit, offset=offset)
