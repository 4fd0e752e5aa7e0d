from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional
from uuid import UUID

from fieldsurvey.domain.shared.value_objects import Page
from fieldsurvey.domain.systems.workflow.transitions import TicketStatus

from .entity import Ticket
from .visibility import VisibilityScope


class ITicketRepository(ABC):

    @abstractmethod
    async def get_by_id_internal(self, tenant_id: UUID, ticket_id: UUID) -> Optional[Ticket]:
        """
        Busca ignorando visibilidade — só para use cases que aplicam RBAC
        por conta própria (TransitionExecutor, criação). Nunca usar em leitura.
        """
        ...

    @abstractmethod
    async def find_visible(
        self, tenant_id: UUID, ticket_id: UUID, scope: VisibilityScope,
    ) -> Optional[Ticket]:
        """None tanto para ticket inexistente quanto invisível."""
        ...

    @abstractmethod
    async def list_visible(
        self,
        tenant_id: UUID,
        project_id: UUID,
        scope: VisibilityScope,
        *,
        limit: int,
        offset: int,
    ) -> Page[Ticket]:
        ...

    @abstractmethod
    async def get_project_id(self, tenant_id: UUID, ticket_id: UUID) -> Optional[UUID]:
        ...

    @abstractmethod
    async def find_area_code(self, tenant_id: UUID, area_id: UUID) -> Optional[str]:
        ...

    @abstractmethod
    async def add(self, ticket: Ticket) -> Ticket:
        ...

    @abstractmethod
    async def add_cad_work(self, ticket: Ticket) -> None:
        """Registro de CAD criado junto com todo ticket (cad_status=NOT_REQUIRED)."""
        ...

    @abstractmethod
    async def update_if_status(
        self,
        ticket: Ticket,
        expected_status: TicketStatus,
        changed_fields: Iterable[str],
    ) -> None:
        """
        Persiste status + `changed_fields` somente se o status gravado ainda
        for `expected_status`. Levanta ConflictError caso contrário.
        """
        ...


class ISequenceAllocator(ABC):

    @abstractmethod
    async def next_sequence(self, project_id: UUID) -> int:
        """Incremento atômico por projeto; começa em 1; nunca reutiliza valores."""
        ...
