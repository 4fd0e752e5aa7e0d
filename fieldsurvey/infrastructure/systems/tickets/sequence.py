"""
Alocador de sequência por projeto.

Um único upsert (INSERT … ON CONFLICT DO UPDATE … RETURNING) executado em
sessão e transação próprias: o valor entregue já está confirmado e não volta
a ser usado, mesmo que a transação de criação do ticket seja desfeita.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fieldsurvey.domain.systems.tickets.repository import ISequenceAllocator
from fieldsurvey.infrastructure.database.models import TicketSequenceModel

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SequenceAllocator(ISequenceAllocator):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def next_sequence(self, project_id: uuid.UUID) -> int:
        table = TicketSequenceModel.__table__
        async with self._session_factory() as session:
            insert = _INSERT_BY_DIALECT[session.get_bind().dialect.name]
            stmt = insert(table).values(project_id=project_id, last_seq=1)
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.project_id],
                set_={"last_seq": table.c.last_seq + 1},
            ).returning(table.c.last_seq)

            result = await session.execute(stmt)
            value = result.scalar_one()
            await session.commit()

        logger.debug("Sequência do projeto %s → %d", project_id, value)
        return value
