"""
Eventos de domínio.

O aggregate registra; o UnitOfWork coleta e grava no audit log dentro da
mesma transação da mutação. Não há despacho assíncrono nem handlers.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class DomainEvent:
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AggregateRoot:
    """Acumula eventos até o UnitOfWork chamar collect_events()."""

    def __init__(self) -> None:
        self._events: list[DomainEvent] = []

    def _record_event(self, event: DomainEvent) -> None:
        self._events.append(event)

    def collect_events(self) -> list[DomainEvent]:
        """Devolve e esvazia a fila — cada evento é gravado uma única vez."""
        events, self._events = self._events, []
        return events
