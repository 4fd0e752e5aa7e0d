"""Value Objects do domínio — imutáveis, comparados por valor."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

from fieldsurvey.domain.shared.errors import ValidationError

T = TypeVar("T")

_AREA_CODE_RE = re.compile(r"^[A-Za-z0-9]+$")


@dataclass(frozen=True)
class TicketNumber:
    """
    Número legível do ticket, ex.: FSS-U1-00247.
    Atribuído uma única vez na criação e nunca alterado.
    """
    prefix: str
    area_code: str
    sequence: int

    PAD_WIDTH = 5

    def __post_init__(self):
        if self.sequence < 1:
            raise ValidationError(f"Sequência inválida: {self.sequence}")
        if not self.area_code or not _AREA_CODE_RE.match(self.area_code):
            raise ValidationError(f"Código de área inválido: {self.area_code!r}")

    def __str__(self) -> str:
        return f"{self.prefix}-{self.area_code}-{self.sequence:0{self.PAD_WIDTH}d}"

    @classmethod
    def parse(cls, value: str) -> "TicketNumber":
        try:
            prefix, area_code, seq = value.split("-")
            return cls(prefix=prefix, area_code=area_code, sequence=int(seq))
        except ValueError as exc:
            raise ValidationError(f"Número de ticket inválido: {value!r}") from exc


@dataclass(frozen=True)
class Page(Generic[T]):
    """Página de resultados — total reflete o conjunto já filtrado."""
    items: Sequence[T] = field(default_factory=list)
    total: int = 0
    limit: int = 50
    offset: int = 0
