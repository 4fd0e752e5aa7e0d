"""
Workflow — autoridade central para validação de transições de status.

Lógica pura de domínio: sem I/O, sem dependências de infraestrutura.
"""

from __future__ import annotations

import enum

from fieldsurvey.domain.shared.errors import ConflictError


class WorkflowVariant(str, enum.Enum):
    STANDARD_APPROVAL = "STANDARD_APPROVAL"   # exige aprovação antes da atribuição
    DIRECT_ASSIGNMENT = "DIRECT_ASSIGNMENT"   # pula a aprovação


class TicketStatus(str, enum.Enum):
    DRAFT = "DRAFT"                      # só STANDARD_APPROVAL
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"                # rejection_reason obrigatório
    CREATED = "CREATED"                  # só DIRECT_ASSIGNMENT
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CLOSED = "CLOSED"
    CANCEL_REQUESTED = "CANCEL_REQUESTED"
    CANCEL_APPROVED = "CANCEL_APPROVED"
    CANCEL_REJECTED = "CANCEL_REJECTED"


S = TicketStatus

# Etapas comuns às duas variantes, de ASSIGNED em diante.
_EXECUTION_TRANSITIONS: dict[TicketStatus, frozenset[TicketStatus]] = {
    S.ASSIGNED: frozenset({S.IN_PROGRESS, S.CANCEL_REQUESTED}),
    S.IN_PROGRESS: frozenset({S.COMPLETED, S.CANCEL_REQUESTED}),
    S.COMPLETED: frozenset({S.CLOSED}),
    S.CANCEL_REQUESTED: frozenset({S.CANCEL_APPROVED, S.CANCEL_REJECTED}),
}

# Estados terminais não aparecem como chave.
TRANSITIONS: dict[WorkflowVariant, dict[TicketStatus, frozenset[TicketStatus]]] = {
    WorkflowVariant.STANDARD_APPROVAL: {
        S.DRAFT: frozenset({S.SUBMITTED}),
        S.SUBMITTED: frozenset({S.APPROVED, S.REJECTED}),
        S.APPROVED: frozenset({S.ASSIGNED}),
        S.REJECTED: frozenset({S.APPROVED}),   # override de rejeição (APPROVER)
        **_EXECUTION_TRANSITIONS,
    },
    WorkflowVariant.DIRECT_ASSIGNMENT: {
        S.CREATED: frozenset({S.ASSIGNED}),
        **_EXECUTION_TRANSITIONS,
    },
}

_INITIAL_STATUS: dict[WorkflowVariant, TicketStatus] = {
    WorkflowVariant.STANDARD_APPROVAL: S.DRAFT,
    WorkflowVariant.DIRECT_ASSIGNMENT: S.CREATED,
}

TERMINAL_STATUSES: frozenset[TicketStatus] = frozenset(
    {S.CLOSED, S.CANCEL_APPROVED, S.CANCEL_REJECTED}
)


def initial_status(variant: WorkflowVariant) -> TicketStatus:
    return _INITIAL_STATUS[WorkflowVariant(variant)]


def allowed_targets(variant: WorkflowVariant, current: TicketStatus) -> frozenset[TicketStatus]:
    return TRANSITIONS[WorkflowVariant(variant)].get(TicketStatus(current), frozenset())


def is_terminal(status: TicketStatus) -> bool:
    return TicketStatus(status) in TERMINAL_STATUSES


def validate_transition(
    variant: WorkflowVariant,
    current: TicketStatus,
    target: TicketStatus,
) -> None:
    """Levanta ConflictError se `current → target` não é permitido na variante."""
    variant = WorkflowVariant(variant)
    current = TicketStatus(current)
    target = TicketStatus(target)
    if target not in allowed_targets(variant, current):
        raise ConflictError(
            f"Transição inválida: {current.value} → {target.value} "
            f"na variante {variant.value}"
        )
