"""
Exceções de domínio — taxonomia única usada por todas as camadas.

A camada de apresentação converte cada tipo no status HTTP correspondente
(ver presentation/middleware/exception_handlers.py). Nenhuma delas é
re-tentada automaticamente.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Classe base para erros de domínio/aplicação."""
    code: str = "domain_error"


class ValidationError(DomainError):
    """Entrada malformada ou ausente (ex.: motivo vazio, regra das 48h)."""
    code = "validation_error"


class UnauthorizedError(DomainError):
    """Requisição sem credencial válida."""
    code = "unauthorized"

    def __init__(self, message: str = "Não autenticado") -> None:
        super().__init__(message)


class ForbiddenError(DomainError):
    """Role do ator não permitida para a ação, ou ator fora do projeto."""
    code = "forbidden"

    def __init__(self, message: str = "Permissão insuficiente") -> None:
        super().__init__(message)


class NotFoundError(DomainError):
    """
    Recurso inexistente OU fora do escopo de visibilidade do ator.
    Os dois casos produzem exatamente a mesma mensagem.
    """
    code = "not_found"

    def __init__(self, resource: str = "Recurso", resource_id: Any = "") -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} não encontrado")


class ConflictError(DomainError):
    """Transição de estado ilegal ou alteração concorrente."""
    code = "conflict"
