"""
Modelos SQLAlchemy — camada de Infraestrutura.

Tabelas:
  - tenants / companies / users              (identidade, multi-tenant)
  - projects / areas / subareas              (estrutura do projeto)
  - tenant_memberships / project_memberships (roles)
  - crew_rosters / area_memberships          (insumos de visibilidade)
  - priority_whitelist                       (prioridade automática na criação)
  - ticket_sequences                         (contador por projeto)
  - tickets / cad_work                       (workflow)
  - ticket_events                            (audit log append-only)
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

from fieldsurvey.infrastructure.database.session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ────────────────────────────────────────────────────────────────
# TENANTS / COMPANIES / USERS
# ────────────────────────────────────────────────────────────────
class TenantModel(Base):
    __tablename__ = "tenants"

    id = Column(Uuid, primary_key=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class CompanyModel(Base):
    __tablename__ = "companies"

    id = Column(Uuid, primary_key=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    company_type = Column("type", String(50), nullable=False, server_default="GC")   # GC | SUBCONTRACTOR | OWNER_REP
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    company_id = Column(Uuid, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False, server_default="")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


# ────────────────────────────────────────────────────────────────
# PROJECTS / AREAS / SUBAREAS
# ────────────────────────────────────────────────────────────────
class ProjectModel(Base):
    __tablename__ = "projects"

    id = Column(Uuid, primary_key=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    status = Column(String(50), nullable=False, server_default="ACTIVE")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AreaModel(Base):
    __tablename__ = "areas"

    id = Column(Uuid, primary_key=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(20), nullable=False)   # ex.: "U1" → FSS-U1-00001
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SubareaModel(Base):
    __tablename__ = "subareas"

    id = Column(Uuid, primary_key=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    area_id = Column(Uuid, ForeignKey("areas.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


# ────────────────────────────────────────────────────────────────
# MEMBERSHIPS
# ────────────────────────────────────────────────────────────────
class TenantMembershipModel(Base):
    __tablename__ = "tenant_memberships"
    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", name="uq_tenant_memberships_tenant_user"),
    )

    id = Column(Uuid, primary_key=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(50), nullable=False)   # TENANT_ADMIN | BILLING_VIEWER
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ProjectMembershipModel(Base):
    __tablename__ = "project_memberships"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_memberships_project_user"),
    )

    id = Column(Uuid, primary_key=True)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class CrewRosterModel(Base):
    __tablename__ = "crew_rosters"
    __table_args__ = (
        Index("ix_crew_rosters_project_instrument_man", "project_id", "instrument_man_id"),
    )

    id = Column(Uuid, primary_key=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    party_chief_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    instrument_man_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AreaMembershipModel(Base):
    __tablename__ = "area_memberships"
    __table_args__ = (
        UniqueConstraint("area_id", "user_id", name="uq_area_memberships_area_user"),
        Index("ix_area_memberships_project_user", "project_id", "user_id"),
    )

    id = Column(Uuid, primary_key=True)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    area_id = Column(Uuid, ForeignKey("areas.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class PriorityWhitelistModel(Base):
    __tablename__ = "priority_whitelist"
    __table_args__ = (
        UniqueConstraint("tenant_id", "project_id", "email", name="uq_priority_whitelist_entry"),
    )

    id = Column(Uuid, primary_key=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    email = Column(String(255), nullable=False)   # sempre minúsculo
    added_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


# ────────────────────────────────────────────────────────────────
# TICKETS
# ────────────────────────────────────────────────────────────────
class TicketSequenceModel(Base):
    __tablename__ = "ticket_sequences"

    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    last_seq = Column(Integer, nullable=False)


class TicketModel(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        Index("ix_tickets_tenant_project_created", "tenant_id", "project_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    area_id = Column(Uuid, ForeignKey("areas.id"), nullable=False, index=True)
    subarea_id = Column(Uuid, ForeignKey("subareas.id"), nullable=False)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False)
    ticket_number = Column(String(50), unique=True, nullable=False, index=True)
    ticket_type = Column(String(50), nullable=False)
    workflow_variant = Column(String(50), nullable=False)
    status = Column(String(50), nullable=False, index=True)
    requester_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    assigned_party_chief_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    assigned_instrument_man_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    survey_lead_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    craft = Column(String(255), nullable=False, server_default="")
    description = Column(Text, nullable=False, server_default="")
    requested_date = Column(DateTime(timezone=True), nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    parent_ticket_id = Column(Uuid, ForeignKey("tickets.id"), nullable=True)
    is_priority = Column(Boolean, default=False, nullable=False)
    priority_elevated_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    priority_elevated_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class CadWorkModel(Base):
    __tablename__ = "cad_work"

    id = Column(Uuid, primary_key=True)
    ticket_id = Column(Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), unique=True, nullable=False)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    cad_status = Column(String(50), nullable=False, server_default="NOT_REQUIRED")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


# ────────────────────────────────────────────────────────────────
# AUDIT LOG — eventos de Ticket (append-only)
# ────────────────────────────────────────────────────────────────
class TicketEventModel(Base):
    __tablename__ = "ticket_events"
    __table_args__ = (
        Index("ix_ticket_events_tenant_ticket", "tenant_id", "ticket_id"),
    )

    # Ordem de inserção = ordem do histórico
    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Uuid, unique=True, nullable=False)
    ticket_id = Column(Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    actor_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    event_type = Column(String(100), nullable=False, index=True)
    payload = Column(JSON().with_variant(JSONB, "postgresql"), default=dict, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
