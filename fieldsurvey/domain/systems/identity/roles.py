"""Roles de tenant e de projeto."""

from __future__ import annotations

import enum
from typing import Union


class TenantRole(str, enum.Enum):
    TENANT_ADMIN = "TENANT_ADMIN"
    BILLING_VIEWER = "BILLING_VIEWER"


class ProjectRole(str, enum.Enum):
    REQUESTER = "REQUESTER"
    APPROVER = "APPROVER"
    SURVEY_LEAD = "SURVEY_LEAD"
    PARTY_CHIEF = "PARTY_CHIEF"
    INSTRUMENT_MAN = "INSTRUMENT_MAN"
    CAD_TECHNICIAN = "CAD_TECHNICIAN"
    CAD_LEAD = "CAD_LEAD"
    VIEWER = "VIEWER"
    AREA_VIEWER = "AREA_VIEWER"


# Valores desconhecidos vindos do banco são mantidos como str (deny-by-default).
RoleValue = Union[ProjectRole, str]


def coerce_project_role(value: str) -> RoleValue:
    try:
        return ProjectRole(value)
    except ValueError:
        return value
