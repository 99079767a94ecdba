"""
Condition-field catalog (``workflow_kernel.domain.condition_fields``).

Responsibility
--------------
The module-scoped list of business-record fields a CONDITION node may
compare against.  This catalog is the contract any downstream execution
engine must honor when evaluating CONDITION nodes against a live record.

Architecture position
---------------------
**Kernel domain layer** -- pure constants and lookups.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ModuleName(str, Enum):
    """Business modules that own approval workflows."""

    PURCHASE = "purchase"
    REIMBURSEMENT = "reimbursement"


class OrganizationType(str, Enum):
    """Organization a workflow config applies to."""

    COMPANY = "company"
    SCHOOL = "school"


class ConditionFieldType(str, Enum):
    NUMBER = "number"


@dataclass(frozen=True)
class ConditionFieldDef:
    """A comparable field of a business record."""

    key: str
    label: str
    field_type: ConditionFieldType = ConditionFieldType.NUMBER


PURCHASE_CONDITION_FIELDS: tuple[ConditionFieldDef, ...] = (
    ConditionFieldDef("totalAmount", "Purchase total"),
    ConditionFieldDef("quantity", "Quantity"),
    ConditionFieldDef("unitPrice", "Unit price"),
    ConditionFieldDef("feeAmount", "Fee amount"),
)

REIMBURSEMENT_CONDITION_FIELDS: tuple[ConditionFieldDef, ...] = (
    ConditionFieldDef("amount", "Reimbursement amount"),
)

CONDITION_FIELD_CATALOG: dict[ModuleName, tuple[ConditionFieldDef, ...]] = {
    ModuleName.PURCHASE: PURCHASE_CONDITION_FIELDS,
    ModuleName.REIMBURSEMENT: REIMBURSEMENT_CONDITION_FIELDS,
}


def condition_fields_for(module_name: ModuleName | str) -> tuple[ConditionFieldDef, ...]:
    """Fields available to CONDITION nodes of ``module_name``.

    Raises:
        ValueError: if ``module_name`` is not a known module.
    """
    return CONDITION_FIELD_CATALOG[ModuleName(module_name)]


def is_condition_field(module_name: ModuleName | str, key: str) -> bool:
    return any(f.key == key for f in condition_fields_for(module_name))
