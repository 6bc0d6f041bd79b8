"""Audits and the audit registry.

Importing this package registers the built-in audits with
``audit_registry``.
"""

from .base import Audit, AuditMeta, AuditRegistry, audit_registry, register_audit
from .is_on_https import (
    IsOnHttpsAudit,
    InsecureRequestItem,
    is_secure_record,
    reconcile,
    resolution_text,
)
from .timing_budget import (
    TimingBudgetAudit,
    TimingBudgetItem,
    over_budget,
    sort_by_overage,
)

__all__ = [
    "Audit",
    "AuditMeta",
    "AuditRegistry",
    "audit_registry",
    "register_audit",
    "IsOnHttpsAudit",
    "InsecureRequestItem",
    "is_secure_record",
    "reconcile",
    "resolution_text",
    "TimingBudgetAudit",
    "TimingBudgetItem",
    "over_budget",
    "sort_by_overage",
]
