"""Audit engine package for PageAudit.

This package turns the artifacts of a single page load into scored audit
results: a per-run computed-artifact cache, a metric provider registry,
budget selection, and the timing-budget and HTTPS audits.
"""

from .audits import (
    Audit,
    AuditMeta,
    AuditRegistry,
    IsOnHttpsAudit,
    TimingBudgetAudit,
    audit_registry,
    is_secure_record,
    register_audit,
)
from .budgets import load_budgets, load_settings, select_budget
from .computed import ComputedArtifact, ComputedCache
from .context import RunContext
from .errors import (
    ComputationAbortedError,
    ConfigurationError,
    MissingArtifactError,
    NoNavigationStartError,
    PageAuditError,
    UnknownMetricError,
)
from .metrics import MetricRegistry, MetricStrategy, create_metric_registry, metric_registry
from .models import (
    Artifacts,
    AuditResult,
    Budget,
    MetricId,
    Settings,
    ThrottlingMethod,
    TimingBudget,
)
from .runner import AuditRunner, run_audits

__all__ = [
    # Runner and context
    'AuditRunner',
    'run_audits',
    'RunContext',

    # Audits
    'Audit',
    'AuditMeta',
    'AuditRegistry',
    'IsOnHttpsAudit',
    'TimingBudgetAudit',
    'audit_registry',
    'is_secure_record',
    'register_audit',

    # Budgets
    'load_budgets',
    'load_settings',
    'select_budget',

    # Computed artifacts and metrics
    'ComputedArtifact',
    'ComputedCache',
    'MetricRegistry',
    'MetricStrategy',
    'create_metric_registry',
    'metric_registry',

    # Models
    'Artifacts',
    'AuditResult',
    'Budget',
    'MetricId',
    'Settings',
    'ThrottlingMethod',
    'TimingBudget',

    # Errors
    'ComputationAbortedError',
    'ConfigurationError',
    'MissingArtifactError',
    'NoNavigationStartError',
    'PageAuditError',
    'UnknownMetricError',
]

__version__ = "0.1.0"
