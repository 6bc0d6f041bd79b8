"""Audit interface and registry.

An audit is a named unit with metadata and a single asynchronous evaluation
``audit(artifacts, context) -> AuditResult``. Audits never mutate artifacts;
the only shared state they touch is the run's computed cache.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, Field

from ..context import RunContext
from ..errors import MissingArtifactError
from ..models.artifacts import DEFAULT_PASS, Artifacts
from ..models.results import AuditResult, ScoreDisplayMode


T = TypeVar('T')


class AuditMeta(BaseModel):
    """Static description of an audit."""

    id: str = Field(description="Unique audit identifier")
    title: str = Field(description="Title shown when the audit passes")
    failure_title: Optional[str] = Field(
        default=None,
        description="Title shown when the audit fails"
    )
    description: str = Field(default="", description="What the audit checks")
    score_display_mode: ScoreDisplayMode = Field(default=ScoreDisplayMode.BINARY)


class Audit(ABC):
    """Abstract base class for audits."""

    meta: AuditMeta

    @property
    def id(self) -> str:
        return self.meta.id

    @abstractmethod
    async def audit(self, artifacts: Artifacts, context: RunContext) -> AuditResult:
        """Evaluate the audit for one run."""
        ...

    @staticmethod
    def get_pass_artifact(collection: Mapping[str, T], artifact: str,
                          pass_name: str = DEFAULT_PASS) -> T:
        """Fetch a per-pass artifact.

        Raises:
            MissingArtifactError: If the pass has no such artifact
        """
        value = collection.get(pass_name) if collection else None
        if value is None:
            raise MissingArtifactError(artifact, pass_name)
        return value


class AuditRegistry:
    """Registry of audit classes by id."""

    def __init__(self):
        self._audits: Dict[str, Type[Audit]] = {}

    def register(self, audit_class: Type[Audit]) -> None:
        """Register an audit class.

        Args:
            audit_class: Audit class to register
        """
        if not issubclass(audit_class, Audit):
            raise ValueError(f"Audit class must inherit from Audit: {audit_class}")

        self._audits[audit_class.meta.id] = audit_class

    def get_audit_class(self, audit_id: str) -> Optional[Type[Audit]]:
        return self._audits.get(audit_id)

    def create(self, audit_id: str, **kwargs: Any) -> Audit:
        """Instantiate a registered audit.

        Raises:
            KeyError: If no audit is registered under ``audit_id``
        """
        audit_class = self._audits.get(audit_id)
        if audit_class is None:
            raise KeyError(f"Unknown audit: {audit_id}")
        return audit_class(**kwargs)

    def list_audits(self) -> List[str]:
        return list(self._audits.keys())


# Global audit registry
audit_registry = AuditRegistry()


def register_audit(audit_class: Type[Audit]) -> Type[Audit]:
    """Class decorator registering an audit with the global registry."""
    audit_registry.register(audit_class)
    return audit_class
