"""Audit runner for a single page analysis.

Creates the run context (settings plus a fresh computed cache), runs the
selected audits concurrently, and turns an audit's failure into that audit's
error result so sibling audits are unaffected. Cancelling the run aborts
every pending computed artifact.
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from .audits import Audit, AuditRegistry, audit_registry
from .context import RunContext
from .models.artifacts import Artifacts
from .models.budget import Settings
from .models.results import AuditResult


logger = logging.getLogger(__name__)


class AuditRunner:
    """Runs audits against the artifacts of one page load."""

    def __init__(self, registry: Optional[AuditRegistry] = None):
        self.registry = registry or audit_registry

    def _resolve_audits(self, audit_ids: Optional[Sequence[str]]) -> List[Audit]:
        ids = list(audit_ids) if audit_ids is not None else self.registry.list_audits()
        return [self.registry.create(audit_id) for audit_id in ids]

    async def run(
        self,
        artifacts: Artifacts,
        settings: Optional[Settings] = None,
        audit_ids: Optional[Sequence[str]] = None,
        audits: Optional[Sequence[Audit]] = None
    ) -> Dict[str, AuditResult]:
        """Run audits and collect their results by audit id.

        Args:
            artifacts: Gathered artifacts for the page
            settings: Run settings; defaults apply when omitted
            audit_ids: Registered audits to run; all when omitted
            audits: Audit instances to run instead of registry lookups

        Returns:
            Mapping of audit id to result, in run order
        """
        context = RunContext(settings=settings or Settings(), run_id=str(uuid4()))
        selected = list(audits) if audits is not None else self._resolve_audits(audit_ids)

        logger.info(f"Starting run {context.run_id} with {len(selected)} audits")
        start_time = time.perf_counter()

        try:
            results = await asyncio.gather(*(
                self._run_audit(audit, artifacts, context) for audit in selected
            ))
        except asyncio.CancelledError:
            context.computed_cache.abort(f"run {context.run_id} cancelled")
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        stats = context.computed_cache.stats
        logger.info(
            f"Run {context.run_id} finished in {duration_ms:.1f}ms "
            f"(cache hits={stats.hits}, misses={stats.misses}, failures={stats.failures})"
        )
        return {audit.id: result for audit, result in zip(selected, results)}

    async def _run_audit(self, audit: Audit, artifacts: Artifacts, context: RunContext) -> AuditResult:
        """Run one audit, converting its failure into an error result."""
        try:
            return await audit.audit(artifacts, context)
        except Exception as e:
            logger.warning(f"Audit {audit.id} failed: {e}")
            return AuditResult.error_result(f"{type(e).__name__}: {e}")


async def run_audits(artifacts: Artifacts, settings: Optional[Settings] = None,
                     audit_ids: Optional[Sequence[str]] = None) -> Dict[str, AuditResult]:
    """Convenience wrapper running registered audits with a default runner."""
    return await AuditRunner().run(artifacts, settings=settings, audit_ids=audit_ids)
