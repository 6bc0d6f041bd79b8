#!/usr/bin/env python3
"""
Budget audit example for PageAudit.

This example demonstrates how to run the timing budget and HTTPS audits
over artifacts saved from a page load (a trace, a DevTools log and the
inspector issues), with budgets loaded from a budget.json file.
"""

import asyncio
import json
import logging
from pathlib import Path
import sys

# Add the parent directory to Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pageaudit.audit import Artifacts, AuditRunner, ConfigurationError, load_settings


EXAMPLE_DIR = Path(__file__).parent


def load_artifacts(path: Path) -> Artifacts:
    """Load artifacts saved as JSON by the gathering layer."""
    with open(path, 'r', encoding='utf-8') as f:
        return Artifacts.model_validate(json.load(f))


async def budget_audit_example(artifacts_path: Path):
    """Run all registered audits with the example budgets."""
    print("=== Budget Audit Example ===")

    try:
        settings = load_settings(EXAMPLE_DIR / "pageaudit.yaml")
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}")
        return

    artifacts = load_artifacts(artifacts_path)
    results = await AuditRunner().run(artifacts, settings)

    for audit_id, result in results.items():
        print(f"\n{audit_id}:")
        if result.not_applicable:
            print("- not applicable")
            continue
        if result.is_error:
            print(f"- error: {result.error_message}")
            continue

        if result.score is not None:
            print(f"- score: {result.score}")
        if result.display_value:
            print(f"- {result.display_value}")
        for item in result.details.items if result.details else []:
            print(f"- {item.model_dump(by_alias=True, exclude_none=True)}")


async def report_json_example(artifacts_path: Path):
    """Print the report JSON consumed by the renderer."""
    print("\n=== Report JSON Example ===")

    settings = load_settings(EXAMPLE_DIR / "pageaudit.yaml")
    results = await AuditRunner().run(load_artifacts(artifacts_path), settings, audit_ids=["timing-budget"])
    report = {audit_id: result.to_report_dict() for audit_id, result in results.items()}
    print(json.dumps(report, indent=2))


async def main():
    """Run examples."""
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if len(sys.argv) < 2:
        print("Usage: budget_audit_example.py <artifacts.json>")
        sys.exit(1)

    artifacts_path = Path(sys.argv[1])

    print("PageAudit Budget Examples")
    print("=" * 50)

    try:
        await budget_audit_example(artifacts_path)
        await report_json_example(artifacts_path)
    except KeyboardInterrupt:
        print("\nExamples interrupted by user")
    except Exception as e:
        print(f"\nExample failed: {e}")
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    asyncio.run(main())
