"""Build plan emission: a JSON view of what a build would do."""

from __future__ import annotations

import json

from depimage.types import DependencySpec, ReconciledPlan
from depimage.validator import validate_plan


def build_plan_dict(spec: DependencySpec, plan: ReconciledPlan, image: str) -> dict:
    return {
        "image": image,
        "runtime": {"python": spec.runtime_version},
        "steps": list(plan.steps),
        "known": list(plan.known),
        "new": list(plan.new),
        "dropped": list(plan.dropped),
        "duplicates": list(plan.duplicates),
    }


def emit_build_plan(spec: DependencySpec, plan: ReconciledPlan, image: str) -> str:
    """Return the plan as indented JSON, validated against ``plan.schema.json``."""
    payload = build_plan_dict(spec, plan, image)
    validate_plan(payload)
    return json.dumps(payload, indent=2)
