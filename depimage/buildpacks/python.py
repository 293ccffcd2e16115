"""Python buildpack.

Turns a reconciled plan into a Dockerfile where every dependency token is its
own ``RUN pip install`` layer, in plan order, on top of ``python:<version>``.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from dataclasses import dataclass

from depimage.config import DEFAULT_WORKDIR, PIP_INSTALL
from depimage.types import DependencySpec, ReconciledPlan


@dataclass
class BuildResult:
    dockerfile: str
    runtime_version: str
    steps: list[str]


def render_dockerfile(
    runtime_version: str, steps: Sequence[str], *, workdir: str = DEFAULT_WORKDIR
) -> str:
    lines = [
        f"ARG PYTHON_VERSION={runtime_version}",
        "",
        "FROM python:${PYTHON_VERSION}",
        "",
        f"WORKDIR {workdir}",
        "",
    ]
    lines.extend(f"RUN {PIP_INSTALL} {shlex.quote(step)}" for step in steps)
    return "\n".join(lines) + "\n"


def build(spec: DependencySpec, plan: ReconciledPlan) -> BuildResult:
    dockerfile = render_dockerfile(spec.runtime_version, plan.steps)
    return BuildResult(
        dockerfile=dockerfile, runtime_version=spec.runtime_version, steps=list(plan.steps)
    )
