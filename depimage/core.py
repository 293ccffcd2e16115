"""Build orchestration: depfile -> order cache -> reconcile -> Dockerfile -> image."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from depimage.buildpacks.python import BuildResult
from depimage.buildpacks.python import build as py_build
from depimage.cache.store import FileOrderStore, OrderStore
from depimage.config import DEFAULT_CACHE_DIR
from depimage.depfile import read_depfile
from depimage.errors import ImageBuildError
from depimage.logging import get_logger
from depimage.naming import image_name_for
from depimage.package.docker import DockerImageBuilder, ImageBuilder
from depimage.reconcile import reconcile
from depimage.signing.checks import write_sidecar
from depimage.types import DependencySpec, OrderCache, ReconciledPlan

log = get_logger(__name__)


class CachePolicy(str, Enum):
    """When the reconciled order is written back to the cache."""

    ALWAYS = "always"  # before the image build, regardless of its outcome
    ON_SUCCESS = "on-success"


@dataclass
class Artifact:
    surface: str
    path: Path | None = None
    ref: str | None = None
    sha256: str | None = None


@dataclass
class BuildContext:
    depfile: Path
    cache_dir: Path = DEFAULT_CACHE_DIR
    context_dir: Path = Path(".")
    image_name: str | None = None
    save_to: Path | None = None
    remove_image: bool = False
    keep_dockerfile: bool = False
    cache_policy: CachePolicy = CachePolicy.ALWAYS
    dry_run: bool = False


@dataclass
class BuildOutcome:
    image: str
    spec: DependencySpec
    plan: ReconciledPlan
    dockerfile: str
    cache_written: bool = False
    artifacts: list[Artifact] = field(default_factory=list)


def plan_only(
    ctx: BuildContext, *, store: OrderStore | None = None
) -> tuple[DependencySpec, ReconciledPlan]:
    """Parse and reconcile without touching the cache or docker."""
    store = store or FileOrderStore(ctx.cache_dir)
    spec = read_depfile(ctx.depfile)
    cached = store.load(spec.runtime_version)
    plan = reconcile(cached.entries, spec.entries)
    log.info(
        "reconciled",
        extra={
            "runtime": spec.runtime_version,
            "known": len(plan.known),
            "new": len(plan.new),
            "dropped": len(plan.dropped),
            "duplicates": len(plan.duplicates),
        },
    )
    return spec, plan


def _commit(store: OrderStore, spec: DependencySpec, plan: ReconciledPlan) -> None:
    store.save(OrderCache(runtime_version=spec.runtime_version, entries=plan.new_order))


def build_pipeline(
    ctx: BuildContext,
    *,
    store: OrderStore | None = None,
    builder: ImageBuilder | None = None,
) -> BuildOutcome:
    store = store or FileOrderStore(ctx.cache_dir)
    spec, plan = plan_only(ctx, store=store)
    result: BuildResult = py_build(spec, plan)
    image = ctx.image_name or image_name_for(ctx.depfile)

    outcome = BuildOutcome(image=image, spec=spec, plan=plan, dockerfile=result.dockerfile)
    if ctx.dry_run:
        return outcome

    builder = builder or DockerImageBuilder(keep_dockerfile=ctx.keep_dockerfile)

    if ctx.cache_policy is CachePolicy.ALWAYS:
        _commit(store, spec, plan)
        outcome.cache_written = True

    try:
        ref = builder.build(
            image, result.dockerfile, result.runtime_version, result.steps, ctx.context_dir
        )
    except ImageBuildError:
        log.error(
            "image build failed",
            extra={"image": image, "cache_written": outcome.cache_written},
        )
        raise

    if ctx.cache_policy is CachePolicy.ON_SUCCESS:
        _commit(store, spec, plan)
        outcome.cache_written = True
    outcome.artifacts.append(Artifact(surface="image", ref=ref))

    if ctx.save_to:
        tar = builder.save(ref, ctx.save_to)
        digest = write_sidecar(tar).read_text(encoding="utf-8")
        outcome.artifacts.append(Artifact(surface="tar", path=tar, ref=ref, sha256=digest))

    if ctx.remove_image:
        builder.remove(ref)

    return outcome
