from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from depimage.cache.store import FileOrderStore
from depimage.core import BuildContext, CachePolicy, build_pipeline, plan_only
from depimage.errors import DepfileError, ImageBuildError


class FakeBuilder:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.builds: list[dict] = []
        self.saved: list[Path] = []
        self.removed: list[str] = []

    def build(
        self,
        image: str,
        dockerfile_text: str,
        runtime_version: str,
        steps: Sequence[str],
        context_dir: Path,
    ) -> str:
        self.builds.append(
            {
                "image": image,
                "dockerfile": dockerfile_text,
                "runtime": runtime_version,
                "steps": list(steps),
            }
        )
        if self.fail:
            raise ImageBuildError("Docker build failed", returncode=1)
        return image

    def save(self, image: str, out_path: Path) -> Path:
        out_path.write_bytes(f"tar of {image}".encode())
        self.saved.append(out_path)
        return out_path

    def remove(self, image: str) -> None:
        self.removed.append(image)


@pytest.mark.timeout(20)
def test_rebuild_keeps_cached_prefix(tmp_path, write_depfile):
    """
    First build records the request order; after adding and removing
    dependencies the second build keeps the surviving prefix and appends new ones.
    """
    cache_dir = tmp_path / "cache"
    builder = FakeBuilder()

    first = write_depfile("svc.txt", "3.11", "requests", "numpy==1.26.4", "# tooling", "", "rich")
    out1 = build_pipeline(BuildContext(depfile=first, cache_dir=cache_dir), builder=builder)
    assert out1.image == "svc"
    assert out1.plan.steps == ["requests", "numpy==1.26.4", "rich"]
    assert out1.cache_written
    assert (cache_dir / "3.11.txt").read_text(encoding="utf-8") == "requests\nnumpy==1.26.4\nrich\n"

    second = write_depfile("svc.txt", "3.11", "httpx", "rich", "requests")
    out2 = build_pipeline(BuildContext(depfile=second, cache_dir=cache_dir), builder=builder)
    assert out2.plan.steps == ["requests", "rich", "httpx"]
    assert out2.plan.dropped == ["numpy==1.26.4"]
    assert builder.builds[-1]["steps"] == ["requests", "rich", "httpx"]
    assert builder.builds[-1]["runtime"] == "3.11"
    assert FileOrderStore(cache_dir).load("3.11").entries == ["requests", "rich", "httpx"]


def test_runtime_versions_do_not_share_cache(write_depfile, memory_store):
    store = memory_store({"3.10": ["b", "a"]})
    depfile = write_depfile("x.txt", "3.12", "a", "b")

    outcome = build_pipeline(BuildContext(depfile=depfile), store=store, builder=FakeBuilder())

    assert outcome.plan.steps == ["a", "b"]
    assert store.data == {"3.10": ["b", "a"], "3.12": ["a", "b"]}


def test_failed_build_commits_cache_with_always_policy(write_depfile, memory_store):
    store = memory_store({"3.11": ["a"]})
    depfile = write_depfile("x.txt", "3.11", "b", "a")

    with pytest.raises(ImageBuildError):
        build_pipeline(BuildContext(depfile=depfile), store=store, builder=FakeBuilder(fail=True))

    assert store.data["3.11"] == ["a", "b"]


def test_failed_build_keeps_cache_with_on_success_policy(write_depfile, memory_store):
    store = memory_store({"3.11": ["a"]})
    depfile = write_depfile("x.txt", "3.11", "b", "a")
    ctx = BuildContext(depfile=depfile, cache_policy=CachePolicy.ON_SUCCESS)

    with pytest.raises(ImageBuildError):
        build_pipeline(ctx, store=store, builder=FakeBuilder(fail=True))
    assert store.data["3.11"] == ["a"]
    assert store.saves == 0

    outcome = build_pipeline(ctx, store=store, builder=FakeBuilder())
    assert outcome.cache_written
    assert store.data["3.11"] == ["a", "b"]


def test_bad_depfile_never_touches_cache(tmp_path, memory_store):
    store = memory_store({"3.11": ["a"]})
    bad = tmp_path / "bad.txt"
    bad.write_text("requests\n", encoding="utf-8")
    builder = FakeBuilder()

    with pytest.raises(DepfileError):
        build_pipeline(BuildContext(depfile=bad), store=store, builder=builder)
    with pytest.raises(DepfileError):
        build_pipeline(BuildContext(depfile=tmp_path / "missing.txt"), store=store, builder=builder)

    assert store.saves == 0
    assert builder.builds == []


def test_dry_run_and_plan_only_have_no_side_effects(example_depfile, memory_store):
    store = memory_store()
    builder = FakeBuilder()

    outcome = build_pipeline(
        BuildContext(depfile=example_depfile, dry_run=True), store=store, builder=builder
    )
    assert outcome.image == "example-app"
    assert "RUN pip install --no-cache-dir pandas" in outcome.dockerfile
    assert not outcome.cache_written
    assert builder.builds == []

    spec, plan = plan_only(BuildContext(depfile=example_depfile), store=store)
    assert spec.runtime_version == "3.11"
    assert plan.new == spec.entries
    assert store.saves == 0


def test_save_and_remove_produce_tar_artifact(tmp_path, write_depfile, memory_store):
    depfile = write_depfile("api.txt", "3.11", "flask")
    builder = FakeBuilder()
    ctx = BuildContext(
        depfile=depfile, image_name="custom", save_to=tmp_path / "out.tar", remove_image=True
    )

    outcome = build_pipeline(ctx, store=memory_store(), builder=builder)

    assert outcome.image == "custom"
    assert [a.surface for a in outcome.artifacts] == ["image", "tar"]
    tar = outcome.artifacts[1]
    assert tar.path == tmp_path / "out.tar"
    assert (tmp_path / "out.tar.sha256").read_text(encoding="utf-8") == tar.sha256
    assert builder.removed == ["custom"]
