"""depimage CLI: build Python images with cache-stable dependency layers.

Commands:
- build       reconcile, update the order cache, docker build (+ save/rmi)
- plan        JSON view of the reconciled steps, no side effects
- dockerfile  print the Dockerfile a build would use
- cache       list/show/clear per-version order caches
- verify      check a saved image tar against a SHA-256 digest
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from depimage.buildpacks.python import render_dockerfile
from depimage.cache.store import FileOrderStore
from depimage.config import DEFAULT_CACHE_DIR
from depimage.core import BuildContext, CachePolicy, build_pipeline, plan_only
from depimage.errors import DepimageError
from depimage.logging import get_logger
from depimage.naming import image_name_for
from depimage.planner import emit_build_plan
from depimage.types import ReconciledPlan

app = typer.Typer(add_completion=False, help="Build Python container images from a dependency file")
cache_app = typer.Typer(add_completion=False, help="Inspect per-version order caches")
app.add_typer(cache_app, name="cache")
console = Console()
log = get_logger(__name__)

_CACHE_DIR_OPTION = typer.Option(
    DEFAULT_CACHE_DIR, "--cache-dir", envvar="DEPIMAGE_CACHE_DIR", help="Order cache directory"
)


def _fail(err: Exception) -> typer.Exit:
    log.error(str(err))
    rprint(f"[red]Error:[/red] {escape(str(err))}")
    return typer.Exit(code=1)


def _steps_table(plan: ReconciledPlan, title: str) -> Table:
    new = set(plan.new)
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Dependency", style="cyan")
    table.add_column("Layer")
    for i, step in enumerate(plan.steps, start=1):
        table.add_row(str(i), step, "[yellow]new[/yellow]" if step in new else "cached")
    return table


@app.command()
def build(
    depfile: Path = typer.Argument(..., help="Dependencies file (first line python_version==X)"),
    cache_dir: Path = _CACHE_DIR_OPTION,
    context: Path = typer.Option(Path("."), "--context", help="Docker build context"),
    tag: str | None = typer.Option(None, "--tag", "-t", help="Image name (default: file name)"),
    save: Path | None = typer.Option(None, "--save", help="docker save the image to this tar"),
    rmi: bool = typer.Option(False, "--rmi", help="Remove the image after building/saving"),
    keep_dockerfile: bool = typer.Option(
        False, "--keep-dockerfile", help="Leave the generated Dockerfile in the context"
    ),
    cache_policy: CachePolicy = typer.Option(
        CachePolicy.ALWAYS, "--cache-policy", help="When to persist the reconciled order"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Reconcile only; no cache write, no build"),
) -> None:
    ctx = BuildContext(
        depfile=depfile,
        cache_dir=cache_dir,
        context_dir=context,
        image_name=tag,
        save_to=save,
        remove_image=rmi,
        keep_dockerfile=keep_dockerfile,
        cache_policy=cache_policy,
        dry_run=dry_run,
    )
    try:
        outcome = build_pipeline(ctx)
    except DepimageError as e:
        raise _fail(e) from e

    title = f"{outcome.image} (python {outcome.spec.runtime_version})"
    console.print(_steps_table(outcome.plan, title))
    if outcome.plan.dropped:
        rprint(f"[yellow]Dropped from cache:[/yellow] {', '.join(outcome.plan.dropped)}")
    if dry_run:
        rprint("[cyan]Dry run: cache and image left untouched.[/cyan]")
        return
    for artifact in outcome.artifacts:
        if artifact.surface == "tar":
            rprint(f"[green]Saved:[/green] {artifact.path} sha256={artifact.sha256}")
    rprint(f"[green]Built:[/green] {outcome.image}")


@app.command()
def plan(
    depfile: Path = typer.Argument(..., help="Dependencies file"),
    cache_dir: Path = _CACHE_DIR_OPTION,
    tag: str | None = typer.Option(None, "--tag", "-t", help="Image name (default: file name)"),
    out: str | None = typer.Option(None, "--out", help="Write to file instead of stdout"),
) -> None:
    try:
        spec, reconciled = plan_only(BuildContext(depfile=depfile, cache_dir=cache_dir))
    except DepimageError as e:
        raise _fail(e) from e
    payload = emit_build_plan(spec, reconciled, tag or image_name_for(depfile))
    if out:
        try:
            Path(out).write_text(payload, encoding="utf-8")
        except OSError as e:
            raise _fail(e) from e
        rprint(f"[green]Plan written:[/green] {out}")
    else:
        print(payload)


@app.command()
def dockerfile(
    depfile: Path = typer.Argument(..., help="Dependencies file"),
    cache_dir: Path = _CACHE_DIR_OPTION,
) -> None:
    try:
        spec, reconciled = plan_only(BuildContext(depfile=depfile, cache_dir=cache_dir))
    except DepimageError as e:
        raise _fail(e) from e
    print(render_dockerfile(spec.runtime_version, reconciled.steps), end="")


@cache_app.command("list")
def cache_list(cache_dir: Path = _CACHE_DIR_OPTION) -> None:
    for version in FileOrderStore(cache_dir).versions():
        print(version)


@cache_app.command("show")
def cache_show(
    version: str = typer.Argument(..., help="Python version, e.g. 3.11"),
    cache_dir: Path = _CACHE_DIR_OPTION,
) -> None:
    try:
        cached = FileOrderStore(cache_dir).load(version)
    except DepimageError as e:
        raise _fail(e) from e
    for token in cached.entries:
        print(token)


@cache_app.command("clear")
def cache_clear(
    version: str = typer.Argument(..., help="Python version, e.g. 3.11"),
    cache_dir: Path = _CACHE_DIR_OPTION,
) -> None:
    try:
        removed = FileOrderStore(cache_dir).clear(version)
    except DepimageError as e:
        raise _fail(e) from e
    if removed:
        rprint(f"[green]Cleared order cache for python {version}[/green]")
    else:
        rprint(f"[yellow]No order cache for python {version}[/yellow]")


@app.command()
def verify(
    tar: Path = typer.Argument(..., help="Path to a saved image tar"),
    sha256: str = typer.Argument(..., help="Expected digest (hex or sha256:<hex>)"),
) -> None:
    from depimage.signing.checks import verify_sha256

    try:
        verify_sha256(tar, expected=sha256)
    except (OSError, ValueError) as e:
        raise _fail(e) from e
    rprint("[green]SHA-256 verified.[/green]")


if __name__ == "__main__":
    app()
