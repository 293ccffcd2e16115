"""Docker packaging: build, save and remove images through the docker CLI.

The builder writes the rendered Dockerfile to a staging file in the build context, runs
``docker build -f <staging file>`` and removes it again. With ``keep_dockerfile`` it is
written as ``<context>/Dockerfile`` instead, never over an existing one.
"""

from __future__ import annotations

import subprocess
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from depimage.config import DOCKER_BIN
from depimage.errors import ImageBuildError
from depimage.logging import get_logger

log = get_logger(__name__)


class ImageBuilder(Protocol):
    def build(
        self,
        image: str,
        dockerfile_text: str,
        runtime_version: str,
        steps: Sequence[str],
        context_dir: Path,
    ) -> str: ...

    def save(self, image: str, out_path: Path) -> Path: ...

    def remove(self, image: str) -> None: ...


class DockerImageBuilder:
    def __init__(self, docker: str = DOCKER_BIN, keep_dockerfile: bool = False) -> None:
        self.docker = docker
        self.keep_dockerfile = keep_dockerfile

    def _run(self, args: list[str], action: str) -> None:
        cmd = [self.docker, *args]
        log.info("docker %s", action, extra={"cmd": cmd})
        try:
            proc = subprocess.run(cmd, check=False)
        except FileNotFoundError as e:
            raise ImageBuildError(f"Docker executable not found: {self.docker}") from e
        if proc.returncode != 0:
            log.error("docker %s failed", action, extra={"returncode": proc.returncode})
            raise ImageBuildError(f"Docker {action} failed", returncode=proc.returncode)

    def _write_dockerfile(self, text: str, context_dir: Path) -> Path:
        """Kept Dockerfiles land at ``<context>/Dockerfile``; others use a staging name."""
        context_dir.mkdir(parents=True, exist_ok=True)
        if self.keep_dockerfile:
            dockerfile = context_dir / "Dockerfile"
            if dockerfile.exists():
                raise ImageBuildError(f"Refusing to overwrite existing {dockerfile}")
            dockerfile.write_text(text, encoding="utf-8")
            return dockerfile
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=context_dir,
            prefix=".depimage-",
            suffix=".Dockerfile",
            delete=False,
        ) as out:
            out.write(text)
        return Path(out.name)

    def build(
        self,
        image: str,
        dockerfile_text: str,
        runtime_version: str,
        steps: Sequence[str],
        context_dir: Path,
    ) -> str:
        dockerfile = self._write_dockerfile(dockerfile_text, context_dir)
        log.info(
            "building image",
            extra={"image": image, "runtime": runtime_version, "layers": len(steps)},
        )
        try:
            self._run(["build", "-t", image, "-f", str(dockerfile), str(context_dir)], "build")
        finally:
            if not self.keep_dockerfile:
                dockerfile.unlink(missing_ok=True)
        return image

    def save(self, image: str, out_path: Path) -> Path:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        self._run(["save", "-o", str(out_path), image], "save")
        return out_path

    def remove(self, image: str) -> None:
        self._run(["rmi", image], "rmi")
