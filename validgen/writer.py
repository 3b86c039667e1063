"""Write generated artifacts to disk.

Each artifact is written to a temporary sibling file and renamed into place,
so a reader (or a cancelled run) never sees a half-written file.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import Iterable

from .errors import GenerationError
from .log import get_logger
from .models import GeneratedArtifact

logger = get_logger(__name__)


def _target_path(root: Path, artifact: GeneratedArtifact) -> Path:
    relative = PurePosixPath(artifact.relative_path)
    if relative.is_absolute() or ".." in relative.parts:
        raise GenerationError(
            f"Refusing to write outside the output directory: {artifact.relative_path}",
            artifact.name, artifact.target.language,
        )
    return root.joinpath(*relative.parts)


def write_atomic(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` via a temp file and os.replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        # Leave no temp file behind; the target is either old or new, never partial
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class ArtifactWriter:
    """Persist artifacts under one output directory."""

    def __init__(self, output_directory: str | Path) -> None:
        self.output_directory = Path(output_directory)

    async def write(self, artifact: GeneratedArtifact) -> Path:
        path = _target_path(self.output_directory, artifact)
        await asyncio.to_thread(write_atomic, path, artifact.content)
        logger.debug("Wrote %s", path)
        return path

    async def write_all(self, artifacts: Iterable[GeneratedArtifact]) -> list[Path]:
        """Write artifacts one after another, in order.

        Cancellation stops between files; every file written so far is
        complete.
        """
        written: list[Path] = []
        for artifact in artifacts:
            written.append(await self.write(artifact))
        return written
