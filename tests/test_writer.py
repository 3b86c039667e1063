"""Tests for the writer module."""

import asyncio

import pytest

import validgen.writer as writer_module
from validgen.errors import GenerationError
from validgen.models import GeneratedArtifact, TargetDescriptor
from validgen.writer import ArtifactWriter, write_atomic

_CS = TargetDescriptor("csharp", "C#", "cs")


def _artifact(path: str, content: str = "// generated\n") -> GeneratedArtifact:
    return GeneratedArtifact(path.rsplit(".", 1)[0], path, content, _CS)


class TestWriteAtomic:

    def test_creates_parents(self, tmp_path):
        path = tmp_path / "a" / "b" / "File.cs"
        write_atomic(path, "content\n")
        assert path.read_text() == "content\n"

    def test_replaces_existing(self, tmp_path):
        path = tmp_path / "File.cs"
        path.write_text("old")
        write_atomic(path, "new")
        assert path.read_text() == "new"

    def test_failure_keeps_old_file(self, tmp_path, monkeypatch):
        path = tmp_path / "File.cs"
        path.write_text("old")

        def fail(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(writer_module.os, "replace", fail)
        with pytest.raises(OSError):
            write_atomic(path, "new")
        assert path.read_text() == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["File.cs"]


class TestArtifactWriter:

    async def test_write_all(self, tmp_path):
        writer = ArtifactWriter(tmp_path)
        written = await writer.write_all([_artifact("PetId.cs"), _artifact("DTO/Pet.cs")])
        assert written == [tmp_path / "PetId.cs", tmp_path / "DTO" / "Pet.cs"]
        assert (tmp_path / "DTO" / "Pet.cs").read_text() == "// generated\n"

    async def test_rejects_escaping_paths(self, tmp_path):
        writer = ArtifactWriter(tmp_path / "out")
        with pytest.raises(GenerationError):
            await writer.write(_artifact("../evil.cs"))
        with pytest.raises(GenerationError):
            await writer.write(_artifact("/etc/evil.cs"))
        assert not (tmp_path / "evil.cs").exists()

    async def test_cancellation_leaves_complete_files(self, tmp_path):
        class CancelledMidway(ArtifactWriter):
            async def write(self, artifact):
                if artifact.name == "B":
                    raise asyncio.CancelledError()
                return await super().write(artifact)

        writer = CancelledMidway(tmp_path)
        with pytest.raises(asyncio.CancelledError):
            await writer.write_all([_artifact("A.cs"), _artifact("B.cs"), _artifact("C.cs")])

        assert (tmp_path / "A.cs").read_text() == "// generated\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["A.cs"]
