"""Unit tests for amplint.discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from amplint.discovery import Artifact, ArtifactKind, classify, discover


def _touch(root: Path, rel: str, text: str = "x\n") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestClassify:
    @pytest.mark.parametrize(
        "path, kind",
        [
            ("bundle.md", ArtifactKind.MANIFEST),
            ("sub/bundle.yaml", ArtifactKind.MANIFEST),
            ("bundles/dev.yaml", ArtifactKind.MANIFEST),
            ("behaviors/canvas.md", ArtifactKind.MANIFEST),
            ("skills/philosophy/SKILL.md", ArtifactKind.SKILL),
            ("skills/patterns.md", ArtifactKind.SKILL),
            ("recipes/build.yaml", ArtifactKind.RECIPE),
            ("recipes/nested/build.yml", ArtifactKind.RECIPE),
        ],
    )
    def test_known(self, path: str, kind: ArtifactKind) -> None:
        assert classify(path) is kind

    @pytest.mark.parametrize(
        "path",
        ["README.md", "bundles/README.md", "skills/tool.py", "recipes/notes.md", "x.yaml"],
    )
    def test_unknown(self, path: str) -> None:
        assert classify(path) is None


class TestDiscover:
    def test_walks_directory(self, tmp_path: Path) -> None:
        bundle = _touch(tmp_path, "bundle.md")
        skill = _touch(tmp_path, "skills/a/SKILL.md")
        recipe = _touch(tmp_path, "recipes/r.yaml")
        _touch(tmp_path, "README.md")
        found = discover([tmp_path])
        assert found == sorted(
            [
                Artifact(path=bundle, kind=ArtifactKind.MANIFEST),
                Artifact(path=skill, kind=ArtifactKind.SKILL),
                Artifact(path=recipe, kind=ArtifactKind.RECIPE),
            ]
        )

    def test_skips_hidden_and_vendor_dirs(self, tmp_path: Path) -> None:
        _touch(tmp_path, ".git/bundle.md")
        _touch(tmp_path, "node_modules/pkg/bundle.md")
        _touch(tmp_path, ".cache/skills/x.md")
        assert discover([tmp_path]) == []

    def test_explicit_unclassified_file_is_manifest(self, tmp_path: Path) -> None:
        path = _touch(tmp_path, "canvas.yaml")
        assert discover([path]) == [Artifact(path=path, kind=ArtifactKind.MANIFEST)]

    def test_explicit_other_file_ignored(self, tmp_path: Path) -> None:
        path = _touch(tmp_path, "notes.txt")
        assert discover([path]) == []

    def test_deduplicates(self, tmp_path: Path) -> None:
        bundle = _touch(tmp_path, "bundle.md")
        assert discover([tmp_path, bundle]) == [
            Artifact(path=bundle, kind=ArtifactKind.MANIFEST)
        ]

    def test_directories_above_root_are_ignored(self, tmp_path: Path, monkeypatch) -> None:
        repo = tmp_path / "bundles" / "myrepo"
        _touch(repo, "docs/notes.md")
        _touch(repo, "skills/a/SKILL.md")
        absolute = discover([repo])
        monkeypatch.chdir(repo)
        relative = discover(["."])
        assert [(a.path.name, a.kind) for a in absolute] == [
            ("SKILL.md", ArtifactKind.SKILL)
        ]
        assert [(a.path.name, a.kind) for a in relative] == [
            ("SKILL.md", ArtifactKind.SKILL)
        ]

    def test_root_name_is_kept(self, tmp_path: Path, monkeypatch) -> None:
        skill = _touch(tmp_path, "skills/patterns.md")
        assert discover([tmp_path / "skills"]) == [
            Artifact(path=skill, kind=ArtifactKind.SKILL)
        ]
        monkeypatch.chdir(tmp_path / "skills")
        assert [a.kind for a in discover(["."])] == [ArtifactKind.SKILL]

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            discover([tmp_path / "missing"])
