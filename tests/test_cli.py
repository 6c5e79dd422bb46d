from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from kinvault.cli import app
from kinvault.models.handle import RecordHandle

runner = CliRunner()


def invoke(*args: str):
    return runner.invoke(app, list(args), catch_exceptions=False)


class TestValidateCommand:
    def test_valid_file(self, tmp_path: Path, family_gedcom: str) -> None:
        path = tmp_path / "family.ged"
        path.write_text(family_gedcom)
        result = invoke("validate", str(path))
        assert result.exit_code == 0
        assert "GEDCOM file is valid" in result.output
        assert "Individuals: 3" in result.output

    def test_invalid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.ged"
        path.write_text("0 @I1@ INDI\n1 NAME A /B/\n")
        result = invoke("validate", str(path))
        assert result.exit_code == 1
        assert "Invalid GEDCOM file" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = invoke("validate", str(tmp_path / "nope.ged"))
        assert result.exit_code == 1
        assert "File not found" in result.output


class TestImportExportCommands:
    def test_import_then_export(self, vault, builder, tmp_path: Path, family_gedcom: str) -> None:
        src = tmp_path / "family.ged"
        src.write_text(family_gedcom)
        result = invoke("import", str(src), "--vault", str(vault.root), "--collection", "Smiths")
        assert result.exit_code == 0
        assert "Created 3 person notes" in result.output
        assert (vault.root / "People" / "William Smith.md").exists()
        assert builder.fields(RecordHandle("People/Mary Jones.md"))["collection"] == "Smiths"

        out = tmp_path / "export.ged"
        result = invoke("export", str(out), "--vault", str(vault.root))
        assert result.exit_code == 0
        assert "Exported 3 individuals" in result.output
        assert out.read_text().startswith("0 HEAD\n")

    def test_import_rejects_invalid_file(self, vault, builder, tmp_path: Path) -> None:
        src = tmp_path / "broken.ged"
        src.write_text("0 HEAD\nthis is not gedcom\n")
        result = invoke("import", str(src), "--vault", str(vault.root))
        assert result.exit_code == 1
        assert list(vault.root.rglob("*.md")) == []

    def test_missing_vault(self, tmp_path: Path, family_gedcom: str) -> None:
        src = tmp_path / "family.ged"
        src.write_text(family_gedcom)
        result = invoke("import", str(src), "--vault", str(tmp_path / "missing"))
        assert result.exit_code == 1
        assert "Vault not found" in result.output


class TestGraphCommands:
    def test_stats(self, vault, three_generations) -> None:
        result = invoke("stats", "--vault", str(vault.root))
        assert result.exit_code == 0
        assert "People" in result.output
        assert "7" in result.output

    def test_duplicates(self, vault, builder) -> None:
        builder.person("Ann Lee", "ann-111-lee-111", born="1800", sex="female")
        builder.person("Ann Lee", "ann-222-lee-222", stem="Ann Lee 2", born="1800", sex="female")
        result = invoke("duplicates", "--vault", str(vault.root))
        assert result.exit_code == 0
        assert "1 matches: 1 high" in result.output

    def test_duplicates_rejects_bad_threshold(self, vault, builder) -> None:
        result = invoke("duplicates", "--vault", str(vault.root), "--min-confidence", "150")
        assert result.exit_code == 1

    def test_ahnentafel(self, vault, three_generations) -> None:
        result = invoke("ahnentafel", "roo-001-aaa-001", "--generations", "3", "--vault", str(vault.root))
        assert result.exit_code == 0
        assert "Generation 2: 2/2 (100%)" in result.output
        assert "Generation 3: 4/4 (100%)" in result.output

    def test_ahnentafel_unknown_root(self, vault, three_generations) -> None:
        result = invoke("ahnentafel", "zzz-999-zzz-999", "--vault", str(vault.root))
        assert result.exit_code == 1
        assert "person not found" in result.output


class TestLinkCommands:
    def test_link_spouse(self, vault, builder) -> None:
        a = builder.person("Ann Lee", "ann-111-lee-111", sex="female")
        b = builder.person("Bob Ray", "bob-222-ray-222", sex="male")
        result = invoke("link", "spouse", a.path, b.path, "--vault", str(vault.root))
        assert result.exit_code == 0
        assert "Updated 2 note(s)" in result.output
        assert builder.fields(a)["spouse_id"] == ["bob-222-ray-222"]
        assert builder.fields(b)["spouse_id"] == ["ann-111-lee-111"]

    def test_link_parent_with_role(self, vault, builder) -> None:
        child = builder.person("Kid", "kid-111-kid-111")
        mum = builder.person("Mum", "mum-222-mum-222", sex="female")
        result = invoke("link", "parent", child.path, mum.path, "--role", "mother", "--vault", str(vault.root))
        assert result.exit_code == 0
        assert builder.fields(child)["mother_id"] == "mum-222-mum-222"
        assert builder.fields(mum)["children_id"] == ["kid-111-kid-111"]

    def test_link_unknown_relation(self, vault, builder) -> None:
        a = builder.person("Ann Lee", "ann-111-lee-111")
        b = builder.person("Bob Ray", "bob-222-ray-222")
        result = invoke("link", "cousin", a.path, b.path, "--vault", str(vault.root))
        assert result.exit_code == 1

    def test_link_missing_id(self, vault, builder) -> None:
        a = builder.person("Ann Lee", "ann-111-lee-111")
        b = builder.person("No Id", None)
        result = invoke("link", "spouse", a.path, b.path, "--vault", str(vault.root))
        assert result.exit_code == 1
        assert "missing an id" in result.output
        assert "spouse_id" not in builder.fields(a)

    def test_rename(self, vault, builder) -> None:
        a = builder.person("Ann Lee", "ann-111-lee-111", spouse=["[[Bee]]"], spouse_id=["bee-222-bee-222"])
        builder.person("Bea", "bee-222-bee-222", spouse=["[[Ann Lee]]"], spouse_id=["ann-111-lee-111"])
        result = invoke("rename", "bee-222-bee-222", "Bee", "Bea", "People/Bea.md", "--vault", str(vault.root))
        assert result.exit_code == 0
        assert builder.fields(a)["spouse"] == ["[[Bea]]"]
