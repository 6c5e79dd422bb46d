"""Shared fixtures: a throwaway Markdown vault with helpers to seed person notes."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from kinvault.graph.cache import FamilyGraph
from kinvault.models.handle import RecordHandle
from kinvault.store.vault import MarkdownVault, render_note, split_frontmatter

FIXTURES = Path(__file__).parent / "fixtures"


class VaultBuilder:
    """Writes person notes straight to disk so tests start from a known state."""

    def __init__(self, vault: MarkdownVault) -> None:
        self.vault = vault

    def person(
        self,
        name: str,
        person_id: str | None,
        folder: str = "People",
        stem: str | None = None,
        **fields: Any,
    ) -> RecordHandle:
        data: dict[str, Any] = {}
        if person_id is not None:
            data["id"] = person_id
        data["name"] = name
        data.update(fields)
        rel = f"{folder}/{stem or name}.md"
        path = self.vault.root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_note(data, f"# {name}\n"), encoding="utf-8")
        return RecordHandle(rel)

    def fields(self, handle: RecordHandle) -> dict[str, Any]:
        text = (self.vault.root / handle.path).read_text(encoding="utf-8")
        fields, _ = split_frontmatter(text)
        return fields


@pytest.fixture()
def vault(tmp_path: Path) -> MarkdownVault:
    return MarkdownVault(tmp_path / "vault")


@pytest.fixture()
def builder(vault: MarkdownVault) -> VaultBuilder:
    vault.root.mkdir(parents=True, exist_ok=True)
    return VaultBuilder(vault)


@pytest.fixture()
def graph(vault: MarkdownVault) -> FamilyGraph:
    return FamilyGraph(vault)


@pytest.fixture()
def three_generations(builder: VaultBuilder) -> dict[str, RecordHandle]:
    """Root with both parents and all four grandparents, fully linked by id."""
    ids = {
        "root": "roo-001-aaa-001",
        "father": "fat-002-aaa-002",
        "mother": "mot-003-aaa-003",
        "pgf": "pgf-004-aaa-004",
        "pgm": "pgm-005-aaa-005",
        "mgf": "mgf-006-aaa-006",
        "mgm": "mgm-007-aaa-007",
    }
    return {
        "root": builder.person("Root Person", ids["root"], sex="male",
                               father_id=ids["father"], mother_id=ids["mother"]),
        "father": builder.person("Frank Person", ids["father"], sex="male",
                                 father_id=ids["pgf"], mother_id=ids["pgm"],
                                 children_id=[ids["root"]]),
        "mother": builder.person("Mary Maiden", ids["mother"], sex="female",
                                 father_id=ids["mgf"], mother_id=ids["mgm"],
                                 children_id=[ids["root"]]),
        "pgf": builder.person("George Person", ids["pgf"], sex="male", children_id=[ids["father"]]),
        "pgm": builder.person("Grace Elder", ids["pgm"], sex="female", children_id=[ids["father"]]),
        "mgf": builder.person("Henry Maiden", ids["mgf"], sex="male", children_id=[ids["mother"]]),
        "mgm": builder.person("Helen Older", ids["mgm"], sex="female", children_id=[ids["mother"]]),
    }


@pytest.fixture()
def family_gedcom() -> str:
    """Three individuals in one family: John and Mary Smith with their son William."""
    return (FIXTURES / "family.ged").read_text(encoding="utf-8")
