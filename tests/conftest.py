import json
import sys
import xml.etree.ElementTree as ET
from collections.abc import Callable
from pathlib import Path

import pytest

EXTRACTOR_DIR = Path(__file__).resolve().parent.parent
if str(EXTRACTOR_DIR) not in sys.path:
    sys.path.insert(0, str(EXTRACTOR_DIR))

import gmdoc  # noqa: E402


@pytest.fixture
def existing_paths(tmp_path: Path) -> dict[str, Path]:
    spec_xml = tmp_path / "GmlSpec.xml"
    spec_xml.write_text("<GameMakerLanguageSpec />\n", encoding="utf-8")

    link_table = tmp_path / "helpdocs_keywords.json"
    link_table.write_text("{}\n", encoding="utf-8")

    return {
        "spec_xml": spec_xml,
        "link_table": link_table,
        "output": tmp_path / "out" / "gml_builtins.json",
    }


@pytest.fixture
def missing_path(tmp_path: Path) -> Path:
    return tmp_path / "missing.xml"


@pytest.fixture
def make_spec_root() -> Callable[[str], ET.Element]:
    def _make_spec_root(inner_xml: str) -> ET.Element:
        return ET.fromstring(f"<GameMakerLanguageSpec>{inner_xml}</GameMakerLanguageSpec>")

    return _make_spec_root


@pytest.fixture
def make_element() -> Callable[[str], ET.Element]:
    def _make_element(xml: str) -> ET.Element:
        return ET.fromstring(xml)

    return _make_element


@pytest.fixture
def write_spec_files(tmp_path: Path) -> Callable[..., gmdoc.ExtractConfig]:
    def _write_spec_files(
        inner_xml: str,
        link_table: dict[str, object] | str | None = None,
        *,
        output: Path | None = None,
        sort_by_name: bool = False,
    ) -> gmdoc.ExtractConfig:
        spec_xml = tmp_path / "GmlSpec.xml"
        spec_xml.write_text(
            f"<GameMakerLanguageSpec>{inner_xml}</GameMakerLanguageSpec>\n",
            encoding="utf-8",
        )
        table_path = tmp_path / "helpdocs_keywords.json"
        if isinstance(link_table, str):
            table_path.write_text(link_table, encoding="utf-8")
        else:
            table_path.write_text(json.dumps(link_table or {}), encoding="utf-8")
        return gmdoc.ExtractConfig(
            spec_xml=spec_xml,
            link_table=table_path,
            output=output,
            sort_by_name=sort_by_name,
        )

    return _write_spec_files


@pytest.fixture
def make_function() -> Callable[..., gmdoc.Function]:
    def _make_function(
        *,
        name: str,
        parameters: tuple[gmdoc.Parameter, ...] = (),
        description: str = "",
        returns: str = "Real",
        deprecated: bool = False,
        pure: bool = True,
        link: str | None = None,
    ) -> gmdoc.Function:
        return gmdoc.Function(
            name=name,
            parameters=parameters,
            description=description,
            returns=returns,
            deprecated=deprecated,
            pure=pure,
            link=link,
        )

    return _make_function
