import json
import logging

import pytest

from signatures.loader import SignatureFileError, build_library, load_signatures, parse_signature
from models.signature import Explicit, Literal, PatternType, Patterns


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_bundled_signatures_load():
    library = load_signatures()
    assert "Cloudflare" in library
    assert "WordPress" in library
    assert library["WooCommerce"].requires == ("WordPress",)
    assert library["WordPress"].implies == ("PHP", "MySQL")
    assert library["Drupal"].headers["X-Generator"] == r"Drupal(?:\s([\d.]+))?"


def test_library_is_read_only():
    library = load_signatures()
    with pytest.raises(TypeError):
        library["New"] = library["Cloudflare"]


def test_yaml_and_json_merge_with_later_override(tmp_path):
    first = _write(
        tmp_path / "a.yaml",
        "Foo:\n  headers:\n    Server: foo\nBar:\n  cookies:\n    bar_session: ''\n",
    )
    second = _write(tmp_path / "b.json", json.dumps({"Foo": {"html": ["<div id=\"foo\">"]}}))

    library = load_signatures([first, second])

    assert list(library) == ["Foo", "Bar"]
    assert library["Foo"].headers == {}
    assert library["Foo"].html == Patterns((Literal('<div id="foo">'),))
    assert library["Bar"].cookies == {"bar_session": ""}


def test_directory_files_load_in_name_order(tmp_path):
    _write(tmp_path / "02_override.yml", "Foo:\n  implies: Baz\n")
    _write(tmp_path / "01_base.yaml", "Foo:\n  implies: Bar\n")
    _write(tmp_path / "notes.txt", "not a signature file")

    library = load_signatures([str(tmp_path)])
    assert library["Foo"].implies == ("Baz",)


def test_version_tags_are_stripped(tmp_path):
    path = _write(
        tmp_path / "tags.yaml",
        "Nginx:\n  headers:\n    Server: 'nginx(?:/([\\d.]+))?\\;version:\\1'\n"
        "  scriptSrc:\n    - 'nginx\\.js\\;confidence:50'\n",
    )
    library = load_signatures([path])
    assert library["Nginx"].headers["Server"] == r"nginx(?:/([\d.]+))?"
    assert library["Nginx"].script_src == Patterns((Literal(r"nginx\.js"),))


def test_js_map_keys_are_searched_fragments():
    signature = parse_signature("Next.js", {"js": {"__NEXT_DATA__": "", "next": {"type": "encoded", "confidence": 90}}})
    literal, explicit = signature.js.items
    assert literal == Literal("__NEXT_DATA__")
    assert isinstance(explicit, Explicit)
    assert explicit.descriptor.pattern == "next"
    assert explicit.descriptor.type == PatternType.ENCODED
    assert explicit.descriptor.confidence == 90


def test_dom_accepts_map_or_list():
    assert parse_signature("A", {"dom": {"#app": "", ".x": ""}}).dom == ("#app", ".x")
    assert parse_signature("B", {"dom": ["#app"]}).dom == ("#app",)
    assert parse_signature("C", {"dom": "#app"}).dom == ("#app",)


def test_null_values_mean_presence():
    signature = parse_signature("A", {"headers": {"X-Foo": None}, "cookies": {"foo": None}})
    assert signature.headers == {"X-Foo": ""}
    assert signature.cookies == {"foo": ""}


def test_invalid_entries_are_skipped(caplog):
    with caplog.at_level(logging.WARNING):
        library = build_library({
            "Good": {"cookies": {"good": ""}},
            "BadImplies": {"implies": 5},
            "BadHeaders": {"headers": ["Server"]},
            "BadPriority": {"html": {"pattern": "x", "priority": "urgent"}},
            "NotAMapping": "cookies",
        })
    assert list(library) == ["Good"]
    assert "BadImplies" in caplog.text


def test_non_mapping_file_raises(tmp_path):
    path = _write(tmp_path / "list.yaml", "- Foo\n- Bar\n")
    with pytest.raises(SignatureFileError):
        load_signatures([path])


def test_empty_file_loads_nothing(tmp_path):
    path = _write(tmp_path / "empty.yaml", "")
    assert len(load_signatures([path])) == 0


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_signatures([str(tmp_path / "missing.yaml")])
