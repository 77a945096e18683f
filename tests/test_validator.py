from signatures.loader import build_library, load_signatures
from signatures.validator import (
    detect_cookie_overlaps,
    detect_cycles,
    detect_dangling_references,
    detect_header_overlaps,
    print_validation_report,
)


def test_cookie_overlaps():
    library = build_library({
        "Google Analytics": {"cookies": {"_ga": ""}},
        "Other Analytics": {"cookies": {"_ga": "", "_other": ""}},
    })
    assert detect_cookie_overlaps(library) == {"_ga": ["Google Analytics", "Other Analytics"]}


def test_header_overlaps_need_identical_patterns():
    library = build_library({
        "A": {"headers": {"Server": "nginx"}},
        "B": {"headers": {"server": "nginx"}},
        "C": {"headers": {"Server": "apache"}},
    })
    assert detect_header_overlaps(library) == {"server: nginx": ["A", "B"]}


def test_dangling_references():
    library = build_library({
        "A": {"implies": ["B", "Missing"]},
        "B": {"requires": "Gone"},
    })
    assert detect_dangling_references(library) == {"A": ["Missing"], "B": ["Gone"]}


def test_cycles():
    library = build_library({
        "A": {"implies": "B"},
        "B": {"implies": "A"},
        "C": {"requires": "C"},
        "D": {"implies": "A"},
    })
    assert detect_cycles(library) == [["A", "B", "A"], ["C", "C"]]


def test_bundled_data_is_consistent():
    library = load_signatures()
    assert detect_dangling_references(library) == {}
    assert detect_cycles(library) == []


def test_print_validation_report(capsys):
    library = build_library({"A": {"implies": "B"}, "B": {"implies": "A"}})
    print_validation_report(library)
    out = capsys.readouterr().out
    assert "Total Signatures: 2" in out
    assert "A -> B -> A" in out
