"""Load technology signatures from YAML or JSON files into an immutable library."""
import json
import logging
import os
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml

from core.normalizer import descriptor_from_mapping, parse_raw_pattern
from models.signature import Explicit, Literal, Patterns, RawPattern, Signature

logger = logging.getLogger(__name__)

DEFAULT_SIGNATURES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")
SIGNATURE_EXTENSIONS = (".yaml", ".yml", ".json")

KNOWN_KEYS = {"js", "scriptSrc", "headers", "cookies", "html", "dom", "implies", "requires"}

SignatureLibrary = Mapping[str, Signature]


class SignatureFileError(ValueError):
    """A signature file whose top level is not a technology-name mapping."""


def _strip_tags(pattern: str) -> str:
    # Wappalyzer-style "\;version:\1" / "\;confidence:50" suffixes
    return pattern.split(r"\;", 1)[0]


def _strip_raw(value: Any) -> Any:
    if isinstance(value, str):
        return _strip_tags(value)
    if isinstance(value, list):
        return [_strip_raw(v) for v in value]
    if isinstance(value, dict) and isinstance(value.get("pattern"), str):
        return {**value, "pattern": _strip_tags(value["pattern"])}
    return value


def _as_names(value: Any, key: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ValueError(f"'{key}' must be a string or a list of strings")


def _as_string_map(value: Any, key: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be a mapping of name to pattern")
    result = {}
    for name, pattern in value.items():
        if pattern is None:
            pattern = ""
        if not isinstance(pattern, str):
            raise ValueError(f"'{key}.{name}' must be a string pattern")
        result[str(name)] = _strip_tags(pattern)
    return result


def _parse_js(value: Any) -> Optional[RawPattern]:
    if value is None:
        return None
    if not isinstance(value, dict):
        return parse_raw_pattern(_strip_raw(value), "js")

    # Keys are the code fragments; a mapping value may refine the descriptor
    items = []
    for fragment, detail in value.items():
        if isinstance(detail, dict):
            items.append(Explicit(descriptor_from_mapping(_strip_raw(detail), "js", default_pattern=str(fragment))))
        else:
            items.append(Literal(str(fragment)))
    return Patterns(tuple(items))


def _parse_dom(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, dict):
        return tuple(str(k) for k in value)
    return _as_names(value, "dom")


def parse_signature(name: str, data: Mapping[str, Any]) -> Signature:
    """Validate one raw signature entry. Raises ValueError when it is ill-typed."""
    if not isinstance(data, Mapping):
        raise ValueError("signature must be a mapping")

    unknown = set(data) - KNOWN_KEYS
    if unknown:
        logger.debug(f"{name}: ignoring unsupported keys {sorted(unknown)}")

    script_src = data.get("scriptSrc")
    html = data.get("html")
    return Signature(
        name=name,
        js=_parse_js(data.get("js")),
        script_src=parse_raw_pattern(_strip_raw(script_src), "scriptSrc") if script_src is not None else None,
        headers=_as_string_map(data.get("headers"), "headers"),
        cookies=_as_string_map(data.get("cookies"), "cookies"),
        html=parse_raw_pattern(_strip_raw(html), "html") if html is not None else None,
        dom=_parse_dom(data.get("dom")),
        implies=_as_names(data.get("implies"), "implies"),
        requires=_as_names(data.get("requires"), "requires"),
    )


def read_signature_file(path: str) -> Dict[str, Any]:
    """Read the raw technology-name mapping from one YAML or JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        if path.endswith(".json"):
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SignatureFileError(f"{path}: top level must map technology names to signatures")
    return data


def build_library(raw: Mapping[str, Any]) -> SignatureLibrary:
    """Parse merged raw data; invalid entries are logged and skipped."""
    signatures: Dict[str, Signature] = {}
    for name, data in raw.items():
        try:
            signatures[str(name)] = parse_signature(str(name), data)
        except ValueError as e:
            logger.warning(f"Skipping invalid signature {name!r}: {e}")
    return MappingProxyType(signatures)


def signature_files(directory: str) -> List[str]:
    return [
        os.path.join(directory, filename)
        for filename in sorted(os.listdir(directory))
        if filename.endswith(SIGNATURE_EXTENSIONS)
    ]


def load_signatures(paths: Optional[Iterable[str]] = None) -> SignatureLibrary:
    """Load and merge signature files; later files override earlier ones by name.

    ``paths`` may mix files and directories. Defaults to the bundled data.
    """
    paths = list(paths) if paths else [DEFAULT_SIGNATURES_DIR]
    files: List[str] = []
    for path in paths:
        files.extend(signature_files(path) if os.path.isdir(path) else [path])

    merged: Dict[str, Any] = {}
    for path in files:
        data = read_signature_file(path)
        logger.debug(f"Read {len(data)} signatures from {path}")
        merged.update(data)

    library = build_library(merged)
    logger.info(f"Loaded {len(library)} technology signatures from {len(files)} file(s)")
    return library
