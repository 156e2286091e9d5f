"""
Import/Export Serialization.

Writes configuration entries as JSON, YAML, TOML or env-style text, and
reads them back with format auto-detection.

Structured formats use one object per key::

    {"Db:Host": {"type": "plain", "value": "db.internal"},
     "Db:Password": {"type": "keyvault", "value": "s3cr3t"}}

A flat ``{"key": "value"}`` object is accepted on import and treated as
plain values. Env files carry no type information, so their entries always
need a plain/Key Vault decision before they are written.

Author: azac contributors
Date: 2026-10-19
"""

import io
import json
import re
import tomllib
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import tomli_w
import yaml
from dotenv.parser import Binding, parse_stream

from azac.core.exceptions import ImportParseError


class ExportFormat(str, Enum):
    """Supported file formats."""
    JSON = "json"
    YAML = "yaml"
    TOML = "toml"
    ENV = "env"


class ValueKind(str, Enum):
    """How an imported value is stored."""
    PLAIN = "plain"
    SECRET = "keyvault"
    NEEDS_DECISION = "needs_decision"


@dataclass
class ImportEntry:
    """Entry read from an import file.

    Attributes:
        key: Application-relative key
        value: Value to store
        kind: Plain value, Key Vault secret, or undecided
    """
    key: str
    value: str
    kind: ValueKind = ValueKind.PLAIN


@dataclass
class ExportEntry:
    """Entry prepared for export.

    Attributes:
        key: Application-relative key
        value: Resolved value (secret value, or reference address if unreadable)
        is_indirection: Whether the entry is a Key Vault reference
    """
    key: str
    value: str
    is_indirection: bool = False


@dataclass
class ParseAttempt:
    """Outcome of parsing the input as one format."""
    format: ExportFormat
    entries: List[ImportEntry] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and bool(self.entries)


_EXTENSIONS = {
    ".json": ExportFormat.JSON,
    ".yaml": ExportFormat.YAML,
    ".yml": ExportFormat.YAML,
    ".toml": ExportFormat.TOML,
    ".env": ExportFormat.ENV,
}

_FALLBACK_ORDER = (ExportFormat.JSON, ExportFormat.YAML, ExportFormat.TOML, ExportFormat.ENV)

_TYPE_TAGS = {
    "plain": ValueKind.PLAIN,
    "keyvault": ValueKind.SECRET,
}

_BARE_ENV_VALUE = re.compile(r"[A-Za-z0-9_./:-]+")
_ENV_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def format_from_path(path: Union[str, Path]) -> Optional[ExportFormat]:
    """Return the format implied by a file extension, if any."""
    return _EXTENSIONS.get(Path(path).suffix.lower())


def looks_like_env_file(path: Union[str, Path]) -> bool:
    """Whether a file name looks like a dotenv file (``.env``, ``.env.local``, ``prod.env``)."""
    name = Path(path).name.lower()
    return name == ".env" or name.startswith(".env.") or name.endswith(".env") or ".env." in name


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def _structured_document(entries: List[ExportEntry]) -> Dict[str, Dict[str, str]]:
    return {
        entry.key: {
            "type": ValueKind.SECRET.value if entry.is_indirection else ValueKind.PLAIN.value,
            "value": entry.value,
        }
        for entry in entries
    }


def quote_env_value(value: str) -> str:
    """
    Quote an env value unless it only has letters, digits and ``_ . - / :``.

    Only the escapes python-dotenv decodes are written; other control
    characters stay raw inside the quotes.
    """
    if value and _BARE_ENV_VALUE.fullmatch(value):
        return value
    return '"' + "".join(_ENV_ESCAPES.get(char, char) for char in value) + '"'


def serialize(entries: Iterable[ExportEntry], fmt: ExportFormat) -> str:
    """
    Render entries in a file format.

    Args:
        entries: Entries to write; emitted sorted by key
        fmt: Target format

    Returns:
        File contents, newline terminated
    """
    ordered = sorted(entries, key=lambda entry: entry.key)
    fmt = ExportFormat(fmt)

    if fmt == ExportFormat.ENV:
        return "".join(f"{entry.key}={quote_env_value(entry.value)}\n" for entry in ordered)

    document = _structured_document(ordered)
    if fmt == ExportFormat.JSON:
        return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    if fmt == ExportFormat.YAML:
        return yaml.safe_dump(document, sort_keys=True, allow_unicode=True, default_flow_style=False)
    return tomli_w.dumps(document)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

def _stringify(key: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if value is None:
        raise ValueError(f"entry '{key}' has no value")
    raise ValueError(f"entry '{key}' has unsupported value type {type(value).__name__}")


def _entries_from_document(document: Any) -> List[ImportEntry]:
    if not isinstance(document, dict):
        raise ValueError("expected an object mapping keys to entries")

    entries = []
    for key, raw in document.items():
        key = str(key)
        if isinstance(raw, dict):
            if "value" not in raw:
                raise ValueError(f"entry '{key}' has no 'value' field")
            tag = str(raw.get("type", ValueKind.PLAIN.value)).strip().lower()
            if tag not in _TYPE_TAGS:
                raise ValueError(f"entry '{key}' has unknown type '{tag}'")
            entries.append(ImportEntry(key, _stringify(key, raw["value"]), _TYPE_TAGS[tag]))
        else:
            entries.append(ImportEntry(key, _stringify(key, raw), ValueKind.PLAIN))
    return entries


def _binding_line(binding: Binding) -> int:
    """Line the binding's content starts on, past any leading blank lines."""
    text = binding.original.string
    leading = text[:len(text) - len(text.lstrip())]
    return binding.original.line + leading.count("\n")


def parse_env(contents: str) -> List[ImportEntry]:
    """
    Parse ``KEY=VALUE`` lines with python-dotenv's parser.

    A key assigned more than once keeps its last value.

    Raises:
        ValueError: On a malformed line
    """
    entries: Dict[str, ImportEntry] = {}
    for binding in parse_stream(io.StringIO(contents)):
        if binding.error:
            raise ValueError(f"line {_binding_line(binding)}: not a KEY=VALUE assignment")
        if binding.key is None:
            continue
        if binding.value is None:
            raise ValueError(f"line {_binding_line(binding)}: '{binding.key}' has no '='")
        key = binding.key.strip()
        if not key:
            raise ValueError(f"line {_binding_line(binding)}: empty key")
        entries[key] = ImportEntry(key, binding.value, ValueKind.NEEDS_DECISION)
    return list(entries.values())


def _load_json(contents: str) -> List[ImportEntry]:
    try:
        document = json.loads(contents)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid JSON: {e}")
    return _entries_from_document(document)


def _load_yaml(contents: str) -> List[ImportEntry]:
    try:
        document = yaml.safe_load(contents)
    except yaml.YAMLError as e:
        raise ValueError(f"invalid YAML: {e}")
    return _entries_from_document(document)


def _load_toml(contents: str) -> List[ImportEntry]:
    try:
        document = tomllib.loads(contents)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"invalid TOML: {e}")
    return _entries_from_document(document)


_PARSERS: Dict[ExportFormat, Callable[[str], List[ImportEntry]]] = {
    ExportFormat.JSON: _load_json,
    ExportFormat.YAML: _load_yaml,
    ExportFormat.TOML: _load_toml,
    ExportFormat.ENV: parse_env,
}


def try_parse(contents: str, fmt: ExportFormat) -> ParseAttempt:
    """Parse the input as one format, reporting failure in the result."""
    try:
        entries = _PARSERS[fmt](contents)
    except ValueError as e:
        return ParseAttempt(format=fmt, error=str(e))
    if not entries:
        return ParseAttempt(format=fmt, error="no entries found")
    return ParseAttempt(format=fmt, entries=entries)


def detection_order(filename: Union[str, Path]) -> List[ExportFormat]:
    """
    Formats to try for a file, most likely first.

    The extension wins, then the dotenv name heuristic, then JSON, YAML,
    TOML and env.
    """
    order: List[ExportFormat] = []
    by_extension = format_from_path(filename)
    if by_extension:
        order.append(by_extension)
    if looks_like_env_file(filename):
        order.append(ExportFormat.ENV)
    for fmt in _FALLBACK_ORDER:
        if fmt not in order:
            order.append(fmt)
    return order


def parse_import(contents: str, filename: Union[str, Path]) -> ParseAttempt:
    """
    Parse an import file, detecting its format.

    Args:
        contents: File contents
        filename: File name, used for format hints

    Returns:
        The first attempt that produced entries

    Raises:
        ImportParseError: If no format produced any entries
    """
    attempt = None
    for fmt in detection_order(filename):
        attempt = try_parse(contents, fmt)
        if attempt.succeeded:
            return attempt
    raise ImportParseError(str(filename), attempt.format.value, attempt.error)
