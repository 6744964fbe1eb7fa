from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from werkzeug.datastructures import FileStorage

from .relations import RELATION_NAMES, NormalizationOptions


TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}
EXPORT_FORMATS = {"txt", "csv", "xlsx"}


@dataclass
class ComparisonRequest:
    text_a: str
    text_b: str
    options: NormalizationOptions


class ValidationError(Exception):
    pass


def validate_relation(value: str) -> str:
    normalized = (value or "").strip().lower()
    if normalized not in RELATION_NAMES:
        raise ValidationError(
            "Relation must be one of: {}.".format(", ".join(RELATION_NAMES))
        )
    return normalized


def validate_export_format(value: str) -> str:
    normalized = (value or "txt").strip().lower()
    if normalized not in EXPORT_FORMATS:
        raise ValidationError("Format must be TXT, CSV or XLSX.")
    return normalized


def parse_flag(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUE_VALUES:
            return True
        if normalized in FALSE_VALUES:
            return False
    raise ValidationError(f"Option '{name}' must be a boolean.")


def parse_options(
    data: Mapping[str, Any], defaults: NormalizationOptions, *, checkboxes: bool = False
) -> NormalizationOptions:
    """Build normalization options from request data.

    With ``checkboxes`` set, a missing field means an unticked box (False)
    rather than the configured default.
    """
    values = {}
    for name, default in defaults.as_dict().items():
        if name in data:
            values[name] = parse_flag(data[name], name)
        else:
            values[name] = False if checkboxes else default
    return NormalizationOptions(**values)


def read_upload(file: Optional[FileStorage]) -> Optional[str]:
    """Return the decoded contents of an uploaded list, or None when absent."""
    if not file or not file.filename:
        return None

    raw = file.read()
    try:
        file.stream.seek(0)
    except Exception:  # pragma: no cover - FileStorage may not support seek in some contexts
        pass

    if isinstance(raw, str):
        return normalize_newlines(raw)
    try:
        return normalize_newlines(raw.decode("utf-8-sig"))
    except UnicodeDecodeError as exc:
        raise ValidationError(f"{file.filename} is not a UTF-8 text file.") from exc


def normalize_newlines(text: str) -> str:
    # Browsers submit textarea contents with CRLF line breaks.
    return text.replace("\r\n", "\n")


def _text_field(data: Mapping[str, Any], name: str) -> str:
    value = data.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"Field '{name}' must be a string.")
    return normalize_newlines(value)


def parse_comparison(
    data: Mapping[str, Any],
    defaults: NormalizationOptions,
    files: Optional[Mapping[str, FileStorage]] = None,
    *,
    checkboxes: bool = False,
) -> ComparisonRequest:
    if not isinstance(data, Mapping):
        raise ValidationError("Request body must be a JSON object.")

    files = files or {}
    text_a = read_upload(files.get("file_a"))
    text_b = read_upload(files.get("file_b"))
    if text_a is None:
        text_a = _text_field(data, "text_a")
    if text_b is None:
        text_b = _text_field(data, "text_b")

    options = parse_options(data, defaults, checkboxes=checkboxes)
    return ComparisonRequest(text_a=text_a, text_b=text_b, options=options)
