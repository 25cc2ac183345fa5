"""Output filename derivation."""

from __future__ import annotations

import re
from pathlib import PurePath

from msi_splitter.models import DocumentGroup, ServiceType, SubType

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize(value: str) -> str:
    """Replace every character outside [A-Za-z0-9.-] with an underscore."""
    return _UNSAFE_CHARS.sub("_", value)


def source_base_name(file_name: str) -> str:
    """Source file name without its extension, sanitized."""
    return sanitize(PurePath(file_name).stem)


def group_code(group: DocumentGroup) -> str:
    """Sanitized form code, or the page type when the group has none."""
    return sanitize(group.form_code or group.page_type.value)


def filename_base(source_file_name: str, group: DocumentGroup) -> str:
    """``{source}_{code}[_{service}][_{subtype}]`` without extension.

    Service and subtype suffixes are only added when set and not OTHER.
    """
    suffix = ""
    if group.service_type is not None and group.service_type != ServiceType.OTHER:
        suffix += f"_{group.service_type.value}"
    if group.sub_type is not None and group.sub_type != SubType.OTHER:
        suffix += f"_{group.sub_type.value}"
    return f"{source_base_name(source_file_name)}_{group_code(group)}{suffix}"


def is_counter_named(group: DocumentGroup) -> bool:
    """BM.04-like groups get numbered names on collision instead of overwriting."""
    if group.form_code and "BM.04" in group.form_code.upper():
        return True
    code = group_code(group).upper()
    return "BM_04" in code or "BM04" in code


def numbered_filename(base: str, counter: int) -> str:
    """``base.pdf`` for the first file, ``base - N.pdf`` afterwards."""
    if counter <= 1:
        return f"{base}.pdf"
    return f"{base} - {counter}.pdf"


__all__ = [
    "sanitize",
    "source_base_name",
    "group_code",
    "filename_base",
    "is_counter_named",
    "numbered_filename",
]
