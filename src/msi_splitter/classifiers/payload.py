"""Classifier payload normalization.

Classifier output is best-effort: pages may be missing, fields may be null,
enum values may come back in legacy spellings. Everything is coerced into
PageInfo records here, with safe defaults. Output that is not JSON or has no
page list is rejected as a whole.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from loguru import logger

from msi_splitter.exceptions import ClassifierError
from msi_splitter.models import PageInfo, PageMarker, PageType, ServiceType, SubType

E = TypeVar("E", bound=Enum)

_PAGE_TYPE_ALIASES = {
    "BANTINNGUON": PageType.SOURCE_MESSAGE,
    "SOURCE": PageType.SOURCE_MESSAGE,
    "SOURCEMESSAGE": PageType.SOURCE_MESSAGE,
    "FORM": PageType.BM,
}
_SERVICE_ALIASES = {
    "NAVTEX": ServiceType.NTX,
}
_SUBTYPE_ALIASES = {
    "TUYEN": SubType.ROUTE,
}
_MARKER_ALIASES = {
    "HEADER": PageMarker.FORM_HEADER,
    "LOG": PageMarker.LOG_SCREEN,
}


def _coerce_enum(enum_cls: Type[E], raw: Any, aliases: Mapping[str, E], default: Optional[E]) -> Optional[E]:
    if raw is None:
        return default
    value = str(raw).strip().upper().replace("-", "_").replace(" ", "_")
    if not value:
        return default
    if value in aliases:
        return aliases[value]
    try:
        return enum_cls(value)
    except ValueError:
        logger.debug(f"Unknown {enum_cls.__name__} value {raw!r}, using {default}")
        return default


def _as_bool(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in ("true", "1", "yes")
    return bool(raw)


def _as_str(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def default_page(page: int) -> PageInfo:
    """Record used for pages the classifier skipped: generic BM content page."""
    return PageInfo(page=page, page_type=PageType.BM, service_type=ServiceType.OTHER)


def normalize_record(raw: Mapping[str, Any], page: int) -> PageInfo:
    """Coerce one raw classifier record into a PageInfo for ``page``."""
    page_type = _coerce_enum(PageType, raw.get("pageType"), _PAGE_TYPE_ALIASES, PageType.BM)
    return PageInfo(
        page=page,
        form_code=_as_str(raw.get("formCode")),
        is_form_header=_as_bool(raw.get("isFormHeader")),
        page_type=page_type,
        service_type=_coerce_enum(ServiceType, raw.get("serviceType"), _SERVICE_ALIASES, None),
        sub_type=_coerce_enum(SubType, raw.get("subType"), _SUBTYPE_ALIASES, None),
        is_source_message_header=_as_bool(raw.get("isSourceMessageHeader") or raw.get("isSourceMessage")),
        is_log_page=_as_bool(raw.get("isLogPage")),
        broadcast_code=_as_str(raw.get("broadcastCodeHint") or raw.get("broadcastCode")),
        service_hint=_as_str(raw.get("serviceHint")),
        marker=_coerce_enum(PageMarker, raw.get("type"), _MARKER_ALIASES, PageMarker.CONTENT),
    )


def _extract_records(data: Any) -> List[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("pages"), list):
        return data["pages"]
    raise ClassifierError("Classifier response has no 'pages' list")


def parse_classification_payload(payload: str | bytes | Mapping[str, Any] | List[Any], page_count: int) -> List[PageInfo]:
    """Turn a raw classifier response into exactly ``page_count`` pages.

    Args:
        payload: JSON text or already-decoded object ({"pages": [...]} or a list)
        page_count: number of page images sent to the classifier

    Returns:
        PageInfo for pages 1..page_count, in order.

    Raises:
        ClassifierError: payload is not JSON or has no page list
    """
    if isinstance(payload, (str, bytes)):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ClassifierError(f"Classifier returned invalid JSON: {e}", e) from e
    else:
        data = payload

    by_page: Dict[int, Mapping[str, Any]] = {}
    for record in _extract_records(data):
        if not isinstance(record, dict):
            continue
        try:
            number = int(record.get("page"))
        except (TypeError, ValueError):
            continue
        by_page.setdefault(number, record)

    pages: List[PageInfo] = []
    missing = 0
    for number in range(1, page_count + 1):
        record = by_page.get(number)
        if record is None:
            missing += 1
            pages.append(default_page(number))
        else:
            pages.append(normalize_record(record, number))

    if missing:
        logger.warning(f"Classifier skipped {missing}/{page_count} page(s); defaults applied")
    return pages


__all__ = ["default_page", "normalize_record", "parse_classification_payload"]
