# -*- coding: ascii -*-
"""
Order record normalization.

Orders arrive either as XML text (root element <order>) or as an already
parsed tree. Parsed trees come in two shapes:

- modern: every child element is wrapped in a list, even when it occurs once
  ({'type': ['create'], 'estate': [{'type': ['house'], ...}], ...}). This is
  also the shape produced by parse_order_xml().
- legacy: flat, singular-valued fields
  ({'type': 'create', 'estate': {'type': 'house', ...}, ...}).

The shape is decided by whether the 'type' field is a list. Both extractors
return the same NormalizedRecord; they are kept separate because the legacy
branch resolves the external id differently.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union
from xml.etree.ElementTree import Element

import defusedxml.ElementTree as DefusedET
from defusedxml import DefusedXmlException

from .schema import ATTR_KEY, SHAPE_LEGACY, SHAPE_MODERN, TEXT_KEY, UNDEFINED

LOG = logging.getLogger(__name__)

ROOT_TAG = 'order'


class OrderRejected(ValueError):
    """An order that cannot be counted at all."""
    reason = 'rejected'


class OrderParseError(OrderRejected):
    """Malformed XML text, or XML whose root is not <order>."""
    reason = 'parse_error'


class OrderTypeError(OrderRejected):
    """Input that is neither a string nor a mapping."""
    reason = 'invalid_type'


@dataclass(frozen=True)
class NormalizedRecord:
    """Dimension values and derived counts extracted from one order."""
    operation: str
    estate_type: str
    object_type: str
    external_id: str
    photo_count: int
    advstat: Any = None
    shape: str = SHAPE_MODERN


# -- XML to tree ----------------------------------------------------------

def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1] if tag.startswith('{') else tag


def _element_text(element: Element) -> str:
    parts = [element.text or '']
    for child in element:
        parts.append(child.tail or '')
    return ''.join(parts).strip()


def element_to_tree(element: Element) -> Any:
    """
    Convert an element into the list-wrapped tree convention.

    Text-only elements become strings; elements carrying attributes or
    children become mappings with attributes under '$', text under '_' and
    each child tag mapped to a list of converted children.
    """
    text = _element_text(element)
    children = list(element)
    if not element.attrib and not children:
        return text

    node = {}
    if element.attrib:
        node[ATTR_KEY] = {_local_name(k): v for k, v in element.attrib.items()}
    for child in children:
        node.setdefault(_local_name(child.tag), []).append(element_to_tree(child))
    if text:
        node[TEXT_KEY] = text
    return node


def parse_order_xml(text: str) -> Any:
    """
    Parse an order XML document and return the content of its <order> root.

    Raises:
        OrderParseError: If the text is not well-formed XML, uses forbidden
            constructs (entity expansion, external references), or has a
            root element other than <order>
    """
    try:
        root = DefusedET.fromstring(text)
    except (DefusedET.ParseError, DefusedXmlException) as e:
        raise OrderParseError(f"XML parsing error: {e}") from e

    tag = _local_name(root.tag)
    if tag != ROOT_TAG:
        raise OrderParseError(f"XML root element is <{tag}>, expected <{ROOT_TAG}>")
    return element_to_tree(root)


# -- field access -----------------------------------------------------------

def _dig(obj: Any, *segments: Union[str, int]) -> Any:
    """Walk mapping keys / list indexes, returning None on the first miss."""
    for segment in segments:
        if isinstance(segment, int):
            if not isinstance(obj, list) or not -len(obj) <= segment < len(obj):
                return None
            obj = obj[segment]
        else:
            if not isinstance(obj, Mapping) or segment not in obj:
                return None
            obj = obj[segment]
    return obj


def text_content(value: Any) -> Any:
    """
    Return the text of a field, unwrapping attribute-bearing mappings.

    Falsy values (None, '', 0, False, empty containers) count as absent.
    """
    if isinstance(value, Mapping):
        return value.get(TEXT_KEY) or None
    if not value:
        return None
    return value


def _join_list(values: Any) -> str:
    return ','.join(_join_list(item) if isinstance(item, (list, tuple))
                    else '' if item is None else str(item) for item in values)


def dimension_key(value: Any) -> str:
    """
    Stringify a field value for use as a dimension key.

    List values are joined with ',' ("house", not "['house']").
    """
    if isinstance(value, (list, tuple)):
        value = _join_list(value)
    if value is None or value == '':
        return UNDEFINED
    return str(value)


def _present(value: Any) -> Any:
    return None if value is None or value == '' else value


def _coalesce(*values: Any) -> Any:
    for value in values:
        if value is not None and value != '':
            return value
    return None


def detect_shape(order: Mapping) -> str:
    """Return SHAPE_MODERN when the operation type field is list-valued."""
    return SHAPE_MODERN if isinstance(order.get('type'), list) else SHAPE_LEGACY


def normalize_modern(order: Any) -> NormalizedRecord:
    """Extract a NormalizedRecord from a list-wrapped (modern) tree."""
    meta = _dig(order, 'meta', 0)
    external_id = _coalesce(text_content(_dig(meta, 'extid', 0)),
                            _dig(order, ATTR_KEY, 'id'))
    photos = _dig(meta, 'attachments', 0, 'attachment')

    return NormalizedRecord(
        operation=dimension_key(text_content(_dig(order, 'type', 0))),
        estate_type=dimension_key(text_content(_dig(order, 'estate', 0, 'type', 0))),
        object_type=dimension_key(text_content(_dig(order, 'estate', 0, 'object', 0))),
        external_id=dimension_key(external_id),
        photo_count=len(photos) if isinstance(photos, list) else 0,
        advstat=_present(_dig(meta, 'advstat', 0)),
        shape=SHAPE_MODERN,
    )


def _legacy_photo_count(photos: Any) -> int:
    if isinstance(photos, list):
        return len(photos)
    # a single attachment that was not wrapped in a list
    return 1 if _present(photos) is not None else 0


def normalize_legacy(order: Any) -> NormalizedRecord:
    """Extract a NormalizedRecord from a flat (legacy) tree."""
    extid = _dig(order, 'meta', 'extid')
    if isinstance(extid, list):
        extid = extid[0] if extid else None
    external_id = _coalesce(text_content(extid), _dig(order, ATTR_KEY, 'id'))

    return NormalizedRecord(
        operation=dimension_key(text_content(_dig(order, 'type'))),
        estate_type=dimension_key(text_content(_dig(order, 'estate', 'type'))),
        object_type=dimension_key(text_content(_dig(order, 'estate', 'object'))),
        external_id=dimension_key(external_id),
        photo_count=_legacy_photo_count(_dig(order, 'meta', 'attachments', 'attachment')),
        advstat=_present(_dig(order, 'meta', 'advstat')),
        shape=SHAPE_LEGACY,
    )


def normalize_order(order: Any) -> NormalizedRecord:
    """
    Normalize a raw order (XML text or parsed tree).

    XML text is always parsed into the modern shape; mappings are
    shape-sniffed with detect_shape().

    Raises:
        OrderParseError: Malformed XML text
        OrderTypeError: Input is neither a string nor a mapping
    """
    if isinstance(order, str):
        return normalize_modern(parse_order_xml(order))
    if isinstance(order, Mapping):
        if detect_shape(order) == SHAPE_MODERN:
            return normalize_modern(order)
        return normalize_legacy(order)
    raise OrderTypeError(f"order is neither a string nor an object: {type(order).__name__}")


__all__: List[str] = [
    'NormalizedRecord',
    'OrderRejected',
    'OrderParseError',
    'OrderTypeError',
    'detect_shape',
    'dimension_key',
    'element_to_tree',
    'normalize_legacy',
    'normalize_modern',
    'normalize_order',
    'parse_order_xml',
    'text_content',
]
