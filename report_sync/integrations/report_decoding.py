"""
Decode SubAffiliateSummary response bodies into report pages.

XML bodies look like::

    <sub_affiliate_summary_response>
      <success>true</success>
      <row_count>2</row_count>
      <data>
        <subaffiliate><sub_id>SPK-AB12-9F3D</sub_id><clicks>4</clicks>...</subaffiliate>
        ...
      </data>
    </sub_affiliate_summary_response>

JSON bodies are a top-level array of row objects. Either way a missing,
unparseable or oddly shaped rows container decodes to
``ReportPage(rows=None)``, which the fetcher treats as the end of the window.
"""
from __future__ import annotations

import json
from typing import Any, Optional
from xml.etree import ElementTree

from report_sync.integrations.base import RawRow, ReportAPIError, ReportPage
from report_sync.services.row_normalizer import TEXT_NODE_KEY
from report_sync.utils import get_logger

logger = get_logger(__name__)

RESPONSE_ELEMENT = "sub_affiliate_summary_response"
DATA_ELEMENT = "data"
ROW_ELEMENT = "subaffiliate"
XSI_NIL = "{http://www.w3.org/2001/XMLSchema-instance}nil"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def element_to_value(element: ElementTree.Element) -> Any:
    """Convert an element into plain Python values.

    Leaf elements become their text (``None`` when marked ``xsi:nil``),
    repeated children collapse into lists, and an element mixing text with
    child elements keeps the text under ``#text``. Attributes are ignored.
    """
    children = list(element)
    if not children:
        if element.get(XSI_NIL) == "true":
            return None
        return element.text if element.text is not None else ""

    node: dict[str, Any] = {}
    for child in children:
        name = _local_name(child.tag)
        value = element_to_value(child)
        if name not in node:
            node[name] = value
        elif isinstance(node[name], list):
            node[name].append(value)
        else:
            node[name] = [node[name], value]
    if element.text and element.text.strip():
        node[TEXT_NODE_KEY] = element.text
    return node


def _parse_row_count(text: Optional[str]) -> Optional[int]:
    if text is None:
        return None
    try:
        return int(text.strip())
    except ValueError:
        return None


def decode_xml_page(body: str | bytes) -> ReportPage:
    try:
        root = ElementTree.fromstring(body)
    except ElementTree.ParseError as e:
        logger.warning("Malformed XML report body; treating as no rows", error=str(e))
        return ReportPage(rows=None)

    if _local_name(root.tag) != RESPONSE_ELEMENT:
        logger.warning("Unexpected XML root element", root=_local_name(root.tag))
        return ReportPage(rows=None)

    by_name = {_local_name(child.tag): child for child in root}
    success = by_name.get("success")
    if success is not None and (success.text or "").strip().lower() == "false":
        message = by_name.get("message")
        raise ReportAPIError(
            f"Report API reported failure: {(message.text or '').strip() if message is not None else 'no message'}"
        )

    data = by_name.get(DATA_ELEMENT)
    if data is None:
        return ReportPage(rows=None)

    rows: list[RawRow] = []
    for child in data:
        if _local_name(child.tag) != ROW_ELEMENT:
            continue
        value = element_to_value(child)
        rows.append(value if isinstance(value, dict) else {})
    row_count = by_name.get("row_count")
    return ReportPage(rows=rows, total_rows=_parse_row_count(row_count.text if row_count is not None else None))


def decode_json_page(body: str | bytes) -> ReportPage:
    try:
        payload = json.loads(body)
    except ValueError as e:
        logger.warning("Malformed JSON report body; treating as no rows", error=str(e))
        return ReportPage(rows=None)
    if not isinstance(payload, list):
        logger.warning("Unexpected JSON payload shape", payload_type=type(payload).__name__)
        return ReportPage(rows=None)
    return ReportPage(rows=payload)


def decode_page(body: str | bytes, response_format: str) -> ReportPage:
    if response_format == "json":
        return decode_json_page(body)
    if response_format == "xml":
        return decode_xml_page(body)
    raise ValueError(f"Unsupported response format: {response_format}")


__all__ = ["element_to_value", "decode_xml_page", "decode_json_page", "decode_page"]
