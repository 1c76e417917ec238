"""XML encoding of responses and decoding of Route 53 request bodies."""

from enum import Enum
from typing import Any, Dict, Optional
from xml.etree import ElementTree as ET
from xml.parsers.expat import ExpatError
import xmltodict
from pydantic import BaseModel, ValidationError as SchemaError
from fakecloud.core.errors import ApiError, InvalidInput
from fakecloud.db.models import ChangeBatch

ELB_NAMESPACE = "http://elasticloadbalancing.amazonaws.com/doc/2012-06-01/"
ROUTE53_NAMESPACE = "https://route53.amazonaws.com/doc/2013-04-01/"

# Route 53 names list items after their container; the query API uses <member>.
ROUTE53_ITEM_TAGS = {
    "ResourceRecordSets": "ResourceRecordSet",
    "ResourceRecords": "ResourceRecord",
    "Changes": "Change",
}
MEMBER_TAG = "member"


def to_wire(model: BaseModel) -> Dict[str, Any]:
    """Dumps a schema model with its wire field names."""
    return model.model_dump(by_alias=True, exclude_none=True)


def append_value(parent: ET.Element, tag: str, value: Any,
                 item_tags: Optional[Dict[str, str]] = None) -> None:
    """Appends ``value`` under ``parent`` as element ``tag``.

    Dicts become nested elements, lists become repeated item elements and
    ``None`` is left out. List items are named from ``item_tags`` by their
    container, ``<member>`` otherwise.
    """
    if value is None:
        return
    item_tags = item_tags or {}
    if isinstance(value, BaseModel):
        value = to_wire(value)
    node = ET.SubElement(parent, tag)
    if isinstance(value, dict):
        for key, child in value.items():
            append_value(node, key, child, item_tags)
    elif isinstance(value, (list, tuple)):
        for item in value:
            append_value(node, item_tags.get(tag, MEMBER_TAG), item, item_tags)
    elif isinstance(value, bool):
        node.text = "true" if value else "false"
    elif isinstance(value, Enum):
        node.text = str(value.value)
    else:
        node.text = str(value)


def to_bytes(root: ET.Element) -> bytes:
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def query_response(action: str, result: Optional[Dict[str, Any]], request_id: str) -> bytes:
    """``<ActionResponse><ActionResult/><ResponseMetadata/></ActionResponse>``."""
    root = ET.Element(f"{action}Response", xmlns=ELB_NAMESPACE)
    append_value(root, f"{action}Result", result or {})
    append_value(root, "ResponseMetadata", {"RequestId": request_id})
    return to_bytes(root)


def rest_response(name: str, body: Dict[str, Any]) -> bytes:
    root = ET.Element(name, xmlns=ROUTE53_NAMESPACE)
    for key, value in body.items():
        append_value(root, key, value, ROUTE53_ITEM_TAGS)
    return to_bytes(root)


def error_response(error: ApiError, request_id: str = "") -> bytes:
    root = ET.Element("ErrorResponse")
    append_value(root, "Error", {
        "StatusCode": error.status_code,
        "Type": error.type,
        "Code": error.code,
        "Message": error.message,
    })
    append_value(root, "RequestId", request_id)
    return to_bytes(root)


# --- Decoding ---

def _unwrap_lists(value: Any) -> Any:
    """Replaces ``{"Changes": {"Change": [...]}}`` with ``{"Changes": [...]}``."""
    if isinstance(value, list):
        return [_unwrap_lists(item) for item in value]
    if not isinstance(value, dict):
        return value
    result = {}
    for key, child in value.items():
        if key in ROUTE53_ITEM_TAGS:
            items = child.get(ROUTE53_ITEM_TAGS[key], []) if isinstance(child, dict) else child or []
            child = items if isinstance(items, list) else [items]
        result[key] = _unwrap_lists(child)
    return result


def parse_change_batch(body: bytes) -> ChangeBatch:
    """Decodes a ``ChangeResourceRecordSetsRequest`` document.

    Raises InvalidInput when the body is not XML or does not hold a valid
    change batch.
    """
    try:
        document = xmltodict.parse(
            body,
            xml_attribs=False,
            process_namespaces=True,
            namespaces={ROUTE53_NAMESPACE: None},
            force_list=("Change", "ResourceRecord"),
        )
    except ExpatError as e:
        raise InvalidInput(f"Could not parse XML: {e}")

    request = next(iter(document.values()), None) if document else None
    batch = request.get("ChangeBatch") if isinstance(request, dict) else None
    if not isinstance(batch, dict):
        raise InvalidInput("ChangeBatch is required.")

    try:
        return ChangeBatch.model_validate(_unwrap_lists(batch))
    except SchemaError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidInput(f"Invalid change batch: {problems}")
