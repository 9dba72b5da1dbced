"""
Replication records and their wire encoding.

Inbound records are classified into a tagged variant before they touch the
store: ``SetRecord`` when the record carries a key and a value,
``DeleteRecord`` when it carries a key and no value. Anything else is a
``MissingKeyOrValue`` error. Byte payloads are UTF-8 JSON validated against
the CacheRecordV1 schema; a payload that fails either step is a
``MalformedRecord``.
"""

import json
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Union

import structlog
from jsonschema import Draft202012Validator
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .entry import RECORD_TYPE, Entry, decode_number, encode_number
from .errors import MalformedRecord, MissingKeyOrValue
from .schemas import CACHE_RECORD_V1

logger = structlog.get_logger(__name__)

_validator = Draft202012Validator(CACHE_RECORD_V1)


class SetRecord(BaseModel):
    """Inbound record that writes a value."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["set"] = "set"
    key: Any
    value: Any
    lifetime: Optional[float] = None
    origin: Optional[str] = None
    expires_at: Optional[float] = Field(None, alias="expiresAt")

    @field_validator("lifetime", "expires_at", mode="before")
    @classmethod
    def _infinite_token(cls, v):
        return decode_number(v)


class DeleteRecord(BaseModel):
    """Inbound record that removes a key."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["delete"] = "delete"
    key: Any
    origin: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return {"key": self.key, "value": None, "origin": self.origin, "type": RECORD_TYPE}


Record = Union[SetRecord, DeleteRecord]


def is_hashable(key: Any) -> bool:
    try:
        hash(key)
    except TypeError:
        return False
    return True


def classify(obj: Mapping[str, Any]) -> Record:
    """
    Turn a decoded record into its variant.

    Raises:
        MissingKeyOrValue: If the record has no key
        MalformedRecord: If the key is unhashable or a field has the wrong type
    """
    if obj.get("key") is None:
        raise MissingKeyOrValue(
            'Record does not contain a "key" property or the value for "key" is None',
            record=obj,
        )
    if not is_hashable(obj["key"]):
        raise MalformedRecord(f"Record key of type {type(obj['key']).__name__} is not hashable", record=obj)

    try:
        if obj.get("value") is not None:
            return SetRecord.model_validate(obj)
        return DeleteRecord.model_validate(obj)
    except ValidationError as e:
        raise MalformedRecord(f"Record fields have invalid types: {e.error_count()} error(s)", record=obj) from e


def decode_record(chunk: Union[bytes, bytearray, str]) -> Dict[str, Any]:
    """
    Decode a byte payload into a record mapping.

    Raises:
        MalformedRecord: If the payload is not JSON or does not match CacheRecordV1
    """
    try:
        text = chunk.decode("utf-8") if isinstance(chunk, (bytes, bytearray)) else chunk
        obj = json.loads(text)
    except (UnicodeDecodeError, TypeError, ValueError) as e:
        raise MalformedRecord(f"Payload is not a JSON record: {e}", record=chunk) from e

    errors = list(_validator.iter_errors(obj))
    if errors:
        summary = "; ".join(err.message for err in errors[:3])
        raise MalformedRecord(f"Payload does not match CacheRecordV1: {summary}", record=obj)

    return obj


def _jsonable(record: Mapping[str, Any]) -> Dict[str, Any]:
    out = dict(record)
    for field in ("lifetime", "expiresAt"):
        if field in out:
            out[field] = encode_number(out[field])
    return out


def encode_record(record: Mapping[str, Any]) -> bytes:
    """Newline-terminated UTF-8 JSON for byte-oriented transports."""
    return (json.dumps(_jsonable(record)) + "\n").encode("utf-8")


def encode_snapshot(pairs: List[Tuple[Any, Entry]]) -> str:
    """Serialize a ``dump()`` result so another process can ``load()`` it."""
    return json.dumps([[key, _jsonable(entry.to_record())] for key, entry in pairs])


def decode_snapshot(text: str) -> List[Tuple[Any, Dict[str, Any]]]:
    """
    Parse text produced by ``encode_snapshot``.

    Pairs come back as ``(key, record)`` with infinite numbers restored. Items
    that are not pairs are passed through untouched; ``load()`` skips them.
    """
    items = json.loads(text)
    if not isinstance(items, list):
        raise MalformedRecord("Snapshot is not a JSON array", record=items)

    pairs = []
    for item in items:
        if isinstance(item, list) and len(item) == 2 and isinstance(item[1], dict):
            record = dict(item[1])
            for field in ("lifetime", "expiresAt"):
                if field in record:
                    record[field] = decode_number(record[field])
            pairs.append((item[0], record))
        else:
            logger.debug("Snapshot item is not a key/record pair", item=repr(item)[:200])
            pairs.append(item)
    return pairs
