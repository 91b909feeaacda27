"""JSON encode/decode against the Nightscout wire schemas."""

from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from nightscout_sync.core.errors import NightscoutDecodeError, PayloadEncodingError

ModelT = TypeVar("ModelT", bound=BaseModel)

# Payloads are models or lists of models; each model serialises with its
# own schema.
_PAYLOAD_ADAPTER = TypeAdapter(Any)

JSON_CONTENT_TYPE = "application/json"


def encode(value: Any) -> bytes:
    """Serialise an outgoing payload (a model or a list of models).

    Keys use the wire aliases and None-valued fields are omitted.

    Raises:
        PayloadEncodingError: If the value cannot be serialised. Payloads are
            fixed internal schemas, so this is a programming error.
    """
    try:
        return _PAYLOAD_ADAPTER.dump_json(value, by_alias=True, exclude_none=True)
    except PydanticSerializationError as exc:
        raise PayloadEncodingError(
            f"Cannot encode {type(value).__name__} payload: {exc}"
        ) from exc


def decode_list(model: type[ModelT], content: bytes) -> list[ModelT]:
    """Decode a JSON array of ``model`` records.

    Raises:
        NightscoutDecodeError: If the body is not valid JSON or any record
            does not match the schema.
    """
    try:
        return TypeAdapter(list[model]).validate_json(content)
    except ValidationError as exc:
        raise NightscoutDecodeError(
            f"Response is not a list of {model.__name__}: {exc.error_count()} error(s)"
        ) from exc
