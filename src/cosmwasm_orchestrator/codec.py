"""JSON encoding of contract messages and decoding of query results."""

import dataclasses
import json
import types
from enum import Enum
from typing import Any, Type, TypeVar, Union, get_args, get_origin

from .exceptions import SerializationError

T = TypeVar("T")


def to_jsonable(msg: Any) -> Any:
    """
    Convert a message payload to JSON-compatible builtins.

    Dataclasses become dicts, enums their values, and objects exposing
    to_dict() are converted through it. Builtins pass through unchanged.
    """
    if dataclasses.is_dataclass(msg) and not isinstance(msg, type):
        return {k: to_jsonable(v) for k, v in dataclasses.asdict(msg).items()}
    if isinstance(msg, Enum):
        return msg.value
    if hasattr(msg, "to_dict"):
        return to_jsonable(msg.to_dict())
    if isinstance(msg, dict):
        return {str(k): to_jsonable(v) for k, v in msg.items()}
    if isinstance(msg, (list, tuple)):
        return [to_jsonable(v) for v in msg]
    return msg


def encode_json(msg: Any, operation: str = "encode") -> bytes:
    """
    Serialize a message payload to UTF-8 JSON bytes.

    Raises:
        SerializationError: If the payload holds values JSON cannot represent
    """
    try:
        return json.dumps(to_jsonable(msg), separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(
            f"{operation}: cannot serialize {type(msg).__name__} payload: {e}",
            operation=operation,
        ) from e


def decode_json(data: Union[bytes, str], response_type: Type[T] = dict, operation: str = "decode") -> T:
    """
    Deserialize JSON bytes into the caller's expected type.

    Args:
        data: Raw UTF-8 JSON
        response_type: dict, list, str, int, bool, a dataclass, typing.Any,
                or List[X], Dict[str, X] and Optional/Union of these
        operation: Operation name used in error messages

    Raises:
        SerializationError: If the bytes are not UTF-8 JSON or do not match the type
    """
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        obj = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SerializationError(f"{operation}: response is not valid UTF-8 JSON: {e}", operation=operation) from e

    return _coerce(obj, response_type, operation)


def _type_name(response_type: Any) -> str:
    return getattr(response_type, "__name__", None) or str(response_type)


def _mismatch(obj: Any, response_type: Any, operation: str) -> SerializationError:
    return SerializationError(
        f"{operation}: expected {_type_name(response_type)}, got {type(obj).__name__}",
        operation=operation,
    )


def _coerce(obj: Any, response_type: Any, operation: str) -> Any:
    if response_type is Any or response_type is object:
        return obj

    origin = get_origin(response_type)
    if origin in (Union, types.UnionType):
        args = get_args(response_type)
        if obj is None and type(None) in args:
            return None
        for arg in args:
            if arg is type(None):
                continue
            try:
                return _coerce(obj, arg, operation)
            except SerializationError:
                continue
        raise _mismatch(obj, response_type, operation)

    if origin is list:
        if not isinstance(obj, list):
            raise _mismatch(obj, response_type, operation)
        (item_type,) = get_args(response_type) or (Any,)
        return [_coerce(item, item_type, operation) for item in obj]

    if origin is dict:
        if not isinstance(obj, dict):
            raise _mismatch(obj, response_type, operation)
        _, value_type = get_args(response_type) or (str, Any)
        return {k: _coerce(v, value_type, operation) for k, v in obj.items()}

    if origin is not None or not isinstance(response_type, type):
        raise SerializationError(
            f"{operation}: unsupported response type {_type_name(response_type)}",
            operation=operation,
        )

    if dataclasses.is_dataclass(response_type):
        if not isinstance(obj, dict):
            raise SerializationError(
                f"{operation}: expected object for {response_type.__name__}, got {type(obj).__name__}",
                operation=operation,
            )
        try:
            return response_type(**obj)
        except TypeError as e:
            raise SerializationError(
                f"{operation}: response does not match {response_type.__name__}: {e}",
                operation=operation,
            ) from e

    # Uint128 and friends are serialized as decimal strings
    if response_type is int and isinstance(obj, str) and obj.isdigit():
        return int(obj)

    if isinstance(obj, response_type) and not (response_type is int and isinstance(obj, bool)):
        return obj

    raise _mismatch(obj, response_type, operation)
