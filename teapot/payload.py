"""JSON bodies for requests and responses.

``Payload`` is what travels in a request body or comes back in a result:
a JSON object, an array of JSON objects, or opaque bytes (for example a
multipart upload). ``JSONValue`` wraps decoded JSON in a closed tagged
union so nested lookups never trap on a type mismatch; they return None.
"""

import json
from enum import Enum
from typing import Any, Iterator, Mapping, Sequence


class JSONKind(str, Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


class JSONValue:
    """A decoded JSON value with typed, non-trapping accessors.

    Example:
        >>> value = JSONValue.wrap({"user": {"name": "Ada", "age": 36}})
        >>> value["user"]["name"].string
        'Ada'
        >>> value["user"]["age"].string is None
        True
        >>> value["missing"]["deeper"].is_null
        True
    """

    __slots__ = ("kind", "_value")

    def __init__(self, kind: JSONKind, value: Any) -> None:
        self.kind = kind
        self._value = value

    @classmethod
    def wrap(cls, value: Any) -> "JSONValue":
        """Wrap a plain Python value produced by ``json.loads``.

        Raises:
            TypeError: If the value is not representable as JSON.
        """
        if isinstance(value, JSONValue):
            return value
        if value is None:
            return cls(JSONKind.NULL, None)
        # bool is a subclass of int, so it has to be checked first
        if isinstance(value, bool):
            return cls(JSONKind.BOOL, value)
        if isinstance(value, (int, float)):
            return cls(JSONKind.NUMBER, value)
        if isinstance(value, str):
            return cls(JSONKind.STRING, value)
        if isinstance(value, Mapping):
            return cls(JSONKind.OBJECT, {str(k): cls.wrap(v) for k, v in value.items()})
        if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
            return cls(JSONKind.ARRAY, [cls.wrap(v) for v in value])
        raise TypeError(f"Value of type {type(value).__name__} is not JSON serializable")

    @classmethod
    def null(cls) -> "JSONValue":
        return cls(JSONKind.NULL, None)

    @property
    def is_null(self) -> bool:
        return self.kind is JSONKind.NULL

    @property
    def boolean(self) -> bool | None:
        return self._value if self.kind is JSONKind.BOOL else None

    @property
    def number(self) -> int | float | None:
        return self._value if self.kind is JSONKind.NUMBER else None

    @property
    def integer(self) -> int | None:
        if self.kind is JSONKind.NUMBER and float(self._value).is_integer():
            return int(self._value)
        return None

    @property
    def string(self) -> str | None:
        return self._value if self.kind is JSONKind.STRING else None

    @property
    def array(self) -> list["JSONValue"] | None:
        return list(self._value) if self.kind is JSONKind.ARRAY else None

    @property
    def object(self) -> dict[str, "JSONValue"] | None:
        return dict(self._value) if self.kind is JSONKind.OBJECT else None

    def get(self, key: str | int) -> "JSONValue | None":
        """Look up an object key or array index, returning None when absent."""
        if self.kind is JSONKind.OBJECT and isinstance(key, str):
            return self._value.get(key)
        if self.kind is JSONKind.ARRAY and isinstance(key, int) and not isinstance(key, bool):
            if -len(self._value) <= key < len(self._value):
                return self._value[key]
        return None

    def __getitem__(self, key: str | int) -> "JSONValue":
        found = self.get(key)
        return found if found is not None else JSONValue.null()

    def __iter__(self) -> Iterator["JSONValue"]:
        if self.kind is JSONKind.ARRAY:
            return iter(list(self._value))
        if self.kind is JSONKind.OBJECT:
            return iter(list(self._value.values()))
        return iter(())

    def __len__(self) -> int:
        if self.kind in (JSONKind.ARRAY, JSONKind.OBJECT):
            return len(self._value)
        return 0

    def unwrap(self) -> Any:
        """Return the plain Python value (dicts, lists, scalars)."""
        if self.kind is JSONKind.OBJECT:
            return {k: v.unwrap() for k, v in self._value.items()}
        if self.kind is JSONKind.ARRAY:
            return [v.unwrap() for v in self._value]
        return self._value

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, JSONValue):
            return self.kind is other.kind and self.unwrap() == other.unwrap()
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.kind, json.dumps(self.unwrap(), sort_keys=True)))

    def __repr__(self) -> str:
        return f"JSONValue({self.kind.value}, {self.unwrap()!r})"


class PayloadKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    BYTES = "bytes"


def _is_object_array(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, dict) for item in value)


class Payload:
    """A request or response body: JSON object, array of objects, or bytes.

    Build one from structured data with ``Payload(...)`` or from raw bytes
    with ``Payload.from_bytes(...)``. Building from bytes tries to decode
    JSON first and only falls back to opaque bytes when the data is not a
    JSON object or an array of JSON objects.

    Attributes:
        kind: Which variant this payload holds.
    """

    __slots__ = ("kind", "_value")

    def __init__(self, value: Mapping[str, Any] | Sequence[Mapping[str, Any]] | bytes) -> None:
        """Initialize the payload.

        Args:
            value: A mapping, a sequence of mappings, or raw bytes. Raw bytes
                are kept opaque; use ``from_bytes`` to decode them.

        Raises:
            TypeError: If the value is none of the supported shapes.
        """
        if isinstance(value, (bytes, bytearray, memoryview)):
            self.kind = PayloadKind.BYTES
            self._value: Any = bytes(value)
        elif isinstance(value, Mapping):
            self.kind = PayloadKind.OBJECT
            self._value = dict(value)
        elif isinstance(value, Sequence) and not isinstance(value, str):
            items = list(value)
            if not all(isinstance(item, Mapping) for item in items):
                raise TypeError("Array payloads must contain only JSON objects")
            self.kind = PayloadKind.ARRAY
            self._value = [dict(item) for item in items]
        else:
            raise TypeError(f"Unsupported payload type: {type(value).__name__}")

    @classmethod
    def from_bytes(cls, data: bytes) -> "Payload":
        """Build a payload from raw bytes, decoding JSON where possible."""
        decoded = decode_json(data)
        if decoded is not None:
            return cls(decoded)
        return cls(bytes(data))

    @property
    def object(self) -> dict[str, Any] | None:
        return self._value if self.kind is PayloadKind.OBJECT else None

    @property
    def array(self) -> list[dict[str, Any]] | None:
        return self._value if self.kind is PayloadKind.ARRAY else None

    @property
    def json(self) -> JSONValue | None:
        """The structured content as a ``JSONValue``, or None for bytes."""
        if self.kind is PayloadKind.BYTES:
            return None
        return JSONValue.wrap(self._value)

    @property
    def data(self) -> bytes:
        """Serialize the payload to bytes.

        Objects and arrays are encoded as compact UTF-8 JSON; byte payloads
        are returned unchanged.

        Raises:
            TypeError: If the structured content holds values that are not
                JSON serializable.
            ValueError: If the structured content contains NaN or infinity.
        """
        if self.kind is PayloadKind.BYTES:
            return self._value
        return json.dumps(
            self._value,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")

    @property
    def is_json(self) -> bool:
        return self.kind is not PayloadKind.BYTES

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Payload):
            return NotImplemented
        return self.kind is other.kind and self._value == other._value

    def __hash__(self) -> int:
        if self.kind is PayloadKind.BYTES:
            return hash((self.kind, self._value))
        return hash((self.kind, json.dumps(self._value, sort_keys=True, default=str)))

    def __repr__(self) -> str:
        if self.kind is PayloadKind.BYTES:
            return f"Payload(<{len(self._value)} bytes>)"
        return f"Payload({self._value!r})"


def decode_json(data: bytes | None) -> dict[str, Any] | list[dict[str, Any]] | None:
    """Best-effort decode of a JSON object or array of objects.

    Returns None for empty data, malformed JSON, or any other JSON shape
    (scalars, arrays of non-objects). Never raises.
    """
    if not data:
        return None
    try:
        decoded = json.loads(data)
    except (ValueError, UnicodeDecodeError):
        return None
    if isinstance(decoded, dict) or _is_object_array(decoded):
        return decoded
    return None
