"""Plain-Python and JSON front ends over :func:`php_unserialize.decoder.parse`."""

import re
from typing import Any, Union

import orjson
from structlog import get_logger

from php_unserialize.config import ByteEncoding, DecoderConfig, ErrorsMode
from php_unserialize.decoder import parse
from php_unserialize.errors import PhpUnserializeError
from php_unserialize.values import PhpArray, PhpObject, Value

__version__ = "0.1.0"

logger = get_logger()

_SERIALIZED_RE = re.compile(
    r'N;|b:[01];|i:[+-]?[0-9]+;|d:[^;:"{}]+;|s:[0-9]+:"|a:[0-9]+:\{|O:[0-9]+:"|R:[0-9]+;'
)


def version() -> str:
    """Get the version of the library."""
    return __version__


def _config(
    errors: ErrorsMode,
    assume_utf8: bool,
    accepted_attribute_names: Union[str, re.Pattern, None],
    lenient_booleans: bool,
) -> DecoderConfig:
    return DecoderConfig(
        byte_encoding=ByteEncoding.UTF8 if assume_utf8 else ByteEncoding.SINGLE_BYTE,
        accepted_attribute_names=accepted_attribute_names,
        lenient_booleans=lenient_booleans,
        errors=errors,
    )


def _is_list(array: PhpArray) -> bool:
    return all(type(key) is int and key == index for index, key in enumerate(array))


def _shell(value: Value, memo: dict[int, Any], pending: list[tuple[Any, Any]]) -> Any:
    """Return the (still empty) builtin container for ``value`` and queue it for filling."""
    if not isinstance(value, (PhpArray, PhpObject)):
        return value
    converted = memo.get(id(value))
    if converted is not None:
        return converted

    result: Any
    source: PhpArray = value.attributes if isinstance(value, PhpObject) else value
    if isinstance(value, PhpObject):
        result = {"__class__": value.name}
    elif _is_list(value):
        result = []
    else:
        result = {}
    memo[id(value)] = result
    pending.append((source, result))
    return result


def to_python(value: Value) -> Any:
    """
    Convert a decoded value tree into builtin containers.

    Arrays keyed exactly ``0..n-1`` become lists, other arrays become dicts,
    and objects become dicts whose first entry is ``"__class__"``. A container
    reached twice (through a back-reference) is converted once, so shared and
    cyclic structure survives the conversion. Keys that Python considers equal
    (``1``, ``True``, ``1.0``) share one dict entry, the later value wins.
    """
    memo: dict[int, Any] = {}
    pending: list[tuple[Any, Any]] = []
    root = _shell(value, memo, pending)
    while pending:
        source, result = pending.pop()
        if isinstance(result, list):
            result.extend(_shell(item, memo, pending) for item in source.values())
        else:
            for key, item in source.items():
                result[key] = _shell(item, memo, pending)
    return root


def preprocess(data: Union[bytes, str]) -> Union[bytes, str]:
    """
    Unescape data exported from a database as a quoted CSV field.

    ``"a:1:{s:3:""key"";i:1;}"`` becomes ``a:1:{s:3:"key";i:1;}``; anything
    not wrapped in double quotes is returned unchanged.
    """
    quote = b'"' if isinstance(data, bytes) else '"'
    if len(data) < 2 or data[:1] != quote or data[-1:] != quote:
        return data
    inner = data[1:-1]
    return inner.replace(quote * 2, quote)  # type: ignore[arg-type]


def is_serialized(data: Union[bytes, str]) -> bool:
    """Check if data starts with a well-formed PHP serialize token."""
    if isinstance(data, bytes):
        data = data.decode("utf-8", "surrogateescape")
    return _SERIALIZED_RE.match(data) is not None


def _parse(data: Union[bytes, str], auto_unescape: bool, config: DecoderConfig) -> Value:
    if auto_unescape:
        unescaped = preprocess(data)
        if unescaped is not data:
            logger.debug("unescaped db-exported input", size=len(data))
        data = unescaped
    return parse(data, config)


def loads(
    data: Union[bytes, str],
    *,
    errors: ErrorsMode = "replace",
    auto_unescape: bool = True,
    assume_utf8: bool = True,
    accepted_attribute_names: Union[str, re.Pattern, None] = None,
    lenient_booleans: bool = False,
) -> Any:
    """
    Deserialize PHP serialized data to builtin Python objects.

    Args:
        data: PHP serialized data, as bytes or text
        errors: handling of strings that are not valid UTF-8:
            - "strict": raise PhpUnserializeError
            - "replace": substitute the replacement character (default)
            - "surrogateescape": keep undecodable bytes as lone surrogates
            - "bytes": return such strings as bytes
        auto_unescape: undo DB export escaping before decoding
        assume_utf8: string lengths count UTF-8 bytes (default) rather than characters
        accepted_attribute_names: only keep string keys fully matching this pattern
        lenient_booleans: accept boolean payloads other than 0/1

    Returns:
        The deserialized Python object (see :func:`to_python`)

    Raises:
        PhpUnserializeError: If the data cannot be parsed
    """
    config = _config(errors, assume_utf8, accepted_attribute_names, lenient_booleans)
    return to_python(_parse(data, auto_unescape, config))


def loads_json(
    data: Union[bytes, str],
    *,
    auto_unescape: bool = True,
    assume_utf8: bool = True,
    accepted_attribute_names: Union[str, re.Pattern, None] = None,
    lenient_booleans: bool = False,
) -> str:
    """
    Deserialize PHP serialized data directly to a JSON string.

    Non-string keys are written as strings and non-finite floats as null.
    Cyclic data cannot be represented and raises ``orjson.JSONEncodeError``.

    Raises:
        PhpUnserializeError: If the data cannot be parsed
    """
    config = _config("replace", assume_utf8, accepted_attribute_names, lenient_booleans)
    value = to_python(_parse(data, auto_unescape, config))
    return orjson.dumps(value, option=orjson.OPT_NON_STR_KEYS).decode("utf-8")


__all__ = [
    "PhpUnserializeError",
    "is_serialized",
    "loads",
    "loads_json",
    "preprocess",
    "to_python",
    "version",
]
