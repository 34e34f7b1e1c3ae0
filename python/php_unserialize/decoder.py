"""
Single-pass decoder for the format written by PHP's ``serialize()``.

Grammar::

    value := "N;" | "b:" bool ";" | "i:" int ";" | "d:" float ";"
           | "s:" bytelen ':"' bytes '";'
           | "a:" count ":{" (value value)* "}"
           | "O:" namelen ':"' name '":' count ":{" (value value)* "}"
           | "R:" index ";"

Nested containers are driven by an explicit stack instead of recursion, so
input-controlled nesting depth cannot exhaust the interpreter stack.
"""

import re
from typing import Any, Callable, NoReturn, Optional, Union

from php_unserialize.config import ByteEncoding, DecoderConfig
from php_unserialize.errors import ErrorKind, PhpUnserializeError
from php_unserialize.values import PhpArray, PhpObject, Value

_INT_RE = re.compile(r"[+-]?[0-9]+")
_LENGTH_RE = re.compile(r"[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?INF|NAN")
_ESCAPED_BYTE_RE = re.compile("[\udc80-\udcff]")

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_TAGS = frozenset("idbsaONR")

_NO_KEY = object()


def _utf8_width(char: str) -> int:
    cp = ord(char)
    if cp < 0x80:
        return 1
    if cp < 0x800:
        return 2
    if cp < 0x10000:
        return 3
    return 4


def _raw_utf8_width(char: str) -> int:
    # an undecodable input byte, smuggled through surrogateescape
    if 0xDC80 <= ord(char) <= 0xDCFF:
        return 1
    return _utf8_width(char)


def _single_byte_width(char: str) -> int:
    return 1


class _Frame:
    """An array or object whose key/value pairs are still being read."""

    __slots__ = ("result", "target", "remaining", "key")

    def __init__(self, result: Union[PhpArray, PhpObject], target: PhpArray, remaining: int) -> None:
        self.result = result
        self.target = target
        self.remaining = remaining
        self.key: Any = _NO_KEY

    @property
    def complete(self) -> bool:
        return self.remaining == 0 and self.key is _NO_KEY


class Session:
    """
    State of one decode call: the input, the scan offset and the table of
    values produced so far, which back-references index into.

    A session is single use and not reentrant.
    """

    def __init__(self, data: Union[str, bytes], config: Optional[DecoderConfig] = None) -> None:
        self.config = config or DecoderConfig()
        single_byte = self.config.byte_encoding is ByteEncoding.SINGLE_BYTE
        self._raw = isinstance(data, (bytes, bytearray, memoryview))
        if self._raw:
            data = bytes(data).decode("latin-1" if single_byte else "utf-8", "surrogateescape")
        self.text: str = data  # type: ignore[assignment]
        self.length = len(self.text)
        self.pos = 0
        self.refs: list[Value] = []
        self._pattern = self.config.attribute_pattern
        self._byte_width: Callable[[str], int]
        if single_byte:
            self._byte_width = _single_byte_width
        elif self._raw:
            self._byte_width = _raw_utf8_width
        else:
            self._byte_width = _utf8_width

    def _fail(self, kind: ErrorKind, msg: str, pos: Optional[int] = None) -> NoReturn:
        raise PhpUnserializeError(kind, msg, self.pos if pos is None else pos)

    def _require(self, end: int) -> None:
        if end > self.length:
            self._fail(ErrorKind.UNEXPECTED_END_OF_INPUT, "Unexpected end of serialized input")

    def _read_until(self, delimiter: str, what: str) -> str:
        end = self.text.find(delimiter, self.pos)
        if end == -1:
            self._fail(ErrorKind.MISSING_DELIMITER, f"Missing {delimiter!r} after serialized {what}")
        token = self.text[self.pos:end]
        self.pos = end + 1
        return token

    def _expect(self, char: str, what: str) -> None:
        self._require(self.pos + 1)
        if self.text[self.pos] != char:
            self._fail(ErrorKind.MISSING_DELIMITER, f"Expected {char!r} in serialized {what}, "
                                                    f"got {self.text[self.pos]!r}")
        self.pos += 1

    def _to_int(self, token: str, pattern: "re.Pattern[str]", what: str, start: int) -> int:
        if not pattern.fullmatch(token):
            self._fail(ErrorKind.INVALID_NUMBER, f"Invalid {what} {token[:32]!r}", start)
        try:
            return int(token)
        except ValueError as e:
            # more digits than int() accepts
            raise PhpUnserializeError(ErrorKind.INVALID_NUMBER, f"Invalid {what} {token[:32]!r}", start) from e

    def decode(self) -> Value:
        """Decode the value starting at the current offset."""
        stack: list[_Frame] = []
        value = self._read_value(is_key=False)
        while True:
            if isinstance(value, _Frame):
                stack.append(value)
            elif not stack:
                return value
            else:
                self._take(stack[-1], value)

            while stack[-1].complete:
                frame = stack.pop()
                self._read_closer(frame)
                if not stack:
                    return frame.result
                self._take(stack[-1], frame.result)

            value = self._read_value(is_key=stack[-1].key is _NO_KEY)

    def _take(self, frame: _Frame, value: Value) -> None:
        if frame.key is _NO_KEY:
            frame.key = value
            return
        if self._accepts(frame.key):
            frame.target._set(frame.key, value)
        frame.key = _NO_KEY
        frame.remaining -= 1

    def _accepts(self, key: Any) -> bool:
        if self._pattern is None or not isinstance(key, (str, bytes)):
            return True
        if isinstance(key, bytes):
            # a key kept raw by errors="bytes"
            key = key.decode("utf-8", "surrogateescape")
        return self._pattern.fullmatch(key) is not None

    def _read_value(self, is_key: bool) -> Union[Value, _Frame]:
        start = self.pos
        self._require(start + 2)
        tag = self.text[start]
        if tag not in _TAGS:
            self._fail(ErrorKind.UNKNOWN_TYPE, f"Encountered unknown type [{tag}]", start)
        separator = ";" if tag == "N" else ":"
        if self.text[start + 1] != separator:
            self._fail(ErrorKind.MISSING_DELIMITER, f"Expected {separator!r} after type [{tag}]", start + 1)
        self.pos = start + 2

        if tag == "N":
            return None
        if tag == "i":
            return self._read_int(is_key)
        if tag == "d":
            return self._read_float(is_key)
        if tag == "b":
            return self._read_bool()
        if tag == "s":
            return self._read_string(is_key)
        if tag == "R":
            return self._read_reference(is_key)
        if is_key:
            self._fail(ErrorKind.INVALID_KEY, f"Type [{tag}] cannot be used as a key", start)
        if tag == "a":
            return self._read_array()
        return self._read_object()

    def _read_int(self, is_key: bool) -> int:
        start = self.pos
        token = self._read_until(";", "integer")
        value = self._to_int(token, _INT_RE, "integer", start)
        if not _INT64_MIN <= value <= _INT64_MAX:
            self._fail(ErrorKind.INVALID_NUMBER, "Integer out of 64-bit range", start)
        if not is_key:
            self.refs.append(value)
        return value

    def _read_float(self, is_key: bool) -> float:
        start = self.pos
        token = self._read_until(";", "float")
        if not _FLOAT_RE.fullmatch(token):
            self._fail(ErrorKind.INVALID_NUMBER, f"Invalid float {token[:32]!r}", start)
        value = float(token)
        if not is_key:
            self.refs.append(value)
        return value

    def _read_bool(self) -> bool:
        start = self.pos
        token = self._read_until(";", "boolean")
        if token == "1":
            value = True
        elif token == "0":
            value = False
        elif self.config.lenient_booleans:
            value = token.lower() == "true"
        else:
            self._fail(ErrorKind.INVALID_BOOLEAN, f"Invalid boolean {token[:32]!r}", start)
        # booleans take a reference slot even as keys
        self.refs.append(value)
        return value

    def _read_length(self, opener: str, what: str) -> int:
        """Read a ``<digits>:`` length field and the opener that follows it."""
        start = self.pos
        token = self._read_until(":", f"{what} length")
        length = self._to_int(token, _LENGTH_RE, f"{what} length", start)
        self._expect(opener, what)
        return length

    def _read_string(self, is_key: bool) -> Union[str, bytes]:
        declared = self._read_length('"', "string")
        start = self.pos
        end = self._scan_bytes(start, declared)
        if self.text[end:end + 2] != '";':
            self._fail(ErrorKind.STRING_TOO_SHORT, "Unexpected serialized string length", end)
        self.pos = end + 2
        value = self._finish_string(self.text[start:end], start)
        if not is_key:
            self.refs.append(value)
        return value

    def _scan_bytes(self, start: int, declared: int) -> int:
        """Return the offset just past the characters that make up ``declared`` bytes."""
        text = self.text
        end = start + declared
        if end <= self.length and (self._byte_width is _single_byte_width or text[start:end].isascii()):
            return end

        width = self._byte_width
        count = 0
        pos = start
        while count < declared:
            if pos >= self.length:
                self._fail(ErrorKind.STRING_TOO_LONG,
                           f"Unexpected end of string ({declared} bytes declared, {count} available)", pos)
            count += width(text[pos])
            pos += 1
        if count != declared:
            self._fail(ErrorKind.STRING_TOO_SHORT,
                       f"String length {declared} ends inside a multi-byte character", pos)
        return pos

    def _finish_string(self, value: str, start: int) -> Union[str, bytes]:
        if not self._raw or self._byte_width is _single_byte_width or not _ESCAPED_BYTE_RE.search(value):
            return value
        errors = self.config.errors
        if errors == "strict":
            self._fail(ErrorKind.INVALID_ENCODING, "String is not valid UTF-8", start)
        raw = value.encode("utf-8", "surrogateescape")
        if errors == "bytes":
            return raw
        if errors == "replace":
            return raw.decode("utf-8", "replace")
        return value

    def _read_array(self) -> _Frame:
        count = self._read_length("{", "array")
        array = PhpArray()
        self.refs.append(array)
        return _Frame(array, array, count)

    def _read_object(self) -> _Frame:
        obj = PhpObject()
        self.refs.append(obj)
        name_length = self._read_length('"', "object name")
        self._require(self.pos + name_length)
        obj.name = self.text[self.pos:self.pos + name_length]
        self.pos += name_length
        self._expect('"', "object name")
        self._expect(":", "object")
        count = self._read_length("{", "object")
        return _Frame(obj, obj.attributes, count)

    def _read_closer(self, frame: _Frame) -> None:
        if self.pos >= self.length or self.text[self.pos] != "}":
            what = "Array" if isinstance(frame.result, PhpArray) else "Object"
            self._fail(ErrorKind.MISSING_CLOSER, f"Unexpected end of serialized {what}, missing }}")
        self.pos += 1

    def _read_reference(self, is_key: bool) -> Value:
        start = self.pos
        token = self._read_until(";", "reference")
        index = self._to_int(token, _INT_RE, "reference index", start) - 1
        if index < 0 or index >= len(self.refs):
            self._fail(ErrorKind.OUT_OF_RANGE_REFERENCE, f"Out of range reference index: {index + 1}", start)
        value = self.refs[index]
        if is_key and isinstance(value, (PhpArray, PhpObject)):
            self._fail(ErrorKind.INVALID_KEY, "Reference to a container cannot be used as a key", start)
        self.refs.append(value)
        return value


def parse(data: Union[str, bytes], config: Optional[DecoderConfig] = None) -> Value:
    """
    Decode PHP serialized data into a value tree.

    Args:
        data: serialized text, or the raw bytes PHP produced
        config: decoding options, defaults to :class:`DecoderConfig()`

    Returns:
        ``None``, ``bool``, ``int``, ``float``, ``str`` (or ``bytes``, see
        ``DecoderConfig.errors``), :class:`PhpArray` or :class:`PhpObject`

    Raises:
        PhpUnserializeError: on the first structural violation
    """
    return Session(data, config).decode()
