"""Errors raised while decoding PHP serialized data."""

from enum import Enum


class ErrorKind(Enum):
    """Classification of a decoding failure."""

    UNKNOWN_TYPE = "unknown_type"
    MISSING_DELIMITER = "missing_delimiter"
    UNEXPECTED_END_OF_INPUT = "unexpected_end_of_input"
    STRING_TOO_LONG = "string_too_long"
    STRING_TOO_SHORT = "string_too_short"
    OUT_OF_RANGE_REFERENCE = "out_of_range_reference"
    MISSING_CLOSER = "missing_closer"
    INVALID_NUMBER = "invalid_number"
    INVALID_BOOLEAN = "invalid_boolean"
    INVALID_KEY = "invalid_key"
    INVALID_ENCODING = "invalid_encoding"


class PhpUnserializeError(ValueError):
    """
    Raised when PHP serialized data cannot be decoded.

    Carries the kind of failure and the offset in the input at which it was
    detected. For bytes input the offset counts characters of the decoded text.
    """

    def __init__(self, kind: ErrorKind, msg: str, pos: int = 0) -> None:
        self.kind = kind
        self.msg = msg
        self.pos = pos
        super().__init__(f"{msg} at offset {pos}")

    def __reduce__(self):
        return type(self), (self.kind, self.msg, self.pos)
