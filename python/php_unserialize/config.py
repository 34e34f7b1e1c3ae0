"""Per-call decoder configuration."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Union

ErrorsMode = Literal["strict", "replace", "surrogateescape", "bytes"]

_ERRORS_MODES = ("strict", "replace", "surrogateescape", "bytes")


class ByteEncoding(Enum):
    """How many bytes a character is assumed to occupy in a string length field."""

    UTF8 = "utf-8"
    SINGLE_BYTE = "single-byte"


@dataclass(frozen=True)
class DecoderConfig:
    """
    Options for a single decode call.

    Attributes:
        byte_encoding: byte-cost model used to match string length fields
        accepted_attribute_names: when set, string keys of arrays and objects
            must fully match this pattern to be kept
        lenient_booleans: accept boolean payloads other than ``0``/``1``
            (``true`` in any case maps to ``True``, anything else to ``False``)
        errors: what to do with strings holding bytes that are not valid
            UTF-8 (only reachable from bytes input)
    """

    byte_encoding: ByteEncoding = ByteEncoding.UTF8
    accepted_attribute_names: Union[str, re.Pattern, None] = None
    lenient_booleans: bool = False
    errors: ErrorsMode = "replace"

    def __post_init__(self) -> None:
        if self.errors not in _ERRORS_MODES:
            raise ValueError(f"errors must be one of {_ERRORS_MODES}, got {self.errors!r}")
        if isinstance(self.accepted_attribute_names, str):
            object.__setattr__(self, "accepted_attribute_names", re.compile(self.accepted_attribute_names))

    @property
    def attribute_pattern(self) -> Optional[re.Pattern]:
        return self.accepted_attribute_names  # type: ignore[return-value]
