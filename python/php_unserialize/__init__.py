"""
PHP serialize/unserialize parser.

This module decodes data produced by PHP's ``serialize()`` into Python objects.

Features:
    - String lengths matched in UTF-8 bytes, as PHP writes them
    - Back-references (``R:``) resolved to the very same container instance
    - Optional filtering of array/object keys by name pattern
    - DB-exported (quote-doubled) input unescaped automatically

Example:
    >>> from php_unserialize import loads
    >>> loads(b'a:2:{s:4:"name";s:5:"Alice";s:3:"age";i:30;}')
    {'name': 'Alice', 'age': 30}

    >>> from php_unserialize import loads_json
    >>> loads_json(b'a:2:{s:4:"name";s:5:"Alice";s:3:"age";i:30;}')
    '{"name":"Alice","age":30}'

    >>> from php_unserialize import parse
    >>> parse('O:8:"stdClass":1:{s:2:"id";i:7;}')
    PhpObject('stdClass', {'id': 7})
"""

from php_unserialize._core import (
    is_serialized,
    loads,
    loads_json,
    preprocess,
    to_python,
    version,
)
from php_unserialize.config import ByteEncoding, DecoderConfig
from php_unserialize.decoder import Session, parse
from php_unserialize.errors import ErrorKind, PhpUnserializeError
from php_unserialize.log import LoggingOutput, setup_logging
from php_unserialize.values import PhpArray, PhpObject, Value

__all__ = [
    "ByteEncoding",
    "DecoderConfig",
    "ErrorKind",
    "LoggingOutput",
    "PhpArray",
    "PhpObject",
    "PhpUnserializeError",
    "Session",
    "Value",
    "is_serialized",
    "loads",
    "loads_json",
    "parse",
    "preprocess",
    "setup_logging",
    "to_python",
    "version",
    "__version__",
]

__version__ = version()
