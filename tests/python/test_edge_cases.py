"""Malformed input, boundary values and the helper functions around loads()."""

import math

import pytest


class TestMalformedInput:
    """Each way of breaking the input maps to one error kind."""

    @pytest.mark.parametrize(
        ("data", "kind"),
        [
            (b"", "UNEXPECTED_END_OF_INPUT"),
            (b"N", "UNEXPECTED_END_OF_INPUT"),
            (b"b:", "MISSING_DELIMITER"),
            (b"b:1", "MISSING_DELIMITER"),
            (b"i:42", "MISSING_DELIMITER"),
            (b"X:42;", "UNKNOWN_TYPE"),
            (b"z:1;", "UNKNOWN_TYPE"),
            (b's:5:"hel', "STRING_TOO_LONG"),
            (b's:10:"hello";', "STRING_TOO_LONG"),
            (b's:3:"hello";', "STRING_TOO_SHORT"),
            (b's:5:"hello"', "STRING_TOO_SHORT"),
            (b's:-1:"";', "INVALID_NUMBER"),
            (b"a:1:{", "UNEXPECTED_END_OF_INPUT"),
            (b"a:1:{i:0;", "UNEXPECTED_END_OF_INPUT"),
            (b'a:2:{i:0;s:3:"foo";}', "UNEXPECTED_END_OF_INPUT"),
            (b'a:2:{i:0;s:3:"foo";}N;', "UNKNOWN_TYPE"),
            (b'a:1:{i:0;s:3:"foo";', "MISSING_CLOSER"),
            (b"a:0:{i:0;i:1;}", "MISSING_CLOSER"),
            (b'O:8:"stdClass":1:{}', "UNEXPECTED_END_OF_INPUT"),
            (b'O:8:"stdClass"0:{}', "MISSING_DELIMITER"),
        ],
    )
    def test_error_kind(self, data, kind):
        from php_unserialize import ErrorKind, PhpUnserializeError, loads

        with pytest.raises(PhpUnserializeError) as exc_info:
            loads(data)
        assert exc_info.value.kind is ErrorKind[kind]

    def test_offset_points_at_the_problem(self):
        from php_unserialize import PhpUnserializeError, loads

        with pytest.raises(PhpUnserializeError) as exc_info:
            loads(b'a:2:{i:0;i:1;i:1;Q;}')
        assert exc_info.value.pos == 17
        assert "at offset 17" in str(exc_info.value)


class TestBoundaryValues:
    """Extremes that still decode."""

    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (b"i:9223372036854775807;", 2**63 - 1),
            (b"i:-9223372036854775808;", -(2**63)),
            (b"d:1e-308;", 1e-308),
            (b"d:1.7976931348623157E+308;", 1.7976931348623157e308),
            (b"d:.5;", 0.5),
            (b"d:5.;", 5.0),
            (b"d:-0;", 0.0),
            (b's:0:"";', ""),
            (b"a:0:{}", []),
            (b'O:0:"":0:{}', {"__class__": ""}),
        ],
    )
    def test_value(self, data, expected):
        from php_unserialize import loads

        assert loads(data) == expected

    def test_negative_zero_keeps_sign(self):
        from php_unserialize import loads

        assert math.copysign(1.0, loads(b"d:-0.0;")) == -1.0

    @pytest.mark.parametrize("token", [b"INF", b"-INF", b"NAN"])
    def test_non_finite(self, token):
        from php_unserialize import loads

        result = loads(b"d:" + token + b";")
        assert not math.isfinite(result)

    def test_lowercase_inf_rejected(self):
        from php_unserialize import ErrorKind, PhpUnserializeError, loads

        with pytest.raises(PhpUnserializeError) as exc_info:
            loads(b"d:inf;")
        assert exc_info.value.kind is ErrorKind.INVALID_NUMBER


class TestStringContent:
    """Content is taken by length; delimiters inside it are data."""

    @pytest.mark.parametrize(
        "content",
        ['<?php echo "hi"; ?>', '{"a": [1, 2]}', "a:1:{i:0;N;}", "\t\r\n", "\0\0", '";}"'],
    )
    def test_verbatim(self, content):
        from php_unserialize import loads

        assert loads(f's:{len(content)}:"{content}";'.encode()) == content

    def test_null_bytes_in_bytes_mode(self):
        from php_unserialize import loads

        # valid UTF-8, so it stays text
        assert loads(b's:3:"a\x00b";', errors="bytes") == "a\x00b"


class TestKeys:
    """Integer keys decide between list and dict."""

    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (b'a:2:{i:-1;s:1:"a";i:-2;s:1:"b";}', {-1: "a", -2: "b"}),
            (b'a:2:{i:1;s:1:"a";i:0;s:1:"b";}', {1: "a", 0: "b"}),
            (b'a:2:{i:0;s:1:"a";i:2;s:1:"b";}', {0: "a", 2: "b"}),
            (b'a:2:{i:0;s:1:"a";s:1:"1";s:1:"b";}', {0: "a", "1": "b"}),
            (b'a:2:{i:0;s:1:"a";i:1;s:1:"b";}', ["a", "b"]),
        ],
    )
    def test_shape(self, data, expected):
        from php_unserialize import loads

        result = loads(data)
        assert type(result) is type(expected)
        assert result == expected


class TestPreprocess:
    """Quote-doubled DB exports."""

    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (b'"s:5:""hello"";"', b's:5:"hello";'),
            ('"s:5:""hello"";"', 's:5:"hello";'),
            (b's:5:"hello";', b's:5:"hello";'),
            (b'"', b'"'),
            (b'""', b""),
        ],
    )
    def test_preprocess(self, data, expected):
        from php_unserialize import preprocess

        assert preprocess(data) == expected

    def test_returns_input_object_when_unchanged(self):
        from php_unserialize import preprocess

        data = b"i:1;"
        assert preprocess(data) is data


class TestIsSerialized:
    """Recognises a leading serialize() token."""

    @pytest.mark.parametrize(
        "data",
        [b"N;", b"b:0;", b"i:-3;", b"d:0.5;", b's:5:"', b"a:0:{", b'O:8:"', b"R:1;", 'a:1:{i:0;N;}'],
    )
    def test_recognised(self, data):
        from php_unserialize import is_serialized

        assert is_serialized(data) is True

    @pytest.mark.parametrize(
        "data",
        [b"", b"X:1;", b"r:1;", b'E:10:"Status:OK";', b"b:2;", b"i:;", b"hello", b"123", b"N"],
    )
    def test_rejected(self, data):
        from php_unserialize import is_serialized

        assert is_serialized(data) is False


class TestJsonOutput:
    """loads_json edge cases."""

    def test_escapes(self):
        import json

        from php_unserialize import loads_json

        special = 'tab\tquote"slash\\'
        assert json.loads(loads_json(f's:{len(special)}:"{special}";'.encode())) == special

    def test_non_string_keys(self):
        from php_unserialize import loads_json

        assert loads_json(b'a:2:{i:3;b:1;i:7;N;}') == '{"3":true,"7":null}'

    def test_non_finite_floats_become_null(self):
        from php_unserialize import loads_json

        assert loads_json(b"a:1:{i:0;d:NAN;}") == "[null]"

    def test_object(self):
        from php_unserialize import loads_json

        assert loads_json(b'O:1:"A":1:{s:1:"x";i:1;}') == '{"__class__":"A","x":1}'

    def test_cycle_cannot_be_encoded(self):
        import orjson

        from php_unserialize import loads_json

        with pytest.raises(orjson.JSONEncodeError):
            loads_json(b"a:1:{i:0;R:1;}")
