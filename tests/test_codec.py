import math

import pytest

from redis_memoize.domain.codec import decode_value, encode_value
from redis_memoize.domain.errors import DecodeError, EncodeError
from redis_memoize.domain.sentinels import ABSENT


pytestmark = [pytest.mark.unit]


class TestEncodeValue:
    def test_scalars(self):
        assert encode_value(None) == "null"
        assert encode_value(ABSENT) == "undefined"
        assert encode_value(True) == "true"
        assert encode_value(False) == "false"
        assert encode_value(3) == "3"
        assert encode_value(1.5) == "1.5"
        assert encode_value("hi") == '"hi"'

    def test_special_floats(self):
        assert encode_value(math.nan) == "NaN"
        assert encode_value(math.inf) == "Infinity"
        assert encode_value(-math.inf) == "-Infinity"

    def test_containers(self):
        assert encode_value({"sum": 3}) == '{"sum":3}'
        assert encode_value(["one", "two"]) == '["one","two"]'
        assert encode_value((1, ABSENT)) == "[1,undefined]"
        assert encode_value({"a": {"b": [None]}}) == '{"a":{"b":[null]}}'

    def test_rejects_unsupported_types(self):
        with pytest.raises(EncodeError, match="object"):
            encode_value(object())
        with pytest.raises(EncodeError, match="bytes"):
            encode_value(b"raw")

    def test_rejects_non_string_mapping_keys(self):
        with pytest.raises(EncodeError, match="keys must be strings"):
            encode_value({1: "one"})

    def test_rejects_circular_containers(self):
        value: list = []
        value.append(value)
        with pytest.raises(EncodeError, match="Circular"):
            encode_value(value)

    def test_shared_but_not_circular_containers_are_fine(self):
        shared = [1]
        assert encode_value([shared, shared]) == "[[1],[1]]"


class TestDecodeValue:
    @pytest.mark.parametrize(
        "value",
        [
            None,
            True,
            0,
            -12,
            2.5,
            1e100,
            "",
            'quote " and \\ backslash',
            "zaż\n",
            {"sum": 3},
            ["one", "two"],
            {"nested": [{"a": None}, [], {}]},
        ],
    )
    def test_roundtrip(self, value):
        assert decode_value(encode_value(value)) == value

    def test_absent_is_not_null(self):
        assert decode_value("undefined") is ABSENT
        assert decode_value("null") is None
        assert decode_value("[undefined,null]") == [ABSENT, None]

    def test_integers_stay_integers(self):
        assert type(decode_value("3")) is int
        assert type(decode_value("3.0")) is float
        assert type(decode_value("3e2")) is float

    def test_special_floats(self):
        assert math.isnan(decode_value("NaN"))
        assert decode_value("Infinity") == math.inf
        assert decode_value("-Infinity") == -math.inf

    def test_tuples_come_back_as_lists(self):
        assert decode_value(encode_value((1, 2))) == [1, 2]

    def test_whitespace_is_allowed(self):
        assert decode_value(' { "a" : [ 1 , 2 ] } \n') == {"a": [1, 2]}

    def test_bytes_input_is_decoded(self):
        assert decode_value(b'{"a":1}') == {"a": 1}

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "__import__('os').system('true')",
            "(function(){return 1})()",
            "new Date()",
            "[1,2",
            "[1 2]",
            '{"a" 1}',
            "{a:1}",
            '{"a":1,}',
            "[1,]",
            "nul",
            "1 2",
            '"unterminated',
            '"bad \\x escape"',
            "'single'",
            "+1",
            "01",
        ],
    )
    def test_rejects_text_outside_the_grammar(self, text):
        with pytest.raises(DecodeError):
            decode_value(text)

    def test_error_reports_position(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_value("[1,x]")
        assert exc_info.value.position == 3
        assert "char 3" in str(exc_info.value)

    def test_rejects_non_text(self):
        with pytest.raises(DecodeError):
            decode_value(42)  # type: ignore[arg-type]

    def test_rejects_deep_nesting(self):
        with pytest.raises(DecodeError, match="nested"):
            decode_value("[" * 100000 + "]" * 100000)

    def test_decode_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode_value("nope")
