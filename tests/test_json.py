"""
Test the strict JSON decoder (parsers/jsonbody.py).
"""

import pytest

from formgate.faults import BadRequest, PayloadTooLarge
from formgate.limits import BoundedReader
from formgate.parsers.jsonbody import decode_json, load_single_object, narrow_fields


def reader_for(body, limit: int = 1_048_576) -> BoundedReader:
    if isinstance(body, str):
        body = body.encode("utf-8")

    async def source():
        if body:
            yield body
    return BoundedReader(source(), limit)


async def decode(body, **kw):
    values, files = await decode_json(reader_for(body, **kw))
    assert files == {}
    return values.to_dict()


# ============================================================================
# Accepted shapes
# ============================================================================

class TestAccepted:

    @pytest.mark.asyncio
    async def test_one_string_field(self):
        assert await decode('{"field1": "value1"}') == {"field1": ["value1"]}

    @pytest.mark.asyncio
    async def test_two_string_fields(self):
        result = await decode('{"field1": "value1", "field2": "value2"}')
        assert result == {"field1": ["value1"], "field2": ["value2"]}

    @pytest.mark.asyncio
    async def test_string_array_field(self):
        assert await decode('{"field1": ["value1"]}') == {"field1": ["value1"]}

    @pytest.mark.asyncio
    async def test_mixed_fields(self):
        result = await decode('{"name": "charlie", "tags": ["a", "b"]}')
        assert result == {"name": ["charlie"], "tags": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_surrounding_whitespace(self):
        assert await decode('\n  {"a": "b"}  \r\n') == {"a": ["b"]}

    @pytest.mark.asyncio
    async def test_array_may_hold_empty_strings(self):
        assert await decode('{"a": ["", "x"]}') == {"a": ["", "x"]}

    @pytest.mark.asyncio
    async def test_unicode(self):
        assert await decode('{"city": "Z\\u00fcrich"}') == {"city": ["Zürich"]}

    @pytest.mark.asyncio
    async def test_unpaired_surrogate_replaced(self):
        result = await decode('{"a": "x\\ud800y", "b": ["\\udfff"], "c\\udc00": "z"}')
        assert result == {"a": ["x\ufffdy"], "b": ["\ufffd"], "c\ufffd": ["z"]}
        for name, values in result.items():
            name.encode("utf-8")
            for value in values:
                value.encode("utf-8")

    @pytest.mark.asyncio
    async def test_surrogate_pair_kept(self):
        assert await decode('{"emoji": "\\ud83d\\ude00"}') == {"emoji": ["\U0001F600"]}


# ============================================================================
# Rejected shapes
# ============================================================================

class TestRejected:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body, fragment", [
        ('{"field1": []}', 'field "field1", cannot use an empty array'),
        ('{"field1": ""}', 'field "field1", cannot use an empty string'),
        ('{"field1": "value1", "field2": []}', '"field2", cannot use an empty array'),
        ('{"field1": "", "field2": ["value2"]}', '"field1", cannot use an empty string'),
        ('{"field1": 1.2}', 'field "field1", values must be string or array of string types'),
        ('{"field1": null}', 'field "field1", values must be string'),
        ('{"field1": true}', 'field "field1", values must be string'),
        ('{"field1": {"hello": "hi"}}', 'field "field1", values must be string'),
        ('{"field1": [1, 1.345, null]}', 'invalid array for field "field1"'),
        ('{"field1": ["a", ["b"]]}', 'array values must be exclusively strings'),
    ])
    async def test_field_values(self, body, fragment):
        with pytest.raises(BadRequest) as exc_info:
            await decode(body)
        assert fragment in exc_info.value.message
        assert exc_info.value.metadata["field"] in ("field1", "field2")

    @pytest.mark.asyncio
    async def test_number_names_field(self):
        with pytest.raises(BadRequest) as exc_info:
            await decode('{"age": 5}')
        assert '"age"' in exc_info.value.message
        assert exc_info.value.status == 400

    @pytest.mark.asyncio
    async def test_empty_object(self):
        with pytest.raises(BadRequest) as exc_info:
            await decode("{}")
        assert exc_info.value.message == "JSON object contains no fields"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["", "   \n\t "])
    async def test_empty_body(self, body):
        with pytest.raises(BadRequest) as exc_info:
            await decode(body)
        assert exc_info.value.message == "Request body must not be empty"

    @pytest.mark.asyncio
    async def test_not_json(self):
        with pytest.raises(BadRequest) as exc_info:
            await decode("hello world")
        assert exc_info.value.message == "Request body contains malformed JSON (at position 0)"
        assert exc_info.value.metadata["position"] == 0

    @pytest.mark.asyncio
    async def test_syntax_error_position(self):
        with pytest.raises(BadRequest) as exc_info:
            await decode('{"field1": value1}')
        assert "malformed JSON (at position 11)" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_truncated(self):
        with pytest.raises(BadRequest) as exc_info:
            await decode('{"field1": "val')
        assert exc_info.value.message == "Request body contains malformed JSON"

    @pytest.mark.asyncio
    async def test_multiple_objects(self):
        with pytest.raises(BadRequest) as exc_info:
            await decode('{"1":"1"}{"2":"2"}')
        assert exc_info.value.message == "Request body must only contain a single JSON object"

    @pytest.mark.asyncio
    async def test_trailing_garbage(self):
        with pytest.raises(BadRequest) as exc_info:
            await decode('{"a": "b"} trailing')
        assert "single JSON object" in exc_info.value.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ['["a"]', '"text"', "42", "true", "null"])
    async def test_top_level_must_be_object(self, body):
        with pytest.raises(BadRequest) as exc_info:
            await decode(body)
        assert exc_info.value.message == "Request body must contain a JSON object"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ['{"a": NaN}', '{"a": Infinity}', '{"a": -Infinity}'])
    async def test_non_standard_constants(self, body):
        with pytest.raises(BadRequest) as exc_info:
            await decode(body)
        assert "malformed JSON" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_invalid_utf8(self):
        with pytest.raises(BadRequest) as exc_info:
            await decode(b'{"a": "\xff"}')
        assert "malformed JSON" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_too_large(self):
        body = '{"a": "' + "x" * 200 + '"}'
        with pytest.raises(PayloadTooLarge) as exc_info:
            await decode(body, limit=100)
        assert exc_info.value.message == "Request body too large"
        assert exc_info.value.status == 413
        assert exc_info.value.metadata["limit"] == 100


class TestHelpers:

    def test_load_single_object_keeps_key_order(self):
        document = load_single_object('{"b": "1", "a": "2"}')
        assert list(document) == ["b", "a"]

    def test_duplicate_keys_last_wins(self):
        assert load_single_object('{"a": "1", "a": "2"}') == {"a": "2"}

    def test_narrow_fields_returns_multidict(self):
        values = narrow_fields({"a": "x", "b": ["y", "z"]})
        assert values.get("a") == "x"
        assert values.get_all("b") == ["y", "z"]
