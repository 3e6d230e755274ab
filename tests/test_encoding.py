"""Unit tests for argument encoding."""

import json

from pytinycdn.encoding import dumps, encode_arguments


class TestEncodeArguments:
    """Tests for encode_arguments."""

    def test_empty_mapping(self):
        """Test that no arguments produce an empty string."""
        assert encode_arguments({}) == ""

    def test_scalar_values(self):
        """Test encoding of strings, numbers and booleans."""
        result = encode_arguments(
            {"file_id": 12, "create_token": "abc", "is_public": False, "ratio": 0.5}
        )
        assert result == 'file_id: 12, create_token: "abc", is_public: false, ratio: 0.5'

    def test_no_trailing_separator(self):
        """Test that the output does not end with a separator."""
        result = encode_arguments({"a": 1, "b": 2})
        assert not result.endswith(",")
        assert not result.endswith(", ")

    def test_round_trip_keys_and_values(self):
        """Test that splitting the output restores keys and values."""
        args = {"file_id": 7, "title": "Holiday", "idp": 0, "is_public": True}
        result = encode_arguments(args)

        restored = {}
        for part in result.split(","):
            key, value = part.split(":", 1)
            restored[key.strip()] = json.loads(value)

        assert restored == args

    def test_unicode_not_escaped(self):
        """Test that unicode characters are kept readable."""
        assert encode_arguments({"title": "Привет"}) == 'title: "Привет"'

    def test_slashes_not_escaped(self):
        """Test that forward slashes are kept as-is."""
        result = encode_arguments({"url": "https://example.com/a/b.png"})
        assert result == 'url: "https://example.com/a/b.png"'

    def test_quotes_escaped(self):
        """Test that quotes inside strings stay valid JSON."""
        result = encode_arguments({"title": 'say "hi"'})
        assert result == 'title: "say \\"hi\\""'

    def test_structured_value(self):
        """Test encoding of a structured value."""
        result = encode_arguments({"meta": {"w": 10, "tags": ["a", "b"]}})
        assert result == 'meta: {"w": 10, "tags": ["a", "b"]}'

    def test_key_names_not_validated(self):
        """Test that malformed keys are passed through unchanged."""
        assert encode_arguments({"bad key": 1}) == "bad key: 1"


class TestDumps:
    """Tests for the JSON helper."""

    def test_dumps_keeps_unicode_and_slashes(self):
        """Test the non-escaping JSON policy."""
        assert dumps({"q": "ä/ö"}) == '{"q": "ä/ö"}'
