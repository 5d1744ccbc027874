"""
Unit tests for the built-in filter rules.
Each rule is exercised through the registry so type names are covered too.
"""
import pytest

from input_filter.services.input_filter import InputFilter


@pytest.fixture
def input_filter():
    return InputFilter()


class TestNumericRules:
    """INTEGER / UINT / FLOAT."""

    def test_integer_first_signed_match(self, input_filter):
        assert input_filter.clean("-42", "INTEGER") == -42
        assert input_filter.clean("abc-42def7", "INT") == -42

    def test_integer_from_non_string(self, input_filter):
        assert input_filter.clean(3.7, "INT") == 3
        assert input_filter.clean(True, "INT") == 1

    def test_integer_no_match_is_none(self, input_filter):
        assert input_filter.clean("none", "INTEGER") is None
        assert input_filter.clean(None, "INTEGER") is None

    def test_uint(self, input_filter):
        assert input_filter.clean("abc123", "UINT") == 123
        assert input_filter.clean("-42", "UINT") == 42
        assert input_filter.clean("abc", "UINT") is None

    def test_float(self, input_filter):
        assert input_filter.clean("price: -12.50 USD", "FLOAT") == -12.5
        assert input_filter.clean("1.", "DOUBLE") == 1.0
        assert input_filter.clean("x", "FLOAT") is None


class TestBooleanRule:
    """BOOLEAN / BOOL use Python truthiness of the raw value."""

    def test_truthy(self, input_filter):
        assert input_filter.clean("yes", "BOOLEAN") is True
        assert input_filter.clean(1, "BOOL") is True
        assert input_filter.clean("0", "BOOL") is True

    def test_falsy(self, input_filter):
        assert input_filter.clean("", "BOOLEAN") is False
        assert input_filter.clean(0, "BOOL") is False
        assert input_filter.clean([], "BOOL") is False
        assert input_filter.clean(None, "BOOL") is False


class TestCharacterClassRules:
    """WORD / ALNUM / CMD / BASE64 / USERNAME / EMAIL."""

    def test_word(self, input_filter):
        assert input_filter.clean("Hello, World_1!", "WORD") == "HelloWorld_"

    def test_alnum(self, input_filter):
        assert input_filter.clean("Hello, World_1!", "ALNUM") == "HelloWorld1"

    def test_cmd_strips_leading_dots(self, input_filter):
        assert input_filter.clean("..my-cmd.sh; rm -rf /", "CMD") == "my-cmd.shrm-rf"

    def test_base64(self, input_filter):
        assert input_filter.clean("aGVs bG8=\n!", "BASE64") == "aGVsbG8="

    def test_username(self, input_filter):
        assert input_filter.clean("jo<h>n\"'%&\x00doe", "USERNAME") == "johndoe"

    def test_email(self, input_filter):
        assert input_filter.clean("jo hn(at)@exa mple.com", "EMAIL") == "johnat@example.com"

    def test_none_becomes_empty_string(self, input_filter):
        assert input_filter.clean(None, "ALNUM") == ""


class TestPathRule:
    """PATH accepts only relative paths made of safe segments."""

    def test_valid_paths(self, input_filter):
        assert input_filter.clean("images/photo.jpg", "PATH") == "images/photo.jpg"
        assert input_filter.clean("dir\\file.txt", "PATH") == "dir\\file.txt"

    @pytest.mark.parametrize("value", [
        "../etc/passwd",
        "/absolute",
        "a//b",
        "a/b\n",
        "with space",
        "",
    ])
    def test_invalid_paths_are_none(self, input_filter, value):
        assert input_filter.clean(value, "PATH") is None


class TestUrlRule:
    """URL keeps URL-safe characters and requires path and query."""

    def test_valid_url(self, input_filter):
        url = "http://example.com/path?q=1"
        assert input_filter.clean(url, "URL") == url

    def test_strips_unsafe_characters(self, input_filter):
        assert input_filter.clean("http://exa mple.com/p?q=1", "URL") == "http://example.com/p?q=1"

    def test_requires_path(self, input_filter):
        assert input_filter.clean("http://example.com", "URL") is None

    def test_requires_query(self, input_filter):
        assert input_filter.clean("http://example.com/path", "URL") is None


class TestMarkupRules:
    """STRING / HTML."""

    def test_string_strips_script(self, input_filter):
        assert input_filter.clean("<script>alert(1)</script>hello", "STRING") == "hello"

    def test_string_decodes_entities_first(self, input_filter):
        assert input_filter.clean("&lt;b&gt;x&lt;/b&gt;", "STRING") == "<b>x</b>"
        assert input_filter.clean("&lt;script&gt;x&lt;/script&gt;", "STRING") == ""

    def test_html_keeps_entities(self, input_filter):
        assert input_filter.clean("&lt;b&gt;", "HTML") == "&lt;b&gt;"

    def test_html_keeps_whitelisted_tags(self, input_filter):
        result = input_filter.clean("<b>bold</b><script>x</script>", "HTML")
        assert result == "<b>bold</b>"

    def test_string_coerces_non_text(self, input_filter):
        assert input_filter.clean(None, "STRING") == ""
        assert input_filter.clean(123, "STRING") == "123"


class TestArrayAndRaw:
    """ARRAY coerces without filtering; RAW is identity."""

    def test_array_keeps_elements(self, input_filter):
        value = ["<script>a</script>", "ok"]
        assert input_filter.clean(value, "ARRAY") == ["<script>a</script>", "ok"]

    @pytest.mark.parametrize("value,expected", [
        (None, []),
        ("x", ["x"]),
        (5, [5]),
        ((1, 2), [1, 2]),
        ({"a": 1}, {"a": 1}),
    ])
    def test_array_coercion(self, input_filter, value, expected):
        assert input_filter.clean(value, "ARRAY") == expected

    def test_raw_is_identity(self, input_filter):
        payload = object()
        assert input_filter.clean(payload, "RAW") is payload


class TestAsciiOnlyClasses:
    """Character-class rules keep ASCII only, even for case-folding look-alikes."""

    @pytest.mark.parametrize("filter_type", ["WORD", "ALNUM", "CMD", "BASE64"])
    def test_kelvin_and_long_s_removed(self, input_filter, filter_type):
        # U+212A KELVIN SIGN and U+017F LATIN SMALL LETTER LONG S
        assert input_filter.clean("a\u212a\u017fb", filter_type) == "ab"
