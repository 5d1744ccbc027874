"""
Built-in filter rules.

Each rule is a plain function taking one raw value. Pattern rules that find
no match return None instead of raising; cleaning never rejects input.

Markup-aware rules (STRING, HTML and the default rule) are bound to an
HtmlCleaner instance by build_default_rules().
"""
import re
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import urlsplit

from input_filter.services.cleaners.base import Cleaner, to_text
from input_filter.services.cleaners.html_cleaner import HtmlCleaner

Rule = Union[Callable[[Any], Any], Cleaner]

# Type names
INTEGER = "INTEGER"
INT = "INT"
UINT = "UINT"
FLOAT = "FLOAT"
DOUBLE = "DOUBLE"
BOOLEAN = "BOOLEAN"
BOOL = "BOOL"
WORD = "WORD"
ALNUM = "ALNUM"
CMD = "CMD"
BASE64 = "BASE64"
STRING = "STRING"
HTML = "HTML"
ARRAY = "ARRAY"
PATH = "PATH"
USERNAME = "USERNAME"
EMAIL = "EMAIL"
URL = "URL"
RAW = "RAW"

# Rules that depend on the markup cleaner
MARKUP_RULES = frozenset({STRING, HTML})

_INTEGER_REGEX = re.compile(r"-?[0-9]+")
_FLOAT_REGEX = re.compile(r"-?[0-9]+(?:\.[0-9]+)?")
_WORD_REGEX = re.compile(r"[^A-Za-z_]")
_ALNUM_REGEX = re.compile(r"[^A-Za-z0-9]")
_CMD_REGEX = re.compile(r"[^A-Za-z0-9_.-]")
_BASE64_REGEX = re.compile(r"[^A-Za-z0-9/+=]")
_PATH_REGEX = re.compile(
    r"[A-Za-z0-9_-]+[A-Za-z0-9_.-]*(?:[\\/][A-Za-z0-9_-]+[A-Za-z0-9_.-]*)*"
)
_USERNAME_REGEX = re.compile(r"[\x00-\x1F\x7F<>\"'%&]")
# Letters, digits and !#$%&'*+-=?^_`{|}~@.[]
_EMAIL_REGEX = re.compile(r"[^A-Za-z0-9!#$%&'*+\-=?^_`{|}~@.\[\]]")
# Letters, digits and $-_.+!*'(),{}|\^~[]`<>#%";/?:@&=
_URL_REGEX = re.compile(r"[^A-Za-z0-9$\-_.+!*'(),{}|\\^~\[\]`<>#%\";/?:@&=]")


def filter_integer(source: Any) -> Optional[int]:
    """First signed integer in the value."""
    match = _INTEGER_REGEX.search(to_text(source))
    return int(match.group(0)) if match else None


def filter_uint(source: Any) -> Optional[int]:
    """First integer in the value, as an absolute value."""
    value = filter_integer(source)
    return abs(value) if value is not None else None


def filter_float(source: Any) -> Optional[float]:
    """First signed decimal number in the value."""
    match = _FLOAT_REGEX.search(to_text(source))
    return float(match.group(0)) if match else None


def filter_boolean(source: Any) -> bool:
    return bool(source)


def filter_word(source: Any) -> str:
    return _WORD_REGEX.sub("", to_text(source))


def filter_alnum(source: Any) -> str:
    return _ALNUM_REGEX.sub("", to_text(source))


def filter_cmd(source: Any) -> str:
    """Command-safe token: letters, digits, "_", "." and "-", no leading dots."""
    return _CMD_REGEX.sub("", to_text(source)).lstrip(".")


def filter_base64(source: Any) -> str:
    return _BASE64_REGEX.sub("", to_text(source))


def filter_array(source: Any) -> Union[list, dict]:
    """
    Coerce to a generic collection without touching the elements.

    Mappings become dicts, other iterables (except text) become lists,
    None becomes an empty list and scalars are wrapped.
    """
    if source is None:
        return []
    if isinstance(source, Mapping):
        return dict(source)
    if isinstance(source, (str, bytes, bytearray)):
        return [source]
    if isinstance(source, Iterable):
        return list(source)
    return [source]


def filter_path(source: Any) -> Optional[str]:
    """Relative path made of safe segments; anything else yields None."""
    text = to_text(source)
    match = _PATH_REGEX.fullmatch(text)
    return match.group(0) if match else None


def filter_username(source: Any) -> str:
    return _USERNAME_REGEX.sub("", to_text(source))


def filter_email(source: Any) -> str:
    return _EMAIL_REGEX.sub("", to_text(source))


def filter_url(source: Any) -> Optional[str]:
    """
    Keep URL-safe characters only.

    The result must carry both a path and a query string, otherwise None.
    """
    text = _URL_REGEX.sub("", to_text(source))
    try:
        parts = urlsplit(text)
    except ValueError:
        # Malformed netloc, e.g. an unbalanced "[" in the host
        return None
    if not parts.path or not parts.query:
        return None
    return text


def filter_raw(source: Any) -> Any:
    return source


def make_string_rule(cleaner: HtmlCleaner) -> Callable[[Any], str]:
    """Decode entities, then strip disallowed markup."""
    def filter_string(source: Any) -> str:
        return cleaner.remove(cleaner.decode(source))
    filter_string.builtin_rule = True  # type: ignore[attr-defined]
    return filter_string


def make_html_rule(cleaner: HtmlCleaner) -> Callable[[Any], str]:
    """Strip disallowed markup, leaving entities encoded."""
    def filter_html(source: Any) -> str:
        return cleaner.remove(source)
    filter_html.builtin_rule = True  # type: ignore[attr-defined]
    return filter_html


def make_default_rule(cleaner: HtmlCleaner) -> Callable[[Any], Any]:
    """
    Fallback for unregistered type names.

    - Mappings, lists, tuples and sets are rebuilt with every string element
      (at any depth) cleaned like STRING; other elements are kept
    - Non-empty strings are cleaned like STRING
    - Everything else is returned unchanged

    Never raises: it only inspects types and delegates text to the cleaner.
    Self-referencing containers are returned as-is at the point of recursion.
    """
    def _clean(source: Any, active: set) -> Any:
        if isinstance(source, (Mapping, list, tuple, set, frozenset)):
            if id(source) in active:
                return source
            active.add(id(source))
            try:
                if isinstance(source, Mapping):
                    return {key: _clean(value, active) for key, value in source.items()}
                if isinstance(source, list):
                    return [_clean(value, active) for value in source]
                if isinstance(source, frozenset):
                    return frozenset(_clean(value, active) for value in source)
                if isinstance(source, set):
                    return {_clean(value, active) for value in source}
                return tuple(_clean(value, active) for value in source)
            finally:
                active.discard(id(source))
        if isinstance(source, str) and source:
            return cleaner.remove(cleaner.decode(source))
        return source

    def filter_default(source: Any) -> Any:
        return _clean(source, set())

    filter_default.builtin_rule = True  # type: ignore[attr-defined]
    return filter_default


def is_builtin_markup_rule(rule: Optional[Rule]) -> bool:
    """True for the cleaner-bound rules created by this module."""
    return bool(getattr(rule, "builtin_rule", False))


def build_default_rules(cleaner: HtmlCleaner) -> Dict[str, Rule]:
    """Build the built-in name -> rule table bound to ``cleaner``."""
    return {
        INTEGER: filter_integer,
        INT: filter_integer,
        UINT: filter_uint,
        FLOAT: filter_float,
        DOUBLE: filter_float,
        BOOLEAN: filter_boolean,
        BOOL: filter_boolean,
        WORD: filter_word,
        ALNUM: filter_alnum,
        CMD: filter_cmd,
        BASE64: filter_base64,
        STRING: make_string_rule(cleaner),
        HTML: make_html_rule(cleaner),
        ARRAY: filter_array,
        PATH: filter_path,
        USERNAME: filter_username,
        EMAIL: filter_email,
        URL: filter_url,
        RAW: filter_raw,
    }
