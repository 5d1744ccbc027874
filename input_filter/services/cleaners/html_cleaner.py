"""
Whitelist-based markup cleaner.

Rules:
- Tags not on the whitelist are dropped (opening and closing tags independently)
- Content containers (script, style) lose their content as well
- Allowed tags keep only allowed attributes, in original order, re-quoted
- Event handler attributes (on*) are never kept
- URL attributes with a blocked scheme (javascript:, data:, ...) are dropped
- Comments, declarations and processing instructions are dropped
- Unterminated tags drop the rest of the string
- Passes repeat until the output stops changing (bounded by max_iterations)

Best effort: never raises on malformed markup.
Value-safe: never logs the text being cleaned.
"""
import html
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from input_filter.core.config import get_settings
from input_filter.core.logging import get_safe_logger
from input_filter.schemas.cleaner_config import HtmlCleanerConfig
from input_filter.services.cleaners.base import to_text
from input_filter.services.exceptions import InvalidConfigurationError

logger = get_safe_logger(__name__)

# A "<" only opens a tag candidate when followed by one of these
_TAG_START = re.compile(r"<(?=[A-Za-z/!?])")
_TAG_NAME = re.compile(r"[A-Za-z][A-Za-z0-9:_-]*")
_ATTRIBUTE = re.compile(
    r"""([^\s"'<>/=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>]+)))?"""
)
# Control characters and whitespace browsers ignore inside URL schemes
_URL_IGNORED = re.compile(r"[\x00-\x20\x7f]+")


@dataclass
class _Tag:
    """A parsed tag candidate."""
    name: str
    closing: bool = False
    self_closing: bool = False
    attributes: List[Tuple[str, Optional[str]]] = field(default_factory=list)


def _find_tag_end(text: str, start: int) -> int:
    """
    Find the ">" closing the tag that begins before ``start``.

    Quotes only open a value when they directly follow "=" (ignoring
    whitespace), so stray quotes in broken markup do not swallow the tag.
    Returns -1 when the tag is never closed.
    """
    quote = None
    previous = ""
    for index in range(start, len(text)):
        char = text[index]
        if quote:
            if char == quote:
                quote = None
                previous = char
            continue
        if char == ">":
            return index
        if char in "\"'" and previous == "=":
            quote = char
        elif not char.isspace():
            previous = char
    return -1


def _parse_tag(body: str) -> Optional[_Tag]:
    """
    Parse the text between "<" and ">".

    Returns None for comments, declarations, processing instructions and
    anything without a usable tag name; those are dropped by the caller.
    """
    if body[:1] in ("!", "?"):
        return None

    closing = body.startswith("/")
    if closing:
        body = body[1:]

    match = _TAG_NAME.match(body)
    if match is None:
        return None

    tag = _Tag(name=match.group(0).lower(), closing=closing)
    rest = body[match.end():]

    last_end = -1
    last_unquoted = False
    for attr in _ATTRIBUTE.finditer(rest):
        name = attr.group(1).lower()
        if attr.group(2) is not None:
            value: Optional[str] = attr.group(2)
        elif attr.group(3) is not None:
            value = attr.group(3)
        else:
            value = attr.group(4)
        tag.attributes.append((name, value))
        last_end = attr.end()
        last_unquoted = attr.group(4) is not None

    stripped = rest.rstrip()
    if stripped.endswith("/"):
        # "<a href=/x/>": the slash belongs to the unquoted value
        tag.self_closing = not (last_unquoted and last_end == len(stripped))

    return tag


def _quote(value: str) -> str:
    """Escape a value for a double-quoted attribute."""
    return value.replace('"', "&quot;").replace("<", "&lt;").replace(">", "&gt;")


class HtmlCleaner:
    """
    Strips disallowed tags and attributes and decodes HTML entities.

    Holds only whitelist configuration, so one instance can be shared by many
    callers as long as nobody mutates the whitelist concurrently.

    Usage:
        cleaner = HtmlCleaner()
        cleaner.add_allowed_tag("section", ["id"])
        safe = cleaner.remove(cleaner.decode(untrusted))
    """

    def __init__(self, config: Union[HtmlCleanerConfig, Mapping[str, Any], None] = None):
        if config is None:
            settings = get_settings()
            config = HtmlCleanerConfig(
                max_iterations=settings.html_max_iterations,
                max_decode_iterations=settings.html_max_decode_iterations,
            )
        elif not isinstance(config, HtmlCleanerConfig):
            try:
                config = HtmlCleanerConfig.model_validate(config)
            except ValidationError as e:
                raise InvalidConfigurationError(
                    f"Invalid markup cleaner config ({e.error_count()} errors)"
                ) from e

        self._allowed_tags: Dict[str, List[str]] = {
            tag: list(attrs) for tag, attrs in config.allowed_tags.items()
        }
        self._drop_content_tags = list(config.drop_content_tags)
        self._url_attributes = list(config.url_attributes)
        self._blocked_schemes = list(config.blocked_schemes)
        self.max_iterations = config.max_iterations
        self.max_decode_iterations = config.max_decode_iterations

    @classmethod
    def from_config(cls, config: Union[HtmlCleanerConfig, Mapping[str, Any]]) -> "HtmlCleaner":
        """Build a cleaner from a persisted config."""
        return cls(config)

    @property
    def config(self) -> HtmlCleanerConfig:
        """Snapshot of the current configuration (safe to persist)."""
        return HtmlCleanerConfig(
            allowed_tags={tag: list(attrs) for tag, attrs in self._allowed_tags.items()},
            drop_content_tags=list(self._drop_content_tags),
            url_attributes=list(self._url_attributes),
            blocked_schemes=list(self._blocked_schemes),
            max_iterations=self.max_iterations,
            max_decode_iterations=self.max_decode_iterations,
        )

    # === Whitelist management ===

    def add_allowed_tag(self, tag: str, attributes: Iterable[str] = ()) -> "HtmlCleaner":
        """Allow a tag, merging ``attributes`` into its allowed attributes."""
        name = self._normalize(tag)
        if isinstance(attributes, str):
            attributes = [attributes]
        allowed = self._allowed_tags.setdefault(name, [])
        for attr in attributes:
            attr_name = self._normalize(attr)
            if attr_name not in allowed:
                allowed.append(attr_name)
        logger.debug("Allowed tag added", tag=name)
        return self

    def remove_allowed_tag(self, tag: str) -> "HtmlCleaner":
        """Disallow a tag. Unknown tags are ignored."""
        name = self._normalize(tag)
        self._allowed_tags.pop(name, None)
        logger.debug("Allowed tag removed", tag=name)
        return self

    def add_allowed_attribute(self, tag: str, attribute: str) -> "HtmlCleaner":
        """Allow an attribute on a tag, allowing the tag if needed."""
        return self.add_allowed_tag(tag, [attribute])

    def remove_allowed_attribute(self, tag: str, attribute: str) -> "HtmlCleaner":
        """Disallow an attribute on a tag. The tag itself stays allowed."""
        allowed = self._allowed_tags.get(self._normalize(tag))
        attr_name = self._normalize(attribute)
        if allowed is not None and attr_name in allowed:
            allowed.remove(attr_name)
        return self

    def is_allowed_tag(self, tag: str) -> bool:
        return self._normalize(tag) in self._allowed_tags

    def allowed_attributes(self, tag: str) -> List[str]:
        """Allowed attributes for ``tag`` (empty when the tag is not allowed)."""
        return list(self._allowed_tags.get(self._normalize(tag), []))

    @property
    def allowed_tags(self) -> Dict[str, List[str]]:
        return {tag: list(attrs) for tag, attrs in self._allowed_tags.items()}

    @staticmethod
    def _normalize(name: str) -> str:
        normalized = str(name).strip().lower()
        if not normalized:
            raise InvalidConfigurationError("Tag and attribute names must not be empty")
        return normalized

    # === Cleaning ===

    def clean(self, source: Any) -> str:
        """Decode entities, then strip disallowed markup."""
        return self.remove(self.decode(source))

    def decode(self, source: Any) -> str:
        """
        Decode numeric and named character references.

        Repeats until nothing changes so double-encoded payloads such as
        "&amp;lt;script&amp;gt;" are fully resolved, bounded by
        max_decode_iterations.
        """
        text = to_text(source)
        for _ in range(self.max_decode_iterations):
            decoded = html.unescape(text)
            if decoded == text:
                return decoded
            text = decoded
        return text

    def remove(self, source: Any) -> str:
        """
        Strip disallowed tags and attributes.

        A pass can join fragments into a new tag ("<<x>script>"), so passes
        repeat until the output reaches a fixed point or max_iterations.
        """
        text = to_text(source)
        for _ in range(self.max_iterations):
            cleaned = self._remove_pass(text)
            if cleaned == text:
                return cleaned
            text = cleaned

        logger.warning(
            "Markup cleaner hit iteration cap",
            iterations=self.max_iterations,
            max_iterations=self.max_iterations,
        )
        return text

    def _remove_pass(self, text: str) -> str:
        parts: List[str] = []
        for literal, tag in self._segments(text):
            if tag is None:
                parts.append(literal)
            elif tag.name in self._allowed_tags:
                parts.append(self._rebuild(tag))
        return "".join(parts)

    def _segments(self, text: str) -> Iterator[Tuple[str, Optional[_Tag]]]:
        """
        Lazily split ``text`` into literal text and parsed tags.

        Yields (literal, None) for text and ("", tag) for tag candidates.
        Dropped constructs (comments, declarations, content of drop-content
        tags, unterminated tails) yield nothing.
        """
        pos = 0
        length = len(text)
        while pos < length:
            match = _TAG_START.search(text, pos)
            if match is None:
                yield text[pos:], None
                return

            start = match.start()
            if start > pos:
                yield text[pos:start], None

            if text.startswith("<!--", start):
                end = text.find("-->", start + 4)
                if end == -1:
                    return
                pos = end + 3
                continue

            end = _find_tag_end(text, start + 1)
            if end == -1:
                return
            pos = end + 1

            tag = _parse_tag(text[start + 1:end])
            if tag is None:
                continue

            if (
                not tag.closing
                and tag.name in self._drop_content_tags
                and tag.name not in self._allowed_tags
            ):
                closer = re.compile(
                    r"</" + re.escape(tag.name) + r"(?=[\s/>])[^>]*>",
                    re.IGNORECASE,
                )
                close_match = closer.search(text, pos)
                if close_match is None:
                    return
                pos = close_match.end()
                continue

            yield "", tag

    def _rebuild(self, tag: _Tag) -> str:
        if tag.closing:
            return f"</{tag.name}>"

        allowed = self._allowed_tags.get(tag.name, [])
        parts = [tag.name]
        seen = set()
        for name, value in tag.attributes:
            if name in seen:
                continue
            seen.add(name)

            if name not in allowed or name.startswith("on"):
                continue
            if value is None:
                parts.append(name)
                continue
            if name in self._url_attributes and self._has_blocked_scheme(value):
                continue
            parts.append(f'{name}="{_quote(value)}"')

        end = " />" if tag.self_closing else ">"
        return "<" + " ".join(parts) + end

    def _has_blocked_scheme(self, value: str) -> bool:
        compact = _URL_IGNORED.sub("", self.decode(value)).lower()
        return any(compact.startswith(scheme + ":") for scheme in self._blocked_schemes)
