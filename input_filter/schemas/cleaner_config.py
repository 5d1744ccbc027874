"""
Persisted configuration for the markup cleaner.

This is the only filter state that survives serialization. Rule tables are
code, not data, and are rebuilt on load.
"""
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator


# Baseline whitelist: tag -> allowed attributes.
DEFAULT_ALLOWED_TAGS: Dict[str, List[str]] = {
    "a": ["href", "title", "target", "rel"],
    "abbr": ["title"],
    "b": [],
    "blockquote": ["cite"],
    "br": [],
    "code": [],
    "div": ["class"],
    "em": [],
    "h1": [],
    "h2": [],
    "h3": [],
    "h4": [],
    "h5": [],
    "h6": [],
    "hr": [],
    "i": [],
    "img": ["src", "alt", "title", "width", "height"],
    "li": [],
    "ol": [],
    "p": [],
    "pre": [],
    "s": [],
    "small": [],
    "span": ["class"],
    "strong": [],
    "sub": [],
    "sup": [],
    "table": ["summary"],
    "tbody": [],
    "td": ["colspan", "rowspan"],
    "th": ["colspan", "rowspan"],
    "thead": [],
    "tr": [],
    "u": [],
    "ul": [],
}

# Containers whose text payload is dropped together with the tag.
DEFAULT_DROP_CONTENT_TAGS: List[str] = ["script", "style"]

# Attributes holding URLs; checked against blocked schemes.
DEFAULT_URL_ATTRIBUTES: List[str] = [
    "action",
    "background",
    "cite",
    "formaction",
    "href",
    "lowsrc",
    "poster",
    "src",
    "xlink:href",
]

DEFAULT_BLOCKED_SCHEMES: List[str] = ["javascript", "vbscript", "data"]


def _normalize_name(name: str) -> str:
    return str(name).strip().lower()


def _normalize_names(names: List[str]) -> List[str]:
    out: List[str] = []
    for name in names:
        norm = _normalize_name(name)
        if norm and norm not in out:
            out.append(norm)
    return out


class HtmlCleanerConfig(BaseModel):
    """Whitelist and limits for the markup cleaner."""

    allowed_tags: Dict[str, List[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_ALLOWED_TAGS.items()},
        description="Allowed tag names mapped to their allowed attribute names"
    )
    drop_content_tags: List[str] = Field(
        default_factory=lambda: list(DEFAULT_DROP_CONTENT_TAGS),
        description="Disallowed tags whose content is removed along with the tag"
    )
    url_attributes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_URL_ATTRIBUTES),
        description="Attribute names whose values are URLs"
    )
    blocked_schemes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_BLOCKED_SCHEMES),
        description="URL schemes that cause an attribute to be dropped"
    )
    max_iterations: int = Field(
        default=25,
        ge=1,
        le=1000,
        description="Maximum tag-stripping passes"
    )
    max_decode_iterations: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum entity-decoding passes"
    )

    @field_validator("allowed_tags", mode="after")
    @classmethod
    def normalize_allowed_tags(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        """Lowercase tag and attribute names, merging duplicates."""
        normalized: Dict[str, List[str]] = {}
        for tag, attributes in v.items():
            name = _normalize_name(tag)
            if not name:
                raise ValueError("Tag names must not be empty")
            merged = normalized.setdefault(name, [])
            for attr in _normalize_names(attributes):
                if attr not in merged:
                    merged.append(attr)
        return normalized

    @field_validator("drop_content_tags", "url_attributes", mode="after")
    @classmethod
    def normalize_name_lists(cls, v: List[str]) -> List[str]:
        """Lowercase and de-duplicate names."""
        return _normalize_names(v)

    @field_validator("blocked_schemes", mode="after")
    @classmethod
    def normalize_schemes(cls, v: List[str]) -> List[str]:
        """Store schemes lowercase without the trailing colon."""
        return _normalize_names([str(s).strip().rstrip(":") for s in v])
