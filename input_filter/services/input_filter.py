"""
Input filter registry and dispatcher.

Maps case-insensitive type names to cleaning rules. A rule is either a plain
callable taking one value or an object with a ``clean(source)`` method.
Unknown type names fall through to the default rule.

Only the markup cleaner configuration is persisted; rules are rebuilt from
the built-in table on load.
"""
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from input_filter.core.logging import get_safe_logger
from input_filter.schemas.cleaner_config import HtmlCleanerConfig
from input_filter.services import rules as builtin
from input_filter.services.cleaners.base import Cleaner
from input_filter.services.cleaners.html_cleaner import HtmlCleaner
from input_filter.services.exceptions import InvalidConfigurationError, RuleNotFoundError
from input_filter.services.rules import Rule

logger = get_safe_logger(__name__)


def _is_cleaner(rule: Any) -> bool:
    # Classes are not instances: HtmlCleaner.clean would be an unbound method
    return (
        not isinstance(rule, type)
        and isinstance(rule, Cleaner)
        and callable(getattr(rule, "clean", None))
    )


def _is_rule(rule: Any) -> bool:
    if isinstance(rule, type) and hasattr(rule, "clean"):
        return False
    return _is_cleaner(rule) or callable(rule)


def _rule_kind(rule: Any) -> str:
    return "cleaner" if _is_cleaner(rule) else "callable"


def _normalize_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidConfigurationError("Filter rule names must be non-empty strings")
    return name.strip().upper()


def _apply(rule: Rule, value: Any) -> Any:
    # Cleaner objects win over __call__ when a rule offers both
    if _is_cleaner(rule):
        return rule.clean(value)
    return rule(value)


class InputFilter:
    """
    Registry of named cleaning rules.

    Usage:
        input_filter = InputFilter()
        input_filter.clean("abc123", "uint")      # 123
        input_filter.set_rule("slug", lambda v: str(v).lower())
        input_filter.clean("Hello", "SLUG")       # "hello"

    The registry holds configuration only. clean() never mutates it, so
    concurrent reads are safe; concurrent mutation needs external locking.
    """

    def __init__(
        self,
        html_cleaner: Optional[HtmlCleaner] = None,
        rules: Optional[Mapping[str, Rule]] = None,
        default_rule: Optional[Rule] = None,
    ):
        self._html_cleaner = html_cleaner if html_cleaner is not None else HtmlCleaner()
        self._rules: Dict[str, Rule] = {}
        self._default_rule: Optional[Rule] = None
        self._load_default_rules()

        if rules:
            for name, rule in rules.items():
                self.set_rule(name, rule)
        if default_rule is not None:
            self.set_default_rule(default_rule)

    def _load_default_rules(self) -> None:
        self._rules = builtin.build_default_rules(self._html_cleaner)
        self._default_rule = builtin.make_default_rule(self._html_cleaner)

    # === Cleaning ===

    def clean(self, value: Any, filter_type: Union[str, Rule] = builtin.STRING) -> Any:
        """
        Clean ``value`` according to ``filter_type``.

        ``filter_type`` is a case-insensitive rule name, or a callable /
        Cleaner applied directly without consulting the registry. Names with
        no registered rule use the default rule; with no default rule the
        value is returned unchanged.
        """
        if not isinstance(filter_type, str) and _is_rule(filter_type):
            return _apply(filter_type, value)

        name = str(filter_type).strip().upper()
        rule = self._rules.get(name)
        if rule is not None:
            return _apply(rule, value)

        if self._default_rule is not None:
            logger.debug("No rule registered, using default rule", filter_type=name)
            return _apply(self._default_rule, value)

        return value

    # === Rule registry ===

    def set_rule(self, name: str, rule: Rule) -> "InputFilter":
        """
        Register or replace the rule for ``name``.

        Raises:
            InvalidConfigurationError: ``rule`` is neither callable nor a
                Cleaner, or ``name`` is empty.
        """
        key = _normalize_name(name)
        if not _is_rule(rule):
            raise InvalidConfigurationError(
                f"Rule for {key} must be callable or provide clean(), "
                f"got {type(rule).__name__}"
            )
        self._rules[key] = rule
        logger.debug("Filter rule registered", filter_type=key, rule_kind=_rule_kind(rule))
        return self

    def get_rule(self, name: str) -> Optional[Rule]:
        """Rule registered for ``name``, or None."""
        if not isinstance(name, str):
            return None
        return self._rules.get(name.strip().upper())

    def require_rule(self, name: str) -> Rule:
        """
        Rule registered for ``name``.

        Raises:
            RuleNotFoundError: nothing is registered under ``name``.
        """
        rule = self.get_rule(name)
        if rule is None:
            raise RuleNotFoundError(str(name).strip().upper())
        return rule

    def has_rule(self, name: str) -> bool:
        return self.get_rule(name) is not None

    def remove_rule(self, name: str) -> "InputFilter":
        """Unregister ``name``; later lookups fall back to the default rule."""
        if isinstance(name, str):
            self._rules.pop(name.strip().upper(), None)
        return self

    def rule_names(self) -> List[str]:
        return sorted(self._rules)

    def get_default_rule(self) -> Optional[Rule]:
        return self._default_rule

    def set_default_rule(self, rule: Optional[Rule]) -> "InputFilter":
        """
        Replace the fallback rule. None makes unknown types pass through.

        The default rule must accept any value without raising.
        """
        if rule is not None and not _is_rule(rule):
            raise InvalidConfigurationError(
                f"Default rule must be callable or provide clean(), got {type(rule).__name__}"
            )
        self._default_rule = rule
        return self

    # === Markup cleaner ===

    def get_html_cleaner(self) -> HtmlCleaner:
        return self._html_cleaner

    def set_html_cleaner(self, html_cleaner: HtmlCleaner) -> "InputFilter":
        """
        Swap the markup cleaner.

        Built-in STRING/HTML rules and the built-in default rule are rebound
        to the new cleaner. Rules registered by callers are left alone.
        """
        if not isinstance(html_cleaner, HtmlCleaner):
            raise InvalidConfigurationError(
                f"Markup cleaner must be an HtmlCleaner, got {type(html_cleaner).__name__}"
            )
        self._html_cleaner = html_cleaner

        fresh = builtin.build_default_rules(html_cleaner)
        for name in builtin.MARKUP_RULES:
            current = self._rules.get(name)
            if builtin.is_builtin_markup_rule(current):
                self._rules[name] = fresh[name]

        if builtin.is_builtin_markup_rule(self._default_rule):
            self._default_rule = builtin.make_default_rule(html_cleaner)
        return self

    # === Persistence ===

    def to_json(self) -> str:
        """Persist the markup cleaner configuration. Rules are not data."""
        return self._html_cleaner.config.model_dump_json()

    @classmethod
    def from_json(cls, payload: Union[str, bytes]) -> "InputFilter":
        """Rebuild a filter with built-in rules from persisted config."""
        try:
            config = HtmlCleanerConfig.model_validate_json(payload)
        except ValidationError as e:
            raise InvalidConfigurationError(
                f"Invalid persisted filter state ({e.error_count()} errors)"
            ) from e
        return cls(html_cleaner=HtmlCleaner.from_config(config))

    def __getstate__(self) -> Dict[str, Any]:
        return {"html_cleaner": self._html_cleaner.config.model_dump()}

    def __setstate__(self, state: Dict[str, Any]) -> None:
        self._html_cleaner = HtmlCleaner.from_config(state["html_cleaner"])
        self._load_default_rules()
