"""
Exclusion rule normalization.

A raw rule is a mapping taken from configuration:

    {"path": "/webhooks", "method": ["post", "PUT"]}

``path`` is a string or a non-empty list of strings; ``method`` is
optional and may be a string or a list of strings. Normalization turns
that loosely typed mapping into an immutable ExclusionRule, or raises
one of the RuleError subclasses.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from starlette.routing import compile_path

from errors.exceptions import InvalidMethod, InvalidPath, InvalidRuleShape
from security.methods import HttpVerb, normalize_method

RULE_KEYS = frozenset({"path", "method"})


@dataclass(frozen=True)
class ExclusionRule:
    """
    A validated exclusion rule.

    Attributes:
        path: One path, or a tuple of paths sharing the same methods
        method: None for every method, one verb, or a tuple of verbs
    """
    path: Union[str, Tuple[str, ...]]
    method: Union[None, HttpVerb, Tuple[HttpVerb, ...]] = None

    @property
    def paths(self) -> Tuple[str, ...]:
        """All paths covered by the rule, in configured order."""
        if isinstance(self.path, str):
            return (self.path,)
        return self.path

    @property
    def verbs(self) -> Tuple[HttpVerb, ...]:
        """All verbs covered by the rule; HttpVerb.ALL when no method was given."""
        if self.method is None:
            return (HttpVerb.ALL,)
        if isinstance(self.method, HttpVerb):
            return (self.method,)
        return self.method

    def describe(self) -> str:
        """Render the rule as e.g. ``GET,POST /a,/b`` for diagnostics."""
        methods = ",".join(verb.value.upper() for verb in self.verbs)
        return f"{methods} {','.join(self.paths)}"


def _check_pattern(path: str) -> None:
    try:
        compile_path(path)
    except (AssertionError, ValueError) as e:
        raise InvalidPath(
            f"Invalid route path [{path}]: {e}",
            details={"path": path},
        ) from e


def _normalize_path(path: Any) -> Union[str, Tuple[str, ...]]:
    if isinstance(path, str):
        _check_pattern(path)
        return path

    if isinstance(path, (list, tuple)) and path and all(isinstance(p, str) for p in path):
        for p in path:
            _check_pattern(p)
        return tuple(path)

    raise InvalidPath(
        "The route's path must be a [String] or an [Array] of [String]s!",
        details={"path": repr(path)},
    )


def _normalize_methods(method: Any) -> Union[None, HttpVerb, Tuple[HttpVerb, ...]]:
    if method is None:
        return None

    if isinstance(method, str):
        return normalize_method(method)

    if isinstance(method, (list, tuple)):
        # An empty list means the same as no method at all
        if not method:
            return None
        return tuple(normalize_method(token) for token in method)

    raise InvalidMethod(
        "The route's method must be a [String] or an [Array] of [String]s!",
        details={"method": repr(method)},
    )


def normalize_rule(rule: Any) -> ExclusionRule:
    """
    Validate and canonicalize one exclusion rule.

    The input is never modified; a new ExclusionRule is returned.
    Method lists are checked in order and the first bad token wins.

    Args:
        rule: A mapping with ``path`` and optional ``method`` keys, or an
            already normalized ExclusionRule

    Returns:
        The normalized, immutable rule

    Raises:
        InvalidRuleShape: If the rule is not a mapping, has no path, or
            carries keys other than ``path`` and ``method``
        InvalidPath: If the path is not a string or a non-empty list of strings
        InvalidMethod: If any method token is not a canonical verb
    """
    if isinstance(rule, ExclusionRule):
        return rule

    if not isinstance(rule, Mapping):
        raise InvalidRuleShape(
            "An exclusion rule must be an object with a path",
            details={"rule": repr(rule)},
        )

    unknown = set(rule) - RULE_KEYS
    if unknown:
        raise InvalidRuleShape(
            f"Unknown exclusion rule keys: {', '.join(sorted(map(str, unknown)))}",
            details={"keys": sorted(map(str, unknown))},
        )

    if rule.get("path") is None:
        raise InvalidRuleShape(
            "An exclusion rule must define a path",
            details={"rule": repr(dict(rule))},
        )

    return ExclusionRule(
        path=_normalize_path(rule["path"]),
        method=_normalize_methods(rule.get("method")),
    )


def normalize_rules(rules: Any) -> Tuple[ExclusionRule, ...]:
    """Normalize a whole rule list; nothing is returned unless every rule is valid."""
    if rules is None:
        return ()
    if isinstance(rules, (str, bytes, Mapping)) or not hasattr(rules, "__iter__"):
        raise InvalidRuleShape(
            "Exclusion rules must be a list of rule objects",
            details={"exclude": repr(rules)},
        )
    return tuple(normalize_rule(rule) for rule in rules)
