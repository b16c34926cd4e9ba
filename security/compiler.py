"""
Exclusion compiler.

Turns the configured exclusion rules into bypass handlers on a
RouteTable. Every rule is normalized before the first handler is
registered, so a bad rule leaves the table untouched.
"""

import logging
from typing import Any, Callable, Iterable, Optional, Tuple

from security.routing import RouteTable
from security.rules import ExclusionRule, normalize_rules
from security.state import RequestSecurityState

logger = logging.getLogger(__name__)

DebugSink = Callable[[str], None]


def exclude_from_csrf(state: RequestSecurityState) -> None:
    """Bypass handler: mark the current request as excluded from the CSRF check."""
    state.csrf.exclude = True


def _no_debug(message: str) -> None:
    pass


def compile_exclusions(
    table: RouteTable,
    rules: Optional[Iterable[Any]],
    debug: Optional[DebugSink] = None,
) -> Tuple[ExclusionRule, ...]:
    """
    Register a CSRF bypass handler for every (path, verb) a rule names.

    Rules are processed in list order. A list of paths gives each path its
    own route group with the same verbs; a rule without methods, or with
    an empty method list, is registered under HttpVerb.ALL.

    Args:
        table: The route table to register bypass handlers on
        rules: Raw rule mappings (or ExclusionRule instances)
        debug: Optional diagnostic sink receiving one line per rule

    Returns:
        The normalized rules, in the order they were registered

    Raises:
        RuleError: If any rule fails normalization; nothing is registered
    """
    debug = debug or _no_debug
    normalized = normalize_rules(rules)

    for rule in normalized:
        debug(f"Excluding {rule.describe()} from CSRF check...")
        logger.debug(
            "Excluding route from CSRF check",
            extra={"extra_data": {
                "paths": list(rule.paths),
                "verbs": [verb.value for verb in rule.verbs],
            }}
        )
        for path in rule.paths:
            group = table.route(path)
            for verb in rule.verbs:
                group.add(verb, exclude_from_csrf)

    return normalized


def is_excluded(table: RouteTable, method: str, path: str) -> bool:
    """Check whether a request would bypass the CSRF check, without a live request."""
    state = RequestSecurityState()
    table.dispatch(method, path, state)
    return state.csrf.exclude
