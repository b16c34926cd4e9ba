"""
HTTP method normalization for CSRF exclusion rules.

Method tokens coming from configuration are matched case-insensitively
against a closed vocabulary of verbs. Partial matches are rejected:
"forget" is not "get".
"""

from enum import Enum
from typing import Any

from errors.exceptions import InvalidMethod


class HttpVerb(str, Enum):
    """Canonical HTTP verbs understood by the exclusion compiler."""
    CHECKOUT = "checkout"
    COPY = "copy"
    DELETE = "delete"
    GET = "get"
    HEAD = "head"
    LOCK = "lock"
    MERGE = "merge"
    MKACTIVITY = "mkactivity"
    MKCOL = "mkcol"
    MOVE = "move"
    M_SEARCH = "m-search"
    NOTIFY = "notify"
    OPTIONS = "options"
    PATCH = "patch"
    POST = "post"
    PURGE = "purge"
    PUT = "put"
    REPORT = "report"
    SEARCH = "search"
    SUBSCRIBE = "subscribe"
    TRACE = "trace"
    UNLOCK = "unlock"
    UNSUBSCRIBE = "unsubscribe"

    # Wildcard target for rules without a method; never accepted from config
    ALL = "all"


_VERBS_BY_NAME = {verb.value: verb for verb in HttpVerb if verb is not HttpVerb.ALL}


def normalize_method(token: Any) -> HttpVerb:
    """
    Canonicalize a method token into an HttpVerb.

    Args:
        token: The method name as written in configuration, any case

    Returns:
        The matching HttpVerb

    Raises:
        InvalidMethod: If the token is not a string or, once lower-cased,
            does not exactly equal one of the canonical verbs
    """
    if not isinstance(token, str):
        raise InvalidMethod(
            f"Invalid method [{token!r}]: expected a string",
            details={"method": repr(token)},
        )

    verb = _VERBS_BY_NAME.get(token.lower())
    if verb is None:
        raise InvalidMethod(
            f"Invalid method [{token}]!",
            details={"method": token},
        )
    return verb
