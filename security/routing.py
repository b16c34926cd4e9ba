"""
Route table used to attach per-route handlers ahead of the CSRF decision.

Starlette routes are terminal endpoints, so exclusion markers cannot be
chained onto the application's own router. RouteTable is a small router
of non-terminal handlers instead: handlers are registered per path and
verb, and every handler matching a request runs in registration order.
"""

import logging
from typing import Callable, Dict, List, Pattern, Tuple

from starlette.routing import compile_path

from security.methods import HttpVerb
from security.state import RequestSecurityState

logger = logging.getLogger(__name__)

RouteHandler = Callable[[RequestSecurityState], None]


class RouteGroup:
    """Handlers registered for one path across one or more verbs."""

    def __init__(self, path: str, table: "RouteTable"):
        self.path = path
        self._table = table
        self._regex: Pattern[str]
        # Non-strict routing: "/a/" and "/a" name the same route
        self._regex, _, _ = compile_path(_strip_trailing_slash(path))

    def add(self, verb: HttpVerb, handler: RouteHandler) -> "RouteGroup":
        """
        Register a handler for a verb on this path.

        Args:
            verb: The verb to attach to; HttpVerb.ALL matches every method
            handler: Called with the request's security state

        Returns:
            The group itself, so registrations can be chained
        """
        self._table._register(self, verb, handler)
        return self

    def matches(self, path: str) -> bool:
        return self._regex.match(_strip_trailing_slash(path)) is not None


class RouteTable:
    """
    Registrar of non-terminal handlers keyed by path and verb.

    The table is built once at startup and frozen before serving traffic;
    after that it is only read, so concurrent requests can share it
    without locking.
    """

    def __init__(self):
        self._groups: Dict[str, RouteGroup] = {}
        self._entries: List[Tuple[RouteGroup, HttpVerb, RouteHandler]] = []
        self._frozen = False

    def route(self, path: str) -> RouteGroup:
        """Obtain or create the route group for a path."""
        group = self._groups.get(path)
        if group is None:
            self._check_writable()
            group = RouteGroup(path, self)
            self._groups[path] = group
        return group

    def _register(self, group: RouteGroup, verb: HttpVerb, handler: RouteHandler) -> None:
        self._check_writable()
        self._entries.append((group, verb, handler))
        logger.debug(
            "Route handler registered",
            extra={"extra_data": {"path": group.path, "verb": verb.value}}
        )

    def _check_writable(self) -> None:
        if self._frozen:
            raise RuntimeError("Route table is frozen; register handlers before serving requests")

    def freeze(self) -> None:
        """Make the table read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def match(self, method: str, path: str) -> List[RouteHandler]:
        """
        Find the handlers that apply to a request.

        Args:
            method: The request method, any case
            path: The request path

        Returns:
            Matching handlers in registration order
        """
        method = method.lower()
        handlers = []
        for group, verb, handler in self._entries:
            if not _verb_applies(verb, method):
                continue
            if group.matches(path):
                handlers.append(handler)
        return handlers

    def dispatch(self, method: str, path: str, state: RequestSecurityState) -> int:
        """Run every matching handler against the request state; returns how many ran."""
        handlers = self.match(method, path)
        for handler in handlers:
            handler(state)
        return len(handlers)

    def __len__(self) -> int:
        return len(self._entries)


def _strip_trailing_slash(path: str) -> str:
    return path.rstrip("/") or "/"


def _verb_applies(verb: HttpVerb, method: str) -> bool:
    return verb is HttpVerb.ALL or verb.value == method
