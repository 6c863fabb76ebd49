"""Route table - maps path prefixes to upstream base URLs."""

from dataclasses import dataclass

from core.config import Config
from core.exceptions import ConfigurationError


@dataclass(frozen=True)
class Route:
    """A single prefix -> upstream mapping."""

    prefix: str
    upstream_base: str
    secret_header: tuple[str, str] | None = None

    @property
    def name(self) -> str:
        """Short label for logs, e.g. ``aihub-prod``."""
        return self.prefix.strip("/").rsplit("/", 1)[-1] or self.prefix

    def __repr__(self) -> str:
        # Keep secret values out of tracebacks and debug output
        header = self.secret_header[0] if self.secret_header else None
        return f"Route(prefix={self.prefix!r}, upstream_base={self.upstream_base!r}, secret_header={header!r})"


@dataclass(frozen=True)
class RouteMatch:
    """Result of resolving a path against the table."""

    route: Route
    remainder: str

    def target_url(self, query: str = "") -> str:
        """Upstream URL for this match, with the raw query string appended."""
        url = self.route.upstream_base + self.remainder
        if query:
            url += "?" + query
        return url


class RouteTable:
    """Ordered prefix table. The first matching prefix wins."""

    def __init__(self, routes: list[Route]):
        self._routes = tuple(routes)
        self._check_reachable()

    @classmethod
    def from_config(cls, config: Config) -> "RouteTable":
        """Build the table, attaching secrets only where a value is configured."""
        routes = []
        for settings in config.routes:
            secret_header = None
            if settings.inject_header and settings.inject_secret:
                value = config.secrets.get(settings.inject_secret, "")
                if value:
                    secret_header = (settings.inject_header, value)
            routes.append(Route(settings.prefix, settings.upstream_base, secret_header))
        return cls(routes)

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._routes

    def resolve(self, path: str) -> RouteMatch | None:
        """Return the first route whose prefix starts ``path``."""
        for route in self._routes:
            if path.startswith(route.prefix):
                return RouteMatch(route=route, remainder=path[len(route.prefix):])
        return None

    def _check_reachable(self) -> None:
        """Reject empty prefixes and routes shadowed by an earlier prefix."""
        for index, route in enumerate(self._routes):
            if not route.prefix:
                raise ConfigurationError("Route prefix must not be empty")
            for earlier in self._routes[:index]:
                if route.prefix.startswith(earlier.prefix):
                    raise ConfigurationError(
                        f"Route {route.prefix!r} is shadowed by earlier route {earlier.prefix!r}"
                    )
