"""Route gatekeeper: per-path decision whether a request may proceed.

Rules are evaluated in order and the first match wins:

1. bypass     - AI flow endpoints and static assets, no session check at all
2. auth_entry - login/signup screens; a logged-in user is sent to their dashboard
3. public     - home page, health, API prefix
4. protected  - everything else; requires a resolved identity, and
                ``/{role}/{hash_id}/{dashboard|profile}`` must belong to it

Decisions are plain values (``Allow`` / ``Redirect``) so the logic can be
tested without an HTTP server. Redirect targets are always built from the
resolved identity, never from the requested path.
"""
from dataclasses import dataclass
from typing import Callable, Union

from ...domain.entities import Identity
from ...infrastructure.codec import IdCodec

BYPASS_PREFIXES = ("/api/ai/", "/static/", "/images/", "/favicon.ico")
AUTH_ENTRY_PATHS = frozenset({
    "/login/student",
    "/login/instructor",
    "/signup/student",
    "/signup/instructor",
})
PUBLIC_PATHS = frozenset({"/", "/health", "/metrics", "/docs", "/openapi.json"})
PUBLIC_PREFIXES = ("/api/",)
OWNED_PAGES = frozenset({"dashboard", "profile"})
HOME = "/"

ResolveSession = Callable[[str], Union[Identity, None]]


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Redirect:
    location: str
    clear_cookie: bool = False


Decision = Union[Allow, Redirect]
ALLOW = Allow()


class GateRequest:
    """Путь, значение cookie и личность, вычисляемая не более одного раза."""

    def __init__(self, path: str, cookie_value: str | None, resolve: ResolveSession):
        self.path = path
        self.cookie_value = cookie_value or None
        self._resolve = resolve
        self._identity: Identity | None = None
        self._resolved = False

    @property
    def identity(self) -> Identity | None:
        if not self._resolved:
            self._identity = self._resolve(self.cookie_value) if self.cookie_value else None
            self._resolved = True
        return self._identity


@dataclass(frozen=True)
class Rule:
    name: str
    matches: Callable[[str], bool]
    action: Callable[[GateRequest], Decision]


def _normalize(path: str) -> str:
    if len(path) > 1 and path.endswith("/"):
        return path.rstrip("/") or "/"
    return path or "/"


class Gatekeeper:
    def __init__(
        self,
        codec: IdCodec,
        *,
        bypass_prefixes: tuple[str, ...] = BYPASS_PREFIXES,
        auth_entry_paths: frozenset[str] = AUTH_ENTRY_PATHS,
        public_paths: frozenset[str] = PUBLIC_PATHS,
        public_prefixes: tuple[str, ...] = PUBLIC_PREFIXES,
    ):
        self.codec = codec
        self.rules: list[Rule] = [
            Rule("bypass", lambda p: p.startswith(bypass_prefixes), lambda r: ALLOW),
            Rule("auth_entry", lambda p: _normalize(p) in auth_entry_paths, self._auth_entry),
            Rule(
                "public",
                lambda p: _normalize(p) in public_paths or p.startswith(public_prefixes),
                lambda r: ALLOW,
            ),
            Rule("protected", lambda p: True, self._protected),
        ]

    def dashboard_url(self, identity: Identity) -> str:
        return f"/{identity.role.value}/{self.codec.encode(identity.id)}/dashboard"

    def match(self, path: str) -> Rule:
        for rule in self.rules:
            if rule.matches(path):
                return rule
        raise LookupError(path)  # недостижимо: последнее правило ловит всё

    def evaluate(self, path: str, cookie_value: str | None, resolve: ResolveSession) -> Decision:
        return self.match(path).action(GateRequest(path, cookie_value, resolve))

    def _auth_entry(self, req: GateRequest) -> Decision:
        if req.cookie_value and req.identity is not None:
            return Redirect(self.dashboard_url(req.identity))
        return ALLOW

    def _protected(self, req: GateRequest) -> Decision:
        if not req.cookie_value:
            return Redirect(HOME)
        identity = req.identity
        if identity is None:
            return Redirect(HOME, clear_cookie=True)

        # пустые сегменты от повторных слэшей отбрасываются
        segments = [s for s in req.path.split("/") if s]
        if len(segments) == 3 and segments[2] in OWNED_PAGES:
            role_segment, hash_id, _ = segments
            if role_segment != identity.role.value or self.codec.decode(hash_id) != identity.id:
                return Redirect(self.dashboard_url(identity))
        return ALLOW
