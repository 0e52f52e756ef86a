import pytest

from course_compass.domain.entities import Identity, Role
from course_compass.infrastructure.codec import IdCodec
from course_compass.interfaces.http.gatekeeper import Allow, Gatekeeper, Redirect

STUDENT = Identity(id=7, username="alice", role=Role.STUDENT)
INSTRUCTOR = Identity(id=3, username="prof", role=Role.INSTRUCTOR)


class FakeResolver:
    """Возвращает заданную личность и считает вызовы"""

    def __init__(self, identity=None):
        self.identity = identity
        self.calls = []

    def __call__(self, token):
        self.calls.append(token)
        return self.identity


@pytest.fixture
def gate(codec):
    return Gatekeeper(codec)

def own_dashboard(codec, identity):
    return f"/{identity.role.value}/{codec.encode(identity.id)}/dashboard"


@pytest.mark.parametrize("path", ["/api/ai/chatbot", "/static/app.css", "/images/logo.png", "/favicon.ico"])
def test_bypass_paths_skip_session_check(gate, path):
    resolver = FakeResolver(STUDENT)
    assert gate.evaluate(path, "some-token", resolver) == Allow()
    assert resolver.calls == []

@pytest.mark.parametrize("path", ["/", "/health", "/api/auth/me", "/api/auth/student/login"])
def test_public_paths_allowed_without_lookup(gate, path):
    resolver = FakeResolver(None)
    assert gate.evaluate(path, None, resolver) == Allow()
    assert gate.evaluate(path, "stale", resolver) == Allow()
    assert resolver.calls == []

def test_rule_priority(gate):
    assert gate.match("/api/ai/x").name == "bypass"
    assert gate.match("/login/student").name == "auth_entry"
    assert gate.match("/signup/instructor/").name == "auth_entry"
    assert gate.match("/").name == "public"
    assert gate.match("/courses/abc").name == "protected"
    assert gate.match("/student/login").name == "protected"

def test_auth_entry_without_session_is_allowed(gate):
    resolver = FakeResolver(None)
    assert gate.evaluate("/login/student", None, resolver) == Allow()
    assert resolver.calls == []
    # неверная cookie на странице входа не сбрасывается
    assert gate.evaluate("/login/student", "stale", resolver) == Allow()

def test_auth_entry_with_session_redirects_to_dashboard(gate, codec):
    decision = gate.evaluate("/signup/instructor", "tok", FakeResolver(STUDENT))
    assert decision == Redirect(own_dashboard(codec, STUDENT))

def test_protected_without_cookie_redirects_home(gate, codec):
    resolver = FakeResolver(STUDENT)
    path = f"/student/{codec.encode(7)}/dashboard"
    assert gate.evaluate(path, None, resolver) == Redirect("/")
    assert resolver.calls == []

def test_protected_with_invalid_session_clears_cookie(gate):
    decision = gate.evaluate("/courses/abc", "expired", FakeResolver(None))
    assert decision == Redirect("/", clear_cookie=True)

def test_own_dashboard_and_profile_allowed(gate, codec):
    hid = codec.encode(7)
    for path in (f"/student/{hid}/dashboard", f"/student/{hid}/profile", f"/student/{hid}/dashboard/"):
        assert gate.evaluate(path, "tok", FakeResolver(STUDENT)) == Allow()

def test_role_mismatch_redirects_to_own_dashboard(gate, codec):
    """Студент с id 7 на чужой роли попадает на свою панель"""
    decision = gate.evaluate(f"/instructor/{codec.encode(7)}/dashboard", "tok", FakeResolver(STUDENT))
    assert decision == Redirect(f"/student/{codec.encode(7)}/dashboard")

def test_other_users_profile_redirects(gate, codec):
    decision = gate.evaluate(f"/instructor/{codec.encode(4)}/profile", "tok", FakeResolver(INSTRUCTOR))
    assert decision == Redirect(own_dashboard(codec, INSTRUCTOR))

@pytest.mark.parametrize("bad_hash", ["abc123", "7", "%00", "zzzzzzzzzzzz"])
def test_undecodable_id_redirects_to_own_dashboard(gate, codec, bad_hash):
    decision = gate.evaluate(f"/student/{bad_hash}/dashboard", "tok", FakeResolver(STUDENT))
    assert decision == Redirect(own_dashboard(codec, STUDENT))

def test_unknown_role_segment_redirects(gate, codec):
    decision = gate.evaluate(f"/admin/{codec.encode(7)}/dashboard", "tok", FakeResolver(STUDENT))
    assert decision == Redirect(own_dashboard(codec, STUDENT))

def test_repeated_slashes_are_still_checked(gate, codec):
    decision = gate.evaluate(f"//instructor//{codec.encode(7)}//dashboard", "tok", FakeResolver(STUDENT))
    assert decision == Redirect(own_dashboard(codec, STUDENT))

def test_foreign_salt_hash_redirects(gate, codec):
    foreign = IdCodec("attacker-salt", 8).encode(7)
    decision = gate.evaluate(f"/student/{foreign}/dashboard", "tok", FakeResolver(STUDENT))
    assert decision == Redirect(own_dashboard(codec, STUDENT))

def test_other_protected_paths_allowed_when_authenticated(gate, codec):
    resolver = FakeResolver(STUDENT)
    assert gate.evaluate(f"/courses/{codec.encode(12)}", "tok", resolver) == Allow()
    assert gate.evaluate("/student/settings", "tok", resolver) == Allow()

def test_session_resolved_once_per_request(gate, codec):
    resolver = FakeResolver(STUDENT)
    gate.evaluate(f"/instructor/{codec.encode(1)}/dashboard", "tok", resolver)
    assert resolver.calls == ["tok"]

def test_redirect_target_never_uses_requested_identity(gate, codec):
    requested = f"/instructor/{codec.encode(3)}/dashboard"
    decision = gate.evaluate(requested, "tok", FakeResolver(STUDENT))
    assert isinstance(decision, Redirect)
    assert decision.location != requested
    assert decision.location == own_dashboard(codec, STUDENT)
