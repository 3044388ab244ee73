import os
import sys
import tempfile

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# The app reads these at import time: point it at a throwaway database and keep
# the narrative collaborator offline.
_DB_DIR = tempfile.mkdtemp(prefix="lattice-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/test.db"
os.environ["NARRATIVE_ENABLED"] = "0"

from lattice import create_app, db, socketio  # noqa: E402


@pytest.fixture(scope="session")
def test_app():
    app = create_app()
    app.config.update({"TESTING": True, "NARRATIVE_ENABLED": False, "LATTICE_MAX_FLOOR": 5})
    return app


@pytest.fixture(autouse=True)
def _push_app_context(test_app):
    ctx = test_app.app_context()
    ctx.push()
    try:
        yield
    finally:
        db.session.remove()
        ctx.pop()


@pytest.fixture()
def client(test_app):
    return test_app.test_client()


@pytest.fixture()
def socket_client(test_app, client):
    sc = socketio.test_client(test_app, flask_test_client=client)
    try:
        yield sc
    finally:
        if sc.is_connected():
            sc.disconnect()


def pytest_configure(config):  # register custom marker
    config.addinivalue_line("markers", "db_isolation: force per-test DB rebuild for this test")


@pytest.fixture(autouse=True)
def _conditional_db_isolation(request, _push_app_context):
    """Recreate DB only for tests marked with @pytest.mark.db_isolation.

    Unmarked tests reuse the existing session DB and use unique usernames.
    """
    if "db_isolation" in request.keywords:
        db.drop_all()
        db.create_all()
    yield


class ScriptedRandom:
    """Stand-in for the ``random`` module with scripted draws.

    ``randint`` pops from ``ints`` (then returns ``default_int`` clamped into
    range), ``random`` pops from ``floats`` (then ``default_float``) and
    ``choice`` pops an index from ``picks`` (then picks the first element).
    """

    def __init__(self, ints=(), floats=(), picks=(), default_int=0, default_float=0.99):
        self.ints = list(ints)
        self.floats = list(floats)
        self.picks = list(picks)
        self.default_int = default_int
        self.default_float = default_float
        self.calls = []

    def randint(self, a, b):
        self.calls.append(("randint", a, b))
        value = self.ints.pop(0) if self.ints else self.default_int
        return max(a, min(b, value))

    def random(self):
        self.calls.append(("random",))
        return self.floats.pop(0) if self.floats else self.default_float

    def choice(self, seq):
        self.calls.append(("choice", len(seq)))
        index = self.picks.pop(0) if self.picks else 0
        return seq[index]


@pytest.fixture()
def scripted_rng():
    """Factory fixture: ``scripted_rng(ints=[...], floats=[...])``."""
    return ScriptedRandom
