import json

import pytest

from family_santa import create_app
from family_santa.extensions import db
from family_santa.services.registry import PersonRegistry
from family_santa.services.roster import import_families


TEST_CONFIG = {
    "TESTING": True,
    "SECRET_KEY": "test-secret",
    "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    "WTF_CSRF_ENABLED": False,
    "SANTA_ADMIN_NAME": "Organizer",
    "SANTA_SEED": 1234,
    "SANTA_MAX_ATTEMPTS": 20000,
}

# Four families of two; each family needs two distinct partner families.
COUSINS = {
    "Smith": [{"name": "Ann"}, {"name": "Bob"}],
    "Jones": [{"name": "Cid"}, {"name": "Dee"}],
    "Brown": [{"name": "Eve"}, {"name": "Fay"}],
    "Green": [{"name": "Gus"}, {"name": "Hal"}],
    "Staff": [{"name": "Organizer"}],
}


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def triangle():
    # three single-person families: the only valid draws are the two 3-cycles
    return PersonRegistry.from_families([[("A", 1)], [("B", 1)], [("C", 1)]])


@pytest.fixture
def cousins():
    return PersonRegistry.from_families(
        [[(m["name"], 1) for m in members] for label, members in COUSINS.items() if label != "Staff"]
    )


@pytest.fixture
def cousins_db(ctx):
    return import_families(COUSINS)


@pytest.fixture
def cousins_file(tmp_path):
    path = tmp_path / "cousins.json"
    path.write_text(json.dumps(COUSINS), encoding="utf-8")
    return str(path)


@pytest.fixture
def seeded(app):
    # no app context stays pushed, so each test request gets a fresh g
    with app.app_context():
        import_families(COUSINS)
    return app
