import os

import pytest
from flask_jwt_extended import create_access_token

from commission_api import create_app
from commission_api.extensions import db
from commission_api.models.user import User
from commission_api.services.settings import update_settings


@pytest.fixture(scope="function")
def app():
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    os.environ["RECALC_MODE"] = "manual"
    os.environ["AUTO_GENERATE_ON_READ"] = "0"
    app = create_app()
    app.config["TESTING"] = True
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def session(app):
    with app.app_context():
        yield db.session


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def queue(app):
    return app.extensions["recalc_queue"]


@pytest.fixture
def admin(session):
    u = User(email="admin@test.local", full_name="Admin", role="admin", status="active")
    u.set_password("secret")
    session.add(u)
    session.commit()
    return u


@pytest.fixture
def auth(admin):
    token = create_access_token(identity=str(admin.id), additional_claims={"roles": ["admin"]})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def rate(session):
    """Pin the exchange rate so expected amounts are easy to read."""
    return update_settings({"usd_to_pkr_rate": 271.2}).usd_to_pkr_rate
