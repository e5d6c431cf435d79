"""Configuration and injectable fixtures for Pytest.

Can be reused (and overriden) by adding::

   pytest_plugins = ['contenttags.testing.fixtures']

to your `conftest.py`.
"""
from typing import Any, Iterator

from flask import Flask
from flask.ctx import AppContext
from flask.testing import FlaskCliRunner
from flask_sqlalchemy import SQLAlchemy
from pytest import fixture
from sqlalchemy.orm import Session

from contenttags.app import create_app
from contenttags.core.models import User
from contenttags.testing.util import cleanup_db, ensure_services_started, \
    stop_all_services


class TestConfig:
    TESTING = True
    DEBUG = True
    SECRET_KEY = "SECRET"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    TAGS_SITE_SCOPED = False


@fixture
def config() -> type:
    return TestConfig


@fixture
def app(config: Any) -> Flask:
    # We currently return a fresh app for each test.
    return create_app(config=config)


@fixture
def app_context(app: Flask) -> Iterator[AppContext]:
    with app.app_context() as ctx:
        yield ctx


@fixture
def db(app_context: AppContext) -> Iterator[SQLAlchemy]:
    """Return a fresh db for each test."""
    from contenttags.core.extensions import db

    stop_all_services(app_context.app)
    ensure_services_started(["tagging"])

    db.create_all()
    yield db

    db.session.remove()
    cleanup_db(db)
    stop_all_services(app_context.app)


@fixture
def session(db: SQLAlchemy) -> Session:
    return db.session


@fixture
def cli_runner(app: Flask) -> FlaskCliRunner:
    return app.test_cli_runner()


@fixture
def user(db: SQLAlchemy) -> User:
    user = User(first_name="Joe", last_name="Test", email="test@example.com")
    db.session.add(user)
    db.session.flush()
    return user
