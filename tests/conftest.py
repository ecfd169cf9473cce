"""
Pytest configuration and shared fixtures for stock ledger tests.
"""
import os
import tempfile
from types import SimpleNamespace

os.environ.setdefault("FLASK_ENV", "testing")

import pytest

from stockledger import create_app
from stockledger.authz import register_permission_checker
from stockledger.extensions import db
from tests.helpers import make_location, make_product, provision_stock


@pytest.fixture(scope='function')
def app():
    """Create and configure a new app instance for each test."""
    db_fd, db_path = tempfile.mkstemp(suffix='.db')

    app = create_app({
        'TESTING': True,
        'DATABASE_URL': f'sqlite:///{db_path}',
        'STOCK_LOCK_RETRY_INITIAL_DELAY': 0.001,
        'STOCK_LOCK_RETRY_MAX_DELAY': 0.01,
    })

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()

    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def app_context(app):
    """Provide an application context for tests that need it."""
    with app.app_context():
        yield


@pytest.fixture
def inventory_viewer(app):
    """Grant ``inventory.view`` to every request."""
    register_permission_checker(app, lambda permission: permission == 'inventory.view')
    return app


@pytest.fixture
def ledger(app_context):
    """Two locations and three products.

    Widget holds 10 and Gadget 5 at the main warehouse. Gizmo is catalogued
    but not stocked anywhere.
    """
    main = make_location("Main Warehouse")
    backroom = make_location("Backroom")
    widget = make_product("Widget", sku="WID-1")
    gadget = make_product("Gadget", sku="GAD-1")
    gizmo = make_product("Gizmo", sku="GIZ-1")
    provision_stock(widget, main, 10)
    provision_stock(gadget, main, 5)

    return SimpleNamespace(
        main=main.id,
        backroom=backroom.id,
        widget=widget.id,
        gadget=gadget.id,
        gizmo=gizmo.id,
    )
