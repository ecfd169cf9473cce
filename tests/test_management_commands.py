import json

import pytest
from sqlalchemy import update

from stockledger.extensions import db
from stockledger.models import StockLevel
from stockledger.services.stock_adjustment import adjust
from tests.helpers import make_location, make_product, provision_stock


@pytest.fixture
def widget(app):
    with app.app_context():
        shop = make_location("Shop")
        product = make_product("Widget")
        provision_stock(product, shop, 4)
        adjust(product.id, shop.id, -1, operation_type='sale', operation_id=12, reason="Sale #12")
        return product.id, shop.id


def test_stock_audit_exits_non_zero_on_divergence(runner, widget):
    result = runner.invoke(args=['stock-audit'])

    # The raw sale adjustment has no paid sale document behind it.
    assert result.exit_code == 1
    assert "Widget" in result.output
    assert "1 products: 0 ok, 1 divergent" in result.output


def test_stock_audit_ok_when_reconciled(runner, app):
    with app.app_context():
        provision_stock(make_product("Quiet"), make_location("Shop"), 3)

    result = runner.invoke(args=['stock-audit'])

    assert result.exit_code == 0
    assert "1 products: 1 ok, 0 divergent" in result.output


def test_stock_audit_json(runner, app, widget):
    product_id, shop_id = widget
    with app.app_context():
        db.session.execute(
            update(StockLevel).where(StockLevel.product_id == product_id).values(quantity=5)
        )
        db.session.commit()

    result = runner.invoke(args=['stock-audit', '--json', '--divergent-only'])

    payload = json.loads(result.stdout)
    assert payload['summary']['products_divergent'] == 1
    assert payload['data'][0]['delta'] == 1
    assert result.exit_code == 1


def test_stock_history_command(runner, widget):
    product_id, _ = widget

    result = runner.invoke(args=['stock-history', str(product_id)])

    assert result.exit_code == 0
    assert "Widget (1 changes)" in result.output
    assert "4 -> 3" in result.output
    assert "Sale #12" in result.output


def test_stock_history_unknown_product(runner, app):
    result = runner.invoke(args=['stock-history', '9999'])

    assert result.exit_code == 1
    assert "Product 9999 not found" in result.output
