"""
Management commands for operators
"""
import json
import sys

import click
from flask.cli import with_appcontext

from .services.stock_adjustment import get_stock_history
from .services.stock_reconciliation import run_stock_audit


def _format_quantity(value):
    return f"{value:g}" if isinstance(value, float) else str(value)


@click.command('stock-audit')
@click.option('--divergent-only', is_flag=True, help='Only list divergent products.')
@click.option('--json', 'as_json', is_flag=True, help='Emit the report as JSON.')
@with_appcontext
def stock_audit_command(divergent_only, as_json):
    """Reconcile stock levels against movement and sales history.

    Exits with status 1 when any product is divergent.
    """
    report = run_stock_audit()
    rows = report.divergent_rows if divergent_only else report.rows

    if as_json:
        click.echo(json.dumps({
            'data': [row.to_dict() for row in rows],
            'summary': report.summary.to_dict(),
        }, indent=2))
    else:
        header = f"{'status':<10} {'id':>6}  {'product':<32} {'opening':>8} {'in':>6} {'out':>6} {'sold':>6} {'expected':>9} {'actual':>7} {'delta':>7}"
        click.echo(header)
        click.echo("-" * len(header))
        for row in rows:
            click.echo(
                f"{row.status:<10} {row.product_id:>6}  {row.product_name[:32]:<32} "
                f"{_format_quantity(row.opening_quantity):>8} {_format_quantity(row.total_entries):>6} "
                f"{_format_quantity(row.total_exits):>6} {_format_quantity(row.total_sales_consumed):>6} "
                f"{_format_quantity(row.expected_quantity):>9} {_format_quantity(row.actual_quantity):>7} "
                f"{_format_quantity(row.delta):>7}"
            )
        summary = report.summary
        click.echo(
            f"\n{summary.total_products} products: {summary.products_ok} ok, "
            f"{summary.products_divergent} divergent "
            f"({summary.sale_lines_examined} sale lines, {summary.entry_lines_examined} entry lines, "
            f"{summary.exit_lines_examined} exit lines examined)"
        )

    if report.summary.products_divergent:
        sys.exit(1)


@click.command('stock-history')
@click.argument('product_id', type=int)
@click.option('--location-id', type=int, default=None)
@click.option('--limit', type=click.IntRange(min=1), default=None)
@with_appcontext
def stock_history_command(product_id, location_id, limit):
    """Print the quantity history of one product, oldest first."""
    history = get_stock_history(product_id, location_id=location_id, limit=limit)
    if history['product'] is None:
        raise click.ClickException(f"Product {product_id} not found")

    click.echo(f"{history['product']['name']} ({history['total_changes']} changes)")
    for entry in history['history']:
        click.echo(
            f"{entry['created_at']}  {entry['location_name'] or entry['location_id']:<16} "
            f"{entry['quantity_before']:>6} -> {entry['quantity_after']:<6} "
            f"({entry['quantity_change']:+d}) {entry['operation_type']}"
            + (f"  {entry['reason']}" if entry['reason'] else "")
        )


def register_commands(app):
    """Register CLI commands"""
    app.cli.add_command(stock_audit_command)
    app.cli.add_command(stock_history_command)
