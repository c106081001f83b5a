"""
Flask CLI commands for sales management.

Commands:
- flask sales init-db: Create the sales tables
- flask sales create --file sale.json: Create a sale from a JSON payload
- flask sales show SALE_ID
- flask sales list [--page --size --customer --branch --order-by]
- flask sales cancel SALE_ID [--reason]
- flask sales cancel-item SALE_ID ITEM_ID [--reason]
- flask sales delete SALE_ID
"""

import click
import json
from flask import current_app
from flask.cli import AppGroup
from sales_backend.database import get_session, create_all
from sales_backend.exceptions import SalesError, ValidationError
from sales_backend.services import sales_service
from sales_backend.utils.formatters import format_money, format_datetime

sales_cli = AppGroup('sales', help='Manage sales.')


def _echo_error(message):
    click.echo(click.style(f'❌ {message}', fg='red'), err=True)


def _echo_sale(sale):
    status_color = 'red' if sale.is_cancelled else 'green'
    click.echo(click.style(f'Sale {sale.sale_number}', bold=True) + f'  ({sale.id})')
    click.echo(f'   Date:     {format_datetime(sale.sale_date)}')
    click.echo(f'   Customer: {sale.customer_name} [{sale.customer_id}]')
    click.echo(f'   Branch:   {sale.branch_name} [{sale.branch_id}]')
    click.echo('   Status:   ' + click.style(sale.status.value, fg=status_color))
    for item in sale.items:
        flag = click.style(' (cancelled)', fg='yellow') if item.is_cancelled else ''
        click.echo(
            f'   - {item.id} {item.product_name} x{item.quantity} @ {format_money(item.unit_price)}'
            f' -{item.discount}% = {format_money(item.total_amount)}{flag}'
        )
    click.echo(click.style(f'   Total:    {format_money(sale.total_amount)}', bold=True))


def _handle_error(error):
    if isinstance(error, ValidationError):
        _echo_error(error.message)
        for field, detail in error.errors:
            click.echo(f'   {field}: {detail}', err=True)
    else:
        _echo_error(error.message)
    raise SystemExit(1)


def _echo_result(result):
    if result['success']:
        click.echo(click.style(f"✅ {result['message']}", fg='green'))
    else:
        _echo_error(result['message'])
        raise SystemExit(1)


@sales_cli.command('init-db')
def init_db_command():
    """Create the sales tables."""
    create_all()
    click.echo(click.style('✅ Sales tables ready', fg='green'))


@sales_cli.command('create')
@click.option('--file', 'payload_file', type=click.File('r'), required=True, help='JSON file with the sale payload')
def create_command(payload_file):
    """Create a sale from a JSON payload."""
    try:
        data = json.load(payload_file)
    except json.JSONDecodeError as e:
        _echo_error(f'Invalid JSON: {e}')
        raise SystemExit(1)

    try:
        sale = sales_service.create_sale(get_session(), data)
    except SalesError as e:
        _handle_error(e)
    click.echo(click.style('✅ Sale created', fg='green', bold=True))
    _echo_sale(sale)


@sales_cli.command('show')
@click.argument('sale_id')
def show_command(sale_id):
    """Show a sale and its items."""
    try:
        sale = sales_service.get_sale(get_session(), sale_id)
    except SalesError as e:
        _handle_error(e)
    _echo_sale(sale)


@sales_cli.command('list')
@click.option('--page', default=1, show_default=True, type=int)
@click.option('--size', default=None, type=int, help='Page size (defaults to SALES_DEFAULT_PAGE_SIZE)')
@click.option('--customer', 'customer_id', default=None)
@click.option('--branch', 'branch_id', default=None)
@click.option('--order-by', default=None, help='e.g. "totalamount desc"')
def list_command(page, size, customer_id, branch_id, order_by):
    """List sales."""
    config = current_app.config
    try:
        result = sales_service.list_sales(
            get_session(),
            page=page,
            size=size or config.get('SALES_DEFAULT_PAGE_SIZE', 10),
            customer_id=customer_id,
            branch_id=branch_id,
            order_by=order_by,
            max_page_size=config.get('SALES_MAX_PAGE_SIZE', 100)
        )
    except SalesError as e:
        _handle_error(e)

    for sale in result['data']:
        click.echo(
            f"{sale.sale_number:<20} {format_datetime(sale.sale_date)}  "
            f"{sale.customer_name[:25]:<25} {sale.branch_name[:20]:<20} "
            f"{format_money(sale.total_amount):>14}  {sale.status.value}"
        )
    click.echo(
        f"Page {result['current_page']}/{result['total_pages']} "
        f"({result['total_items']} sale(s))"
    )


@sales_cli.command('cancel')
@click.argument('sale_id')
@click.option('--reason', default=None)
def cancel_command(sale_id, reason):
    """Cancel a whole sale."""
    _echo_result(sales_service.cancel_sale(get_session(), sale_id, reason=reason))


@sales_cli.command('cancel-item')
@click.argument('sale_id')
@click.argument('item_id')
@click.option('--reason', default=None)
def cancel_item_command(sale_id, item_id, reason):
    """Cancel one item of a sale."""
    _echo_result(sales_service.cancel_item(get_session(), sale_id, item_id, reason=reason))


@sales_cli.command('delete')
@click.argument('sale_id')
@click.confirmation_option(prompt='Delete this sale and all its items?')
def delete_command(sale_id):
    """Delete a sale and its items."""
    _echo_result(sales_service.delete_sale(get_session(), sale_id))


def init_cli_commands(app):
    """Register CLI commands with Flask app."""
    app.cli.add_command(sales_cli)
