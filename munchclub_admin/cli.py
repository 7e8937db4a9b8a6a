# munchclub_admin/cli.py
# Commands (with FLASK_APP pointing at an app that initialises MunchclubAdmin):
# - flask maintenance cleanup-logs --days 30
#   Delete persistent app_logs rows older than the retention window.
# - flask maintenance check-printer <order_id>
#   Refresh one order's cached printer status from the gateway.

import click
from flask.cli import with_appcontext

from .core.errors import AdminError
from .core.logging_service import LoggingService


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-logs')
@click.option('--days', 'days_to_keep', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_logs_cli(days_to_keep):
    """Delete log entries older than the retention window."""
    deleted = LoggingService.cleanup_old_logs(days_to_keep=days_to_keep)
    click.echo(f"Deleted {deleted} log entries older than {days_to_keep} days.")


@maintenance_group.command('check-printer')
@click.argument('order_id')
@with_appcontext
def check_printer_cli(order_id):
    """Poll the printer gateway for one order and cache the first result."""
    from .modules.printer.service import refresh_printer_status

    try:
        result = refresh_printer_status(order_id)
    except AdminError as e:
        raise click.ClickException(e.message)

    for entry in result['printerStatuses']:
        line = f"{entry['printerOrderId']}: {entry['status']}"
        if entry.get('error'):
            line += f" ({entry['error']})"
        click.echo(line)
    click.echo(f"Latest status: {result['latestStatus']} (persisted: {result['persisted']})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(maintenance_group)
