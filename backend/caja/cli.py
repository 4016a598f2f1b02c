# Overview: Flask CLI command groups for bootstrap, licensing, and maintenance.

# backend/caja/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--sample-data]
#   Idempotent bootstrap: creates tables, default config rows, optional demo catalog.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Licensing:
# - python -m flask license generate-codes --count 10
#   Append fresh 6-digit activation codes to the code pool file.
# - python -m flask license list-codes
#   Show unused activation codes.
# - python -m flask license status
#   Show the current license state.
# - python -m flask license check-expired
#   Report active licenses past their expiry.
#
# Maintenance:
# - python -m flask maintenance prune-log [--keep 1000]
#   Trim the operations log to the newest N entries.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import ValidationError
from .extensions import db
from .services import audit_service, license_service, settings_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--sample-data', is_flag=True, help='Load the demo product catalog if the catalog is empty')
@with_appcontext
def init_system(sample_data):
    """Create tables, default config rows and (optionally) sample products."""
    click.echo("START Initializing POS database...")
    db.create_all()
    settings_service.ensure_defaults()
    click.echo("PASS Tables and default configuration ready")

    if sample_data:
        inserted = settings_service.seed_sample_products()
        if inserted:
            click.echo(f"PASS Inserted {inserted} sample products")
        else:
            click.echo("SKIP Catalog not empty, sample products not loaded")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()
    settings_service.ensure_defaults()

    click.echo("PASS Database reset complete.")


@click.group('license')
def license_group():
    """Activation code pool and license inspection."""


@license_group.command('generate-codes')
@click.option('--count', type=int, default=10, show_default=True)
@with_appcontext
def generate_codes(count):
    try:
        codes = license_service.generate_activation_codes(count)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint='--count')
    click.echo(f"PASS Added {len(codes)} codes to {current_app.config['ACTIVATION_CODES_PATH']}")
    for code in codes:
        click.echo(f"  {code}")


@license_group.command('list-codes')
@with_appcontext
def list_codes():
    codes = license_service.load_activation_codes()
    if not codes:
        click.echo("No unused activation codes.")
        return
    click.echo(f"{len(codes)} unused activation code(s):")
    for code in codes:
        click.echo(f"  {code}")


@license_group.command('status')
@with_appcontext
def license_status():
    details = license_service.license_details()
    if details["activated"]:
        click.echo(f"ACTIVE until {details['expiration_date']} ({details['days_remaining']} day(s) left)")
    elif details["expired"]:
        click.echo(f"EXPIRED on {details['expiration_date']}")
    else:
        click.echo("NO LICENSE")


@license_group.command('check-expired')
@with_appcontext
def check_expired():
    count = license_service.check_expired_licenses()
    click.echo(f"{count} active license(s) past expiry.")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('prune-log')
@click.option('--keep', type=int, default=None, help='Entries to keep (default OPERATION_LOG_RETENTION)')
@with_appcontext
def prune_log(keep):
    """Delete all but the newest operations log entries."""
    deleted = audit_service.prune_operations(keep)
    db.session.commit()
    click.echo(f"Deleted {deleted} operations log entries.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(license_group)
    app.cli.add_command(maintenance_group)
