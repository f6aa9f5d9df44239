# Overview: Flask CLI command groups for bootstrap and maintenance.

# backend/shopdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init --email owner@shop.local --password "Password123!"
#   Create all tables and the first superadmin (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Admin accounts:
# - python -m flask admins list
# - python -m flask admins create-superadmin --name Owner --email owner@shop.local --password "Password123!"
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --older-than-days 30
#   Delete expired and revoked sessions.
# - python -m flask maintenance expire-invitations
#   Invalidate invitation codes past their expiry.

import click
from flask.cli import with_appcontext

from .errors import ShopError
from .extensions import db
from .models import AdminUser
from .models.auth import ROLE_SUPERADMIN
from .services import auth_service, invitation_service, session_service


def _create_superadmin(name, email, password):
    try:
        admin = auth_service.create_admin(
            name=name,
            email=email,
            password=password,
            role=ROLE_SUPERADMIN,
        )
    except ShopError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created superadmin {admin.email} (ID: {admin.id})")
    return admin


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--name', default='Owner', show_default=True, help='Superadmin display name')
@click.option('--email', default='owner@shop.local', show_default=True, help='Superadmin email')
@click.option('--password', default='Password123!', show_default=True, help='Superadmin password')
@with_appcontext
def init_system(name, email, password):
    """
    Create tables and the first superadmin if none exists.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing shop database...")
    db.create_all()
    click.echo("PASS Tables created")

    existing = db.session.query(AdminUser).filter_by(role=ROLE_SUPERADMIN).first()
    if existing:
        click.echo(f"PASS Using existing superadmin: {existing.email} (ID: {existing.id})")
        return

    _create_superadmin(name, email, password)


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        raise click.ClickException("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('admins')
def admins_group():
    """Admin account commands."""


@admins_group.command('list')
@with_appcontext
def list_admins_cli():
    admins = auth_service.list_admins(include_inactive=True)
    if not admins:
        click.echo("No admins found.")
        return
    for admin in admins:
        status = "active" if admin.is_active else "inactive"
        caps = ",".join(sorted(admin.capabilities)) or "-"
        click.echo(f"{admin.id}\t{admin.email}\t{admin.role}\t{status}\t{caps}")


@admins_group.command('create-superadmin')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_superadmin_cli(name, email, password):
    _create_superadmin(name, email, password)


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--older-than-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(older_than_days):
    deleted = session_service.cleanup_expired_sessions(older_than_days=older_than_days)
    click.echo(f"Deleted {deleted} expired or revoked sessions older than {older_than_days} days.")


@maintenance_group.command('expire-invitations')
@with_appcontext
def expire_invitations_cli():
    count = invitation_service.expire_invitations()
    click.echo(f"Invalidated {count} expired invitation codes.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(admins_group)
    app.cli.add_command(maintenance_group)
