# Overview: Flask CLI command groups for schema bootstrap and user administration.

# backend/setaside/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent). Use `flask db upgrade` for migrated databases.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role cashier]
#   List users with role and active status.
# - python -m flask users create --email admin@setaside.local --full-name "Admin" --password "Password123" --role admin
#   Create a user of any role (prompts if options are omitted).
# - python -m flask users deactivate someone@example.com
#   Block login for an account (users are never deleted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, VALID_ROLES
from .services.auth_service import create_user, normalize_email
from .errors import ServiceError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all database tables that do not exist yet."""
    click.echo("START Initializing Set Aside database...")
    db.create_all()
    user_count = db.session.query(User).count()
    click.echo(f"PASS Tables ready ({user_count} users)")
    if user_count == 0:
        click.echo("NEXT Create an admin: python -m flask users create --role admin")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop every table (users, products, orders, items) and recreate them empty."""
    if not yes:
        click.confirm("WARN All users, products and orders will be lost. Continue?", abort=True)

    db.drop_all()
    db.create_all()
    click.echo("PASS Schema recreated; run `flask users create --role admin` to add an admin.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(VALID_ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(email, full_name, password, role):
    """
    Create a new user of any role.

    Password must meet strength requirements:
    - 8 to 50 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    """
    try:
        user = create_user(email=email, password=password, full_name=full_name, role=role)
    except ServiceError as e:
        raise click.ClickException(f"FAIL Failed to create user: {e.message}")

    click.echo(f"PASS Created user: {user.email} with role '{user.role}' (ID: {user.id})")


@users_group.command('list')
@click.option('--role', type=click.Choice(list(VALID_ROLES)), help='Filter by role')
@with_appcontext
def list_users(role):
    """List users with their role and active status."""
    query = db.session.query(User)

    if role:
        query = query.filter_by(role=role)

    users = query.order_by(User.created_at.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<38} {'Email':<30} {'Role':<10} {'Active':<8} {'Name'}")
    click.echo("="*100)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<38} {user.email:<30} {user.role:<10} {active_str:<8} {user.full_name}")

    click.echo("="*100 + "\n")


@users_group.command('deactivate')
@click.argument('email')
@with_appcontext
def deactivate_user(email):
    """Deactivate a user account by email."""
    user = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if not user:
        raise click.ClickException(f"FAIL User '{email}' not found")

    if not user.is_active:
        click.echo(f"WARN  User '{user.email}' is already inactive")
        return

    user.is_active = False
    db.session.commit()
    click.echo(f"PASS Deactivated user: {user.email}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
