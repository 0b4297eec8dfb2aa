# Overview: Flask CLI command groups for bootstrap, business days, and users.

# backend/tablepos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: flask --app wsgi <group> <command> [options]
#
# System bootstrap/repair:
# - flask --app wsgi system init
#   Idempotent bootstrap: permissions, default roles, and default users.
# - flask --app wsgi system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - flask --app wsgi system seed-catalog
#   Create the starter menu when no product exists.
#
# Business days:
# - flask --app wsgi sessions list
#   List business days, newest first, marking the active one.
# - flask --app wsgi sessions start-day
#   Open (or re-activate) today's business day.
# - flask --app wsgi sessions rollover
#   Create and activate today's day only if none exists (for cron).
#
# Users:
# - flask --app wsgi users list
# - flask --app wsgi users create --username ayse --password "Password123!" --role cashier

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import DomainError
from .models import User, Role, RolePermission
from .permissions import DEFAULT_ROLE_PERMISSIONS
from .services.auth_service import create_user, create_default_roles, PasswordValidationError
from .services import permission_service
from .services import business_session_service
from .services import seed_service


DEFAULT_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--password', default=DEFAULT_PASSWORD, help='Password for the default users')
@with_appcontext
def init_system(password):
    """
    Initialize the access-control tables and default users.

    Creates:
    - All permissions
    - Roles: admin, manager, cashier, kitchen (with default permissions)
    - One user per role, named after the role

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing TablePOS...")

    click.echo("\nLIST Creating roles...")
    create_default_roles()
    roles = db.session.query(Role).all()
    click.echo(f"PASS Roles: {', '.join(r.name for r in roles)}")

    click.echo("\nSECURITY Initializing permissions...")
    perm_count = permission_service.initialize_permissions()
    assignment_count = permission_service.assign_default_role_permissions()
    click.echo(f"PASS Created {perm_count} permissions, {assignment_count} role assignments")

    click.echo("\nUSERS Creating default users...")
    for role_name in DEFAULT_ROLE_PERMISSIONS:
        existing = db.session.query(User).filter_by(username=role_name).first()
        if existing:
            click.echo(f"WARN  User '{role_name}' already exists, skipping...")
            continue
        try:
            create_user(role_name, password, role_name)
            click.echo(f"PASS Created user '{role_name}' with role '{role_name}'")
        except PasswordValidationError as e:
            click.echo(f"FAIL Password validation failed for '{role_name}': {str(e)}")
            return
        except DomainError as e:
            click.echo(f"FAIL Failed to create user '{role_name}': {str(e)}")

    session = business_session_service.ensure_initial_session()
    if session:
        click.echo(f"\nPASS Opened business day: {session.name}")

    click.echo("\n" + "="*60)
    click.echo("DONE TablePOS initialized")
    click.echo("="*60)

    click.echo("\nSTATS Permissions by role:")
    for role in db.session.query(Role).order_by(Role.name).all():
        count = db.session.query(RolePermission).filter_by(role_id=role.id).count()
        click.echo(f"  {role.name.upper():<10} -> {count} permissions")
    click.echo("")


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

    click.echo("PASS Database reset complete. Run 'flask system init' to initialize.")


@system_group.command('seed-catalog')
@with_appcontext
def seed_catalog_cli():
    """Create the starter menu (skipped when products exist)."""
    created = seed_service.seed_catalog()
    if created:
        click.echo(f"PASS Seeded {created} products")
    else:
        click.echo("SKIP Products already exist")


# =============================================================================
# BUSINESS DAYS
# =============================================================================

@click.group('sessions')
def sessions_group():
    """Business day inspection and control."""


@sessions_group.command('list')
@with_appcontext
def list_sessions_cli():
    sessions = business_session_service.list_sessions()
    if not sessions:
        click.echo("No business sessions found.")
        return

    click.echo(f"{'ID':<6} {'Date':<12} {'Active':<8} Name")
    for s in sessions:
        click.echo(f"{s.id:<6} {s.date.isoformat():<12} {'*' if s.is_active else '':<8} {s.name}")


@sessions_group.command('start-day')
@with_appcontext
def start_day_cli():
    session = business_session_service.start_day()
    click.echo(f"PASS Active business day: {session.name} (ID: {session.id})")


@sessions_group.command('rollover')
@with_appcontext
def rollover_cli():
    """Open today's business day if none exists yet (idempotent)."""
    session = business_session_service.ensure_session_for_today()
    if session:
        click.echo(f"PASS Opened business day: {session.name} (ID: {session.id})")
    else:
        click.echo("SKIP A business day for today already exists")


# =============================================================================
# USERS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(DEFAULT_ROLE_PERMISSIONS)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(username, password, role):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(username, password, role)
        click.echo(f"PASS Created user: {user.username} with role '{role}'")
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except DomainError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('list')
@with_appcontext
def list_users_cli():
    users = db.session.query(User).order_by(User.username).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo(f"{'ID':<5} {'Username':<20} {'Active':<8} Role")
    for user in users:
        role_name = user.role.name if user.role else "none"
        click.echo(f"{user.id:<5} {user.username:<20} {'Yes' if user.is_active else 'No':<8} {role_name}")


def register_commands(app):
    """Register CLI command groups with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(sessions_group)
    app.cli.add_command(users_group)
