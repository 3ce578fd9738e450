import click
from flask import Flask, current_app
from flask.cli import with_appcontext

from .auth import purge_expired_sessions
from .models import db, Admin


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("Database tables created.")


@click.command('create-admin')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--name', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(Admin.ROLES), default='SUPERADMIN', show_default=True)
@with_appcontext
def create_admin_command(username, email, name, password, role):
    """
    Create an admin account.

    Usage: flask create-admin --username admin --email admin@club.org --name "Club Admin"
    """
    email = email.strip().lower()
    if Admin.query.filter((Admin.username == username) | (Admin.email == email)).first():
        raise click.ClickException(f"An admin named '{username}' or with email {email} already exists")

    admin = Admin(username=username, email=email, name=name, role=role)
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    click.echo(f"Created {role} '{username}'.")


@click.command('reconcile-budgets')
@click.option('--tournament-id', type=int, help='Only reconcile this tournament')
@with_appcontext
def reconcile_budgets_command(tournament_id):
    """
    Recompute every team's remaining budget from its sold players.

    Usage:
        flask reconcile-budgets
        flask reconcile-budgets --tournament-id=3
    """
    fixes = current_app.auction.reconcile_budgets(tournament_id)
    if not fixes:
        click.echo("All team budgets match their purchases.")
        return
    for fix in fixes:
        click.echo(f"{fix['team_name']} (#{fix['team_id']}): {fix['before']} -> {fix['after']}")
    click.echo(f"Reconciled {len(fixes)} team(s).")


@click.command('purge-sessions')
@with_appcontext
def purge_sessions_command():
    """Delete expired admin sessions."""
    count = purge_expired_sessions()
    click.echo(f"Removed {count} expired session(s).")


def register_commands(app: Flask):
    app.cli.add_command(init_db_command)
    app.cli.add_command(create_admin_command)
    app.cli.add_command(reconcile_budgets_command)
    app.cli.add_command(purge_sessions_command)
