# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/homestock/cli.py
# Commands Legend (run from the backend directory):
# Operator tool: commands act without a caller identity and bypass tenant
# authorization. Do not expose them to end users.
#
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "homestock:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Homes (tenants):
# - python -m flask homes list [--identity alice]
#   List homes, optionally only those an identity belongs to.
# - python -m flask homes create --identity alice --name "Maison"
#   Create a home; the identity becomes its admin.
# - python -m flask homes members 1
#   List memberships of a home.
#
# Audit trail:
# - python -m flask audit show 1 --limit 20 [--entity-type boxes]
#   Print the newest audit records of a home.

import json

import click

from .errors import HomeStockError
from .extensions import db
from .models import AuditRecord, Home, Membership
from .services import home_service
from .validation import INTEGER_MAX


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
def init_db():
    db.create_all()
    click.echo("Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
def reset_db(yes):
    if not yes:
        click.echo("Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("Database reset.")


@click.group('homes')
def homes_group():
    """Home (tenant) inspection commands. Operator only: bypasses tenant authorization."""


@homes_group.command('list')
@click.option('--identity', default=None, help='Only homes this identity belongs to')
def list_homes(identity):
    if identity:
        homes = home_service.list_homes(identity)
    else:
        homes = db.session.query(Home).order_by(Home.id).all()
    if not homes:
        click.echo("No homes found.")
        return
    for home in homes:
        members = db.session.query(Membership).filter_by(home_id=home.id).count()
        click.echo(f"{home.id:>5}  {home.name}  members={members}")


@homes_group.command('create')
@click.option('--identity', required=True, help='Identity that becomes admin')
@click.option('--name', required=True)
def create_home(identity, name):
    try:
        home = home_service.create_home(identity, name)
    except HomeStockError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Created home {home.id} ({home.name}) with admin {identity}")


@homes_group.command('members')
@click.argument('home_id', type=click.IntRange(1, INTEGER_MAX))
def list_members(home_id):
    rows = db.session.query(Membership).filter_by(home_id=home_id).order_by(Membership.id).all()
    if not rows:
        click.echo("No memberships found.")
        return
    for m in rows:
        click.echo(f"{m.id:>5}  {m.identity:<32} {m.role}")


@click.group('audit')
def audit_group():
    """Audit trail inspection (read-only). Operator only: bypasses tenant authorization."""


@audit_group.command('show')
@click.argument('home_id', type=click.IntRange(1, INTEGER_MAX))
@click.option('--limit', default=20, show_default=True, type=click.IntRange(1, 500))
@click.option('--entity-type', default=None)
def show_audit(home_id, limit, entity_type):
    query = db.session.query(AuditRecord).filter_by(home_id=home_id)
    if entity_type:
        query = query.filter_by(entity_type=entity_type)
    records = query.order_by(AuditRecord.created_at.desc(), AuditRecord.id.desc()).limit(limit).all()
    if not records:
        click.echo("No audit records found.")
        return
    for r in records:
        click.echo(f"{r.id:>6}  {r.created_at}  {r.action:<24} id={r.entity_id}  by={r.identity}")
        if r.before_json is not None:
            click.echo(f"        before: {json.dumps(r.before_json, sort_keys=True)}")
        if r.after_json is not None:
            click.echo(f"        after:  {json.dumps(r.after_json, sort_keys=True)}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(homes_group)
    app.cli.add_command(audit_group)
