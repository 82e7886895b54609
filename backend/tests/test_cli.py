"""CLI smoke tests."""

from homestock.extensions import db
from homestock.models import Membership


def test_homes_create_and_members(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["homes", "create", "--identity", "erin", "--name", "Chalet"])
    assert result.exit_code == 0, result.output
    assert "with admin erin" in result.output

    membership = db.session.query(Membership).filter_by(identity="erin").one()
    result = runner.invoke(args=["homes", "members", str(membership.home_id)])
    assert "erin" in result.output
    assert "admin" in result.output


def test_homes_create_rejects_blank_identity(app, db_session):
    result = app.test_cli_runner().invoke(args=["homes", "create", "--identity", " ", "--name", "X"])
    assert result.exit_code != 0


def test_audit_show(app, home_a, box_a):
    result = app.test_cli_runner().invoke(args=["audit", "show", str(home_a.id)])
    assert result.exit_code == 0
    assert "INSERT_boxes" in result.output


def test_reset_requires_confirmation(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "reset-db"])
    assert result.exit_code == 1
    assert "Refusing" in result.output


def test_inspection_help_states_authorization_bypass(app):
    runner = app.test_cli_runner()
    for group in ("homes", "audit"):
        result = runner.invoke(args=[group, "--help"])
        assert "bypasses tenant authorization" in " ".join(result.output.split())


def test_members_rejects_out_of_range_home(app, db_session):
    result = app.test_cli_runner().invoke(args=["homes", "members", str(2 ** 70)])
    assert result.exit_code == 2
