"""
Tests for the operator CLI.
"""

from typer.testing import CliRunner

from cli import app
from rest_api.models import User

runner = CliRunner()


class TestDatabaseCommands:

    def test_db_init_seeds_rooms_once(self, db_session):
        first = runner.invoke(app, ["db-init"])
        second = runner.invoke(app, ["db-init"])

        assert first.exit_code == 0
        assert "4 room(s) created" in first.output
        assert "0 room(s) created" in second.output

    def test_rooms_listing(self, db_session, seed_room):
        result = runner.invoke(app, ["rooms"])
        assert result.exit_code == 0
        assert "lobby" in result.output

    def test_create_user(self, db_session):
        result = runner.invoke(app, ["create-user", "dave", "--password", "secret123"])

        assert result.exit_code == 0
        user = db_session.query(User).filter_by(username="dave").one()
        assert user.password.startswith("$2b$")
        assert user.avatar is not None

    def test_create_duplicate_user(self, db_session, seed_user):
        result = runner.invoke(app, ["create-user", "alice", "--password", "secret123"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_create_user_invalid(self, db_session):
        result = runner.invoke(app, ["create-user", "x", "--password", "secret123"])
        assert result.exit_code == 1

    def test_reset_statuses(self, db_session, seed_user):
        seed_user.status = "online"
        db_session.commit()

        result = runner.invoke(app, ["reset-statuses"])

        assert result.exit_code == 0
        assert "1 account(s)" in result.output
        db_session.expire_all()
        assert db_session.get(User, seed_user.id).status == "offline"
