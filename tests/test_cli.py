from click.testing import CliRunner

from library_api import cli as cli_module
from library_api import models
from library_api.database import init_db
from library_api.seed_data import SAMPLE_BOOKS, seed_books

import pytest
from sqlalchemy import create_engine, inspect


@pytest.fixture
def runner(monkeypatch, session_factory):
    """CliRunner whose commands use the test database."""
    monkeypatch.setattr(cli_module, "SessionLocal", session_factory)
    monkeypatch.setattr(cli_module, "init_db", lambda: None)
    return CliRunner()


def test_seed_books_skips_existing_isbns(db_session):
    added = seed_books(db_session)
    assert len(added) == len(SAMPLE_BOOKS)
    assert all(book.available for book in added)

    assert seed_books(db_session) == []
    assert db_session.query(models.Book).count() == len(SAMPLE_BOOKS)


def test_seed_command(runner, db_session):
    result = runner.invoke(cli_module.cli, ["seed"])
    assert result.exit_code == 0
    assert f"Inserted {len(SAMPLE_BOOKS)} books" in result.output
    assert "- The Hobbit by J.R.R. Tolkien (6 copies)" in result.output
    assert db_session.query(models.Book).count() == len(SAMPLE_BOOKS)


def test_seed_command_clear_replaces_books(runner, db_session):
    runner.invoke(cli_module.cli, ["seed"])
    db_session.query(models.Book).filter(models.Book.isbn == "9780547928241").update(
        {models.Book.copies: 0, models.Book.available: False}
    )
    db_session.commit()

    result = runner.invoke(cli_module.cli, ["seed", "--clear"])
    assert result.exit_code == 0
    assert f"Inserted {len(SAMPLE_BOOKS)} books" in result.output

    hobbit = db_session.query(models.Book).filter(models.Book.isbn == "9780547928241").one()
    assert hobbit.copies == 6


def test_init_db_command(runner, monkeypatch):
    calls = []
    monkeypatch.setattr(cli_module, "init_db", lambda: calls.append(True))

    result = runner.invoke(cli_module.cli, ["init-db"])
    assert result.exit_code == 0
    assert calls == [True]
    assert "Tables created" in result.output


def test_init_db_creates_tables(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'fresh.db'}")
    try:
        init_db(bind=engine)
        assert {"books", "borrows"} <= set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
