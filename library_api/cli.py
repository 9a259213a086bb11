import click
import uvicorn

from library_api.config import settings
from library_api.database import SessionLocal, init_db
from library_api.logging_config import setup_logging
from library_api.seed_data import seed_books


@click.group()
def cli():
    """Library lending API management commands"""
    setup_logging(settings.log_level, settings.log_file or None)


@cli.command()
@click.option("--host", default=None, help=f"Bind address (default {settings.host})")
@click.option("--port", type=int, default=None, help=f"Port (default {settings.port})")
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host, port, reload):
    """Run the API server"""
    uvicorn.run(
        "library_api.endpoints:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@cli.command("init-db")
def init_db_command():
    """Create the database tables"""
    init_db()
    click.echo(f"Tables created in {settings.database_url}")


@cli.command()
@click.option("--clear", is_flag=True, help="Delete existing books first")
def seed(clear):
    """Insert the sample catalogue"""
    init_db()
    db = SessionLocal()
    try:
        added = seed_books(db, clear=clear)
        click.echo(f"Inserted {len(added)} books")
        for book in added:
            click.echo(f"- {book.title} by {book.author} ({book.copies} copies)")
    finally:
        db.close()


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == "__main__":
    main()
