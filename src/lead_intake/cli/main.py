#!/usr/bin/env python3
"""
CLI interface for the lead intake service.
"""

import json
from pathlib import Path

import click
import httpx
import uvicorn
from loguru import logger
from rich.console import Console
from rich.table import Table

from lead_intake import __version__
from lead_intake.config.settings import StorageBackend, get_settings
from lead_intake.core.exceptions import BaseIntakeException
from lead_intake.core.logging import setup_logging
from lead_intake.core.schemas import EnrolledUser
from lead_intake.listing import ListingPage, ListingQuery, SortOrder, TimeWindow, build_listing_page
from lead_intake.storage import create_store
from lead_intake.webhooks.signature import compute_signature

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", is_flag=True, help="Show INFO logs")
def app(verbose: bool):
    """Lead intake service CLI."""
    setup_logging("lead-intake-cli", "INFO" if verbose else "WARNING")


@app.group()
def server():
    """Server management commands."""
    pass


@server.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def start(host: str | None, port: int | None, reload: bool):
    """Start the FastAPI server."""
    settings = get_settings()
    logger.info("Starting lead intake server")
    uvicorn.run(
        "lead_intake.api.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.group()
def db():
    """Database management commands."""
    pass


@db.command()
@click.option("--force", is_flag=True, help="Drop existing tables first")
def init(force: bool):
    """Create the enrolled_users table."""
    from lead_intake.core.database import DatabaseManager

    settings = get_settings()
    try:
        db_manager = DatabaseManager(settings.database_url)
        if force:
            click.echo("🗑️  Dropping existing tables...")
            db_manager.drop_tables()

        click.echo("🔧 Creating database tables...")
        db_manager.create_tables()
        click.echo("✅ Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise click.ClickException(f"Database initialization failed: {e}")


@db.command()
def status():
    """Check database connectivity."""
    from lead_intake.core.database import DatabaseManager

    health = DatabaseManager(get_settings().database_url).health_check()
    if health["status"] == "healthy":
        click.echo(f"✅ Database connection successful ({health['database_type']})")
    else:
        click.echo(f"❌ Database error: {health.get('error')}")


@app.group()
def enrolled():
    """Enrollment listing commands."""
    pass


def _fetch_users(api_url: str | None) -> list[EnrolledUser]:
    """Fetch the whole collection once, from the API or the configured store."""
    if api_url:
        response = httpx.get(f"{api_url.rstrip('/')}/api/enrolled", timeout=30.0)
        response.raise_for_status()
        return [EnrolledUser.model_validate(row) for row in response.json()]

    store = create_store(get_settings())
    try:
        return store.list_all()
    finally:
        store.close()


def _render_page(listing: ListingPage) -> None:
    console.print(f"[bold yellow]👥 {listing.total} enrolled[/bold yellow]")

    if listing.is_empty:
        console.print("\n[dim]No candidates found[/dim]")
        console.print("[dim]Try different search criteria[/dim]")
        return

    table = Table(show_header=True, header_style="bold yellow")
    table.add_column("Candidate")
    table.add_column("Contact")
    table.add_column("Enrolled at")
    for user in listing.items:
        table.add_row(user.name, user.email, user.enrolled_at.strftime("%d %b %Y %H:%M"))
    console.print(table)

    if listing.total_pages > 1:
        buttons = " ".join(
            f"[reverse]{number}[/reverse]" if number == listing.page else str(number)
            for number in listing.page_numbers
        )
        previous = "‹" if listing.has_previous else "[dim]‹[/dim]"
        following = "›" if listing.has_next else "[dim]›[/dim]"
        console.print(
            f"Showing {listing.first_row} to {listing.last_row} of "
            f"{listing.filtered_total} candidates   {previous} {buttons} {following}"
        )


@enrolled.command("list")
@click.option("--search", default="", help="Substring to match in name or email")
@click.option("--window", type=click.Choice([w.value for w in TimeWindow]), default=TimeWindow.ALL.value)
@click.option("--sort", type=click.Choice([s.value for s in SortOrder]), default=SortOrder.NEWEST.value)
@click.option("--page", default=1, type=int, help="Page number")
@click.option("--api-url", default=None, help="Fetch from a running service instead of the local store")
@click.option("--format", "output_format", default="table", type=click.Choice(["table", "json"]), help="Output format")
def list_enrolled(search: str, window: str, sort: str, page: int, api_url: str | None, output_format: str):
    """List enrolled candidates."""
    try:
        users = _fetch_users(api_url)
    except (BaseIntakeException, httpx.HTTPError) as e:
        raise click.ClickException(f"Failed to fetch users: {e}")

    listing = build_listing_page(
        users,
        ListingQuery(search=search, window=TimeWindow(window), sort=SortOrder(sort), page=page),
    )

    if output_format == "json":
        click.echo(json.dumps(listing.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        _render_page(listing)


@enrolled.command()
def count():
    """Print the number of enrollments in the configured store."""
    store = create_store(get_settings())
    try:
        click.echo(store.count())
    except BaseIntakeException as e:
        raise click.ClickException(e.message)
    finally:
        store.close()


@app.group()
def webhook():
    """Webhook tooling."""
    pass


@webhook.command()
@click.option("--secret", envvar="FRAMER_WEBHOOK_SECRET", required=True, help="Shared webhook secret")
@click.option("--submission-id", required=True, help="Framer submission id")
@click.option("--file", "body_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Body file")
@click.option("--data", "body_data", default=None, help="Body as a string")
def sign(secret: str, submission_id: str, body_file: Path | None, body_data: str | None):
    """Print the Framer-Signature header for a body."""
    if (body_file is None) == (body_data is None):
        raise click.UsageError("Provide exactly one of --file or --data")

    payload = body_file.read_bytes() if body_file else body_data.encode("utf-8")
    click.echo(compute_signature(secret, submission_id, payload))


@app.group()
def config():
    """Configuration commands."""
    pass


@config.command("validate")
def validate_config():
    """Validate the current configuration."""
    settings = get_settings()
    report = settings.validate_config()

    click.echo(f"📦 Storage backend: {StorageBackend(settings.storage_backend).value}")
    click.echo(f"📱 SMS: {'enabled' if settings.sms_enabled else 'disabled'}")
    for error in report["errors"]:
        click.echo(f"❌ {error}")
    for warning in report["warnings"]:
        click.echo(f"⚠️  {warning}")

    if not report["valid"]:
        raise click.ClickException("Configuration is invalid")
    click.echo("✅ Configuration is valid")


if __name__ == "__main__":
    app()
