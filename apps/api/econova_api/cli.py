"""CLI commands for Econova API."""

import click

from econova_api.audit.service import AuditTrail
from econova_api.db.base import Base
from econova_api.db.seed import seed_all
from econova_api.db.session import SessionLocal, engine
from econova_api.settings import get_settings


@click.group()
def cli():
    """Econova API CLI."""
    pass


@cli.command("init-db")
def init_db():
    """Create tables directly (development only; use Alembic elsewhere)."""
    if not get_settings().is_development:
        raise click.ClickException("init-db is only available in development. Run alembic upgrade head.")
    import econova_api.models  # noqa: F401

    Base.metadata.create_all(engine)
    click.echo("✓ Tables created.")


@cli.command()
def seed():
    """Seed initial data."""
    click.echo("Seeding initial data...")
    db = SessionLocal()
    try:
        seed_all(db)
        click.echo("✓ Seed data created.")
    except Exception as e:
        db.rollback()
        raise click.ClickException(f"Error seeding data: {e}") from e
    finally:
        db.close()


@cli.command()
@click.option("--reload", is_flag=True, help="Restart on code changes (development).")
def serve(reload: bool):
    """Run the API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("econova_api.main:app", host=settings.api_host, port=settings.api_port, reload=reload)


@cli.command("verify-audit")
@click.argument("tenant_id", type=int)
def verify_audit(tenant_id: int):
    """Verify a tenant's audit hash chain."""
    db = SessionLocal()
    try:
        valid, error = AuditTrail(db).verify_chain(tenant_id)
    finally:
        db.close()

    if not valid:
        raise click.ClickException(f"Audit chain broken for tenant {tenant_id}: {error}")
    click.echo(f"✓ Audit chain intact for tenant {tenant_id}.")


if __name__ == "__main__":
    cli()
