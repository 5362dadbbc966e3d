import click

from lms_backend.database import get_engine
from lms_backend.model.base import Base
from .admin import admin


@click.command()
def init_db():
    """Create all tables of the course database"""
    Base.metadata.create_all(bind=get_engine())
    click.echo("Database tables created")


@click.group()
def cli():
    pass

cli.add_command(init_db, "init-db")
cli.add_command(admin, "admin")

if __name__ == '__main__':
    cli()
