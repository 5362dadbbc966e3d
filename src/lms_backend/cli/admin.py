import click

from lms_backend.database import get_db
from lms_backend.services.accounts import create_admin_user
from lms_backend.settings import settings


@click.command()
@click.option("--email", "-e", "email", prompt=True)
@click.option("--password", "-p", "password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--first-name", "first_name", default="Admin", show_default=True)
@click.option("--last-name", "last_name", default="System", show_default=True)
def create(email, password, first_name, last_name):
    """Create an administrator account"""

    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise click.BadParameter(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long", param_hint="--password")

    with next(get_db()) as db:
        user = create_admin_user(db, email, password, first_name=first_name, last_name=last_name)

    if user is None:
        click.echo(f"User {email} already exists")
    else:
        click.echo(f"Admin {user.email} created")


@click.group()
def admin():
    pass

admin.add_command(create, "create")
