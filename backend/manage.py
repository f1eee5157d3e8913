from eltdash import create_app
from eltdash.seed import seed_data
from flask.cli import with_appcontext
from flask_migrate import upgrade, migrate, init
import click

app = create_app()

@app.cli.command("db-init")
@with_appcontext
def db_init():
    """Initializes migrations directory"""
    init()

@app.cli.command("db-migrate")
@with_appcontext
def db_migrate():
    """Creates a new migration"""
    migrate()

@app.cli.command("db-upgrade")
@with_appcontext
def db_upgrade():
    """Applies migrations"""
    upgrade()

@app.cli.command("seed")
@click.option("--reset", is_flag=True, help="Remove users, roles and interview questions first")
@with_appcontext
def seed(reset):
    """Seeds roles, schools and the admin account"""
    created = seed_data(reset=reset)
    for name, count in created.items():
        click.echo(f"{name}: {count} added")
