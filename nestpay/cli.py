import click
from flask.cli import with_appcontext

from nestpay.extensions import db
from nestpay.models import UserProfile
from nestpay.models.user import ROLE_LANDLORD, ROLE_TENANT
from nestpay.services import catalog


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Create all tables."""
    db.create_all()
    click.echo("Database tables created")


@click.command("seed-demo")
@with_appcontext
def seed_demo_command():
    """Create a demo landlord, tenant and property with one unit."""
    db.create_all()
    landlord = UserProfile.query.filter_by(email="landlord@nestpay.test").first()
    if landlord is None:
        landlord = UserProfile(full_name="Demo Landlord", email="landlord@nestpay.test", role=ROLE_LANDLORD)
        db.session.add(landlord)
    tenant = UserProfile.query.filter_by(email="tenant@nestpay.test").first()
    if tenant is None:
        tenant = UserProfile(full_name="Demo Tenant", email="tenant@nestpay.test", role=ROLE_TENANT)
        db.session.add(tenant)
    db.session.commit()

    prop = catalog.create_property(landlord.id, {
        "title": "Kololo Heights",
        "city": "Kampala",
        "rent_amount": 500000,
        "rent_currency": "UGX",
    })
    unit = catalog.create_unit(prop, {"label": "A1"})
    click.echo(f"landlord={landlord.id} tenant={tenant.id}")
    click.echo(f"property={prop.id} join_code={prop.join_code} unit={unit.id}")


def register_commands(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_demo_command)
