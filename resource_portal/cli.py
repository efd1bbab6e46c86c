"""
Maintenance commands: ``flask init-db``, ``seed-tags``, ``create-admin``,
``check-db`` and ``clean-orphans``.
"""

import click
from sqlalchemy import func, text

from .auth import create_user
from .exceptions import ConflictError
from .models import ROLE_ADMIN, Resource, User, db
from .storage import delete_quietly
from .tags import seed_default_tags


def orphaned_resources():
    """Resources whose uploader row no longer exists."""
    return (Resource.query
            .outerjoin(User, Resource.uploaded_by == User.id)
            .filter(User.id.is_(None))
            .all())


def register_commands(app):

    @app.cli.command('init-db')
    def init_db():
        """Create all tables and the default tag catalog."""
        db.create_all()
        added = seed_default_tags(db.session)
        click.echo(f'Database initialized ({added} tags added)')

    @app.cli.command('seed-tags')
    def seed_tags():
        """Insert any missing default tags."""
        added = seed_default_tags(db.session)
        click.echo(f'Inserted {added} default tags')

    @app.cli.command('create-admin')
    @click.option('--email', prompt='Admin email')
    @click.option('--password', prompt='Admin password', hide_input=True, confirmation_prompt=True)
    @click.option('--full-name', prompt='Admin full name')
    def create_admin(email, password, full_name):
        """Create an administrator account."""
        if len(password) < 6:
            raise click.BadParameter('Password must be at least 6 characters', param_hint='--password')
        try:
            user = create_user(email, password, full_name, role=ROLE_ADMIN)
        except ConflictError as e:
            raise click.ClickException(e.message)
        click.echo(f'Admin user created: {user.email}')

    @app.cli.command('check-db')
    def check_db():
        """Check connectivity and report users, resources and orphans."""
        db.session.execute(text('SELECT 1'))
        click.echo('Database connected')
        users = User.query.order_by(User.created_at).all()
        click.echo(f'{len(users)} users')
        for user in users:
            click.echo(f'  - {user.email} ({user.role})')
        if not users:
            click.echo('No users found, run "flask create-admin" first')
        click.echo(f'{db.session.scalar(db.select(func.count(Resource.id)))} resources')
        orphans = orphaned_resources()
        if orphans:
            click.echo(f'{len(orphans)} orphaned resources, run "flask clean-orphans" to remove them')
        else:
            click.echo('No orphaned resources found')

    @app.cli.command('clean-orphans')
    def clean_orphans():
        """Delete resources whose uploader no longer exists."""
        orphans = orphaned_resources()
        if not orphans:
            click.echo('No orphaned resources found')
            return
        public_ids = [r.public_id for r in orphans]
        for resource in orphans:
            click.echo(f'  - {resource.title} (user ID: {resource.uploaded_by})')
            db.session.delete(resource)
        db.session.commit()
        for public_id in public_ids:
            delete_quietly(public_id)
        click.echo(f'Deleted {len(orphans)} orphaned resources')
