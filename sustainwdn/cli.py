"""CLI commands for SustainWDN."""

import asyncio
import base64
import re
import secrets
from contextlib import asynccontextmanager
from pathlib import Path

import click

COLLECTIONS = {
    # name: (model attribute on sustainwdn.db.models, table, scope column)
    "pathways": ("CareerPathway", "career_pathways", None),
    "jobs": ("JobRole", "job_roles", "pathway_id"),
}


@click.group()
@click.version_option(package_name="sustainwdn")
def cli():
    """SustainWDN - career pathway and job role explorer."""
    pass


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8080, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.option("--workers", default=1, type=int, help="Number of worker processes")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
)
def serve(host, port, reload, workers, log_level):
    """Run the SustainWDN server."""
    import signal

    from hypercorn.asyncio import serve as hypercorn_serve
    from hypercorn.config import Config

    config = Config()
    config.application_path = "sustainwdn.asgi:app"
    config.bind = [f"{host}:{port}"]
    config.workers = 1 if reload else workers
    config.loglevel = log_level.upper()
    config.include_server_header = False

    if reload:
        config.use_reloader = True
        from hypercorn.run import run
        run(config)
        return

    from sustainwdn.asgi import app

    shutdown_event = asyncio.Event()

    loop = asyncio.new_event_loop()
    loop.add_signal_handler(signal.SIGINT, shutdown_event.set)
    loop.add_signal_handler(signal.SIGTERM, shutdown_event.set)
    try:
        loop.run_until_complete(
            hypercorn_serve(app, config, shutdown_trigger=shutdown_event.wait)
        )
    finally:
        loop.close()


@cli.command()
@click.option(
    "--write",
    type=click.Path(),
    default=None,
    help="Write SECRET_KEY to a .env file",
)
@click.option(
    "--format",
    "fmt",
    default="urlsafe",
    type=click.Choice(["urlsafe", "hex", "base64"]),
    help="Output format for the secret key",
)
@click.option("--length", default=32, type=int, help="Number of random bytes")
def secret(write, fmt, length):
    """Generate a secure secret key."""
    if fmt == "urlsafe":
        key = secrets.token_urlsafe(length)
    elif fmt == "hex":
        key = secrets.token_hex(length)
    else:
        key = base64.b64encode(secrets.token_bytes(length)).decode("ascii")

    if not write:
        click.echo(key)
        return

    env_path = Path(write)
    env_content = env_path.read_text() if env_path.exists() else ""

    secret_key_pattern = re.compile(r"^SECRET_KEY=.*$", re.MULTILINE)
    new_line = f"SECRET_KEY={key}"

    if secret_key_pattern.search(env_content):
        env_content = secret_key_pattern.sub(new_line, env_content)
    else:
        if env_content and not env_content.endswith("\n"):
            env_content += "\n"
        env_content += new_line + "\n"

    env_path.write_text(env_content)
    click.echo(f"SECRET_KEY written to {env_path}")


def alembic_config(url: str | None = None):
    """Alembic Config pointing at the packaged migration scripts."""
    from alembic.config import Config

    cfg = Config()
    cfg.set_main_option("script_location", str(Path(__file__).parent / "alembic"))
    if url:
        cfg.set_main_option("sqlalchemy.url", url)
    return cfg


@cli.group()
def db():
    """Run database migrations via Alembic."""
    pass


@db.command()
@click.argument("revision", default="head")
def upgrade(revision):
    """Apply migrations up to REVISION (default: head)."""
    from alembic import command

    command.upgrade(alembic_config(), revision)


@db.command()
@click.argument("revision", default="-1")
def downgrade(revision):
    """Revert migrations down to REVISION (default: one step)."""
    from alembic import command

    command.downgrade(alembic_config(), revision)


@db.command()
def current():
    """Show the current revision."""
    from alembic import command

    command.current(alembic_config(), verbose=True)


class EchoNotifier:
    """Prints reorder notices to the terminal."""

    def success(self, message: str) -> None:
        click.secho(message, fg="green")

    def error(self, message: str) -> None:
        click.secho(message, fg="red", err=True)


@asynccontextmanager
async def open_backend(settings, collection: str):
    """Yield the configured backend for ``collection``, closing it after."""
    from sustainwdn.ordering import RestCollectionBackend, SQLAlchemyCollectionBackend, create_rest_client

    model_name, table, scope_column = COLLECTIONS[collection]

    if settings.backend.kind == "rest":
        async with create_rest_client(settings.backend) as client:
            yield RestCollectionBackend(
                client,
                table,
                scope_column=scope_column,
                rank_function=settings.backend.rank_function,
                name=collection,
            )
        return

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from sustainwdn.db import models

    engine = create_async_engine(settings.db.url, echo=settings.db.echo)
    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with session_maker() as db_session:
            model = getattr(models, model_name)
            yield SQLAlchemyCollectionBackend(db_session, model, scope_column=scope_column, name=collection)
    finally:
        await engine.dispose()


def _title(item) -> str:
    payload = item.payload
    if isinstance(payload, dict):
        return str(payload.get("title", item.id))
    return str(getattr(payload, "title", item.id))


@cli.command()
@click.argument("collection", type=click.Choice(sorted(COLLECTIONS)))
@click.option("--pathway", "pathway_id", default=None, help='Pathway id or "unassigned" (jobs only)')
def show(collection, pathway_id):
    """Print a collection in display order."""
    from sustainwdn.config import get_settings
    from sustainwdn.ordering import OrderedCollectionStore

    scope = _scope(pathway_id)

    async def run():
        async with open_backend(get_settings(), collection) as backend:
            store = OrderedCollectionStore(backend, scope)
            for item in await store.read():
                click.echo(f"{item.display_order:>4}  {item.id}  {_title(item)}")

    asyncio.run(run())


@cli.command()
@click.argument("collection", type=click.Choice(sorted(COLLECTIONS)))
@click.option("--pathway", "pathway_id", default=None, help='Pathway id or "unassigned" (jobs only)')
def renumber(collection, pathway_id):
    """Rewrite a collection's ranks as 1..N in their current order."""
    from sustainwdn.config import get_settings
    from sustainwdn.ordering import OrderedCollectionStore, PersistenceSynchronizer

    if collection == "jobs" and pathway_id is None:
        raise click.UsageError("--pathway is required: jobs are ranked within their pathway")
    scope = _scope(pathway_id)

    async def run() -> bool:
        async with open_backend(get_settings(), collection) as backend:
            store = OrderedCollectionStore(backend, scope)
            items = await store.read()
            synchronizer = PersistenceSynchronizer(backend, store, EchoNotifier(), label=f"{collection} order")
            error = await synchronizer.persist(items)
            if error is None:
                click.echo(f"Renumbered {len(items)} {collection}")
            return error is None

    if not asyncio.run(run()):
        raise SystemExit(1)


def _scope(pathway_id: str | None):
    if pathway_id is None:
        return None
    if pathway_id == "unassigned":
        from sustainwdn.ordering import UNASSIGNED

        return UNASSIGNED
    from uuid import UUID

    try:
        return UUID(pathway_id)
    except ValueError:
        raise click.BadParameter(f"not a valid id: {pathway_id}", param_hint="--pathway")


@cli.command()
@click.argument("collection", type=click.Choice(sorted(COLLECTIONS)))
@click.argument("item_id")
@click.argument("position", type=click.IntRange(min=1))
@click.option("--pathway", "pathway_id", default=None, help='Pathway id or "unassigned" (jobs only)')
def move(collection, item_id, position, pathway_id):
    """Move ITEM_ID to POSITION (1 is first) and renumber the collection."""
    from sustainwdn.config import get_settings
    from sustainwdn.lib.exceptions import ValidationError
    from sustainwdn.ordering import CollectionView, move_item, require_index

    if collection == "jobs" and pathway_id is None:
        raise click.UsageError("--pathway is required: jobs are ranked within their pathway")
    scope = _scope(pathway_id)

    async def run() -> bool:
        async with open_backend(get_settings(), collection) as backend:
            view = CollectionView(backend, scope, EchoNotifier(), label=f"{collection} order")
            items = await view.load()
            # Backends key items by UUID or by string; the argument is always a string.
            key = {str(item.id): item.id for item in items}.get(item_id, item_id)
            try:
                source = require_index(items, key)
            except ValidationError as e:
                raise click.BadParameter(str(e), param_hint="ITEM_ID")

            outcome = await view.reorder_to(move_item(items, source, min(position, len(items)) - 1))
            return outcome.ok

    if not asyncio.run(run()):
        raise SystemExit(1)
