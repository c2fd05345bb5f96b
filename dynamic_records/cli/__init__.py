"""
Command Line Interface for dynamic-records.
"""

import asyncio
import mimetypes
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import typer
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..client import StoreClient
from ..config import get_settings
from ..exceptions import DynamicRecordsError
from ..logging_config import configure_logging
from ..registry import SchemaRegistry
from ..schemas.entities import OPTION_FIELD_TYPES, EntityType, FieldDefinition, FieldType
from ..schemas.values import Blob
from ..store import EntityForm, EntityStore

app = typer.Typer(help="dynamic-records - runtime-defined record schemas")
console = Console()

T = TypeVar("T")

_TRUE_WORDS = {"true", "1", "yes", "on"}


def _open_client() -> StoreClient:
    """Build the store client from settings."""
    return StoreClient.from_settings(get_settings())


def _run(action: Callable[[StoreClient], Awaitable[T]]) -> T:
    """Run one async action with a fresh client, reporting core errors."""

    async def runner() -> T:
        client = _open_client()
        try:
            return await action(client)
        finally:
            await client.close()

    try:
        return asyncio.run(runner())
    except DynamicRecordsError as e:
        console.print(f"❌ {e.message}")
        raise typer.Exit(code=1)


async def _require_type(registry: SchemaRegistry, slug: str) -> EntityType:
    entity_type = await registry.get_by_slug(slug)
    if entity_type is None:
        console.print(f"❌ No category with slug '{slug}' exists")
        raise typer.Exit(code=1)
    return entity_type


def _require_field(entity_type: EntityType, key: str) -> FieldDefinition:
    definition = entity_type.field(key)
    if definition is None:
        console.print(f"❌ Unknown field '{key}'")
        raise typer.Exit(code=1)
    return definition


def _split_assignment(assignment: str) -> List[str]:
    if "=" not in assignment:
        console.print(f"❌ Expected key=value, got '{assignment}'")
        raise typer.Exit(code=1)
    return assignment.split("=", 1)


def _cli_raw(definition: FieldDefinition, text: str) -> Any:
    """Command-line text as the editor would have produced it."""
    if definition.type == FieldType.BOOLEAN:
        return text.strip().lower() in _TRUE_WORDS
    return text


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Override LOG_LEVEL"),
):
    """Configure logging before any command runs."""
    settings = get_settings()
    if log_level:
        settings.log_level = log_level
    configure_logging(settings)


@app.command()
def types():
    """List default and custom categories."""

    async def action(client: StoreClient):
        return await SchemaRegistry(client).classify()

    catalog = _run(action)

    table = Table(title="Categories", show_header=True, header_style="bold magenta")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("Kind", style="yellow")
    table.add_column("Fields", style="green")

    for slot in catalog.defaults:
        fields = len(slot.entity_type.fields) if slot.entity_type else 0
        status = "default" if slot.materialized else "default (not saved)"
        table.add_row(slot.slug, slot.name, status, str(fields))

    for entity_type in catalog.custom:
        table.add_row(entity_type.slug, entity_type.name, "custom", str(len(entity_type.fields)))

    console.print(table)


@app.command()
def fields(slug: str = typer.Argument(..., help="Category slug")):
    """Show the field definitions of a category."""

    async def action(client: StoreClient):
        return await _require_type(SchemaRegistry(client), slug)

    entity_type = _run(action)

    if not entity_type.fields:
        console.print("No custom fields configured yet")
        return

    table = Table(title=f"{entity_type.name} fields", show_header=True, header_style="bold cyan")
    table.add_column("Key", style="yellow")
    table.add_column("Label")
    table.add_column("Type", style="magenta")
    table.add_column("Required")
    table.add_column("Options")

    for definition in entity_type.fields:
        table.add_row(
            definition.key,
            definition.label,
            definition.type.value,
            "yes" if definition.required else "",
            ", ".join(definition.options) if definition.type in OPTION_FIELD_TYPES else "",
        )

    console.print(table)


@app.command()
def entities(slug: str = typer.Argument(..., help="Category slug")):
    """List the entries of a category."""

    async def action(client: StoreClient):
        entity_type = await _require_type(SchemaRegistry(client), slug)
        return entity_type, await EntityStore(client).list(entity_type.id)

    entity_type, items = _run(action)

    if not items:
        console.print(f"No entries in {entity_type.name}")
        return

    table = Table(title=f"{entity_type.name} entries", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="yellow")
    table.add_column("Name")
    table.add_column("Metadata")

    for entity in items:
        summary = ", ".join(f"{k}={v}" for k, v in entity.metadata.items())
        table.add_row(entity.id, entity.name, summary)

    console.print(table)


@app.command("add-entity")
def add_entity(
    slug: str = typer.Argument(..., help="Category slug"),
    name: str = typer.Option(..., "--name", help="Entry name"),
    values: List[str] = typer.Option([], "--set", help="Field value as key=value"),
    files: List[str] = typer.Option([], "--file", help="Image field as key=path"),
):
    """Create an entry through the full validation and encoding path."""
    settings = get_settings()

    async def action(client: StoreClient):
        entity_type = await _require_type(SchemaRegistry(client), slug)
        form = EntityForm(entity_type)
        form.set_name(name)

        for assignment in values:
            key, text = _split_assignment(assignment)
            definition = _require_field(entity_type, key)
            form.set_value(key, _cli_raw(definition, text))

        for assignment in files:
            key, path_text = _split_assignment(assignment)
            _require_field(entity_type, key)
            path = Path(path_text)
            if not path.is_file():
                console.print(f"❌ File not found: {path}")
                raise typer.Exit(code=1)
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            form.set_value(key, Blob(path.read_bytes(), content_type, path.name))

        return await form.submit(EntityStore(client, namespace=settings.metadata_namespace))

    created = _run(action)
    console.print(f"✅ Created entry {created.name} ({created.id})")


@app.command("delete-type")
def delete_type(
    slug: str = typer.Argument(..., help="Category slug"),
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt"),
):
    """Delete a custom category and all of its entries."""
    if not yes:
        typer.confirm(
            f"Delete category '{slug}' and all of its entries?", abort=True
        )

    async def action(client: StoreClient):
        registry = SchemaRegistry(client)
        entity_type = await _require_type(registry, slug)
        await registry.delete(entity_type.id)
        return entity_type

    deleted = _run(action)
    rprint(Panel.fit(f"🗑️ Deleted {deleted.name}", style="bold red"))
