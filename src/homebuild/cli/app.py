"""Typer CLI wiring homebuild services."""

from __future__ import annotations

import asyncio
import json
from decimal import Decimal, InvalidOperation
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from homebuild.anonymous import MigrationError, MigrationOutcome
from homebuild.builds import BuildError
from homebuild.catalog import CatalogError
from homebuild.domain import (
    Address,
    Build,
    BuildId,
    BuildPayload,
    DeliveryQuote,
    DeliveryStatus,
    FunnelStep,
    Selections,
)
from homebuild.persistence import RepositoryError
from homebuild.pricing import price_selections
from homebuild.utils import format_money
from homebuild.utils.idempotency import new_session_key

from .deps import get_container

app = typer.Typer(help="Homebuild configurator command-line interface")
builds_app = typer.Typer(help="Inspect and manage persisted builds")
cache_app = typer.Typer(help="Anonymous customization cache housekeeping")
app.add_typer(builds_app, name="builds")
app.add_typer(cache_app, name="cache")

console = Console()


def _parse_build_id(value: str) -> BuildId:
    try:
        return BuildId(UUID(value))
    except ValueError as exc:
        raise typer.BadParameter("build-id must be a valid UUID") from exc


def _parse_amount(value: str | None) -> Decimal | None:
    if value is None:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise typer.BadParameter("delivery-fee must be a decimal amount") from exc
    if amount < 0:
        raise typer.BadParameter("delivery-fee must not be negative")
    return amount


def _fail(message: str, exc: BaseException) -> typer.Exit:
    typer.echo(f"{message}: {exc}")
    return typer.Exit(code=1)


def _echo_build(build: Build) -> None:
    typer.echo(json.dumps(build.model_dump(mode="json"), indent=2, sort_keys=True))


@app.command("show-settings")
def show_settings() -> None:
    """Print the resolved application settings."""

    container = get_container()
    settings = container.settings
    typer.echo("Environment:\t" + settings.environment)
    typer.echo("Database URL:\t" + settings.database_url)
    typer.echo(f"Tax rate:\t{settings.tax_rate} (delivery taxed: {settings.tax_delivery})")
    typer.echo(f"Autosave debounce:\t{settings.autosave_debounce_seconds}s")
    typer.echo(f"Anonymous retention:\t{settings.anonymous_retention_days} days")
    typer.echo("Anonymous cache:\t" + str(settings.anonymous_cache_path))
    typer.echo("Delivery provider:\t" + container.delivery_resolver.provider_name)
    typer.echo("Build API:\t" + (settings.api_base_url or "local"))


@app.command("models")
def list_models() -> None:
    """List the catalog models."""

    container = get_container()
    table = Table(title="Models")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Base price", justify="right")
    table.add_column("Packages")
    for model in container.catalog.list_models():
        packages = ", ".join(package.key for package in model.packages) or "-"
        table.add_row(model.id, model.name, format_money(model.base_price), packages)
    console.print(table)


@app.command("price")
def price(
    model_id: str,
    option: list[str] | None = typer.Option(None, "--option", "-o", help="Option id"),
    package: str | None = typer.Option(None, help="Package key"),
    delivery_fee: str | None = typer.Option(None, help="Known delivery fee"),
    anonymous: bool = typer.Option(False, help="Price as a signed-out visitor"),
) -> None:
    """Price a model with the given selections."""

    container = get_container()
    fee = _parse_amount(delivery_fee)
    delivery = (
        DeliveryQuote(status=DeliveryStatus.AVAILABLE, fee=fee) if fee is not None else None
    )
    breakdown, missing = price_selections(
        container.catalog,
        model_id,
        Selections.of(option or (), package),
        delivery,
        policy=container.tax_policy,
        authenticated=not anonymous,
    )
    if container.catalog.find_model(model_id) is None:
        typer.echo(f"Model {model_id} not found")
    for option_id in missing:
        typer.echo(f"Option {option_id} not found")

    typer.echo(f"Base:\t\t{format_money(breakdown.base)}")
    typer.echo(f"Options:\t{format_money(breakdown.options)}")
    typer.echo(f"Package:\t{format_money(breakdown.package)}")
    typer.echo(f"Subtotal:\t{format_money(breakdown.subtotal)}")
    delivery_text = (
        format_money(breakdown.delivery)
        if breakdown.delivery is not None
        else breakdown.delivery_status.value
    )
    typer.echo(f"Delivery:\t{delivery_text}")
    typer.echo(f"Taxes:\t\t{format_money(breakdown.taxes)}")
    suffix = "" if breakdown.is_final else " (estimate)"
    typer.echo(f"Total:\t\t{format_money(breakdown.total)}{suffix}")


@app.command("quote-delivery")
def quote_delivery(
    street: str = typer.Option(..., help="Street address"),
    city: str = typer.Option(..., help="City"),
    state: str = typer.Option(..., help="State"),
    postal_code: str = typer.Option(..., help="Postal code"),
) -> None:
    """Quote delivery to an address."""

    container = get_container()
    address = Address(street=street, city=city, state=state, postal_code=postal_code)
    quote = asyncio.run(container.delivery_resolver.quote_delivery(address))
    typer.echo(f"Provider:\t{container.delivery_resolver.provider_name}")
    typer.echo(f"Status:\t\t{quote.status.value}")
    if quote.is_available:
        typer.echo(f"Fee:\t\t{format_money(quote.fee)}")
        typer.echo(f"ETA:\t\t{quote.eta_days} days")
        if quote.miles is not None:
            typer.echo(f"Miles:\t\t{quote.miles:.1f}")
    else:
        typer.echo(f"Reason:\t\t{quote.reason or 'unknown'}")
        raise typer.Exit(code=1)


@builds_app.command("create")
def builds_create(
    model_id: str,
    user: str = typer.Option(..., help="Owner user id"),
    option: list[str] | None = typer.Option(None, "--option", "-o", help="Option id"),
    package: str | None = typer.Option(None, help="Package key"),
    name: str | None = typer.Option(None, help="Build name"),
    idempotency_key: str | None = typer.Option(None, help="Reuse a key to make retries safe"),
) -> None:
    """Create a build for a user."""

    container = get_container()
    gateway = container.gateway_for(user)
    payload = BuildPayload(
        model_id=model_id,
        name=name,
        selections=Selections.of(option or (), package),
    )
    key = idempotency_key or new_session_key()
    try:
        build_id = asyncio.run(gateway.create(payload, key))
    except (BuildError, RepositoryError, CatalogError) as exc:
        raise _fail("Create failed", exc) from exc
    typer.echo(f"Created build {build_id}")


@builds_app.command("show")
def builds_show(build_id: str, user: str = typer.Option(..., help="Caller user id")) -> None:
    """Show a build as JSON."""

    container = get_container()
    target_id = _parse_build_id(build_id)
    try:
        build = asyncio.run(container.gateway_for(user).get(target_id))
    except (BuildError, RepositoryError) as exc:
        raise _fail("Lookup failed", exc) from exc
    _echo_build(build)


@builds_app.command("list")
def builds_list(
    user: str = typer.Option(..., help="Owner user id"),
    model: str | None = typer.Option(None, help="Only builds for this model"),
) -> None:
    """List a user's builds, most recently updated first."""

    container = get_container()
    try:
        builds = asyncio.run(container.gateway_for(user).list_builds(model_id=model))
    except (BuildError, RepositoryError) as exc:
        raise _fail("Listing failed", exc) from exc
    if not builds:
        typer.echo("No builds found")
        return
    table = Table(title=f"Builds for {user}")
    table.add_column("ID", style="cyan")
    table.add_column("Model")
    table.add_column("Name")
    table.add_column("Step")
    table.add_column("Total", justify="right")
    for build in builds:
        table.add_row(
            str(build.id),
            build.model_id,
            build.name,
            build.step.name.lower(),
            format_money(build.pricing.total),
        )
    console.print(table)


@builds_app.command("advance")
def builds_advance(
    build_id: str,
    step: str = typer.Argument(..., help="Target step name or number"),
    user: str = typer.Option(..., help="Caller user id"),
) -> None:
    """Advance a build to a later funnel step."""

    container = get_container()
    target_id = _parse_build_id(build_id)
    try:
        target = FunnelStep(int(step)) if step.isdigit() else FunnelStep[step.upper()]
    except (KeyError, ValueError) as exc:
        choices = ", ".join(member.name.lower() for member in FunnelStep)
        raise typer.BadParameter(f"step must be one of: {choices}") from exc
    try:
        build = asyncio.run(container.gateway_for(user).advance_step(target_id, target))
    except (BuildError, RepositoryError) as exc:
        raise _fail("Advance failed", exc) from exc
    typer.echo(f"Build {build.id} is at step {build.step.name.lower()}")


@cache_app.command("show")
def cache_show() -> None:
    """List unexpired anonymous customizations."""

    container = get_container()
    entries = container.anonymous_cache.list_entries()
    if not entries:
        typer.echo("No anonymous customizations")
        return
    for entry in entries:
        options = ", ".join(entry.selections.option_ids) or "(none)"
        package = entry.selections.package_key or "-"
        typer.echo(
            f"{entry.model_id}\t{entry.saved_at.isoformat()}\tpackage={package}\toptions={options}"
        )


@cache_app.command("expire")
def cache_expire() -> None:
    """Remove anonymous customizations older than the retention window."""

    container = get_container()
    removed = container.anonymous_cache.expire_old()
    typer.echo(f"Removed {removed} expired entries")


@cache_app.command("migrate")
def cache_migrate(
    user: str = typer.Option(..., help="User id to migrate into"),
    model: str | None = typer.Option(None, help="Only migrate this model"),
) -> None:
    """Move anonymous customizations into the user's builds."""

    container = get_container()
    gateway = container.gateway_for(user)
    migrator = container.migrator

    async def _run() -> list[MigrationOutcome]:
        if model is not None:
            return [await migrator.migrate(model, gateway, user_id=user)]
        return await migrator.migrate_all(gateway, user_id=user)

    outcomes = asyncio.run(_run())
    if not outcomes:
        typer.echo("Nothing to migrate")
        return
    for outcome in outcomes:
        suffix = f" -> {outcome.build_id}" if outcome.build_id else ""
        typer.echo(f"{outcome.model_id}: {outcome.status.value}{suffix}")
    try:
        for outcome in outcomes:
            outcome.raise_for_status()
    except MigrationError as exc:
        raise _fail("Migration incomplete", exc) from exc
