"""Summarize persisted builds per owner with their funnel step and totals."""

from __future__ import annotations

import asyncio
from collections import Counter
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from sqlalchemy import select

from homebuild.cli.deps import get_container
from homebuild.persistence.sqlite.models import BuildRecord

# Load .env file
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

app = typer.Typer(help="Show persisted builds")
console = Console()


async def _load_rows(limit: int) -> list[BuildRecord]:
    container = get_container()
    async with container.unit_of_work_factory() as uow:
        stmt = select(BuildRecord).order_by(BuildRecord.updated_at.desc()).limit(limit)
        result = await uow._session.execute(stmt)
        return list(result.scalars())


@app.command()
def main(limit: int = typer.Option(50, min=1, help="Maximum builds to show")) -> None:
    rows = asyncio.run(_load_rows(limit))
    if not rows:
        console.print("[yellow]No builds found[/yellow]")
        raise typer.Exit(code=0)

    table = Table(title="Builds")
    table.add_column("Build", style="cyan")
    table.add_column("Owner")
    table.add_column("Model")
    table.add_column("Step", justify="right")
    table.add_column("Status")
    table.add_column("Total", justify="right")
    table.add_column("Updated")

    steps: Counter[int] = Counter()
    for row in rows:
        pricing = row.payload.get("pricing", {})
        steps[row.step] += 1
        table.add_row(
            row.id,
            row.owner_id,
            row.model_id,
            str(row.step),
            row.status,
            str(pricing.get("total", "-")),
            row.updated_at.isoformat()[:19],
        )
    console.print(table)
    summary = ", ".join(f"step {step}: {count}" for step, count in sorted(steps.items()))
    console.print(f"[bold]{len(rows)}[/bold] builds ({summary})")


if __name__ == "__main__":
    app()
