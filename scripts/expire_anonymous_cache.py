#!/usr/bin/env python3
"""Remove anonymous customizations older than the retention window."""

from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console

# Load .env file
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

from homebuild.cli.deps import get_container

console = Console()


def main() -> None:
    container = get_container()
    cache = container.anonymous_cache
    before = len(cache.list_entries())
    removed = cache.expire_old()
    remaining = cache.list_entries()

    console.print(f"Retention: {cache.retention.days} days")
    console.print(f"Removed [bold]{removed}[/bold] entries ({before} readable before cleanup)")
    for entry in remaining:
        console.print(f"  - {entry.model_id} saved {entry.saved_at.isoformat()[:19]}")


if __name__ == "__main__":
    main()
