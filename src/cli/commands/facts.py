"""Learned fact commands: status, list, delete."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components

console = Console()


@click.group()
def facts():
    """Facts learned about a user from chat."""
    pass


@facts.command("status")
@click.argument("user_id")
@click.pass_obj
def facts_status(obj: dict, user_id: str):
    """Show active fact counts by category."""
    store = get_components(skip_llm=True, config=obj["config"])["fact_store"]
    stats = store.get_stats(user_id)

    console.print(f"Active facts: {stats['total_active']}")
    if stats["by_category"]:
        console.print("\nBy category:")
        for cat, cnt in sorted(stats["by_category"].items()):
            console.print(f"  {cat}: {cnt}")


@facts.command("list")
@click.argument("user_id")
@click.pass_obj
def facts_list(obj: dict, user_id: str):
    """List a user's active facts."""
    store = get_components(skip_llm=True, config=obj["config"])["fact_store"]
    items = store.find_active(user_id)
    if not items:
        console.print("No facts stored.")
        return

    table = Table(title=f"Facts for {user_id}")
    table.add_column("ID", style="dim", width=8)
    table.add_column("Category", width=12)
    table.add_column("Fact")
    table.add_column("Learned", width=10)
    for f in items:
        table.add_row(f.id[:8], f.category or "-", f.text[:80], f.extracted_at.strftime("%Y-%m-%d"))
    console.print(table)


@facts.command("delete")
@click.argument("user_id")
@click.argument("fact_id")
@click.pass_obj
def facts_delete(obj: dict, user_id: str, fact_id: str):
    """Soft-delete a fact."""
    store = get_components(skip_llm=True, config=obj["config"])["fact_store"]
    if store.soft_delete(user_id, fact_id):
        console.print(f"[green]Deleted[/] {fact_id}")
    else:
        console.print(f"[red]Fact not found:[/] {fact_id}")
        raise SystemExit(1)
