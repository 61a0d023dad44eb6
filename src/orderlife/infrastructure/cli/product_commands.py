"""CLI commands for browsing the product catalog."""

from __future__ import annotations

import click

from orderlife.infrastructure.bootstrap import product_repository


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    repo = product_repository()
    products = repo.list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Price':>14}")
    click.echo("-" * 42)
    for p in products:
        click.echo(f"{p.id:<6} {p.name:<20} {str(p.price):>14}")
