import click

from orderlife.infrastructure.cli.order_commands import (
    order_advance,
    order_amend,
    order_attempt,
    order_place,
    order_show,
    order_timeline,
    order_track,
    order_transition,
)
from orderlife.infrastructure.cli.product_commands import product_list
from orderlife.infrastructure.config import settings
from orderlife.infrastructure.logging_config import configure_logging


@click.group()
def cli() -> None:
    """orderlife: order lifecycle engine"""
    configure_logging(settings.log_level)


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def product() -> None:
    """Browse the catalog."""


# Register subcommands
order.add_command(order_advance)
order.add_command(order_amend)
order.add_command(order_attempt)
order.add_command(order_place)
order.add_command(order_show)
order.add_command(order_timeline)
order.add_command(order_track)
order.add_command(order_transition)
product.add_command(product_list)
