"""CLI interface for nomilog.

Usage:
    nomilog categories list
    nomilog beverages add "Pale Ale" --category 1 --abv 5.5
    nomilog posts add --date 2024-01-05 --drink 1:500 --drink 3:60
    nomilog intake --year 2024 --month 1
    nomilog status
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from datetime import date
from typing import Iterator, List, Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from nomilog.app.config import AppConfig, DEFAULT_CONFIG_PATH, load_config
from nomilog.catalog import CatalogManager
from nomilog.intake import IntakeAggregator
from nomilog.posts import PostManager
from nomilog.storage import BeverageAmountInput, DatabaseManager, NomiLogError

console = Console()


@contextmanager
def _open_db(ctx: click.Context) -> Iterator[DatabaseManager]:
    """Open the configured database; report domain errors and exit 1."""
    config: AppConfig = ctx.obj["config"]
    db = DatabaseManager(config.db_path)
    try:
        db.initialize()
        yield db
    except NomiLogError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    finally:
        db.close()


def _parse_drinks(ctx, param, values: Tuple[str, ...]) -> List[BeverageAmountInput]:
    drinks = []
    for value in values:
        beverage_id, sep, amount = value.partition(":")
        try:
            if not sep:
                raise ValueError
            drinks.append(BeverageAmountInput(int(beverage_id), float(amount)))
        except ValueError:
            raise click.BadParameter(f"expected BEVERAGE_ID:AMOUNT, got {value!r}") from None
    return drinks


def _fmt_abv(value: Optional[float]) -> str:
    return f"{value:g}%" if value is not None else "-"


@click.group()
@click.option("--config", "config_path", default=DEFAULT_CONFIG_PATH, help="Config file path")
@click.option("--db", "db_path", default=None, help="Database path (overrides config)")
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level")
@click.pass_context
def cli(ctx, config_path: str, db_path: Optional[str], verbose: bool):
    """nomilog - drink log and monthly alcohol intake."""
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except NomiLogError as exc:
        raise click.ClickException(str(exc)) from exc
    if db_path:
        config.db_path = db_path
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level_value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj["config"] = config


# --- Database ---


@cli.command()
@click.pass_context
def status(ctx):
    """Show database status."""
    with _open_db(ctx) as db:
        stats = db.get_stats()
        console.print("\n[bold]Database Status[/bold]")
        console.print(f"  Path: {db.db_path}")
        console.print(f"  Size: {stats['db_size_bytes'] / 1024:.1f} KB")
        console.print(f"  Schema: v{stats['schema_version']}")
        console.print(f"  Categories: {stats['total_categories']}")
        console.print(f"  Beverages: {stats['total_beverages']}")
        console.print(f"  Posts: {stats['total_posts']}")
        console.print(f"  Post beverages: {stats['total_post_beverages']}")
        ok = db.integrity_check()
        console.print(f"  Integrity: {'[green]ok' if ok else '[red]FAILED'}")


@cli.command()
@click.pass_context
def vacuum(ctx):
    """Vacuum the database."""
    with _open_db(ctx) as db:
        with console.status("[bold green]Vacuuming database..."):
            db.vacuum()
        console.print("[green]Database vacuumed successfully")
        console.print(f"Database size: {db.get_stats()['db_size_bytes'] / 1024:.1f} KB")


# --- Categories ---


@cli.group()
def categories():
    """Manage beverage categories."""


@categories.command("list")
@click.pass_context
def categories_list(ctx):
    with _open_db(ctx) as db:
        rows = CatalogManager(db).list_categories()
        table = Table(title="Categories")
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Name")
        table.add_column("Order", justify="right")
        for c in rows:
            table.add_row(str(c.id), c.name, str(c.display_order))
        console.print(table)


@categories.command("add")
@click.argument("name")
@click.option("--order", "display_order", type=int, default=0, help="Display order")
@click.pass_context
def categories_add(ctx, name: str, display_order: int):
    with _open_db(ctx) as db:
        category_id = CatalogManager(db).create_category(name, display_order)
        console.print(f"[green]Created category {category_id}[/green]")


@categories.command("delete")
@click.argument("category_id", type=int)
@click.pass_context
def categories_delete(ctx, category_id: int):
    with _open_db(ctx) as db:
        CatalogManager(db).delete_category(category_id)
        console.print(f"[green]Deleted category {category_id}[/green]")


# --- Beverages ---


@cli.group()
def beverages():
    """Manage beverages."""


@beverages.command("list")
@click.option("--category", "category_id", type=int, help="Only this category")
@click.pass_context
def beverages_list(ctx, category_id: Optional[int]):
    with _open_db(ctx) as db:
        catalog = CatalogManager(db)
        rows = (
            catalog.list_beverages_by_category(category_id)
            if category_id is not None
            else catalog.list_beverages()
        )
        table = Table(title="Beverages")
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Name")
        table.add_column("ABV", justify="right")
        table.add_column("Category")
        for b in rows:
            table.add_row(str(b.id), b.name, _fmt_abv(b.alcohol_content), b.category_name or "")
        console.print(table)


@beverages.command("add")
@click.argument("name")
@click.option("--category", "category_id", type=int, required=True, help="Category ID")
@click.option("--abv", type=float, default=None, help="Alcohol content in percent")
@click.pass_context
def beverages_add(ctx, name: str, category_id: int, abv: Optional[float]):
    with _open_db(ctx) as db:
        beverage_id = CatalogManager(db).create_beverage(name, abv, category_id)
        console.print(f"[green]Created beverage {beverage_id}[/green]")


@beverages.command("update")
@click.argument("beverage_id", type=int)
@click.option("--name", default=None, help="New name")
@click.option("--category", "category_id", type=int, default=None, help="New category ID")
@click.option("--abv", type=float, default=None, help="New alcohol content in percent")
@click.option("--no-abv", is_flag=True, help="Mark alcohol content as unknown")
@click.pass_context
def beverages_update(
    ctx,
    beverage_id: int,
    name: Optional[str],
    category_id: Optional[int],
    abv: Optional[float],
    no_abv: bool,
):
    with _open_db(ctx) as db:
        catalog = CatalogManager(db)
        current = catalog.get_beverage(beverage_id)
        alcohol_content = None if no_abv else (abv if abv is not None else current.alcohol_content)
        catalog.update_beverage(
            beverage_id,
            name if name is not None else current.name,
            alcohol_content,
            category_id if category_id is not None else current.category_id,
        )
        console.print(f"[green]Updated beverage {beverage_id}[/green]")


@beverages.command("delete")
@click.argument("beverage_id", type=int)
@click.pass_context
def beverages_delete(ctx, beverage_id: int):
    with _open_db(ctx) as db:
        CatalogManager(db).delete_beverage(beverage_id)
        console.print(f"[green]Deleted beverage {beverage_id}[/green]")


# --- Posts ---


@cli.group()
def posts():
    """Record what you drank."""


@posts.command("list")
@click.option("--limit", "-n", default=20, help="Max posts")
@click.pass_context
def posts_list(ctx, limit: int):
    with _open_db(ctx) as db:
        rows = PostManager(db).list_posts()[:limit]
        if not rows:
            console.print("[yellow]No posts yet.[/yellow]")
            return

        table = Table(title="Posts")
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Date", width=12)
        table.add_column("Beverages")
        table.add_column("Alcohol", justify="right")
        table.add_column("Comment", max_width=40)
        for p in rows:
            drinks = ", ".join(f"{b.beverage_name} {b.amount:g}ml" for b in p.beverages)
            table.add_row(
                str(p.id),
                p.date.isoformat(),
                drinks,
                f"{p.intake:.1f} ml",
                p.comment or "",
            )
        console.print(table)


@posts.command("add")
@click.option("--date", "post_date", default=None, help="Day YYYY-MM-DD (default: today)")
@click.option("--comment", default=None, help="Free text")
@click.option(
    "--drink", "drinks", multiple=True, callback=_parse_drinks,
    help="BEVERAGE_ID:AMOUNT_ML, repeatable",
)
@click.pass_context
def posts_add(ctx, post_date: Optional[str], comment: Optional[str], drinks):
    with _open_db(ctx) as db:
        post_id = PostManager(db).create_post(
            post_date or date.today().isoformat(), comment, drinks
        )
        console.print(f"[green]Created post {post_id}[/green]")


@posts.command("edit")
@click.argument("post_id", type=int)
@click.option("--date", "post_date", default=None, help="New day YYYY-MM-DD")
@click.option("--comment", default=None, help="New comment")
@click.option(
    "--drink", "drinks", multiple=True, callback=_parse_drinks,
    help="BEVERAGE_ID:AMOUNT_ML, repeatable; replaces all beverages",
)
@click.option("--clear-drinks", is_flag=True, help="Remove every beverage from the post")
@click.pass_context
def posts_edit(
    ctx,
    post_id: int,
    post_date: Optional[str],
    comment: Optional[str],
    drinks,
    clear_drinks: bool,
):
    with _open_db(ctx) as db:
        manager = PostManager(db)
        current = manager.get_post(post_id)
        if clear_drinks:
            new_drinks = []
        elif drinks:
            new_drinks = drinks
        else:
            new_drinks = [BeverageAmountInput(b.beverage_id, b.amount) for b in current.beverages]
        manager.update_post(
            post_id,
            post_date or current.date,
            comment if comment is not None else current.comment,
            new_drinks,
        )
        console.print(f"[green]Updated post {post_id}[/green]")


@posts.command("delete")
@click.argument("post_id", type=int)
@click.pass_context
def posts_delete(ctx, post_id: int):
    with _open_db(ctx) as db:
        PostManager(db).delete_post(post_id)
        console.print(f"[green]Deleted post {post_id}[/green]")


# --- Intake ---


@cli.command()
@click.option("--year", type=int, default=None, help="Year (default: current)")
@click.option("--month", type=click.IntRange(1, 12), default=None, help="Month (default: current)")
@click.pass_context
def intake(ctx, year: Optional[int], month: Optional[int]):
    """Show monthly alcohol intake."""
    today = date.today()
    if year is None:
        year = today.year
    if month is None:
        month = today.month
    guideline = ctx.obj["config"].daily_guideline_ml

    with _open_db(ctx) as db:
        stats = IntakeAggregator(db).monthly_intake(year, month)

    console.print(f"\n[bold]Alcohol intake {year:04d}-{month:02d}[/bold]")
    console.print(f"  Total: {stats.total_intake:.1f} ml")
    console.print(f"  Average per day: {stats.average_per_day:.1f} ml ({stats.days_in_month} days)")
    console.print(f"  Drinking days: {stats.drinking_days}")

    percent = stats.gauge_percent(guideline)
    filled = int(round(percent / 5))
    color = "red" if percent >= 100 else "green"
    console.print(
        f"  Gauge: [{color}]{'#' * filled}[/{color}]{'.' * (20 - filled)} "
        f"{percent:.0f}% of {guideline:g} ml/day"
    )


def main():
    cli()


if __name__ == "__main__":
    main()
