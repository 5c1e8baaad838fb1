"""Portfolio commands for stockledger CLI.

Handles buy and sell recording, the positions table and the
profit/loss summary.
"""

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stockledger.errors import LedgerError

console = Console()


def _get_ledger(ctx: click.Context):
    """Build a ledger over the configured SQLite store."""
    from stockledger import config as cfg
    from stockledger.db.store import SqlitePositionStore
    from stockledger.ledger import PortfolioLedger
    from stockledger.log import configure_logging

    obj = ctx.ensure_object(dict)
    config = cfg.load_config(obj.get("config_path"))

    verbose = obj.get("verbose", 0)
    if verbose >= 2:
        level = "DEBUG"
    elif verbose == 1:
        level = "INFO"
    else:
        level = cfg.get_log_level(config)
    configure_logging(level)

    db_path = obj.get("db_path") or cfg.get_db_path(config)
    store = SqlitePositionStore(db_path, timeout=cfg.get_timeout(config))
    obj["config"] = config
    return PortfolioLedger(store)


def _fail(error: LedgerError) -> None:
    """Print an error panel and exit with status 1."""
    console.print(Panel(
        f"[red]{error.message}[/red]",
        title=f"[bold red]{error.kind.value}[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


def _parse_prices(ctx, param, values) -> dict[str, float]:
    """Parse repeated SYMBOL=PRICE options into a mapping."""
    prices = {}
    for value in values:
        symbol, sep, raw_price = value.partition("=")
        if not sep or not symbol.strip():
            raise click.BadParameter(f"expected SYMBOL=PRICE, got '{value}'")
        try:
            prices[symbol.strip().upper()] = float(raw_price)
        except ValueError:
            raise click.BadParameter(f"invalid price in '{value}'")
    return prices


def _format_signed(value: float, suffix: str = "", prefix: str = "$") -> str:
    color = "green" if value >= 0 else "red"
    sign = "+" if value >= 0 else "-"
    return f"[{color}]{sign}{prefix}{abs(value):,.2f}{suffix}[/{color}]"


@click.command()
@click.argument("symbol")
@click.argument("qty", type=int)
@click.option(
    "-p", "--price",
    type=float,
    required=True,
    help="Price paid per unit.",
)
@click.pass_context
def buy(ctx: click.Context, symbol: str, qty: int, price: float) -> None:
    """Record a purchase of QTY units of SYMBOL.

    Buying more of a held symbol re-weights its average cost.

    \b
    Examples:
      stockledger buy AAPL 10 --price 150
      stockledger buy aapl 5 -p 170.5
    """
    try:
        ledger = _get_ledger(ctx)
        position = ledger.buy(symbol, price, qty)
    except LedgerError as e:
        _fail(e)

    console.print(Panel(
        f"Bought [cyan]{qty}[/cyan] [bold]{position.symbol}[/bold] @ ${price:,.2f}\n\n"
        f"Holding:      [yellow]{position.quantity}[/yellow]\n"
        f"Average cost: [yellow]${position.average_cost:,.4f}[/yellow]",
        title="[bold green]Buy Recorded[/bold green]",
        border_style="green",
    ))


@click.command()
@click.argument("symbol")
@click.argument("qty", type=int)
@click.pass_context
def sell(ctx: click.Context, symbol: str, qty: int) -> None:
    """Record a sale of QTY units of SYMBOL.

    Selling the entire holding removes the position.

    \b
    Examples:
      stockledger sell AAPL 5
    """
    try:
        ledger = _get_ledger(ctx)
        position = ledger.sell(symbol, qty)
    except LedgerError as e:
        _fail(e)

    if position is None:
        body = f"Sold [cyan]{qty}[/cyan] [bold]{symbol.strip().upper()}[/bold]\n\n[dim]Position closed[/dim]"
    else:
        body = (
            f"Sold [cyan]{qty}[/cyan] [bold]{position.symbol}[/bold]\n\n"
            f"Remaining:    [yellow]{position.quantity}[/yellow]\n"
            f"Average cost: [yellow]${position.average_cost:,.4f}[/yellow]"
        )
    console.print(Panel(
        body,
        title="[bold green]Sell Recorded[/bold green]",
        border_style="green",
    ))


@click.command()
@click.pass_context
def positions(ctx: click.Context) -> None:
    """Display all held positions."""
    try:
        ledger = _get_ledger(ctx)
        held = ledger.list_positions()
    except LedgerError as e:
        _fail(e)

    if not held:
        console.print(Panel(
            "[dim]No open positions[/dim]",
            title="[bold]Positions[/bold]",
            border_style="dim",
        ))
        return

    table = Table(
        title="Positions",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Symbol", style="bold")
    table.add_column("Qty", justify="right")
    table.add_column("Avg Cost", justify="right")
    table.add_column("Invested", justify="right")

    for position in sorted(held, key=lambda p: p.symbol):
        table.add_row(
            position.symbol,
            str(position.quantity),
            f"${position.average_cost:,.2f}",
            f"${position.quantity * position.average_cost:,.2f}",
        )

    console.print(table)


@click.command()
@click.option(
    "-p", "--price", "prices",
    multiple=True,
    callback=_parse_prices,
    help="Current price as SYMBOL=PRICE. Repeatable; overrides [prices] in config.",
)
@click.pass_context
def summary(ctx: click.Context, prices: dict[str, float]) -> None:
    """Display profit/loss for every position.

    Prices come from the [prices] table of the config file and
    from --price options. Symbols without a price are shown at
    their average cost (0% change).

    \b
    Examples:
      stockledger summary
      stockledger summary -p AAPL=172.3 -p MSFT=410
    """
    from stockledger.config import get_prices

    try:
        ledger = _get_ledger(ctx)
        current_prices = get_prices(ctx.obj.get("config", {}))
        current_prices.update(prices)
        report = ledger.report(current_prices)
    except LedgerError as e:
        _fail(e)

    if not report.summaries:
        console.print(Panel(
            "[dim]No open positions[/dim]",
            title="[bold]Portfolio Summary[/bold]",
            border_style="dim",
        ))
        return

    table = Table(
        title="Portfolio Summary",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Symbol", style="bold")
    table.add_column("Qty", justify="right")
    table.add_column("Avg Cost", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("P&L %", justify="right")

    for item in sorted(report.summaries, key=lambda s: s.symbol):
        priced = item.symbol in current_prices
        table.add_row(
            item.symbol,
            str(item.quantity),
            f"${item.average_cost:,.2f}",
            f"${item.current_price:,.2f}" if priced else f"[dim]${item.current_price:,.2f}*[/dim]",
            f"${item.current_value:,.2f}",
            _format_signed(item.absolute_gain_loss),
            _format_signed(item.percent_gain_loss, suffix="%", prefix=""),
        )

    console.print(table)
    if any(s.symbol not in current_prices for s in report.summaries):
        console.print("[dim]* no price supplied, valued at average cost[/dim]")

    console.print(f"\n[bold]Invested:[/bold] ${report.total_invested:,.2f}")
    console.print(f"[bold]Value:[/bold]    ${report.current_value:,.2f}")
    console.print(
        f"[bold]P&L:[/bold]      {_format_signed(report.absolute_gain_loss)} "
        f"({_format_signed(report.weighted_percent_gain_loss, suffix='%', prefix='')})"
    )
