# cli.py
"""Operator console for the pharmacy billing counter."""
import argparse
import logging
import sys
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.logging import RichHandler
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from pharmacy.config import Settings
from pharmacy.core import Invoice, Product, format_currency, format_unit_amount
from pharmacy.results import Outcome
from pharmacy.service import PharmacyService
from sheetdb.client import SheetDBClient

console = Console()

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def build_service(settings: Settings) -> PharmacyService:
    client = SheetDBClient(settings.sheetdb_url, api_key=settings.api_key, timeout=settings.timeout)
    return PharmacyService(client, settings)


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: Iterable[Product], symbol: str):
    products = list(products)
    if not products:
        console.print("[italic yellow]No products in inventory[/italic yellow]")
        return

    table = Table(
        title="💊 Inventory",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=14)
    table.add_column("Name", style="bold", width=20)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Disc %", justify="right", width=8)
    table.add_column("Stock", justify="right", width=6)

    for p in products:
        stock_style = "red" if p.stock == 0 else "white"
        table.add_row(
            str(p.id),
            p.name,
            format_currency(p.price, symbol),
            str(p.discount),
            f"[{stock_style}]{p.stock}[/{stock_style}]"
        )
    console.print(table)


def invoice_panel(invoice: Invoice, symbol: str) -> Panel:
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Product", invoice.product.name)
    table.add_row("Quantity", str(invoice.quantity))
    table.add_row("Unit Price", format_currency(invoice.unit_price, symbol))
    table.add_row("Discount per unit", format_unit_amount(invoice.discount_per_unit, symbol))
    table.add_row("Total Discount", format_currency(invoice.discount_amount, symbol))
    table.add_row("[bold]Total Amount[/bold]", f"[bold green]{format_currency(invoice.total, symbol)}[/bold green]")
    return Panel(table, title="🧾 Invoice", subtitle=invoice.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                 border_style="green")


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


def report(outcome: Outcome, success_msg: Optional[str] = None) -> Outcome:
    """Print the outcome of an operation in a status panel."""
    if outcome.ok:
        msg = outcome.message or success_msg
        if msg:
            console.print(show_status(msg, True))
    else:
        console.print(show_status(outcome.message or str(outcome.error), False))
    return outcome


def with_spinner(fn: Callable[..., Outcome], *args, **kwargs) -> Outcome:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
    ) as progress:
        progress.add_task(description="Talking to store...", total=None)
        return fn(*args, **kwargs)


# ---------------------------
# Input helpers with autocomplete
# ---------------------------
def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def product_completer(service: PharmacyService) -> WordCompleter:
    words = [str(p.id) for p in service.products] + [p.name for p in service.products]
    return WordCompleter(words, ignore_case=True)


def resolve_product(service: PharmacyService, raw: str) -> Optional[Product]:
    raw = raw.strip()
    if raw.isdigit():
        found = service.get_product(int(raw))
        if found:
            return found
    matches = [p for p in service.products if p.name.lower() == raw.lower()]
    return matches[0] if matches else None


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "💊 Pharmacy Billing",
        "[bold blue]Inventory & Point of Sale[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Main menu
# ---------------------------
def menu(service: PharmacyService):
    symbol = service.settings.currency_symbol
    console.clear()
    console.print(create_header())

    report(with_spinner(service.reload), "Inventory loaded")

    while True:
        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        options = [
            ("1", "📦 Show inventory", "5", "💰 Sell product"),
            ("2", "🔄 Reload from store", "6", "🧾 Show last invoice"),
            ("3", "➕ Add product", "7", "🖨️ Print last invoice"),
            ("4", "➖ Remove product", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 8)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            show_products(service.products, symbol)

        elif choice == "2":
            if report(with_spinner(service.reload), "Inventory reloaded").ok:
                show_products(service.products, symbol)

        elif choice == "3":
            name = prompt_with_autocomplete("Name")
            price = Prompt.ask("Price")
            discount = Prompt.ask("Discount (%)", default="0")
            stock = Prompt.ask("Stock quantity")
            if report(with_spinner(service.create_product, name, price, discount, stock)).ok:
                show_products(service.products, symbol)

        elif choice == "4":
            raw = prompt_with_autocomplete("Product to remove (id or name)", completer=product_completer(service))
            product = resolve_product(service, raw)
            if product is None:
                console.print(show_status(f"No product matches '{raw}'", False))
                continue
            if Confirm.ask(f"Remove [bold]{product.name}[/bold] from the store?"):
                if report(with_spinner(service.delete_product, product.id)).ok:
                    show_products(service.products, symbol)

        elif choice == "5":
            raw = prompt_with_autocomplete("Product to sell (id or name)", completer=product_completer(service))
            product = resolve_product(service, raw)
            if product is None:
                console.print(show_status(f"No product matches '{raw}'", False))
                continue
            qty = IntPrompt.ask(f"Quantity (in stock: {product.stock})", default=1)
            outcome = report(service.sell(product.id, qty))
            if outcome.ok:
                console.print(invoice_panel(outcome.value, symbol))

        elif choice == "6":
            if service.last_invoice is None:
                console.print("[italic yellow]No sale yet[/italic yellow]")
            else:
                console.print(invoice_panel(service.last_invoice, symbol))

        elif choice == "7":
            outcome = report(service.print_last_invoice())
            if not outcome.ok and service.last_invoice is not None:
                console.print(service.render_last_invoice())

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Goodbye 👋[/bold green]", title="Pharmacy Billing"))
                return

        console.print()
        console.rule(style="dim")


# ---------------------------
# Non-interactive commands
# ---------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pharmacy billing console")
    parser.add_argument("--url", help="Store endpoint (overrides SHEETDB_URL)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("menu", help="Interactive console (default)")
    subparsers.add_parser("list", help="List the inventory")

    add = subparsers.add_parser("add", help="Add a product")
    add.add_argument("--name", required=True, help="Product name")
    add.add_argument("--price", required=True, help="Unit price")
    add.add_argument("--discount", default="0", help="Discount percentage")
    add.add_argument("--stock", required=True, help="Units in stock")

    rm = subparsers.add_parser("remove", help="Remove a product")
    rm.add_argument("--product-id", type=int, required=True, help="ID of the product")

    sell = subparsers.add_parser("sell", help="Sell a product and print the receipt text")
    sell.add_argument("--product-id", type=int, required=True, help="ID of the product")
    sell.add_argument("--qty", type=int, default=1, help="Quantity sold")

    serve = subparsers.add_parser("serve", help="Run the in-memory stand-in store")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8085)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    if args.command == "serve":
        from pharmacy.main import run
        run(args.host, args.port)
        return 0

    if args.url:
        settings = replace(settings, sheetdb_url=args.url)
    if args.command == "sell":
        # each run starts from a fresh reload, so the sale must reach the store
        settings = replace(settings, push_stock=True)
    service = build_service(settings)
    symbol = settings.currency_symbol

    if args.command in (None, "menu"):
        menu(service)
        return 0

    if args.command == "add":
        return 0 if report(service.create_product(args.name, args.price, args.discount, args.stock)).ok else 1

    if args.command == "remove":
        return 0 if report(service.delete_product(args.product_id)).ok else 1

    loaded = report(service.reload())
    if not loaded.ok:
        return 1

    if args.command == "list":
        show_products(service.products, symbol)
    elif args.command == "sell":
        outcome = report(service.sell(args.product_id, args.qty))
        if not outcome.ok:
            return 1
        console.print(service.render_last_invoice())
        if outcome.message:
            return 1
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
