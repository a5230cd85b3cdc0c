# cli.py - interactive cashier terminal
import sys
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Dict, Any, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from kasir import config
from sdk.posclient import PosClient
import requests

console = Console()
c = PosClient(base_url=config.API_URL)

# one cart per terminal run
session_id = uuid.uuid4().hex[:12]
status_message = "Ready"
product_cache: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


def money(value: Any) -> str:
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return str(value)
    # thousands separated with dots, no fraction digits
    whole = f"{amount:,.0f}".replace(",", ".")
    return f"{config.CURRENCY_SYMBOL} {whole}"


def _error_text(e: requests.RequestException) -> str:
    resp = getattr(e, "response", None)
    if resp is None:
        return str(e)
    try:
        detail = resp.json().get("detail")
    except ValueError:
        return f"HTTP {resp.status_code}: {resp.text}"
    if isinstance(detail, dict):
        return detail.get("message", str(detail))
    return str(detail)


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: List[Dict[str, Any]]):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title="📦 Products",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", justify="right", width=6)
    table.add_column("Name", style="bold", width=28)
    table.add_column("Price", justify="right", width=14)
    table.add_column("Stock", justify="right", width=8)

    for p in products:
        stock = p.get("stock_quantity", 0)
        stock_style = "red" if stock <= 5 else "green"
        table.add_row(
            str(p.get("id", "N/A")),
            p.get("name", "N/A"),
            money(p.get("unit_price", 0)),
            f"[{stock_style}]{stock}[/{stock_style}]",
        )
    console.print(table)


def show_cart(cart: Dict[str, Any]):
    if not cart:
        console.print("[italic yellow]No cart data[/italic yellow]")
        return

    title = Text()
    title.append("🛒 Cart - ", style="bold")
    title.append(cart.get("session_id", "?"), style="bold cyan")
    title.append(f" - Total: {money(cart.get('total', 0))}", style="bold green")

    lines = cart.get("lines", [])
    if not lines:
        console.print(Panel("Cart is empty 🛍️", title=title, style="blue"))
        return

    table = Table(box=box.ROUNDED, header_style="bold blue", show_lines=True)
    table.add_column("#", justify="right", width=4)
    table.add_column("Product", style="bold", width=28)
    table.add_column("Qty", justify="right", width=6)
    table.add_column("Price", justify="right", width=14)
    table.add_column("Subtotal", justify="right", width=14)

    for line in lines:
        table.add_row(
            str(line.get("index")),
            line.get("product_name", "Unknown"),
            str(line.get("quantity", 0)),
            money(line.get("unit_price", 0)),
            money(line.get("subtotal", 0)),
        )

    console.print(Panel(table, title=title, border_style="blue"))


def show_sales(sales: List[Dict[str, Any]]):
    if not sales:
        console.print("[italic yellow]No sales recorded yet[/italic yellow]")
        return

    table = Table(
        title="📋 Sales",
        box=box.ROUNDED,
        header_style="bold yellow",
        title_style="bold yellow",
        show_lines=True
    )
    table.add_column("Sale", justify="right", width=6)
    table.add_column("Time", width=20)
    table.add_column("Total", justify="right", width=14)
    table.add_column("Received", justify="right", width=14)
    table.add_column("Change", justify="right", width=14)

    for sale in sales:
        stamp = sale.get("timestamp", "")
        try:
            stamp = datetime.fromisoformat(stamp).astimezone().strftime("%Y-%m-%d %H:%M:%S")
        except (TypeError, ValueError):
            pass
        table.add_row(
            str(sale.get("id")),
            stamp,
            money(sale.get("total_amount", 0)),
            money(sale.get("amount_received", 0)),
            money(sale.get("change_amount", 0)),
        )
    console.print(table)


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# API wrapper
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner.
    Returns the result, or None after printing the API's error message.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)
    except requests.RequestException as e:
        status_message = f"Error: {_error_text(e)}"
        console.print(show_status(status_message, False))
        return None

    if success_msg:
        status_message = success_msg
        console.print(show_status(success_msg, True))
    return result


def get_product_completer():
    global product_cache
    if not product_cache:
        product_cache = try_api(c.list_products, True) or []
    return WordCompleter([str(p["id"]) for p in product_cache] + [p["name"] for p in product_cache], ignore_case=True)


def resolve_product_id(raw: str) -> Optional[int]:
    raw = raw.strip()
    if raw.isdigit():
        return int(raw)
    for p in product_cache:
        if p["name"].lower() == raw.lower():
            return p["id"]
    return None


# ---------------------------
# Layout and input
# ---------------------------
def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        f"🧾 Kasir  [dim]session {session_id}[/dim]",
        "[bold blue]Point of Sale[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_amount(message: str, default: str = "0") -> str:
    while True:
        raw = Prompt.ask(message, default=default)
        try:
            Decimal(raw)
            return raw
        except InvalidOperation:
            console.print("[red]Please enter a valid number.[/red]")


def do_checkout():
    cart = try_api(c.view_cart, session_id)
    if not cart:
        return
    show_cart(cart)
    amount = ask_amount("💵 Amount received", default=str(cart.get("total", "0")))
    resp = try_api(c.checkout, session_id, amount)
    if resp is None:
        return
    body = resp.json()
    if resp.status_code == 200:
        console.print(Panel.fit(
            f"[green]Sale recorded![/green]\n"
            f"Sale ID: [bold]{body['id']}[/bold]\n"
            f"Total: [bold]{money(body['total_amount'])}[/bold]\n"
            f"Received: {money(body['amount_received'])}\n"
            f"Change: [bold green]{money(body['change_amount'])}[/bold green]",
            title="✅ Checkout"
        ))
    else:
        detail = body.get("detail", body)
        message = detail.get("message", detail) if isinstance(detail, dict) else detail
        console.print(Panel.fit(f"[red]Checkout failed:[/red] {message}", title="❌ Checkout"))


# ---------------------------
# Main menu
# ---------------------------
def menu():
    global status_message, product_cache

    console.clear()
    console.print(create_header())

    product_cache = try_api(c.list_products, True) or []

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 List products", "5", "🛒 View cart"),
            ("2", "🔍 Search products", "6", "✅ Checkout"),
            ("3", "➕ Add to cart", "7", "📋 Sales history"),
            ("4", "➖ Remove cart line", "8", "🆕 Register product"),
            ("", "", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)

        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 9)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            products = try_api(c.list_products, success_msg="Products loaded")
            if products is not None:
                product_cache = [p for p in products if p.get("stock_quantity", 0) > 0]
                show_products(products)

        elif choice == "2":
            term = prompt_with_autocomplete("Search term")
            if term.strip():
                res = try_api(c.search_products, term, success_msg=f"Search for '{term}' completed")
            else:
                res = try_api(c.list_products, True)
            if res is not None:
                show_products(res)

        elif choice == "3":
            raw = prompt_with_autocomplete("Product (ID or name)", completer=get_product_completer())
            pid = resolve_product_id(raw)
            if pid is None:
                console.print(show_status(f"Unknown product '{raw}'", False))
                continue
            qty = Prompt.ask("Quantity", default="1")
            cart = try_api(c.add_to_cart, session_id, pid, qty, success_msg="Cart updated")
            if cart:
                show_cart(cart)

        elif choice == "4":
            cart = try_api(c.view_cart, session_id)
            if cart:
                show_cart(cart)
            if cart and cart.get("lines"):
                index = IntPrompt.ask("Line # to remove", default=0)
                cart = try_api(c.remove_from_cart, session_id, index, success_msg=f"Line {index} removed")
                if cart:
                    show_cart(cart)

        elif choice == "5":
            cart = try_api(c.view_cart, session_id)
            if cart:
                show_cart(cart)

        elif choice == "6":
            do_checkout()
            product_cache = []

        elif choice == "7":
            sales = try_api(c.list_sales, success_msg="Sales loaded")
            if sales is not None:
                show_sales(sales)

        elif choice == "8":
            name = prompt_with_autocomplete("Product name")
            price = ask_amount("💰 Unit price", default="0")
            stock = IntPrompt.ask("📦 Stock", default=1)
            resp = try_api(
                c.register_product, name, price, stock,
                success_msg=f"Product '{name}' registered"
            )
            if resp:
                product_cache = []

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                try_api(c.end_session, session_id)
                console.print(Panel.fit("[bold green]Terima kasih! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


if __name__ == "__main__":
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
