"""CLI for SplitLedger using Typer."""

import logging
import sys
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

import typer
from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .db import Database
from .exceptions import LedgerRejectionError, SplitLedgerError
from .models import (
    BalanceDirection,
    Expense,
    ExpenseDraft,
    ExpenseRequest,
    SettlementOutcome,
    ShareInput,
)
from .planner import PAYMENT_METHODS
from .report import (
    ActivityKind,
    Period,
    activity_feed,
    balance_summary,
    category_breakdown,
    expense_stats,
    filter_by_period,
)
from .service import LedgerService
from .ui import confirm_settlement, select_payment_method

app = typer.Typer(
    name="split-ledger",
    help="Track shared expenses and see who owes whom",
)

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def format_money(amount: Decimal | float, use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: ($85.02)
    Positive amounts have spaces:      $85.02
    The spaces ensure decimal points align in tables.
    """
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            formatted = f"($[red]{abs_amount:,.2f}[/red])"
        else:
            formatted = f"(${abs_amount:,.2f})"
    else:
        if use_color:
            formatted = f" [green]${abs_amount:,.2f}[/green] "
        else:
            formatted = f" ${abs_amount:,.2f} "
    return formatted


def parse_amount(value: str) -> Decimal:
    """Parse a money or percentage value from the command line."""
    try:
        return Decimal(value)
    except InvalidOperation:
        raise typer.BadParameter(f"Not a number: {value!r}") from None


def parse_shares(shares: list[str], rule: str) -> list[ShareInput]:
    """
    Turn ``ID`` / ``ID=VALUE`` options into share inputs.

    VALUE is a percentage under the percentage rule, an amount under the
    unequal rule, and ignored under the equal rule.
    """
    parsed = []
    for share in shares:
        participant, _, value = share.partition("=")
        participant = participant.strip()
        if not participant:
            raise typer.BadParameter(f"Missing participant in share {share!r}")

        raw = parse_amount(value.strip()) if value.strip() else None
        if rule == "percentage":
            parsed.append(ShareInput(participant=participant, raw_percentage=raw))
        elif rule == "unequal":
            parsed.append(ShareInput(participant=participant, raw_amount=raw))
        else:
            parsed.append(ShareInput(participant=participant))
    return parsed


def resolve_viewer(as_user: str | None, settings: Settings) -> str:
    """The participant the command acts as."""
    viewer = as_user or settings.default_user
    if not viewer:
        raise typer.BadParameter(
            "No user given. Pass --as or set DEFAULT_USER in your environment."
        )
    return viewer


def display_splits(expense: Expense | ExpenseDraft, title: str):
    """Display an expense and its splits in a table."""
    console.print(f"\n[bold]{title}:[/bold]")
    console.print(f"  Description: {expense.description}")
    console.print(f"  Total: {format_money(expense.total_amount)}")
    console.print(f"  Paid by: {expense.payer}")
    console.print(f"  Split: {expense.rule}")
    console.print(f"  Category: {expense.category}")
    console.print()

    table = Table(title="Splits", show_header=True, header_style="bold magenta")
    table.add_column("Participant", style="cyan")
    table.add_column("Amount", justify="right", width=12)
    table.add_column("Percent", justify="right", style="dim", width=8)

    for split in expense.splits:
        percent = f"{split.percentage:.2f}%" if split.percentage is not None else ""
        table.add_row(split.participant, format_money(split.amount), percent)

    console.print(table)


def _handle_error(e: Exception, verbose: bool):
    """Print an error and exit."""
    if isinstance(e, LedgerRejectionError):
        console.print(f"\n[bold yellow]⚠️  {e}[/bold yellow] [dim]({e.reason})[/dim]\n")
    elif isinstance(e, SplitLedgerError | typer.BadParameter):
        console.print(f"\n[bold red]Error:[/bold red] {e}")
    else:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise e
    sys.exit(1)


@app.command()
def add(
    description: str = typer.Argument(..., help="What the expense was for"),
    amount: str = typer.Argument(..., help="Total amount"),
    payer: str = typer.Option(None, "--payer", "-p", help="Who paid (default: you)"),
    rule: str = typer.Option(
        "equal", "--rule", "-r", help="Split rule: equal, percentage or unequal"
    ),
    shares: list[str] = typer.Option(
        [], "--share", "-s", help="Participant as ID or ID=VALUE (repeatable)"
    ),
    category: str = typer.Option(None, "--category", "-c", help="Expense category"),
    as_user: str = typer.Option(None, "--as", help="Act as this participant"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Record a new shared expense.

    Splits are computed and checked first, shown for review, and checked
    again before the expense is saved.
    """
    setup_logging(verbose)

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = LedgerService(settings, db)
        viewer = resolve_viewer(as_user, settings)

        request = ExpenseRequest(
            description=description,
            total_amount=parse_amount(amount),
            payer=payer or viewer,
            rule=rule.lower(),
            participants=parse_shares(shares, rule.lower()),
            category=category,
        )

        draft = service.preview_expense(request)
        display_splits(draft, "New Expense")

        if not yes:
            confirm = input("\nSave this expense? [y/N] ").strip().lower()
            if confirm not in ("y", "yes"):
                console.print("[yellow]Cancelled.[/yellow]")
                return

        expense = service.create_expense(request, creator=viewer)
        console.print("\n[bold green]✓ Expense saved[/bold green]")
        console.print(f"[green]Expense ID: {expense.id}[/green]\n")

    except Exception as e:
        _handle_error(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def edit(
    expense_id: str = typer.Argument(..., help="Expense to replace"),
    description: str = typer.Argument(..., help="What the expense was for"),
    amount: str = typer.Argument(..., help="Total amount"),
    payer: str = typer.Option(None, "--payer", "-p", help="Who paid (default: you)"),
    rule: str = typer.Option(
        "equal", "--rule", "-r", help="Split rule: equal, percentage or unequal"
    ),
    shares: list[str] = typer.Option(
        [], "--share", "-s", help="Participant as ID or ID=VALUE (repeatable)"
    ),
    category: str = typer.Option(None, "--category", "-c", help="Expense category"),
    as_user: str = typer.Option(None, "--as", help="Act as this participant"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Replace an expense you created with a new version."""
    setup_logging(verbose)

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = LedgerService(settings, db)
        viewer = resolve_viewer(as_user, settings)

        request = ExpenseRequest(
            description=description,
            total_amount=parse_amount(amount),
            payer=payer or viewer,
            rule=rule.lower(),
            participants=parse_shares(shares, rule.lower()),
            category=category,
        )
        expense = service.update_expense(expense_id, request, editor=viewer)

        display_splits(expense, "Updated Expense")
        console.print("\n[bold green]✓ Expense updated[/bold green]\n")

    except Exception as e:
        _handle_error(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def delete(
    expense_id: str = typer.Argument(..., help="Expense to delete"),
    as_user: str = typer.Option(None, "--as", help="Act as this participant"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete an expense you created."""
    setup_logging(verbose)

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = LedgerService(settings, db)
        viewer = resolve_viewer(as_user, settings)

        service.delete_expense(expense_id, requester=viewer)
        console.print(f"[green]✓ Deleted expense {expense_id}[/green]")

    except Exception as e:
        _handle_error(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def show(
    expense_id: str = typer.Argument(..., help="Expense to show"),
    as_user: str = typer.Option(None, "--as", help="Act as this participant"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show one expense and its splits."""
    setup_logging(verbose)

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = LedgerService(settings, db)
        viewer = resolve_viewer(as_user, settings)

        expense = service.get_expense(expense_id, viewer)
        display_splits(expense, f"Expense {expense.id}")
        console.print(f"  Created by {expense.creator} on {expense.created_at:%Y-%m-%d}\n")

    except Exception as e:
        _handle_error(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def balances(
    as_user: str = typer.Option(None, "--as", help="Act as this participant"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show who owes you and whom you owe."""
    setup_logging(verbose)

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = LedgerService(settings, db)
        viewer = resolve_viewer(as_user, settings)

        summary = balance_summary(service.get_balances(viewer))

        if not summary.owed_to_you_details and not summary.you_owe_details:
            console.print("\n[green]✓ All settled up![/green]\n")
            return

        table = Table(
            title=f"Balances for {viewer}", show_header=True, header_style="bold magenta"
        )
        table.add_column("Counterparty", style="cyan")
        table.add_column("Amount", justify="right", width=14)
        table.add_column("Direction", style="dim")

        for balance in summary.owed_to_you_details + summary.you_owe_details:
            owes_you = balance.direction is BalanceDirection.OWES_YOU
            table.add_row(
                balance.counterparty,
                format_money(balance.signed_amount),
                "owes you" if owes_you else "you owe",
            )

        console.print()
        console.print(table)
        console.print(f"\n  Owed to you: {format_money(summary.owed_to_you)}")
        console.print(f"  You owe:     {format_money(-summary.you_owe)}")
        console.print(f"  Net:         {format_money(summary.net)}\n")

    except Exception as e:
        _handle_error(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def settle(
    counterparty: str = typer.Argument(..., help="Who you are settling with"),
    amount: str = typer.Argument(None, help="Amount (default: full balance)"),
    method: str = typer.Option(None, "--method", "-m", help="Payment method"),
    notes: str = typer.Option(None, "--notes", "-n", help="Optional note"),
    as_user: str = typer.Option(None, "--as", help="Act as this participant"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Record a payment that evens up a balance.

    Works in both directions: if you owe the counterparty you are the payer,
    if they owe you they are.
    """
    setup_logging(verbose)

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = LedgerService(settings, db)
        viewer = resolve_viewer(as_user, settings)

        current = next(
            (b for b in service.get_balances(viewer) if b.counterparty == counterparty),
            None,
        )
        if current is None:
            console.print(
                f"[yellow]You and {counterparty} are already settled up.[/yellow]"
            )
            return

        value = parse_amount(amount) if amount else current.amount

        if not method:
            method = (
                settings.default_payment_method
                if yes
                else select_payment_method(
                    PAYMENT_METHODS, default=settings.default_payment_method
                )
            )
            if not method:
                console.print("[yellow]No payment method selected.[/yellow]")
                return

        if not yes and not confirm_settlement(
            current, format_money(value, use_color=False).strip(), method
        ):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        receipt = service.settle_up(viewer, counterparty, value, method, notes)

        if receipt.outcome is SettlementOutcome.FULL:
            console.print(
                f"\n[bold green]🎉 All square with {counterparty}![/bold green]\n"
            )
        else:
            remaining = receipt.previous_balance.amount - value
            console.print(
                f"\n[bold green]✓ Recorded {format_money(value, use_color=False).strip()}"
                f"[/bold green] [dim](remaining: ${remaining:,.2f})[/dim]\n"
            )

    except Exception as e:
        _handle_error(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def activity(
    kind: ActivityKind = typer.Option(
        ActivityKind.ALL, "--filter", "-f", help="all, expenses or settlements"
    ),
    limit: int = typer.Option(20, "--limit", "-l", help="Maximum entries"),
    as_user: str = typer.Option(None, "--as", help="Act as this participant"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show recent expenses and settlements."""
    setup_logging(verbose)

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = LedgerService(settings, db)
        viewer = resolve_viewer(as_user, settings)

        entries = activity_feed(service.list_expenses(viewer), kind, limit)
        if not entries:
            console.print("[yellow]No activity yet.[/yellow]")
            return

        table = Table(title="Recent Activity", show_header=True, header_style="bold magenta")
        table.add_column("Date", style="dim", width=10)
        table.add_column("Description", style="cyan", width=40)
        table.add_column("Paid by")
        table.add_column("Amount", justify="right", width=12)
        table.add_column("Your share", justify="right", width=12)
        table.add_column("Type", style="yellow")

        for entry in entries:
            expense = entry.expense
            desc = expense.description
            table.add_row(
                f"{expense.created_at:%Y-%m-%d}",
                desc[:40] + "..." if len(desc) > 40 else desc,
                expense.payer,
                format_money(expense.total_amount),
                format_money(expense.get_share(viewer)),
                entry.label,
            )

        console.print()
        console.print(table)

    except Exception as e:
        _handle_error(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def stats(
    period: Period = typer.Option(
        Period.ALL, "--period", help="all, today, week, month, year or custom"
    ),
    start: datetime = typer.Option(
        None, "--from", formats=["%Y-%m-%d"], help="First day (custom period)"
    ),
    end: datetime = typer.Option(
        None, "--to", formats=["%Y-%m-%d"], help="Last day (custom period)"
    ),
    as_user: str = typer.Option(None, "--as", help="Act as this participant"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show spending statistics and your share per category."""
    setup_logging(verbose)

    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = LedgerService(settings, db)
        viewer = resolve_viewer(as_user, settings)

        expenses = service.list_expenses(viewer, include_created=False)
        start_day: date | None = start.date() if start else None
        end_day: date | None = end.date() if end else None

        summary = expense_stats(
            viewer, expenses, period=period, start=start_day, end=end_day
        )

        console.print(f"\n[bold]Expense Summary ({period.value}):[/bold]")
        console.print(f"  Total expenses:  {summary.total_count}")
        console.print(f"  Total amount:    {format_money(summary.total_amount)}")
        console.print(f"  Your share:      {format_money(summary.your_share)}")
        console.print(f"  Categories:      {summary.categories_used}")
        console.print(f"  Largest expense: {format_money(summary.largest_expense)}")

        breakdown = category_breakdown(
            viewer,
            filter_by_period(expenses, period, start=start_day, end=end_day),
        )
        if breakdown:
            table = Table(
                title="Your Share by Category", show_header=True, header_style="bold magenta"
            )
            table.add_column("Category", style="yellow")
            table.add_column("Amount", justify="right", width=12)
            for name, total in sorted(breakdown.items(), key=lambda x: -x[1]):
                table.add_row(name, format_money(total))
            console.print()
            console.print(table)
        console.print()

    except Exception as e:
        _handle_error(e, verbose)
    finally:
        if "db" in locals():
            db.close()


if __name__ == "__main__":
    app()
