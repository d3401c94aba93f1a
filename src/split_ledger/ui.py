"""Interactive UI components for recording settlements."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .models import Balance, BalanceDirection

logger = logging.getLogger(__name__)


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="vnm" matches "venmo"
        query="pp" matches "paypal"
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


class PaymentMethodCompleter(Completer):
    """Fuzzy search completer for payment methods."""

    def __init__(self, methods: list[str]):
        """Initialize the completer with known payment methods."""
        self.methods = methods

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for method in self.methods:
            if not query or fuzzy_match(query, method.lower()):
                yield Completion(
                    text=method,
                    start_position=-len(document.text),
                    display=method,
                )


def select_payment_method(methods: list[str], default: str = "") -> str | None:
    """
    Interactive payment method selection with fuzzy search.

    Any non-empty text is accepted, so methods outside the list still work.

    Args:
        methods: Suggested payment methods
        default: Pre-filled text

    Returns:
        The chosen method, or None to cancel
    """
    print("\n💸 Payment method")
    print("   Type to search, press Enter to confirm, Ctrl+C to cancel\n")

    session: PromptSession[str] = PromptSession(
        completer=PaymentMethodCompleter(methods)
    )

    try:
        result = session.prompt(
            "Method: ", default=default, complete_while_typing=True
        ).strip()
    except KeyboardInterrupt:
        print("\n⏭️  Cancelled")
        return None
    except EOFError:
        return None

    if not result:
        return None

    # Normalize case for known methods
    for method in methods:
        if method.lower() == result.lower():
            result = method
            break

    logger.info(f"User selected payment method: {result}")
    return result


def confirm_settlement(balance: Balance, amount: str, method: str) -> bool:
    """
    Simple yes/no confirmation before recording a settlement.

    Args:
        balance: Current balance with the counterparty
        amount: Formatted amount being paid
        method: Payment method

    Returns:
        True if confirmed, False otherwise
    """
    if balance.direction is BalanceDirection.YOU_OWE:
        print(f"\n💸 You pay {balance.counterparty} {amount} via {method}")
    else:
        print(f"\n💸 {balance.counterparty} pays you {amount} via {method}")
    print(f"   Outstanding: ${balance.amount:,.2f}")

    response = input("   Confirm? [Y/n] ").strip().lower()

    return response in ("", "y", "yes")
