"""Balance netting: reduce an expense history into one balance per counterparty."""

from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal

from .calculator import round2
from .models import Balance, BalanceDirection, Expense
from .validator import TOLERANCE

# Net amounts at or below this are treated as settled.
NOISE_FLOOR = TOLERANCE


def accumulate(viewer: str, expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """
    Sum the viewer's signed obligations per counterparty, in full precision.

    Positive values mean the counterparty owes the viewer.

    For each expense the viewer is involved in:
    - viewer paid: every other participant owes the viewer their split
    - someone else paid: the viewer owes the payer the viewer's own split

    The viewer's own split on an expense they paid nets to zero and is skipped.
    Decimal addition is exact, so the result does not depend on input order.

    Args:
        viewer: Participant whose balances are being computed
        expenses: Expense history (settlements included)

    Returns:
        Mapping of counterparty to signed net amount, unrounded
    """
    totals: dict[str, Decimal] = defaultdict(Decimal)

    for expense in expenses:
        if not expense.involves(viewer):
            continue

        viewer_paid = expense.payer == viewer
        for split in expense.splits:
            if split.participant == viewer:
                if not viewer_paid:
                    totals[expense.payer] -= split.amount
            elif viewer_paid:
                totals[split.participant] += split.amount

    return dict(totals)


def to_balance(counterparty: str, net: Decimal) -> Balance:
    """Present a signed net amount as a directional balance, rounded to cents."""
    if net > 0:
        return Balance(
            counterparty=counterparty,
            amount=round2(net),
            direction=BalanceDirection.OWES_YOU,
        )
    return Balance(
        counterparty=counterparty,
        amount=round2(-net),
        direction=BalanceDirection.YOU_OWE,
    )


def net_balances(viewer: str, expenses: Iterable[Expense]) -> dict[str, Balance]:
    """
    Compute the viewer's net balance with every counterparty.

    Entries whose net is within NOISE_FLOOR of zero are dropped. Rounding
    happens only here, after accumulation.

    Args:
        viewer: Participant whose balances are being computed
        expenses: Expense history (settlements included)

    Returns:
        Mapping of counterparty to Balance, ordered by counterparty id
    """
    totals = accumulate(viewer, expenses)
    return {
        counterparty: to_balance(counterparty, net)
        for counterparty, net in sorted(totals.items())
        if abs(net) > NOISE_FLOOR
    }


def balance_with(
    viewer: str, counterparty: str, expenses: Iterable[Expense]
) -> Balance | None:
    """Net balance between the viewer and one counterparty, None if settled."""
    return net_balances(viewer, expenses).get(counterparty)
