"""Wallet Settlement Calculator"""


def settle(requested: float, balance: float, payable_remainder: float) -> float:
    """
    Amount of wallet balance to apply to an order.

    The smallest of what the user asked for, what the wallet holds and what
    is left to pay; never negative. Does not touch the balance.
    """
    wallet_used = min(requested or 0.0, balance or 0.0, payable_remainder)
    return round(max(0.0, wallet_used), 2)
