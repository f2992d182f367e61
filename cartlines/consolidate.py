"""
Line consolidation rules.

A cart's lines are handled here as an insertion-ordered mapping of
product reference to quantity. Every function returns a new mapping and
leaves its inputs untouched, so callers can compute a result and commit it
in one step.
"""

from typing import Mapping

MAX_LINE_QUANTITY = 10

LineMap = dict[str, int]


def clamp_quantity(quantity: int) -> int:
    """Bound a quantity to the per-line maximum (never below zero)"""
    return max(0, min(int(quantity), MAX_LINE_QUANTITY))


def add_quantity(lines: Mapping[str, int], product_ref: str, quantity: int) -> LineMap:
    """
    Add ``quantity`` of ``product_ref``.

    An existing line grows in place, a new line is appended. The result is
    clamped to ``MAX_LINE_QUANTITY``.
    """
    if quantity <= 0:
        raise ValueError("Quantity to add must be at least 1")

    result = dict(lines)
    result[product_ref] = clamp_quantity(result.get(product_ref, 0) + quantity)
    return result


def set_quantity(lines: Mapping[str, int], product_ref: str, quantity: int) -> LineMap:
    """Set a line's quantity; zero or less removes the line"""
    result = dict(lines)
    if quantity <= 0:
        result.pop(product_ref, None)
    else:
        result[product_ref] = clamp_quantity(quantity)
    return result


def merge_lines(guest: Mapping[str, int], account: Mapping[str, int]) -> LineMap:
    """
    Consolidate two carts.

    Quantities for the same product are summed and clamped; a product on
    only one side passes through. Account lines keep their order and new
    guest lines are appended after them.
    """
    result = dict(account)
    for product_ref, quantity in guest.items():
        result[product_ref] = clamp_quantity(result.get(product_ref, 0) + quantity)
    return result


def merge_with_receipt(
    guest: Mapping[str, int],
    account: Mapping[str, int],
    receipt: Mapping[str, int],
) -> tuple[LineMap, LineMap]:
    """
    Merge a guest cart, crediting only what was not merged before.

    ``receipt`` holds the guest quantities already folded into this account
    by earlier merges of the same guest cart. Only the positive difference
    is added, so repeating a merge of an unchanged guest cart is a no-op.

    Returns:
        Tuple of (merged account lines, updated receipt)
    """
    pending = {}
    for product_ref, quantity in guest.items():
        delta = quantity - receipt.get(product_ref, 0)
        if delta > 0:
            pending[product_ref] = delta

    updated_receipt = dict(receipt)
    for product_ref, quantity in guest.items():
        updated_receipt[product_ref] = max(updated_receipt.get(product_ref, 0), quantity)

    return merge_lines(pending, account), updated_receipt
