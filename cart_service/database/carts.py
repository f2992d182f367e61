"""Cart storage for the cart service"""

import logging
from datetime import datetime, timezone
from typing import Optional

from cartlines import add_quantity, merge_with_receipt, set_quantity

logger = logging.getLogger(__name__)


class CartDatabase:
    """
    In-memory cart storage keyed by owner.

    Only product references and quantities are stored. A cart comes into
    existence on its first write; reading an unknown owner gives an empty
    cart. Each operation computes the new line set first and commits it in
    one assignment, so a failure never leaves a half-applied cart.
    """

    def __init__(self):
        self.carts: dict[str, dict[str, int]] = {}
        self.updated_at: dict[str, datetime] = {}
        # (account key, guest key) -> guest quantities already merged
        self.merge_receipts: dict[tuple[str, str], dict[str, int]] = {}

    def get_lines(self, owner_key: str) -> dict[str, int]:
        """Get a copy of an owner's lines (empty if the cart does not exist)"""
        return dict(self.carts.get(owner_key, {}))

    def has_cart(self, owner_key: str) -> bool:
        return owner_key in self.carts

    def add_line(self, owner_key: str, product_ref: str, quantity: int = 1) -> dict[str, int]:
        """Add to a line, creating the cart if needed"""
        lines = add_quantity(self.get_lines(owner_key), product_ref, quantity)
        return self._commit(owner_key, lines)

    def set_line_quantity(self, owner_key: str, product_ref: str, quantity: int) -> dict[str, int]:
        """Set a line's quantity; zero or less removes it"""
        lines = set_quantity(self.get_lines(owner_key), product_ref, quantity)
        return self._commit(owner_key, lines)

    def remove_line(self, owner_key: str, product_ref: str) -> dict[str, int]:
        """Remove a line from the cart"""
        return self.set_line_quantity(owner_key, product_ref, 0)

    def clear_cart(self, owner_key: str) -> dict[str, int]:
        """Remove all lines"""
        return self._commit(owner_key, {})

    def merge_guest_cart(self, account_key: str, guest_key: str) -> dict[str, int]:
        """
        Fold a guest cart into an account cart.

        The guest cart is left in place. The receipt kept for the pair makes
        a repeated merge of an unchanged guest cart a no-op.
        """
        guest_lines = self.get_lines(guest_key)
        account_lines = self.get_lines(account_key)
        receipt = self.merge_receipts.get((account_key, guest_key), {})

        merged, updated_receipt = merge_with_receipt(guest_lines, account_lines, receipt)

        logger.info(
            f"Merging {guest_key} ({len(guest_lines)} lines) into "
            f"{account_key} ({len(account_lines)} lines)"
        )

        self.merge_receipts[(account_key, guest_key)] = updated_receipt
        if merged == account_lines and self.has_cart(account_key):
            return account_lines
        return self._commit(account_key, merged)

    def last_updated(self, owner_key: str) -> Optional[datetime]:
        return self.updated_at.get(owner_key)

    def reset(self) -> None:
        """Drop every cart and receipt"""
        self.carts.clear()
        self.updated_at.clear()
        self.merge_receipts.clear()

    def _commit(self, owner_key: str, lines: dict[str, int]) -> dict[str, int]:
        self.carts[owner_key] = lines
        self.updated_at[owner_key] = datetime.now(timezone.utc)
        return dict(lines)


# Singleton instance
cart_db = CartDatabase()
