# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Immutable record snapshot for Billing Insight.

A ``Snapshot`` holds the invoice and transaction collections that the
analytics stages read. It never changes in place: every CRUD operation
returns a new Snapshot, so a snapshot handed to an analytics call stays a
stable, read-only view for the whole computation.

CRUD semantics
--------------
- ``add_*``     prepends the record (newest first) and rejects duplicate ids.
- ``update_*``  replaces the record with the same id.
- ``delete_*``  removes the record with the given id.
- ``get_*``     returns the record or None.

``update_*`` and ``delete_*`` raise KeyError for unknown ids; ``add_*``
raises ValueError when the id already exists.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from .records import InvoiceRecord, TransactionRecord, with_payment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of the invoice and transaction collections."""

    invoices: tuple[InvoiceRecord, ...] = ()
    transactions: tuple[TransactionRecord, ...] = ()

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    def get_invoice(self, invoice_id: str) -> Optional[InvoiceRecord]:
        for inv in self.invoices:
            if inv.id == invoice_id:
                return inv
        return None

    def add_invoice(self, invoice: InvoiceRecord) -> "Snapshot":
        if self.get_invoice(invoice.id) is not None:
            raise ValueError(f"Invoice {invoice.id} already exists.")
        logger.debug("Adding invoice %s", invoice.id)
        return replace(self, invoices=(invoice, *self.invoices))

    def update_invoice(self, invoice: InvoiceRecord) -> "Snapshot":
        if self.get_invoice(invoice.id) is None:
            raise KeyError(f"Invoice {invoice.id} not found.")
        updated = tuple(invoice if inv.id == invoice.id else inv for inv in self.invoices)
        return replace(self, invoices=updated)

    def delete_invoice(self, invoice_id: str) -> "Snapshot":
        if self.get_invoice(invoice_id) is None:
            raise KeyError(f"Invoice {invoice_id} not found.")
        logger.debug("Deleting invoice %s", invoice_id)
        return replace(
            self, invoices=tuple(inv for inv in self.invoices if inv.id != invoice_id)
        )

    def mark_invoice_paid(
        self,
        invoice_id: str,
        payment_date: date,
        updated_at: Optional[datetime] = None,
    ) -> "Snapshot":
        """Set an invoice's status to Paid with the given payment date."""
        invoice = self.get_invoice(invoice_id)
        if invoice is None:
            raise KeyError(f"Invoice {invoice_id} not found.")
        paid = with_payment(invoice, payment_date)
        if updated_at is not None:
            paid = replace(paid, updated_at=updated_at)
        return self.update_invoice(paid)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def get_transaction(self, transaction_id: str) -> Optional[TransactionRecord]:
        for t in self.transactions:
            if t.id == transaction_id:
                return t
        return None

    def add_transaction(self, transaction: TransactionRecord) -> "Snapshot":
        if self.get_transaction(transaction.id) is not None:
            raise ValueError(f"Transaction {transaction.id} already exists.")
        logger.debug("Adding transaction %s", transaction.id)
        return replace(self, transactions=(transaction, *self.transactions))

    def update_transaction(self, transaction: TransactionRecord) -> "Snapshot":
        if self.get_transaction(transaction.id) is None:
            raise KeyError(f"Transaction {transaction.id} not found.")
        updated = tuple(
            transaction if t.id == transaction.id else t for t in self.transactions
        )
        return replace(self, transactions=updated)

    def delete_transaction(self, transaction_id: str) -> "Snapshot":
        if self.get_transaction(transaction_id) is None:
            raise KeyError(f"Transaction {transaction_id} not found.")
        logger.debug("Deleting transaction %s", transaction_id)
        return replace(
            self,
            transactions=tuple(t for t in self.transactions if t.id != transaction_id),
        )
