"""Financial ledger core: invoices, payments and expenses."""

__version__ = "0.1.0"
