"""Domain logic for the ledger core."""
