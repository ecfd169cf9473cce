"""Domain services for the stock ledger."""
