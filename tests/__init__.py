"""
Stock ledger test suite.

Tests are organized by concern:
- test_stock_adjust.py: single-row adjustments and lock retry
- test_stock_batches.py: sale, reversal and delta batches
- test_stock_concurrency.py: parallel writers on one stock row
- test_stock_reconciliation.py: the stock audit
- test_stock_api.py and test_management_commands.py: HTTP and CLI surfaces
"""
