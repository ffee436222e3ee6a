"""
Money Manager - Ledger Engine

Records income, expense and transfer transactions tagged with a division
and a free-form category, and derives three read views from the stored
log: period summaries, category summaries and account balances.

DESIGN PRINCIPLES:
1. A record is either absent or fully valid
2. Amounts are positive; the transaction type carries the direction
3. Records are editable only inside the edit window
4. Every read view is recomputed from the ledger, never stored
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Money Manager Team"
