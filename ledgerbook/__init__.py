"""
Ledgerbook - Source Package

A small financial record-keeping application: income, expenses,
stock, money owed to others and money owed by others, with a dashboard
and report that aggregate the totals.

DESIGN PRINCIPLES:
1. Summaries are pure functions over fetched rows
2. One access policy, consulted identically by every page
3. Validation happens before anything reaches storage
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Ledgerbook Team"
