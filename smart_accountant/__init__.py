"""
Smart Accountant - Source Package

A small-business bookkeeping engine: chart of accounts, double-entry
journal postings, moving-average inventory valuation and financial
statements built from the recorded history.

DESIGN PRINCIPLES:
1. Validate everything before mutating anything
2. Fail early, fail visibly
3. No silent corrections to the ledger
4. Every posting must be auditable
5. Storage and advisory services are swappable and best-effort
"""

__version__ = "1.0.0"
__author__ = "Smart Accountant Team"
