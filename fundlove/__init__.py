"""
FundLove - Source Package

A shared savings tracker: profiles deposit or withdraw toward one common
target, and everyone sees the same ledger and progress.

DESIGN PRINCIPLES:
1. The backend is the source of truth; derived values are never stored
2. Validate before sending, re-fetch after writing
3. Only the owner changes a transaction
4. Failures are visible, never silently swallowed
"""

__version__ = "1.0.0"
__author__ = "FundLove Team"
