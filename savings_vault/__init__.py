"""
Savings Vault - Source Package

A per-account savings ledger with goal tracking and a
time-locked withdrawal protocol.

DESIGN PRINCIPLES:
1. Money never leaves without a cooling-off period
2. Fail early, fail visibly (every rejection has a specific kind)
3. No silent corrections
4. Every step must be auditable
5. Transfer and audit storage are swappable
"""

__version__ = "1.0.0"
__author__ = "Savings Vault Team"
