# Spendlog - Personal double-entry ledger CLI
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Exception hierarchy for Spendlog.

Every error raised by the engine derives from ``SpendlogError`` so the CLI
can report it in one place and exit with a non-zero status. Validation
errors also derive from ``ValueError`` and the not-found error from
``LookupError``, so callers that only care about the builtin category can
keep catching those.
"""


class SpendlogError(Exception):
    """Base class for all Spendlog errors."""


class StoreError(SpendlogError):
    """Any failure reported by the database (connectivity, constraint, query)."""


class DuplicateLedgerError(StoreError):
    """A ledger with the same code already exists."""


class InvalidAmountError(SpendlogError, ValueError):
    """A posting amount is not a strictly positive number."""


class LedgerNotFoundError(SpendlogError, LookupError):
    """No ledger has the requested code."""


class InvalidDateError(SpendlogError, ValueError):
    """A date is malformed, or period arguments were combined incorrectly."""


class DateRangeError(SpendlogError, ValueError):
    """A date range starts after it ends."""


class InvalidMonthError(SpendlogError, ValueError):
    """A month name is not recognized."""


class InvalidCapError(SpendlogError, ValueError):
    """A daily cap is not a positive number."""
