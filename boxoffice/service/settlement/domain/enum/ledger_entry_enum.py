from enum import StrEnum


class LedgerEntryKind(StrEnum):
    SALE = 'sale'
    REVERSAL = 'reversal'


class LedgerEntryStatus(StrEnum):
    # Settled financial fact, eligible for a payout sweep
    COMPLETED = 'completed'
