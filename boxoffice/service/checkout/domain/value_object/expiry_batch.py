import attrs


@attrs.define(frozen=True)
class ExpiryBatch:
    # Overdue intents the batch looked at, whether or not this run expired them
    scanned: int
    expired: int
