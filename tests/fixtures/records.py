"""
Record factories shared by all test modules.
"""

from rootlock.schemas.record import VestingRecord


def make_recipient(n: int) -> bytes:
    """A 32-byte recipient filled with the byte n."""
    return bytes([n]) * 32


def make_record(
    n: int = 1,
    vesting_start_time: int = 0,
    cliff_time: int = 200,
    frequency: int = 10,
    cliff_unlock_amount: int = 100,
    amount_per_period: int = 100,
    number_of_period: int = 200,
    update_recipient_mode: int = 0,
    cancel_mode: int = 0,
) -> VestingRecord:
    """Create a valid VestingRecord; defaults are the single-record scenario."""
    return VestingRecord(
        recipient=make_recipient(n),
        vesting_start_time=vesting_start_time,
        cliff_time=cliff_time,
        frequency=frequency,
        cliff_unlock_amount=cliff_unlock_amount,
        amount_per_period=amount_per_period,
        number_of_period=number_of_period,
        update_recipient_mode=update_recipient_mode,
        cancel_mode=cancel_mode,
    )


def make_records(count: int, start: int = 1) -> list[VestingRecord]:
    """count valid records with distinct recipients and distinct amounts."""
    return [
        make_record(n=start + i, cliff_unlock_amount=10 * (i + 1))
        for i in range(count)
    ]
