"""Stock consumption rules shared by the storage backends.

Stock never goes below zero. Consuming more than is on hand floors the
amount at zero and the shortfall is absorbed; consuming a flower with no
stock record changes nothing. Neither case is an error, but both are logged
as warnings so oversold orders and unmatched names can be found afterwards.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Consumption:
    """Outcome of taking `requested` units of `flower` out of stock."""

    flower: str
    requested: int
    before: int | None  # None when no stock record matched the name
    after: int | None

    @property
    def matched(self) -> bool:
        return self.before is not None

    @property
    def applied(self) -> int:
        if self.before is None or self.after is None:
            return 0
        return self.before - self.after

    @property
    def shortfall(self) -> int:
        return self.requested - self.applied


def consume(flower: str, current: int | None, requested: int, reason: str) -> Consumption:
    """
    Compute the stock left after consuming `requested` units.

    Args:
        flower: Flower name (used for logging only).
        current: Amount on hand, or None if no stock record exists.
        requested: Units to consume. Must be non-negative.
        reason: Short description of the caller, e.g. "write-off" or "order 3".

    Returns:
        Consumption with after = max(0, current - requested).
    """
    if requested < 0:
        raise ValueError(f"Cannot consume a negative amount: {requested}")

    if current is None:
        logger.warning(
            "%s: no stock record for %r, %d unit(s) not deducted",
            reason, flower, requested,
        )
        return Consumption(flower=flower, requested=requested, before=None, after=None)

    result = Consumption(
        flower=flower,
        requested=requested,
        before=current,
        after=max(0, current - requested),
    )
    if result.shortfall:
        logger.warning(
            "%s: %r oversold by %d (had %d, requested %d)",
            reason, flower, result.shortfall, current, requested,
        )
    return result


def restore(flower: str, current: int | None, amount: int, reason: str) -> int | None:
    """
    Return `amount` units to stock.

    Returns the new amount, or None when no stock record exists for the name
    (nothing is created).
    """
    if amount < 0:
        raise ValueError(f"Cannot restore a negative amount: {amount}")
    if current is None:
        logger.info("%s: no stock record for %r, %d unit(s) not returned", reason, flower, amount)
        return None
    return current + amount
