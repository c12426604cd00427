"""Resource balances of an island."""

from __future__ import annotations

from .errors import InsufficientResources
from .resources import ResourceAmount


def affordable(balance: ResourceAmount, cost: ResourceAmount) -> bool:
    return balance.covers(cost)


def apply(balance: ResourceAmount, delta: ResourceAmount) -> ResourceAmount:
    """Return ``balance + delta``; refuse results with a negative field."""

    result = balance + delta
    if result.is_negative():
        raise InsufficientResources(balance.shortfall(-delta))
    return result


class EconomyLedger:
    """Holds the current balance of one island.

    The ledger does no locking of its own; callers serialise access through
    the owning :class:`~islecore.facade.GameFacade`.
    """

    def __init__(self, initial: ResourceAmount | None = None) -> None:
        self._balance = initial if initial is not None else ResourceAmount.zero()

    # ------------------------------------------------------------------
    @property
    def balance(self) -> ResourceAmount:
        return self._balance

    def snapshot(self) -> dict:
        return self._balance.to_dict()

    def affordable(self, cost: ResourceAmount) -> bool:
        return affordable(self._balance, cost)

    def apply(self, delta: ResourceAmount) -> ResourceAmount:
        self._balance = apply(self._balance, delta)
        return self._balance

    def spend(self, cost: ResourceAmount) -> ResourceAmount:
        if not self.affordable(cost):
            raise InsufficientResources(self._balance.shortfall(cost))
        return self.apply(-cost)
