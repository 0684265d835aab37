"""Income and spend totals for a batch of transactions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from .csv_normalizer import TransactionRecord

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Totals:
    income: Decimal
    spending: Decimal  # sum of negative amounts, so <= 0
    count: int

    @property
    def net(self) -> Decimal:
        return self.income + self.spending

    @staticmethod
    def format(amount: Decimal) -> str:
        return str(amount.quantize(CENT, rounding=ROUND_HALF_UP))

    def lines(self) -> list[tuple[str, str]]:
        return [
            ("Income total", self.format(self.income)),
            ("Spending total", self.format(self.spending)),
            ("Difference", self.format(self.net)),
        ]


def aggregate(records: Iterable[TransactionRecord]) -> Totals:
    income = Decimal("0")
    spending = Decimal("0")
    count = 0
    for record in records:
        if record.amount < 0:
            spending += record.amount
        else:
            income += record.amount
        count += 1
    return Totals(income=income, spending=spending, count=count)
