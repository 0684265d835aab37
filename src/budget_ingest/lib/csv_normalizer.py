"""CSV normalizer — parses institution-specific CSVs into transaction records.

Supported exports:

- USAA:        Date,Description,Original Description,Category,Amount,Status
- Capital One: Transaction Date,Posted Date,Card No.,Description,Category,Debit,Credit

The first header cell decides which parser handles the file. Amounts come out
sign-normalized: spend is negative, income is positive.
"""

from __future__ import annotations

import csv
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path

from .descriptions import DescriptionNormalizer, default_normalizer
from .errors import ConfigurationError, ParseError, UnrecognizedOriginError
from .logging_setup import get_logger

logger = get_logger(__name__)

DATE_FORMAT = "%Y-%m-%d"

# Card payments already show up in the Capital One feed.
USAA_COUNTERPART_MARKER = "Capital One"
CAPITAL_ONE_CASH_BACK = "CREDIT-CASH BACK REWARD"


class Origin(Enum):
    """Institution a CSV export comes from. The value is the stored card tag."""

    USAA = "USAA"
    CAPITAL_ONE = "CapitalOne"


# Lower-cased first header cell -> origin
HEADER_LABELS: dict[str, Origin] = {
    "date": Origin.USAA,
    "transaction date": Origin.CAPITAL_ONE,
}


@dataclass(frozen=True)
class TransactionRecord:
    """Normalized transaction — the common format across institutions."""

    amount: Decimal  # negative = spend
    date: date
    card: Origin
    description: str  # canonical description

    def __str__(self) -> str:
        return (
            f"Amount: {self.amount} | Date: {self.date.isoformat()} | "
            f"Card: {self.card.value} | Description: {self.description}"
        )


def classify_header(header: Sequence[str]) -> Origin | None:
    """Return the origin for a header row, or None when it is not recognized."""
    if not header:
        return None
    first = header[0].lstrip("\ufeff").strip().lower()
    return HEADER_LABELS.get(first)


def _field(row: Sequence[str], index: int, name: str, width: int) -> str:
    if len(row) < width:
        raise ParseError(
            f"Row has {len(row)} fields, expected at least {width}",
            field=name,
            value=None,
        )
    return row[index]


def parse_amount(raw: str, field: str = "amount") -> Decimal:
    try:
        amount = Decimal(raw.strip())
    except InvalidOperation:
        raise ParseError("Amount is not a number", field=field, value=raw) from None
    if not amount.is_finite():
        raise ParseError("Amount is not a number", field=field, value=raw)
    return amount


def parse_date(raw: str, field: str = "date") -> date:
    try:
        return datetime.strptime(raw.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ParseError(f"Date does not match {DATE_FORMAT}", field=field, value=raw) from None


def _parse_usaa(row: Sequence[str], normalizer: DescriptionNormalizer) -> TransactionRecord | None:
    width = 5
    description = _field(row, 1, "description", width)
    if USAA_COUNTERPART_MARKER in description:
        logger.debug("Skipping USAA card payment row: %s", description)
        return None

    return TransactionRecord(
        amount=parse_amount(_field(row, 4, "amount", width)),
        date=parse_date(_field(row, 0, "date", width)),
        card=Origin.USAA,
        description=normalizer.normalize(description),
    )


def _parse_capital_one(
    row: Sequence[str], normalizer: DescriptionNormalizer
) -> TransactionRecord | None:
    width = 7
    description = _field(row, 3, "description", width)
    credit = _field(row, 6, "credit", width)

    if credit.strip():
        # A credit is either cash back or a payment onto the card.
        if description != CAPITAL_ONE_CASH_BACK:
            logger.debug("Skipping Capital One payment row: %s", description)
            return None
        amount = parse_amount(credit, "credit")
    else:
        amount = -parse_amount(_field(row, 5, "debit", width), "debit")

    return TransactionRecord(
        amount=amount,
        date=parse_date(_field(row, 0, "date", width)),
        card=Origin.CAPITAL_ONE,
        description=normalizer.normalize(description),
    )


RowParser = Callable[[Sequence[str], DescriptionNormalizer], TransactionRecord | None]

ROW_PARSERS: dict[Origin, RowParser] = {
    Origin.USAA: _parse_usaa,
    Origin.CAPITAL_ONE: _parse_capital_one,
}


def parse_row(
    row: Sequence[str],
    origin: Origin,
    normalizer: DescriptionNormalizer | None = None,
) -> TransactionRecord | None:
    """Parse one CSV row. Returns None for rows that are intentionally skipped."""
    parser = ROW_PARSERS.get(origin)
    if parser is None:
        raise ConfigurationError(
            f"No parser for origin {origin!r}. Options are: "
            + ", ".join(o.value for o in ROW_PARSERS)
        )
    if normalizer is None:
        normalizer = default_normalizer()
    return parser(row, normalizer)


def parse_rows(
    header: Sequence[str],
    rows: Sequence[Sequence[str]],
    normalizer: DescriptionNormalizer | None = None,
    *,
    path: Path = Path("<memory>"),
) -> tuple[Origin, list[TransactionRecord]]:
    """Classify a header and parse its rows.

    Raises ``UnrecognizedOriginError`` for an unknown header and ``ParseError``
    (tagged with the 1-based line number) for the first malformed row.
    """
    origin = classify_header(header)
    if origin is None:
        raise UnrecognizedOriginError(path, header[0] if header else None)

    if normalizer is None:
        normalizer = default_normalizer()
    records: list[TransactionRecord] = []
    skipped = 0
    for line, row in enumerate(rows, start=2):
        if not row:
            continue
        try:
            record = parse_row(row, origin, normalizer)
        except ParseError as exc:
            raise exc.at(path, line) from exc
        if record is None:
            skipped += 1
            continue
        records.append(record)

    logger.info(
        "Found %d %s budget records in %s (%d skipped)",
        len(records),
        origin.value,
        path.name,
        skipped,
    )
    return origin, records


def read_budget_file(
    path: Path, normalizer: DescriptionNormalizer | None = None
) -> list[TransactionRecord]:
    """Parse a CSV export into transaction records.

    Undecodable bytes and malformed CSV quoting raise ``ParseError``.
    """
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.reader(f)
        try:
            header = next(reader, [])
            rows = list(reader)
        except (UnicodeDecodeError, csv.Error) as exc:
            raise ParseError(f"Could not read CSV: {exc}").at(path, reader.line_num + 1) from exc

    _, records = parse_rows(header, rows, normalizer, path=path)
    return records
