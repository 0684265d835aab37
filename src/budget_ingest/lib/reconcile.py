"""Reconciliation of batch descriptions against stored metadata."""

from __future__ import annotations

from collections.abc import Iterable

from .csv_normalizer import TransactionRecord
from .logging_setup import get_logger
from .metadata import DescriptionMetadata

logger = get_logger(__name__)


def unique_descriptions(records: Iterable[TransactionRecord]) -> set[str]:
    """Canonical descriptions present in a batch of records."""
    return {record.description for record in records}


def reconcile(
    current: Iterable[str],
    stored: Iterable[DescriptionMetadata | str],
) -> set[str]:
    """Return the descriptions in ``current`` that have no stored metadata."""
    known = {s if isinstance(s, str) else s.description for s in stored}
    pending = set(current) - known
    logger.info("%d description(s) need metadata, %d already known", len(pending), len(known))
    return pending
