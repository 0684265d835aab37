"""Description normalizer — collapses vendor text into canonical labels.

Bank descriptions carry store numbers, order IDs and city suffixes that make
the same merchant look different on every statement. A prefix table maps each
known merchant to one stable label. Lookup is first-match in table order, on
the lower-cased description, and only from position 0.

A custom table can be kept in YAML (``rules:`` list of ``prefix``/``name``
pairs), loaded the same way as the payee rules.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml

from .errors import ConfigError

# Order matters: the first prefix that matches wins.
DEFAULT_DESCRIPTION_PREFIXES: tuple[tuple[str, str], ...] = (
    # Online stores
    ("amazon", "amazon"),
    ("amzn", "amazon"),
    ("prime video", "tv"),
    ("amc", "amc"),
    ("petsmart", "petsmart"),
    # In person stores
    ("target", "target"),
    ("the home depot", "home depot"),
    ("rei", "rei"),
    ("barnes & noble", "barnes & noble"),
    ("autozone", "autozone"),
    ("crate & barrel", "crate & barrel"),
    ("vca animal hosp", "vca veterinarian"),
    ("laz parking", "laz parking"),
    ("spothero", "spothero"),
    ("walgreens", "walgreens"),
    ("831 bowlero", "bowlero"),
    # Airlines & travel
    ("united", "united airlines"),
    ("delta", "delta airlines"),
    ("hilton", "hilton"),
    ("airbnb", "airbnb"),
    # Restaurants
    ("ihop", "ihop"),
    ("bonefish", "bonefish"),
    ("chick-fil-a", "chick-fil-a"),
    ("chipotle", "chipotle"),
    ("mad greens", "mad greens"),
    ("domino's", "dominos"),
    ("dunkin", "dunkin donuts"),
    ("panda express", "panda express"),
    ("noodles & co", "noodles & co"),
    ("olive garden", "olive garden"),
    ("oracl*waffle house", "waffle house"),
    ("bop & gogi", "bop & gogi"),
    ("paypal *domino's", "dominos"),
    # Gas
    ("safeway fuel", "safeway fuel"),
    ("king soopers fuel", "king soopers fuel"),
    ("conoco", "conoco"),
    ("phillips 66", "phillips 66"),
    ("stop 4 gas", "stop 4 gas"),
    ("circle k", "circle k"),
    ("shell", "shell"),
    ("7-eleven", "7-eleven"),
    ("qt", "quicktrip"),
    ("chevron", "chevron"),
    ("kum&go", "kum&go"),
    # Groceries
    ("trader joe s", "trader joe's"),
    ("publix", "publix"),
    ("safeway #", "safeway"),
    ("king soopers #", "king soopers"),
)


@dataclass(frozen=True)
class PrefixRule:
    prefix: str
    name: str


class DescriptionNormalizer:
    """Maps raw descriptions to canonical labels using an ordered prefix table."""

    def __init__(self, prefixes: Iterable[tuple[str, str]] = DEFAULT_DESCRIPTION_PREFIXES) -> None:
        # Prefixes are matched against lower-cased text, so store them lowered.
        self._rules: tuple[PrefixRule, ...] = tuple(
            PrefixRule(prefix=prefix.lower(), name=name) for prefix, name in prefixes
        )

    @property
    def rules(self) -> tuple[PrefixRule, ...]:
        return self._rules

    def normalize(self, raw_description: str) -> str:
        """Return the canonical label for a description, or its lower-cased form."""
        lowered = raw_description.lower()
        for rule in self._rules:
            if lowered.startswith(rule.prefix):
                return rule.name
        return lowered

    __call__ = normalize

    def canonical_labels(self) -> set[str]:
        return {rule.name for rule in self._rules}

    def __len__(self) -> int:
        return len(self._rules)

    @classmethod
    def from_yaml(cls, path: Path) -> "DescriptionNormalizer":
        """Load a prefix table from YAML. A missing file gives the default table."""
        if not path.exists():
            return cls()
        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid description rules in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Description rules in {path} must be a mapping")

        prefixes: list[tuple[str, str]] = []
        for rule in data.get("rules", []) or []:
            try:
                prefixes.append((str(rule["prefix"]), str(rule["name"])))
            except (KeyError, TypeError) as exc:
                raise ConfigError(f"Malformed description rule in {path}: {rule!r}") from exc
        return cls(prefixes)

    def save(self, path: Path) -> None:
        """Persist the current table to YAML, preserving order."""
        data = {"rules": [{"prefix": r.prefix, "name": r.name} for r in self._rules]}
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)


@lru_cache(maxsize=1)
def default_normalizer() -> DescriptionNormalizer:
    """Process-wide normalizer over the built-in table, built on first use."""
    return DescriptionNormalizer()
