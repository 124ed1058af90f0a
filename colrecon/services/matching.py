from __future__ import annotations

import logging
import unicodedata
from collections.abc import Sequence

from rapidfuzz import fuzz

from ..models.schema import SchemaRegistry, TargetField

"""Auto-match bootstrap for a freshly parsed upload.

Matching rules:
- Header and field names are compared after normalization (NFKC, casefold,
  only alphanumerics kept), so "E-mail Address" == "email address" == "EMAILADDRESS".
- A field matches on its id or its display name.
- Columns are processed in file order; the first column to claim a field
  wins, later columns with the same normalized name stay unmatched.
- Optional fuzzy pass (rapidfuzz ratio >= threshold) runs only after every
  exact match has been claimed, and only over still-unclaimed fields.

The result always satisfies the uniqueness of target fields, so no
duplication conflict can exist right after bootstrap.
"""

__all__ = [
    "normalize_name",
    "bootstrap_matches",
]

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """Normalize a header or field name for comparison."""
    text = unicodedata.normalize("NFKC", str(name)).casefold()
    return "".join(ch for ch in text if ch.isalnum())


def _field_keys(field: TargetField) -> set[str]:
    keys = {normalize_name(field.id), normalize_name(field.display_name)}
    keys.discard("")
    return keys


def _best_fuzzy(
    header: str,
    candidates: Sequence[TargetField],
    threshold: float,
) -> TargetField | None:
    norm = normalize_name(header)
    if not norm:
        return None
    best: TargetField | None = None
    best_score = -1.0
    for field in candidates:
        score = max(fuzz.ratio(norm, key) for key in _field_keys(field))
        # 同点はスキーマ順で先勝ち (strict >)
        if score >= threshold and score > best_score:
            best, best_score = field, score
    return best


def bootstrap_matches(
    schema: SchemaRegistry,
    headers: Sequence[str],
    fuzzy_threshold: float | None = None,
) -> dict[str, TargetField | None]:
    """Compute the initial match assignment for ``headers``.

    Parameters
    ----------
    schema: target fields (read-only)
    headers: source headers in file order
    fuzzy_threshold: rapidfuzz ratio (0-100) for the optional fuzzy pass;
        None disables fuzzy matching

    Returns
    -------
    dict: header -> matched TargetField or None, in file order
    """
    by_key: dict[str, TargetField] = {}
    for field in schema:
        for key in _field_keys(field):
            # id と display_name が別フィールドで衝突した場合はスキーマ順で先勝ち
            by_key.setdefault(key, field)

    result: dict[str, TargetField | None] = {h: None for h in headers}
    claimed: set[str] = set()

    for header in headers:
        field = by_key.get(normalize_name(header))
        if field is None:
            continue
        if field.id in claimed:
            logger.debug(f"bootstrap: '{header}' left unmatched, '{field.id}' already claimed")
            continue
        result[header] = field
        claimed.add(field.id)

    if fuzzy_threshold is not None:
        for header in headers:
            if result[header] is not None:
                continue
            remaining = [f for f in schema if f.id not in claimed]
            if not remaining:
                break
            field = _best_fuzzy(header, remaining, fuzzy_threshold)
            if field is not None:
                logger.debug(f"bootstrap: fuzzy match '{header}' -> '{field.id}'")
                result[header] = field
                claimed.add(field.id)

    return result
