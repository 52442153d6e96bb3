"""CSV loader — reads and normalizes group/member CSV files."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from owner_rotation.adapters.csv_loader.normalizer import (
    clean_string,
    first_present,
    normalize_column_name,
)

logger = logging.getLogger(__name__)

GROUP_FILE_HINTS = ["groups", "queues", "teams"]
MEMBER_FILE_HINTS = ["members", "memberships", "users"]


def _sniff_dialect(sample: str) -> type[csv.Dialect]:
    """Detect the delimiter (comma/semicolon/tab) from the header line."""
    if not sample:
        return csv.excel

    first_line = sample.splitlines()[0]
    delims = [";", ",", "\t"]
    counts = {d: first_line.count(d) for d in delims}
    best_delim = max(counts, key=counts.get)

    if counts[best_delim] > 0:
        class DynamicDialect(csv.excel):
            delimiter = best_delim
        return DynamicDialect
    return csv.excel


def _read_csv(file_path: Path, encoding: str = "utf-8-sig") -> list[dict[str, str | None]]:
    """Read a CSV file with BOM handling and column normalization.

    Args:
        file_path: path to the CSV file.
        encoding: file encoding (utf-8-sig strips BOM automatically).

    Returns:
        List of dicts with normalized column names.
    """
    with open(file_path, encoding=encoding, newline="") as f:
        sample = f.read(4096)
        f.seek(0)
        reader = csv.DictReader(f, dialect=_sniff_dialect(sample))
        if reader.fieldnames is None:
            raise ValueError(f"CSV file {file_path} has no header row")

        col_map = {col: normalize_column_name(col) for col in reader.fieldnames}
        rows = []
        for raw_row in reader:
            row = {col_map[k]: clean_string(v) for k, v in raw_row.items() if k is not None}
            rows.append(row)

    logger.info("Loaded %d rows from %s (columns: %s)", len(rows), file_path.name, list(col_map.values()))
    return rows


def load_groups(file_path: Path) -> list[dict]:
    """Load the groups CSV.

    Expected columns (after normalization):
        key / group / group_key, pool_id / pool (defaults to the key)
    """
    groups = []
    for row in _read_csv(file_path):
        key = first_present(row, "key", "group_key", "group", "name")
        if not key:
            logger.warning("Skipping group row without a key: %s", row)
            continue
        groups.append({
            "key": key,
            "pool_id": first_present(row, "pool_id", "pool", "group_id") or key,
        })
    logger.info("Parsed %d groups", len(groups))
    return groups


def load_members(file_path: Path) -> list[dict]:
    """Load the members CSV.

    Expected columns (after normalization):
        pool_id / pool / group, member_id / member / user, position (optional)

    Members are ranked per pool by (position, row number); rows without a
    position come after the positioned ones, in file order. The returned
    "position" is that rank, starting at 0 in every pool.
    """
    members = []
    for i, row in enumerate(_read_csv(file_path)):
        pool_id = first_present(row, "pool_id", "pool", "group_id", "group")
        member_id = first_present(row, "member_id", "member", "user_id", "user")
        if not pool_id or not member_id:
            logger.warning("Skipping member row %d without pool or member: %s", i, row)
            continue
        members.append({
            "pool_id": pool_id,
            "member_id": member_id,
            "explicit": _parse_int(row.get("position")),
            "row": i,
        })

    members.sort(key=lambda m: (m["explicit"] is None, m["explicit"] or 0, m["row"]))
    ranks: dict[str, int] = {}
    ranked = []
    for m in members:
        rank = ranks.get(m["pool_id"], 0)
        ranks[m["pool_id"]] = rank + 1
        ranked.append({"pool_id": m["pool_id"], "member_id": m["member_id"], "position": rank})

    logger.info("Parsed %d memberships", len(ranked))
    return ranked


def find_csv(data_dir: Path, name_hints: list[str]) -> Path | None:
    """Find a CSV file matching any of the name hints."""
    for f in sorted(data_dir.glob("*.csv")):
        fname_lower = f.stem.lower()
        for hint in name_hints:
            if hint in fname_lower:
                logger.info("Found CSV: %s (matched hint '%s')", f.name, hint)
                return f
    return None


def _parse_int(value: str | None) -> int | None:
    if not value:
        return None
    try:
        # handle "4", "4.0"
        return int(float(str(value).replace(",", ".").strip()))
    except ValueError:
        logger.warning("Ignoring non-numeric position: %s", value)
        return None
