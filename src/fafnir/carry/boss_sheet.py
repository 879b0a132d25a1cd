"""
Read-only access to the boss carry spreadsheet.

The sheet is read through Google Sheets' CSV export, so it only needs to be
shared as "anyone with the link can view". Row order in the sheet is the carry
priority; nothing here re-sorts it.
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import aiohttp

from fafnir.configuration.app_configuration import BossCarrySettings
from fafnir.util.arguments import parse_positive_int
from fafnir.util.logger import get_logger

logger = get_logger("boss_sheet")

EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"
FETCH_TIMEOUT_SECONDS = 15


@dataclass(slots=True)
class CarryRow:
    """One person waiting for boss carries."""
    name: str
    date: str
    bosses_needed: str

    @property
    def needed(self) -> List[str]:
        """Lowercased boss entries, e.g. ``["zakum", "horntail chaos"]``."""
        return [part.strip().lower() for part in self.bosses_needed.split(",") if part.strip()]


def rows_from_records(records: Iterable[Mapping[str, str]], columns: Mapping[str, str]) -> List[CarryRow]:
    """Map raw sheet records onto :class:`CarryRow` using the configured column headers."""
    rows = []
    for record in records:
        name = (record.get(columns["name"]) or "").strip()
        if not name:
            continue
        rows.append(
            CarryRow(
                name=name,
                date=(record.get(columns["date"]) or "").strip(),
                bosses_needed=(record.get(columns["bosses_needed"]) or "").strip(),
            )
        )
    return rows


def parse_csv(text: str, columns: Mapping[str, str]) -> List[CarryRow]:
    return rows_from_records(csv.DictReader(io.StringIO(text)), columns)


def split_bosses_and_limit(tokens: List[str]) -> Tuple[List[str], Optional[int]]:
    """Split ``["zakum", "horntail", "3"]`` into bosses and a trailing limit."""
    if tokens:
        limit = parse_positive_int(tokens[-1])
        if limit is not None:
            return [token.lower() for token in tokens[:-1]], limit
    return [token.lower() for token in tokens], None


def boss_terms(boss_names: Mapping[str, str]) -> Dict[str, List[str]]:
    """Map each configured boss to the names it may be written as, longest first.

    ``boss_names`` maps a boss to its comma-separated aliases, e.g.
    ``{"chaos horntail": "cht"}``.
    """
    table: Dict[str, List[str]] = {}
    for name, aliases in boss_names.items():
        canonical = str(name).strip().lower()
        terms = {canonical} | {alias.strip().lower() for alias in str(aliases or "").split(",") if alias.strip()}
        table[canonical] = sorted(terms, key=len, reverse=True)
    return table


def resolve_boss(token: str, terms: Mapping[str, List[str]]) -> str:
    """Return the configured boss a requested name or alias refers to."""
    token = token.lower()
    for canonical, names in terms.items():
        if token in names:
            return canonical
    return token


def _find_term(entry: str, names: List[str]) -> Optional[re.Match[str]]:
    for term in names:
        match = re.search(rf"\b{re.escape(term)}\b", entry)
        if match is not None:
            return match
    return None


def _owner(entry: str, terms: Mapping[str, List[str]]) -> Optional[str]:
    """The configured boss with the longest name or alias found in ``entry``."""
    best: Optional[Tuple[str, int]] = None
    for canonical, names in terms.items():
        match = _find_term(entry, names)
        if match is not None and (best is None or len(match.group(0)) > best[1]):
            best = (canonical, len(match.group(0)))
    return best[0] if best else None


def carries_by_name(rows: List[CarryRow], limit: Optional[int] = None) -> List[CarryRow]:
    """People who still need bosses, in priority order, at most ``limit`` of them."""
    pending = [row for row in rows if row.bosses_needed]
    return pending[:limit] if limit else pending


def carries_by_boss(
    rows: List[CarryRow],
    bosses: List[str],
    limit: Optional[int] = None,
    boss_names: Optional[Mapping[str, str]] = None,
) -> Dict[str, List[str]]:
    """For every requested boss, list who needs it in priority order.

    Requested names are resolved through the ``boss_names`` aliases. A boss
    matches an entry of the ``bosses_needed`` cell when one of its names appears
    in it as whole words (case-insensitive); any text after the name is kept as
    extra info, so ``"horntail chaos"`` requested as ``horntail`` yields
    ``"<name> chaos"``. An entry that names a longer configured boss belongs to
    that boss: ``"chaos horntail"`` is not listed under ``horntail`` when
    ``chaos horntail`` is configured. Bosses that are not configured match on
    their name alone.
    """
    terms = boss_terms(boss_names or {})
    requested = [resolve_boss(boss, terms) for boss in bosses]
    result: Dict[str, List[str]] = {boss: [] for boss in requested}
    for row in rows:
        needed = row.needed
        for boss in result:
            if limit and len(result[boss]) >= limit:
                continue
            names = terms.get(boss, [boss])
            for entry in needed:
                match = _find_term(entry, names)
                if match is None:
                    continue
                if boss in terms and _owner(entry, terms) != boss:
                    continue
                extra = entry[match.end():].strip()
                result[boss].append(f"{row.name} {extra}".strip())
                break
    return result


class BossCarrySheet:
    """Fetches carry rows from the configured spreadsheet."""

    def __init__(self, settings: BossCarrySettings) -> None:
        self.settings = settings

    @property
    def export_url(self) -> str:
        return EXPORT_URL.format(sheet_id=self.settings.sheet_id, gid=self.settings.worksheet_gid)

    async def fetch_rows(self) -> List[CarryRow]:
        """Download and parse the sheet.

        Raises:
            RuntimeError: If no sheet id is configured.
            aiohttp.ClientError: On network or HTTP errors.
        """
        if not self.settings.sheet_id:
            raise RuntimeError("boss_carry.sheet_id is not configured")

        timeout = aiohttp.ClientTimeout(total=FETCH_TIMEOUT_SECONDS)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(self.export_url) as response:
                response.raise_for_status()
                text = await response.text(encoding="utf-8")

        rows = parse_csv(text, self.settings.columns)
        logger.debug("[BOSS SHEET] Loaded %d carry rows", len(rows))
        return rows
