"""
Universe loader: scrapes index constituents and their addition dates,
then keeps the names that were already in the index at the study cutoff.
"""

import logging
import re
from datetime import date
from typing import List, Optional

import pandas as pd
import requests
from bs4 import BeautifulSoup

from .errors import DataFetchError, UniverseParseError

logger = logging.getLogger(__name__)

WIKI_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36'
}
SYMBOL_COLUMN = "Symbol"
DATE_ADDED_COLUMN = "Date added"
_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def normalize_symbol(symbol: str) -> str:
    """Convert an exchange symbol to the price provider's convention (BRK.B -> BRK-B)."""
    return symbol.strip().replace(".", "-")


def parse_date_added(text: Optional[str]) -> Optional[date]:
    """First ISO date in the cell, or None when blank or unparsable."""
    if not text:
        return None
    match = _ISO_DATE.search(text)
    if not match:
        return None
    try:
        return date.fromisoformat(match.group(0))
    except ValueError:
        return None


def _header_cells(row) -> List[str]:
    return [cell.get_text(" ", strip=True) for cell in row.find_all(["th", "td"])]


def _find_constituents_table(soup: BeautifulSoup):
    table = soup.find("table", {"id": "constituents"})
    if table is not None:
        return table
    for candidate in soup.find_all("table"):
        first_row = candidate.find("tr")
        if first_row is None:
            continue
        headers = _header_cells(first_row)
        if SYMBOL_COLUMN in headers and DATE_ADDED_COLUMN in headers:
            return candidate
    return None


def parse_constituents(html: str) -> pd.DataFrame:
    """
    Parse the constituents table out of an HTML page.

    Returns:
        DataFrame with columns 'symbol' (provider-normalized) and
        'date_added' (datetime.date or None), in page order.

    Raises:
        UniverseParseError: If no suitable table or column is found
    """
    soup = BeautifulSoup(html, "html.parser")
    table = _find_constituents_table(soup)
    if table is None:
        raise UniverseParseError("Constituents table not found")

    rows = table.find_all("tr")
    if not rows:
        raise UniverseParseError("Constituents table is empty")
    headers = _header_cells(rows[0])
    missing = [c for c in (SYMBOL_COLUMN, DATE_ADDED_COLUMN) if c not in headers]
    if missing:
        raise UniverseParseError(f"Missing required columns: {missing} (found {headers})")

    symbol_idx = headers.index(SYMBOL_COLUMN)
    added_idx = headers.index(DATE_ADDED_COLUMN)

    records = []
    for tr in rows[1:]:
        cols = [td.get_text(strip=True) for td in tr.find_all(["td", "th"])]
        if len(cols) <= symbol_idx or not cols[symbol_idx]:
            continue
        added = cols[added_idx] if len(cols) > added_idx else ""
        records.append({
            'symbol': normalize_symbol(cols[symbol_idx]),
            'date_added': parse_date_added(added),
        })

    if not records:
        raise UniverseParseError("Constituents table has no data rows")

    logger.info(f"Parsed {len(records)} constituents")
    return pd.DataFrame({
        'symbol': [r['symbol'] for r in records],
        'date_added': pd.Series([r['date_added'] for r in records], dtype=object),
    })


def fetch_constituents(url: str, session: Optional[requests.Session] = None,
                       timeout: float = 15) -> pd.DataFrame:
    """
    Download and parse the constituents page. Fatal on failure, no retry.

    Raises:
        DataFetchError: On network errors or a non-2xx response
        UniverseParseError: If the page does not hold a constituents table
    """
    getter = session.get if session is not None else requests.get
    logger.info(f"Fetching constituents from {url}")
    try:
        resp = getter(url, headers=WIKI_HEADERS, timeout=timeout)
        resp.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise DataFetchError(f"Failed to fetch constituents from {url}: {e}") from e
    return parse_constituents(resp.text)


def filter_universe(constituents: pd.DataFrame, cutoff: date) -> List[str]:
    """
    Keep symbols whose addition date is unknown or on/before the cutoff.

    Duplicates are dropped; page order is preserved.
    """
    keep = []
    seen = set()
    excluded = 0
    for symbol, added in zip(constituents['symbol'], constituents['date_added']):
        if added is not None and not pd.isna(added) and added > cutoff:
            excluded += 1
            continue
        if symbol in seen:
            continue
        seen.add(symbol)
        keep.append(symbol)
    logger.info(f"Universe: kept {len(keep)}, excluded {excluded} added after {cutoff}")
    return keep


def load_universe(config, session: Optional[requests.Session] = None) -> List[str]:
    """Fetch the constituents page and apply the cutoff filter from a StudyConfig.

    The ticker limit is applied by the study, not here.
    """
    constituents = fetch_constituents(config.constituents_url, session=session)
    return filter_universe(constituents, config.cutoff)
