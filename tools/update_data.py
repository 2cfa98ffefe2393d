#!/usr/bin/env python3
"""
Refresh the Marvel Champions card lookup used by the tracker UI.

Reads the pack list from MarvelCDB, pulls every pack's encounter and player
card files from the marvelsdb-json-data mirror, and folds them into six
collections (villains, schemes, heroes, side_schemes, minions, allies)
written to src/marvel_data.json.

Villain hit points always come from villain_stats.VILLAIN_STATS; the
upstream health values for villains are unreliable (0, null or "X").

This script is designed to run from the repo root.
"""

import argparse
import json
import os
import re
import sys
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import requests

from villain_stats import stages_for

# Relative to the working directory; run from the repo root
OUTPUT_PATH = Path('src') / 'marvel_data.json'

PACKS_API = os.environ.get('MARVELCDB_PACKS_URL', 'https://marvelcdb.com/api/public/packs')
MIRROR_BASE = os.environ.get(
    'MARVEL_JSON_MIRROR_URL',
    'https://raw.githubusercontent.com/zzorba/marvelsdb-json-data/master/pack'
)
USER_AGENT = 'MarvelChampionsApp/1.0'
REQUEST_TIMEOUT = 30
SPOT_CHECK_VILLAIN = 'Ultron'
UNKNOWN_SET = 'unknown'

_NON_DIGITS = re.compile(r'[^0-9]')


def log(message: str) -> None:
    print(message, flush=True)


class PackIndexError(RuntimeError):
    """The pack index was empty or unreadable; nothing can be refreshed."""


# --- FETCHING ---

def fetch_json(session, url: str, timeout: float = REQUEST_TIMEOUT):
    """Fetch JSON from a URL. Any failure yields an empty list instead of raising.

    Redirects are followed by requests itself. A 404 is expected for packs that
    ship no encounter (or no player) file and is not reported.
    """
    try:
        resp = session.get(url, headers={'User-Agent': USER_AGENT}, timeout=timeout)
    except requests.exceptions.RequestException as e:
        log(f"    Warning: request failed for {url}: {e}")
        return []
    if resp.status_code == 404:
        return []
    if resp.status_code >= 400:
        log(f"    Warning: HTTP {resp.status_code} for {url}")
        return []
    try:
        return resp.json()
    except ValueError:
        log(f"    Warning: response from {url} is not valid JSON")
        return []


def load_pack_codes(session, url: str = PACKS_API, timeout: float = REQUEST_TIMEOUT) -> List[str]:
    """Load pack codes from the pack index, in index order."""
    data = fetch_json(session, url, timeout)
    if not data or not isinstance(data, list):
        raise PackIndexError(f"pack index at {url} is empty or malformed")

    codes = []
    for pack in data:
        if not isinstance(pack, dict):
            continue
        code = pack.get('code')
        if isinstance(code, str) and code.strip():
            codes.append(code.strip())

    if not codes:
        raise PackIndexError(f"pack index at {url} lists no pack codes")
    return codes


def encounter_url(pack_code: str) -> str:
    return f"{MIRROR_BASE}/{pack_code}_encounter.json"


def player_url(pack_code: str) -> str:
    return f"{MIRROR_BASE}/{pack_code}.json"


# --- PARSING ---

def parse_health(value) -> int:
    """Parse a health field by keeping only its digits ("2x3" -> 23, "X" -> 0)."""
    if value is None:
        return 0
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    digits = _NON_DIGITS.sub('', str(value))
    return int(digits) if digits else 0


def parse_threat(value) -> int:
    if not value:
        return 0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return max(int(value), 0)
    return parse_health(value)


class CardKind(Enum):
    VILLAIN = 'villain'
    MAIN_SCHEME = 'main_scheme'
    SIDE_SCHEME = 'side_scheme'
    MINION = 'minion'
    HERO = 'hero'
    ALLY = 'ally'

    @classmethod
    def from_type_code(cls, type_code) -> Optional['CardKind']:
        """Return the kind for a card's type_code, or None for kinds we ignore."""
        if not isinstance(type_code, str):
            return None
        try:
            return cls(type_code)
        except ValueError:
            return None


ENCOUNTER_KINDS = frozenset({
    CardKind.VILLAIN, CardKind.MAIN_SCHEME, CardKind.SIDE_SCHEME, CardKind.MINION
})
PLAYER_KINDS = frozenset({CardKind.HERO, CardKind.ALLY})

# Collections where the first card seen for a name is kept
UNIQUE_COLLECTIONS = ('heroes', 'side_schemes', 'minions', 'allies')


def _name_key(entry: Dict):
    name = entry['name']
    return (name.casefold(), name)


def _code_key(entry: Dict) -> str:
    return str(entry.get('code') or '')


@dataclass
class CardDatabase:
    """Running aggregate of normalized cards, keyed by display name."""
    villains: List[Dict] = field(default_factory=list)
    schemes: List[Dict] = field(default_factory=list)
    heroes: List[Dict] = field(default_factory=list)
    side_schemes: List[Dict] = field(default_factory=list)
    minions: List[Dict] = field(default_factory=list)
    allies: List[Dict] = field(default_factory=list)
    _by_name: Dict[str, Dict[str, Dict]] = field(default_factory=dict, repr=False, compare=False)

    def __len__(self):
        return sum(len(getattr(self, key)) for key in self.collections())

    @staticmethod
    def collections():
        return ('villains', 'schemes', 'heroes', 'side_schemes', 'minions', 'allies')

    def find(self, collection: str, name: str) -> Optional[Dict]:
        return self._by_name.get(collection, {}).get(name)

    def add_card(self, card, kinds: Iterable[CardKind] = frozenset(CardKind)) -> None:
        """Classify one raw card and fold it into the matching collection.

        Cards that are not objects, have no name, or whose kind is not in
        `kinds` are skipped.
        """
        if not isinstance(card, dict):
            return
        kind = CardKind.from_type_code(card.get('type_code'))
        if kind is None or kind not in kinds:
            return
        name = card.get('name')
        if not isinstance(name, str):
            return
        getattr(self, f"_add_{kind.value}")(name, card)

    def _add_villain(self, name: str, card: Dict) -> None:
        self._put_villain({
            'name': name,
            'code': card.get('code'),
            'set_code': card.get('card_set_code') or UNKNOWN_SET,
            'stages': stages_for(name),
        })

    def _add_main_scheme(self, name: str, card: Dict) -> None:
        if card.get('threat') is None and card.get('base_threat_fixed') is not True:
            return
        self.schemes.append({
            'name': name,
            'code': card.get('code'),
            'set_code': card.get('card_set_code') or UNKNOWN_SET,
            'init': parse_threat(card.get('base_threat')),
            'target': parse_threat(card.get('threat')),
            'accel': parse_threat(card.get('acceleration')),
            'fixed': bool(card.get('base_threat_fixed')),
        })

    def _add_side_scheme(self, name: str, card: Dict) -> None:
        self._put_unique('side_schemes', {
            'name': name,
            'init': parse_threat(card.get('base_threat')),
            'code': card.get('code'),
        })

    def _add_minion(self, name: str, card: Dict) -> None:
        self._put_unique('minions', self._unit(name, card))

    def _add_hero(self, name: str, card: Dict) -> None:
        self._put_unique('heroes', self._unit(name, card))

    def _add_ally(self, name: str, card: Dict) -> None:
        self._put_unique('allies', self._unit(name, card))

    @staticmethod
    def _unit(name: str, card: Dict) -> Dict:
        return {'name': name, 'hp': parse_health(card.get('health')), 'code': card.get('code')}

    def _put_villain(self, entry: Dict) -> None:
        # code and set_code stay with the first card; stages always refresh
        index = self._by_name.setdefault('villains', {})
        existing = index.get(entry['name'])
        if existing is not None:
            existing['stages'] = list(entry['stages'])
            return
        self.villains.append(entry)
        index[entry['name']] = entry

    def _put_unique(self, collection: str, entry: Dict) -> None:
        index = self._by_name.setdefault(collection, {})
        if entry['name'] in index:
            return
        getattr(self, collection).append(entry)
        index[entry['name']] = entry

    def merge(self, other: 'CardDatabase') -> None:
        """Fold a later partial aggregate into this one using the same rules."""
        for villain in other.villains:
            self._put_villain(dict(villain))
        self.schemes.extend(dict(scheme) for scheme in other.schemes)
        for collection in UNIQUE_COLLECTIONS:
            for entry in getattr(other, collection):
                self._put_unique(collection, dict(entry))

    def sort(self) -> None:
        self.villains.sort(key=_name_key)
        self.heroes.sort(key=_name_key)
        self.schemes.sort(key=_code_key)

    def to_json(self) -> Dict[str, List[Dict]]:
        return {key: getattr(self, key) for key in self.collections()}


# --- AGGREGATION ---

def _as_records(payload) -> list:
    return payload if isinstance(payload, list) else []


def fold_pack(session, pack_code: str, timeout: float = REQUEST_TIMEOUT) -> CardDatabase:
    """Fetch one pack's encounter and player files into a fresh partial aggregate."""
    partial = CardDatabase()
    for card in _as_records(fetch_json(session, encounter_url(pack_code), timeout)):
        partial.add_card(card, ENCOUNTER_KINDS)
    for card in _as_records(fetch_json(session, player_url(pack_code), timeout)):
        partial.add_card(card, PLAYER_KINDS)
    return partial


def build_database(session, pack_codes: List[str], workers: int = 1,
                   timeout: float = REQUEST_TIMEOUT) -> CardDatabase:
    """Fold every pack, merging partials in pack order so the result never depends on workers."""
    db = CardDatabase()
    total = len(pack_codes)

    if workers <= 1:
        for i, code in enumerate(pack_codes, 1):
            partial = fold_pack(session, code, timeout)
            log(f"  [{i}/{total}] {code}: {len(partial)} cards")
            db.merge(partial)
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(fold_pack, session, code, timeout) for code in pack_codes]
            for i, (code, future) in enumerate(zip(pack_codes, futures), 1):
                partial = future.result()
                log(f"  [{i}/{total}] {code}: {len(partial)} cards")
                db.merge(partial)

    db.sort()
    return db


# --- OUTPUT ---

def write_json_atomic(path, data) -> None:
    """Atomically write JSON to path with UTF-8 encoding, replacing any previous file."""
    path = os.fspath(path)
    dirpath = os.path.dirname(path)
    if dirpath and not os.path.exists(dirpath):
        os.makedirs(dirpath, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=dirpath or None)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as tmpf:
            json.dump(data, tmpf, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def select_packs(pack_codes: List[str], wanted: Optional[List[str]]) -> List[str]:
    """Restrict pack codes to `wanted`, keeping index order."""
    if not wanted:
        return pack_codes
    wanted_set = set(wanted)
    missing = sorted(wanted_set - set(pack_codes))
    for code in missing:
        log(f"  Warning: pack '{code}' is not in the pack index")
    return [code for code in pack_codes if code in wanted_set]


def main(args) -> None:
    log("=" * 60)
    log("Marvel Champions card data refresh")
    log("=" * 60)

    session = requests.Session()
    try:
        pack_codes = load_pack_codes(session, PACKS_API, args.timeout)
    except PackIndexError as e:
        log(f"Error: {e}")
        sys.exit(1)

    pack_codes = select_packs(pack_codes, args.pack)
    if not pack_codes:
        log("Error: no packs left to scan")
        sys.exit(1)

    log(f"Scanning {len(pack_codes)} packs...")
    db = build_database(session, pack_codes, workers=args.workers, timeout=args.timeout)

    spot = db.find('villains', SPOT_CHECK_VILLAIN)
    if spot:
        log(f"\nCheck: {SPOT_CHECK_VILLAIN} stages: {spot['stages']}")

    write_json_atomic(args.output, db.to_json())

    log("\nSummary")
    for key in db.collections():
        log(f"  {key}: {len(getattr(db, key))}")
    log(f"\n✓ Data written to {args.output}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fetch Marvel Champions card data and write the tracker lookup file."
    )
    parser.add_argument("--output", default=str(OUTPUT_PATH), help=f"Output JSON path (default {OUTPUT_PATH}).")
    parser.add_argument("--pack", action="append", help="Only scan this pack code. Repeat for several packs.")
    parser.add_argument("--workers", type=int, default=1, help="Packs fetched in parallel (default 1, sequential).")
    parser.add_argument("--timeout", type=float, default=REQUEST_TIMEOUT, help=f"Per-request timeout in seconds (default {REQUEST_TIMEOUT}).")
    return parser


def run(argv=None) -> None:
    main(build_parser().parse_args(argv))


if __name__ == '__main__':
    run()
