"""
DRCS source dictionary and hash mapping file handling

Source format (JSON):
    {"map": [{"drcs": "<base64>", "alternative": "<char>"}, ...]}

Mapping file format (UTF-8 text):
    <32 hex digit hash>=<substitute character>
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path

import requests

MAP_LINE = re.compile(r'^([0-9A-Fa-f]{32})=(.*)$')
FETCH_TIMEOUT = 60


class SourceError(Exception):
    """Source dictionary could not be read or parsed"""


@dataclass
class SourceEntry:
    drcs: str
    alternative: str


class DrcsMap:
    """Hash -> substitute pairs in first-seen order

    Entries are never replaced or removed. The set gives O(1) lookup.
    """

    def __init__(self):
        self.entries = []
        self.known = set()
        self.loaded_count = 0
        self.ignored_lines = 0

    def __contains__(self, glyph_hash):
        return glyph_hash in self.known

    def __len__(self):
        return len(self.entries)

    def add(self, glyph_hash, substitute):
        """Add a pair. Returns False if the hash is already present"""
        if glyph_hash in self.known:
            return False
        self.known.add(glyph_hash)
        self.entries.append((glyph_hash, substitute))
        return True

    def new_entries(self):
        return self.entries[self.loaded_count:]

    def lines(self):
        return [f"{h}={c}" for h, c in self.entries]


def fetch_text(location):
    if location.startswith(('http://', 'https://')):
        try:
            r = requests.get(location, timeout=FETCH_TIMEOUT)
            r.raise_for_status()
        except requests.RequestException as e:
            raise SourceError(f"Cannot download {location}: {e}") from e
        try:
            return r.content.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise SourceError(f"Cannot decode {location}: {e}") from e

    try:
        with open(location, 'r', encoding='utf-8-sig') as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise SourceError(f"Cannot read {location}: {e}") from e


def parse_source(text):
    """Parse the JSON dictionary

    Returns:
        Tuple of (entries, skipped)
        entries: List of SourceEntry in document order
        skipped: Number of items with missing drcs or alternative,
                 or an alternative spanning several lines
    """
    try:
        document = json.loads(text)
    except ValueError as e:
        raise SourceError(f"Invalid JSON: {e}") from e

    if not isinstance(document, dict) or not isinstance(document.get('map'), list):
        raise SourceError("JSON has no 'map' array")

    entries = []
    skipped = 0
    for item in document['map']:
        if not isinstance(item, dict):
            skipped += 1
            continue
        drcs = item.get('drcs')
        alternative = item.get('alternative')
        if not isinstance(drcs, str) or not isinstance(alternative, str):
            skipped += 1
            continue
        # one mapping line per entry
        if '\n' in alternative or '\r' in alternative:
            skipped += 1
            continue
        entries.append(SourceEntry(drcs, alternative))

    return entries, skipped


def load_source(location):
    """Load source entries from a file path or http(s) URL"""
    return parse_source(fetch_text(location))


def load_map(path):
    """Load an existing mapping file. A missing file gives an empty map"""
    drcs_map = DrcsMap()
    path = Path(path)
    if not path.exists():
        return drcs_map

    with open(path, 'r', encoding='utf-8-sig') as f:
        for line in f:
            line = line.rstrip('\r\n')
            m = MAP_LINE.match(line)
            if m:
                drcs_map.add(m.group(1).upper(), m.group(2))
            elif line.strip():
                drcs_map.ignored_lines += 1

    drcs_map.loaded_count = len(drcs_map)
    return drcs_map


def write_map(path, drcs_map):
    with open(path, 'w', encoding='utf-8', newline='\n') as f:
        for line in drcs_map.lines():
            f.write(line + '\n')
