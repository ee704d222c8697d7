#!/usr/bin/env python3
"""
DRCS Substitution Table Converter
Creates <hash>.bmp glyph files and a hash=character mapping file
from a JSON DRCS dictionary
"""

import sys
import argparse
import concurrent.futures
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from drcsconv import __version__
from drcsconv.drcsmap import SourceError, load_map, load_source, write_map
from drcsconv.pipeline import convert_glyph
from drcsconv.preview import make_preview

PROGRESS_INTERVAL = 100


@dataclass
class BatchStats:
    total: int = 0
    converted: int = 0
    added: int = 0
    duplicates: int = 0
    failed: int = 0
    ambiguous: int = 0


class ConversionLog:
    """Plain text conversion log. Does nothing when path is None"""

    def __init__(self, path=None, with_base64=False):
        self.path = path
        self.with_base64 = with_base64
        self.file = None

    def __enter__(self):
        if self.path:
            self.file = open(self.path, 'a', encoding='utf-8', newline='\n')
            self.write(f"# drcsconv {__version__} {datetime.now().isoformat(timespec='seconds')}")
        return self

    def __exit__(self, *exc):
        if self.file:
            self.file.close()
            self.file = None
        return False

    def write(self, line):
        if self.file:
            self.file.write(line + '\n')

    def glyph(self, result, entry):
        self.write(f"{result.hash}={entry.alternative} [{result.detail}]")
        if self.with_base64:
            self.write(f"{result.hash}={entry.alternative} [BASE64: {entry.drcs}]")

    def failure(self, result, entry):
        self.write(f"ERROR: {entry.alternative} [{result.error}]")


def collect_results(entries, results, output_dir, drcs_map, log, progress):
    stats = BatchStats(total=len(entries))
    added = []

    for done, (entry, result) in enumerate(zip(entries, results), 1):
        if not result.success:
            stats.failed += 1
            log.failure(result, entry)
        else:
            stats.converted += 1
            if result.dimensions.ambiguous:
                stats.ambiguous += 1
            if drcs_map.add(result.hash, entry.alternative):
                (output_dir / f"{result.hash}.bmp").write_bytes(result.bitmap)
                added.append((result.hash, result.grid))
                stats.added += 1
                log.glyph(result, entry)
            else:
                stats.duplicates += 1
        if progress:
            progress(done, stats.total)

    return stats, added


def convert_entries(entries, output_dir, drcs_map, log=None, jobs=1, progress=None):
    """Convert source entries and write bitmaps for new hashes

    Conversion may run on worker threads; results are consumed in
    source order on the calling thread, which alone touches drcs_map,
    the output directory and the log.

    Args:
        entries: List of SourceEntry
        output_dir: Directory for <hash>.bmp files
        drcs_map: DrcsMap holding already known hashes, updated in place
        log: Optional ConversionLog
        jobs: Number of worker threads
        progress: Optional callable(done, total)

    Returns:
        Tuple of (stats, added)
        added: List of (hash, PixelGrid) for newly written glyphs
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    if log is None:
        log = ConversionLog()

    texts = [e.drcs for e in entries]

    if jobs > 1:
        with concurrent.futures.ThreadPoolExecutor(jobs) as executor:
            results = executor.map(convert_glyph, texts)
            return collect_results(entries, results, output_dir, drcs_map, log, progress)

    return collect_results(entries, map(convert_glyph, texts), output_dir, drcs_map, log, progress)


def print_progress(done, total):
    if done % PROGRESS_INTERVAL == 0 or done == total:
        print(f"  {done}/{total}")


def main(argv=None):
    parser = argparse.ArgumentParser(description='DRCS substitution table to BMP converter')
    parser.add_argument('source',
                        help='DRCS dictionary JSON file or http(s) URL')
    parser.add_argument('--output', '-o', default='drcs',
                        help='Output directory for BMP files (default: drcs)')
    parser.add_argument('--map', '-m', default='drcs_map.txt',
                        help='Mapping file, merged if it exists (default: drcs_map.txt)')
    parser.add_argument('--log', default=None,
                        help='Conversion log file (optional)')
    parser.add_argument('--log-base64', action='store_true',
                        help='Also log the source base64 of each new glyph')
    parser.add_argument('--jobs', '-j', type=int, default=1,
                        help='Worker threads (default: 1)')
    parser.add_argument('--preview', default=None,
                        help='Write a preview image of new glyphs (optional)')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Do not print progress')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    args = parser.parse_args(argv)

    if args.jobs < 1:
        parser.error("--jobs must be 1 or more")

    print(f"DRCS Converter {__version__}")
    print(f"Source: {args.source}")
    print(f"Output directory: {args.output}")
    print(f"Mapping file: {args.map}")
    if args.log:
        print(f"Log file: {args.log}")
    print()

    try:
        entries, skipped = load_source(args.source)
    except SourceError as e:
        print(f"Error: {e}")
        return 1
    print(f"Entries loaded: {len(entries)}")
    if skipped:
        print(f"Warning: Skipped {skipped} entries without a usable drcs/alternative")

    try:
        drcs_map = load_map(args.map)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Cannot read {args.map}: {e}")
        return 1
    if len(drcs_map):
        print(f"Existing mappings: {len(drcs_map)}")
    if drcs_map.ignored_lines:
        print(f"Warning: {drcs_map.ignored_lines} unrecognized lines in {args.map} will not be kept")

    progress = None if args.quiet else print_progress
    try:
        with ConversionLog(args.log, args.log_base64) as log:
            stats, added = convert_entries(entries, args.output, drcs_map,
                                           log=log, jobs=args.jobs, progress=progress)
        write_map(args.map, drcs_map)
        if args.preview and added:
            make_preview([grid for _, grid in added], args.preview)
    except OSError as e:
        print(f"Error: {e}")
        return 1

    print(f"\nConversion complete:")
    print(f"  Converted: {stats.converted}/{stats.total}")
    print(f"  New glyphs: {stats.added}")
    print(f"  Duplicates: {stats.duplicates}")
    if stats.ambiguous:
        print(f"  Auto-detected 72 byte glyphs: {stats.ambiguous}")
    if stats.failed:
        print(f"  Failed: {stats.failed}")
    print(f"  Total mappings: {len(drcs_map)}")
    if args.preview and added:
        print(f"  Preview: {args.preview}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
