#!/usr/bin/env python3
"""Fail when package sources import a provider SDK or hard-code a provider URL."""

from __future__ import annotations

import re
import sys
from pathlib import Path
from urllib.parse import urlsplit

ROOT = Path(__file__).resolve().parents[1]
SOURCE_ROOT = ROOT / "trading_cli"

PROVIDER_NAMES = r"(ccxt|lona|live_engine|live-engine|binance|alpaca|kraken|coinbase)"

DIRECT_PROVIDER_IMPORT_PATTERN = re.compile(
    rf"^\s*(?:from|import)\s+[\w.]*{PROVIDER_NAMES}[\w.]*",
    re.IGNORECASE | re.MULTILINE,
)
DIRECT_PROVIDER_URL_PATTERN = re.compile(
    rf"https?://[^\"'`\s]*{PROVIDER_NAMES}[^\"'`\s]*",
    re.IGNORECASE,
)

# Platform API and review web origins share the provider's parent domain.
SANCTIONED_HOSTS = frozenset({"api-nexus.lona.agency", "trade-nexus.lona.agency"})


def _is_sanctioned(url: str) -> bool:
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return False
    return hostname is not None and hostname.lower() in SANCTIONED_HOSTS


def scan_file(path: Path) -> list[str]:
    text = path.read_text(encoding="utf-8")
    failures: list[str] = []
    if DIRECT_PROVIDER_IMPORT_PATTERN.search(text):
        failures.append(f"Direct provider import found in {path}")
    for match in DIRECT_PROVIDER_URL_PATTERN.finditer(text):
        if not _is_sanctioned(match.group(0)):
            failures.append(f"Direct provider URL found in {path}: {match.group(0)}")
            break
    return failures


def scan_sources(source_root: Path = SOURCE_ROOT) -> list[str]:
    failures: list[str] = []
    for path in sorted(source_root.rglob("*.py")):
        failures.extend(scan_file(path))
    return failures


def main() -> int:
    failures = scan_sources()
    if failures:
        for failure in failures:
            print(failure, file=sys.stderr)
        return 1
    print("Boundary lint passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
