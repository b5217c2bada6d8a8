#!/usr/bin/env python3
"""
Poll a running smoke test's metrics endpoint.

Usage:
  python -m src.scrape --url http://127.0.0.1:8080 --interval 5
  python -m src.scrape --url http://127.0.0.1:8080 --reset

Options:
 - --report : also print the JSON failure report
 - --reset : zero the counters on the server and exit
 - --count N : stop after N polls (0 polls forever)
"""
from __future__ import annotations

import argparse
import json
import time
from typing import Dict, Optional, Sequence

import requests
from prometheus_client.parser import text_string_to_metric_families


def fetch_metrics(base: str, timeout: float = 5.0) -> Dict[str, int]:
    """Return {metric_name: value} parsed from /metrics."""
    r = requests.get(f"{base}/metrics", timeout=timeout)
    r.raise_for_status()
    values = {}
    for family in text_string_to_metric_families(r.text):
        for sample in family.samples:
            values[sample.name] = int(sample.value)
    return values


def fetch_report(base: str, timeout: float = 5.0) -> dict:
    r = requests.get(f"{base}/report", timeout=timeout)
    r.raise_for_status()
    return r.json()


def reset(base: str, timeout: float = 5.0) -> int:
    r = requests.post(f"{base}/reset", timeout=timeout)
    r.raise_for_status()
    return r.json()["resetCount"]


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Poll the SQLite smoke test metrics endpoint.")
    parser.add_argument("--url", default="http://127.0.0.1:8080")
    parser.add_argument("--interval", type=float, default=5.0)
    parser.add_argument("--count", type=int, default=0)
    parser.add_argument("--report", action="store_true")
    parser.add_argument("--reset", action="store_true")
    args = parser.parse_args(argv)
    base = args.url.rstrip("/")

    if args.reset:
        print(f"reset count now {reset(base)}")
        return 0

    polls = 0
    while True:
        values = fetch_metrics(base)
        print(" ".join(f"{k}={v}" for k, v in sorted(values.items())))
        if args.report:
            print(json.dumps(fetch_report(base), indent=2, sort_keys=True))
        polls += 1
        if args.count and polls >= args.count:
            return 0
        time.sleep(args.interval)


if __name__ == "__main__":
    raise SystemExit(main())
