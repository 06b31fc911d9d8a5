#!/usr/bin/env python3
"""Onboard a credential batch file against a live registry.

This script:
1. Parses the batch file (flat or envelope JSON)
2. Loads existing credential hashes from the registry
3. Creates, verifies and if needed rolls back each credential, printing progress

Registry connection settings come from CREDRELAY_ADMIN_* environment variables.

Usage:
    python scripts/onboard_batch.py accounts.json
"""

import logging
import signal
import sys
from pathlib import Path

from credrelay.onboarding import OnboardingPipeline, ParseError
from credrelay.registry import RegistryClient, RegistryError


def onboard(path: Path) -> bool:
    """Onboard every credential in ``path``; return True if all verified."""
    print("=" * 60)
    print(f"Onboarding credentials from {path}")
    print("=" * 60)

    with RegistryClient() as registry:
        pipeline = OnboardingPipeline(registry=registry)

        try:
            batch = pipeline.parser.parse(path.read_text(encoding="utf-8"))
        except ParseError as e:
            print(f"\nCould not parse {path.name}: {e}")
            return False

        print(f"\nDetected {batch.format.value} input: {len(batch.inputs)} valid entries")
        if batch.dropped:
            print(f"  {batch.dropped} entries dropped (no token)")

        def request_cancel(signum, frame):
            print("\nInterrupted; finishing the current credential, then stopping")
            pipeline.cancel()

        run = pipeline.start(batch)
        events = pipeline.process(run)
        previous_handler = signal.signal(signal.SIGINT, request_cancel)
        try:
            for event in events:
                item = event.item
                line = f"  [{event.progress.current}/{event.progress.total}] {item.status.value:9} {item.label}"
                if item.usage:
                    line += f"  usage {item.usage}"
                if item.error:
                    line += f"  ({item.error})"
                if item.rollback:
                    line += f"  rollback {item.rollback.value}"
                print(line)
        except RegistryError as e:
            print(f"\nRegistry unavailable: {e}")
            return False
        finally:
            signal.signal(signal.SIGINT, previous_handler)

    summary = run.summary
    print("\n" + "=" * 60)
    print(summary.message())
    if summary.needs_manual_cleanup:
        ids = ", ".join(f"#{i}" for i in summary.rollback_failed_ids)
        print(f"Manual cleanup required for: {ids}")
    return summary.is_success


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)

    logging.basicConfig(level=logging.WARNING)
    sys.exit(0 if onboard(Path(sys.argv[1])) else 1)
