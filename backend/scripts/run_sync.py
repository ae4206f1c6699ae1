"""
Script to run one manual sync of the local store into the remote mirror.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import logging

from invoicer.context import AppContext
from invoicer.exceptions import OfflineError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def run_sync():
    context = AppContext.from_settings()

    status = context.compute_migration_status()
    print(f"Local shipments: {status.local.shipments}, remote shipments: {status.remote.shipments}")
    print(f"Shipments not yet in the remote mirror: {status.local_only_shipments}")

    try:
        result = context.sync()
    except OfflineError as e:
        print(f"✗ {e}")
        return 1

    if result.skipped:
        print("Nothing to sync")
        return 0

    print("\n" + "="*50)
    print("Sync Summary:")
    print("="*50)
    for kind in result.succeeded_kinds():
        print(f"✓ {kind.value}: {result.uploaded.get(kind)} uploaded")
    for kind in result.failed_kinds():
        print(f"✗ {kind.value}: {result.failed.get(kind)} failed")
    for failure in result.errors:
        print(f"  - {failure.kind.value} '{failure.natural_key}': {failure.error}")
    if result.cancelled:
        print("Sync was cancelled before finishing")
    return 1 if result.has_failures else 0

if __name__ == "__main__":
    sys.exit(run_sync())
