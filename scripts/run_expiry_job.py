# /scripts/run_expiry_job.py
"""
Run the expiry notification job once, outside the web process.

    python scripts/run_expiry_job.py            # scan + send
    python scripts/run_expiry_job.py --dry-run  # list eligible products only
"""
from __future__ import annotations
import argparse, asyncio, json, logging, math, sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv
load_dotenv()

from app.container import get_connection, get_expiry_job


async def _run(dry_run: bool) -> int:
    job = get_expiry_job()
    try:
        if dry_run:
            items = await job.preview()
            for i, it in enumerate(items, 1):
                print(f"{i:3d}. {it.product.name:<40} {math.ceil(it.days_left)} day(s) "
                      f"(window {it.product.notify_before_days})")
            print(f"eligible: {len(items)}")
            return 0
        summary = await job.run_once()
        print(json.dumps(summary.to_dict(), indent=2))
        return 1 if summary.skipped else 0
    finally:
        get_connection().close()


def main():
    ap = argparse.ArgumentParser(description="Run the expiry notification job once.")
    ap.add_argument("--dry-run", action="store_true", help="Only list eligible products, send nothing")
    args = ap.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    return asyncio.run(_run(args.dry_run))


if __name__ == "__main__":
    sys.exit(main())
