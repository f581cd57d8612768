#!/usr/bin/env python3
"""
Delete OTP rows from the store.

By default only expired challenges are removed. Request paths never prune the
table, so run this from cron or by hand:

    python services/otp-api/scripts/purge_otps.py [--phone PHONE | --all]
"""
import sys
from datetime import datetime, timezone
from pathlib import Path

# Make `app` importable when run as a plain script from a checkout
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.db import Base, SessionLocal, engine
from app.domains.otp.store import OtpStore


def purge(store: OtpStore, *, phone: str | None = None, purge_all: bool = False) -> int:
    if phone:
        return store.delete_for_phone(phone)
    if purge_all:
        return store.delete_all()
    return store.purge_expired(datetime.now(timezone.utc))


def main():
    import argparse
    parser = argparse.ArgumentParser(description="Delete OTP challenges from the store")
    parser.add_argument("--phone", default=None, help="Delete every challenge for this phone")
    parser.add_argument("--all", dest="purge_all", action="store_true", help="Delete every challenge")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    print(f"=== Purging OTPs ({engine.url.render_as_string(hide_password=True)}) ===")
    with SessionLocal() as db:
        store = OtpStore(db)
        removed = purge(store, phone=args.phone, purge_all=args.purge_all)
        print(f"✓ otps: {removed} rows deleted")
        print(f"otps remaining: {store.count()}")


if __name__ == "__main__":
    main()
