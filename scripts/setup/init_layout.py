# scripts/setup/init_layout.py
"""
Initialize the lounge data directory and station layout.
Run once before first launch, or after changing the station pool.
Usage: python scripts/setup/init_layout.py [--reset]
"""

import argparse
import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from lounge.config import settings
from lounge.services.occupancy_ledger import build_station_pool
from lounge.services.slot_layout import SlotLayoutStore


def main():
    parser = argparse.ArgumentParser(description="Create or repair the station slot layout")
    parser.add_argument("--reset", action="store_true", help="Discard the saved layout and rebuild the default one")
    args = parser.parse_args()

    print("🗂️  Lounge Layout Initialization")
    print("=" * 40)
    print(f"📁 Data directory: {os.path.abspath(settings.DATA_DIR)}")
    os.makedirs(settings.DATA_DIR, exist_ok=True)

    stations = build_station_pool(settings.PRIMARY_STATION_COUNT, settings.AUXILIARY_STATIONS)
    print(f"🖥️  Stations: {len(stations)} ({settings.PRIMARY_STATION_COUNT} PCs, "
          f"{len(settings.AUXILIARY_STATIONS)} consoles)")

    if args.reset and os.path.exists(settings.LAYOUT_FILE):
        os.remove(settings.LAYOUT_FILE)
        print("♻️  Saved layout removed")

    store = SlotLayoutStore(settings.LAYOUT_FILE, settings.PREFERRED_SLOT_ORDER, [s.id for s in stations])
    store.load()
    print(f"✅ Layout ready: {settings.LAYOUT_FILE}")

    by_slot = sorted(store.mapping.items(), key=lambda item: item[1])
    labels = {s.id: s.label for s in stations}
    print(f"\n📊 Slots ({len(by_slot)} total):")
    for station_id, slot in by_slot:
        print(f"   slot {slot:>2} → {labels.get(station_id, station_id)}")


if __name__ == "__main__":
    main()
