"""One-time import script: Load an exported storage backup into MongoDB.

The backup is the JSON object the app keeps in browser storage, e.g.
``{"bestie-goals": [...], "bestie-schedule-tasks": [...]}``.

Usage:
    # Dry run (validate and show what would be imported)
    python scripts/import_backup.py --source backup.json --dry-run

    # Real import, keeping goals and tasks already stored
    python scripts/import_backup.py --source backup.json --mongodb-url mongodb://localhost:27017
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient
from pydantic import ValidationError

from app.config import settings
from app.models.goal import Goal
from app.models.schedule_task import ScheduleTask
from app.store.base import GOALS_KEY, TASKS_KEY, KeyValueStore
from app.store.mongo import MongoKeyValueStore


class BackupImporter:
    """Imports goal and task records into a key-value store."""

    def __init__(self, store: KeyValueStore, dry_run: bool = False):
        """Initialize importer.

        Args:
            store: Destination store
            dry_run: Validate and report without writing
        """
        self.store = store
        self.dry_run = dry_run

        # Stats
        self.stats = {
            "goals": {"total": 0, "imported": 0, "duplicate": 0, "failed": 0},
            "tasks": {"total": 0, "imported": 0, "duplicate": 0, "failed": 0},
        }

    async def import_key(self, key: str, model, records: list, name: str) -> None:
        """Validate records and append the ones whose id is not stored yet."""
        print(f"\n=== Importing {name.capitalize()} ===")
        stats = self.stats[name]

        existing = await self.store.get(key)
        if not isinstance(existing, list):
            existing = []
        known_ids = {record.get("id") for record in existing if isinstance(record, dict)}

        added = []
        for record in records:
            stats["total"] += 1
            try:
                item = model.model_validate(record)
            except ValidationError as e:
                stats["failed"] += 1
                print(f"  ✗ {record.get('id', '?') if isinstance(record, dict) else '?'}: {e.errors()[0]['msg']}")
                continue

            if item.id in known_ids:
                stats["duplicate"] += 1
                print(f"  - {item.id}: already stored")
                continue

            known_ids.add(item.id)
            added.append(item.model_dump(mode="json", by_alias=True))
            stats["imported"] += 1
            print(f"  ✓ {item.id} ({item.title})")

        if added and not self.dry_run:
            await self.store.set(key, [*existing, *added])

    async def run(self, backup: dict) -> dict:
        """Run the import and return the stats."""
        goals = backup.get(GOALS_KEY) or []
        tasks = backup.get(TASKS_KEY) or []

        await self.import_key(GOALS_KEY, Goal, goals, "goals")
        await self.import_key(TASKS_KEY, ScheduleTask, tasks, "tasks")

        # Print summary
        print("\n=== Import Summary" + (" (dry run)" if self.dry_run else "") + " ===")
        for entity_type, stats in self.stats.items():
            print(f"{entity_type.capitalize()}:")
            print(f"  Total: {stats['total']}")
            print(f"  Imported: {stats['imported']}")
            print(f"  Duplicate: {stats['duplicate']}")
            print(f"  Failed: {stats['failed']}")
        return self.stats


def load_backup(path: Path) -> dict:
    """Read a backup file, accepting values stored as JSON strings."""
    data = json.loads(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Backup must be a JSON object keyed by storage key")

    for key in (GOALS_KEY, TASKS_KEY):
        value = data.get(key)
        # Browser storage exports hold each value as a JSON string
        if isinstance(value, str):
            data[key] = json.loads(value)
    return data


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Import a storage backup into MongoDB")
    parser.add_argument(
        "--source",
        required=True,
        help="Path to the backup JSON file",
    )
    parser.add_argument(
        "--mongodb-url",
        default=settings.mongodb_url,
        help="MongoDB connection URL",
    )
    parser.add_argument(
        "--db-name",
        default=settings.mongodb_db_name,
        help="MongoDB database name",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and report without writing",
    )

    args = parser.parse_args()

    source_path = Path(args.source)
    if not source_path.exists():
        print(f"Error: Source file does not exist: {source_path}")
        sys.exit(1)

    try:
        backup = load_backup(source_path)
    except ValueError as e:
        print(f"Error: Could not read backup: {e}")
        sys.exit(1)

    client = AsyncIOMotorClient(args.mongodb_url)
    try:
        store = MongoKeyValueStore(client[args.db_name], settings.kv_collection_name)
        print(f"Connected to MongoDB: {args.mongodb_url}")
        await BackupImporter(store, dry_run=args.dry_run).run(backup)
    finally:
        client.close()


if __name__ == "__main__":
    asyncio.run(main())
