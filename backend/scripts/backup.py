"""Export, import or push the locally persisted planning slots."""

from __future__ import annotations

import argparse
import asyncio
import json
import pathlib
import sys

from stayplan.config import get_settings
from stayplan.core.logging import setup_logging
from stayplan.storage import PersistedStore, SqlStorage
from stayplan.storage.backup import backup_filename, export_snapshot, import_snapshot
from stayplan.sync import RemoteStoreClient, SyncCoordinator


def _store(database_url: str | None) -> PersistedStore:
    settings = get_settings()
    backend = SqlStorage(database_url or settings.local_database_url)
    return PersistedStore(backend, namespace=settings.storage_namespace)


def _export(store: PersistedStore, output: str | None) -> None:
    path = pathlib.Path(output or backup_filename())
    document = export_snapshot(store)
    path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
    print(f"Exported {len(document)} slots to {path}")


def _import(store: PersistedStore, source: str) -> None:
    document = json.loads(pathlib.Path(source).read_text(encoding="utf-8"))
    written = import_snapshot(store, document)
    print(f"Imported {len(written)} slots; restart open sessions to pick them up")


async def _push(store: PersistedStore, remote_url: str | None) -> bool:
    coordinator = SyncCoordinator(store, RemoteStoreClient(remote_url))
    try:
        ok = await coordinator.upload_now()
    finally:
        await coordinator.close()
    print(f"Upload {coordinator.status.value}")
    return ok


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Backup tools for the planning slots")
    parser.add_argument("--database-url", help="Local slot database (defaults to LOCAL_DATABASE_URL)")
    commands = parser.add_subparsers(dest="command", required=True)

    export_cmd = commands.add_parser("export", help="Write every slot to a JSON file")
    export_cmd.add_argument("--output", help="Target file (defaults to budget_backup_<date>.json)")

    import_cmd = commands.add_parser("import", help="Load slots from a backup file")
    import_cmd.add_argument("source")

    push_cmd = commands.add_parser("push", help="Upload every slot to the remote store")
    push_cmd.add_argument("--remote-url", help="Base URL of the /store service")

    args = parser.parse_args(argv)
    setup_logging()
    store = _store(args.database_url)
    try:
        if args.command == "export":
            _export(store, args.output)
        elif args.command == "import":
            _import(store, args.source)
        else:
            return 0 if asyncio.run(_push(store, args.remote_url)) else 1
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
