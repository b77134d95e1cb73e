"""Export and import of every namespaced slot as one JSON document."""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Mapping

from stayplan.storage.store import PersistedStore

logger = logging.getLogger(__name__)


def backup_filename(today: date | None = None) -> str:
    return f"budget_backup_{(today or date.today()).isoformat()}.json"


def export_snapshot(store: PersistedStore) -> dict[str, Any]:
    """Map every namespaced key to its value; unparsable values are kept as text."""

    document: dict[str, Any] = {}
    for key in store.keys():
        raw = store.raw(key)
        if raw is None:
            continue
        try:
            document[key] = json.loads(raw)
        except ValueError:
            document[key] = raw
    return document


def import_snapshot(store: PersistedStore, document: Mapping[str, Any]) -> list[str]:
    """Write the namespaced keys of ``document`` into ``store``.

    Keys outside the namespace are ignored. Bindings must be re-resolved
    afterwards (reload or rebind) to pick the imported values up.
    """

    if not isinstance(document, Mapping):
        raise ValueError("Backup document must be a JSON object")
    written = []
    for key, value in document.items():
        if not key.startswith(store.namespace):
            logger.debug("Ignoring foreign key %s in backup", key)
            continue
        store.adopt(key, value)
        written.append(key)
    logger.info("Imported %d slots from backup", len(written))
    return written


__all__ = ["backup_filename", "export_snapshot", "import_snapshot"]
