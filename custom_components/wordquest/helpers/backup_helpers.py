"""Backup utilities for WordQuest legacy data.

Handles creating, discovering, restoring, and cleaning up the verbatim
copies of legacy keys that migration takes before superseding them.
Backups live in the same key/value store under
``wordquest_legacy_backup_<timestamp>``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import dt_now_utc, dt_timestamp_slug

if TYPE_CHECKING:
    from datetime import datetime

    from ..store import KeyValueStore
    from ..type_defs import LegacyBackup


def collect_legacy_data(store: KeyValueStore) -> dict[str, Any]:
    """Return a verbatim copy of every legacy key present in the store."""
    return {key: store.get(key) for key in const.LEGACY_KEYS if key in store.keys()}


def discover_legacy_backups(store: KeyValueStore) -> list[dict[str, Any]]:
    """List legacy backups, newest first.

    Returns:
        List of metadata dictionaries with keys:
        - key: str (storage key of the backup)
        - backed_up_at: str (ISO timestamp)
        - migration_id: str
        - legacy_keys: list[str]
    """
    backups: list[dict[str, Any]] = []
    for key in store.keys():
        if not key.startswith(const.DATA_LEGACY_BACKUP_PREFIX):
            continue
        blob = store.get(key)
        if not isinstance(blob, dict) or not isinstance(blob.get("data"), dict):
            const.LOGGER.warning("WARNING: Ignoring malformed legacy backup %s", key)
            continue
        backups.append(
            {
                "key": key,
                "backed_up_at": blob.get("backed_up_at", ""),
                "migration_id": blob.get("migration_id", ""),
                "legacy_keys": sorted(blob["data"]),
            }
        )
    backups.sort(key=lambda backup: (backup["backed_up_at"], backup["key"]), reverse=True)
    return backups


def find_identical_backup(
    store: KeyValueStore, legacy_data: dict[str, Any]
) -> str | None:
    """Return the key of an existing backup holding exactly legacy_data."""
    for backup in discover_legacy_backups(store):
        blob = store.get(backup["key"])
        if blob["data"] == legacy_data:
            return backup["key"]
    return None


async def create_legacy_backup(
    store: KeyValueStore,
    legacy_data: dict[str, Any],
    migration_id: str,
    now: datetime | None = None,
) -> str:
    """Store one timestamped backup blob of the legacy keys.

    An identical existing backup is reused, so retried migrations do not
    pile up copies of the same data.

    Args:
        store: Key/value store
        legacy_data: Verbatim legacy key -> value mapping
        migration_id: Id of the migration run taking the backup
        now: Backup time (defaults to now in UTC)

    Returns:
        Storage key of the backup (new or reused).

    Raises:
        PersistenceError: If the backup cannot be saved.
    """
    existing = find_identical_backup(store, legacy_data)
    if existing:
        const.LOGGER.debug("Legacy data already backed up in %s", existing)
        return existing

    moment = now or dt_now_utc()
    key = f"{const.DATA_LEGACY_BACKUP_PREFIX}{dt_timestamp_slug(moment)}"
    blob: LegacyBackup = {
        "backed_up_at": moment.isoformat(),
        "migration_id": migration_id,
        "data": legacy_data,
    }
    await store.async_set(key, blob)
    const.LOGGER.info(
        "INFO: Backed up legacy keys %s to %s", sorted(legacy_data), key
    )
    return key


async def restore_legacy_backup(store: KeyValueStore, backup_key: str) -> list[str]:
    """Write the legacy keys of a backup back into the store verbatim.

    Returns:
        The legacy keys restored.

    Raises:
        KeyError: If backup_key does not name a valid backup.
        PersistenceError: If the keys cannot be saved.
    """
    blob = store.get(backup_key)
    if (
        not backup_key.startswith(const.DATA_LEGACY_BACKUP_PREFIX)
        or not isinstance(blob, dict)
        or not isinstance(blob.get("data"), dict)
    ):
        raise KeyError(backup_key)

    await store.async_set_many(blob["data"])
    const.LOGGER.info(
        "INFO: Restored legacy keys %s from %s", sorted(blob["data"]), backup_key
    )
    return sorted(blob["data"])


async def cleanup_old_legacy_backups(
    store: KeyValueStore,
    max_backups: int = const.DEFAULT_BACKUPS_MAX_RETAINED,
) -> int:
    """Delete legacy backups beyond the newest max_backups.

    At least one backup is always kept so migration stays reversible.

    Returns:
        Number of backups deleted.

    Raises:
        PersistenceError: If a deletion cannot be saved.
    """
    keep = max(int(max_backups), 1)
    backups = discover_legacy_backups(store)
    stale = backups[keep:]
    for backup in stale:
        await store.async_remove(backup["key"])
        const.LOGGER.info("Cleaned up old legacy backup: %s", backup["key"])
    return len(stale)
