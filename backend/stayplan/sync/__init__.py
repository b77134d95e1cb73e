"""Remote mirroring of the persisted slots."""

from stayplan.sync.client import RemoteStoreClient, StoreServiceError
from stayplan.sync.coordinator import SyncCoordinator, SyncStatus

__all__ = ["RemoteStoreClient", "StoreServiceError", "SyncCoordinator", "SyncStatus"]
