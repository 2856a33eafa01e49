"""Key Rotation — id allocation, rotation planning and key minting.

Security Note:
    Key secrets live in process memory while a batch is minted and in the
    store afterwards. Only ids, site ids and timestamps are ever logged.
"""

from .allocator import allocate_key_ids, key_id_base
from .config import KeyServiceConfig, RotationPolicy
from .crypto import SecretGenerator, hash_key_record
from .lock import AdminWorkerPool, WriteLock, default_write_lock
from .minter import KeyMinter
from .planner import RotationPlanner, select_sites
from .selectors import AnyValidOrAdvertising, ExactSite, MasterAndRefresh, SiteSelector
from .service import EncryptionKeyService

__all__ = [
    "allocate_key_ids",
    "key_id_base",
    "KeyServiceConfig",
    "RotationPolicy",
    "SecretGenerator",
    "hash_key_record",
    "AdminWorkerPool",
    "WriteLock",
    "default_write_lock",
    "KeyMinter",
    "RotationPlanner",
    "select_sites",
    "AnyValidOrAdvertising",
    "ExactSite",
    "MasterAndRefresh",
    "SiteSelector",
    "EncryptionKeyService",
]
