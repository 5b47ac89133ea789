"""
upgradeledger - idempotency ledger for package upgrade actions.

Records which upgrade actions already ran for which group, and the
version of the last update pass, so repeated installations only run
actions that are new or whose definition changed.
"""

__version__ = "0.1.0"

from .collaborators import Action, Group, InstallContext, InstallSession, UpgradeAction, UpgradeInfo
from .config import LedgerConfig, load_config
from .errors import ConcurrentModificationError, LedgerDataError, LedgerError, StorageError
from .identity import ActionIdentifier, compute_fingerprint, derive_id
from .ledger import LedgerSnapshot, UpgradeLedger
from .status import GlobalStatus, GroupStatus

__all__ = [
    "__version__",
    "Action",
    "ActionIdentifier",
    "ConcurrentModificationError",
    "GlobalStatus",
    "Group",
    "GroupStatus",
    "InstallContext",
    "InstallSession",
    "LedgerConfig",
    "LedgerDataError",
    "LedgerError",
    "LedgerSnapshot",
    "StorageError",
    "UpgradeAction",
    "UpgradeInfo",
    "UpgradeLedger",
    "compute_fingerprint",
    "derive_id",
    "load_config",
]
