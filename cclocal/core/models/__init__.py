"""
Domain models — Pydantic types for the installer.

All models are re-exported here for convenient access:

    from cclocal.core.models import InstallConfig, Receipt, ToolPresence
"""

from cclocal.core.models.host import HostPlatform, ModelRecord, ToolPresence
from cclocal.core.models.install import (
    EnvFileRecord,
    InstallConfig,
    InstallMode,
    ReconcileOutcome,
    WrapperScript,
)
from cclocal.core.models.receipt import Receipt

__all__ = [
    # host.py
    "HostPlatform",
    "ModelRecord",
    "ToolPresence",
    # install.py
    "EnvFileRecord",
    "InstallConfig",
    "InstallMode",
    "ReconcileOutcome",
    "WrapperScript",
    # receipt.py
    "Receipt",
]
