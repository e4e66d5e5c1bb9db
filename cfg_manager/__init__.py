from .base import (
    CfgLogger,
    CfgStorage,
    Configurable,
    OperationResult,
    Severity,
    StorageError,
)
from .customizer import (
    Customization,
    CustomizationError,
    get_customization,
    set_customization,
)
from .cfg_file import CfgFile, CfgSnapshot, CfgStage, create_cfg_file
from .logger import DefaultLogger
from .impl.file import create_file_storage
from .impl.memory import create_memory_storage

__all__ = [
    "CfgLogger",
    "CfgStorage",
    "Configurable",
    "OperationResult",
    "Severity",
    "StorageError",
    "Customization",
    "CustomizationError",
    "get_customization",
    "set_customization",
    "CfgFile",
    "CfgSnapshot",
    "CfgStage",
    "create_cfg_file",
    "DefaultLogger",
    "create_file_storage",
    "create_memory_storage",
]
