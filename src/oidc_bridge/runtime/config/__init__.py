from .config_data import (
    AutoProvisionConfig,
    AutoUpdateConfig,
    ConfigData,
    GroupSyncConfig,
    OpenIdConfig,
)
from .config_store import (
    ConfigStore,
    OpenIdConfigLoader,
    SqlConfigStore,
    StaticConfigStore,
)
from .config_template import load_templated_yaml

__all__ = [
    "AutoProvisionConfig",
    "AutoUpdateConfig",
    "ConfigData",
    "ConfigStore",
    "GroupSyncConfig",
    "OpenIdConfig",
    "OpenIdConfigLoader",
    "SqlConfigStore",
    "StaticConfigStore",
    "load_templated_yaml",
]
