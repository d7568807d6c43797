from evomanager.config import ManagerConfig, load_manager_config
from evomanager.home import ManagerPaths, ensure_manager_layout, resolve_manager_home
from evomanager.token_store import (
    InMemoryTokenStore,
    JsonFileTokenStore,
    TokenId,
    TokenStore,
)

__version__ = "0.1.0"

__all__ = [
    "InMemoryTokenStore",
    "JsonFileTokenStore",
    "ManagerConfig",
    "ManagerPaths",
    "TokenId",
    "TokenStore",
    "__version__",
    "ensure_manager_layout",
    "load_manager_config",
    "resolve_manager_home",
]
