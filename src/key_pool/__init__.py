from typing import TYPE_CHECKING

from .config import create_pool_from_env, load_api_keys
from .error_handler import ConfigurationError, NoAvailableKeyError
from .pool import KeyPool, KeyStatus

# For type checkers, import the client and status view statically
# At runtime, they are lazy-loaded via __getattr__
if TYPE_CHECKING:
    from .client import KeyPoolClient
    from .status import build_status_table, print_status

__all__ = [
    "KeyPool",
    "KeyStatus",
    "ConfigurationError",
    "NoAvailableKeyError",
    "load_api_keys",
    "create_pool_from_env",
    "KeyPoolClient",
    "build_status_table",
    "print_status",
]


def __getattr__(name):
    """Lazy-load the client and the rich status view to speed up module import."""
    if name == "KeyPoolClient":
        from .client import KeyPoolClient

        return KeyPoolClient
    if name == "build_status_table":
        from .status import build_status_table

        return build_status_table
    if name == "print_status":
        from .status import print_status

        return print_status
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
