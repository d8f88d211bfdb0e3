import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from .config import create_pool_from_env
from .error_handler import ConfigurationError
from .status import print_status


def main() -> int:
    console = Console()
    # The library logger does not propagate, so it gets its own handler here
    lib_logger = logging.getLogger("key_pool")
    handler = RichHandler(console=console, show_path=False)
    previous_level = lib_logger.level
    lib_logger.addHandler(handler)
    lib_logger.setLevel(logging.INFO)
    try:
        try:
            pool = create_pool_from_env()
        except ConfigurationError as e:
            console.print(f"[bold red]Configuration error:[/bold red] {e}")
            return 1
        print_status(pool, console)
        return 0
    finally:
        lib_logger.removeHandler(handler)
        lib_logger.setLevel(previous_level)


if __name__ == "__main__":
    sys.exit(main())
