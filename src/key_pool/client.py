import asyncio
import os
import random
import litellm
import logging
from typing import Any, Optional

lib_logger = logging.getLogger('key_pool')

from .config import get_default_cooldown
from .pool import KeyPool
from .error_handler import (
    NoAvailableKeyError,
    get_retry_after,
    is_rate_limit_error,
    is_server_error,
    mask_credential,
)


class KeyPoolClient:
    """
    A LiteLLM client that takes its API key from a KeyPool for every call
    and feeds provider rate limits back into the pool.
    """
    def __init__(self, pool: KeyPool, max_retries: int = 2, default_cooldown: Optional[float] = None):
        os.environ.setdefault("LITELLM_LOG", "ERROR")
        litellm.set_verbose = False
        if len(pool) == 0:
            raise ValueError("KeyPoolClient needs an initialized key pool.")
        self.pool = pool
        self.max_retries = max(1, max_retries)
        self.default_cooldown = get_default_cooldown() if default_cooldown is None else default_cooldown

    async def acompletion(self, **kwargs) -> Any:
        """
        Performs a completion call, rotating to the next pool key whenever the
        provider rate limits the current one.

        Raises:
            NoAvailableKeyError: Every key in the pool is cooling down.
        """
        model = kwargs.get("model")
        if not model:
            raise ValueError("'model' is a required parameter.")

        tried_keys = set()
        last_exception = None

        while True:
            current_key = self.pool.get_next_key()
            if current_key is None:
                retry_after = self.pool.seconds_until_available()
                raise NoAvailableKeyError(
                    f"All API keys are rate limited. Retry in {retry_after:.0f}s.",
                    retry_after=retry_after,
                )
            if current_key in tried_keys:
                # A zero-second cooldown hands back a key that already failed
                break
            tried_keys.add(current_key)

            for attempt in range(self.max_retries):
                try:
                    lib_logger.info(f"Attempting call with key {mask_credential(current_key)} (Attempt {attempt + 1}/{self.max_retries})")
                    return await litellm.acompletion(api_key=current_key, **kwargs)

                except Exception as e:
                    last_exception = e

                    if is_rate_limit_error(e):
                        cooldown = get_retry_after(e)
                        if cooldown is None:
                            cooldown = self.default_cooldown
                        self.pool.mark_rate_limited(current_key, cooldown)
                        break

                    if is_server_error(e):
                        if attempt < self.max_retries - 1:
                            wait_time = (2 ** attempt) + random.uniform(0, 1)
                            lib_logger.warning(f"Key {mask_credential(current_key)} encountered a server error. Retrying in {wait_time:.2f} seconds...")
                            await asyncio.sleep(wait_time)
                            continue

                    # Other errors, or server errors past max_retries; the pool is left untouched.
                    raise

        if last_exception:
            raise last_exception

        raise NoAvailableKeyError("Failed to complete the request: all API keys failed.")
