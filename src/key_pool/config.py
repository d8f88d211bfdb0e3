# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Loads the credential list for the key pool from the environment.

Keys for a provider prefix (``GEMINI`` by default) can be given in any of
these forms, which are combined in this order:

    GEMINI_API_KEYS=["key1","key2"]      JSON array (single quotes allowed)
    GEMINI_API_KEYS=key1,key2            comma-separated
    GEMINI_API_KEY_1=key1                numbered, read until the first gap
    GEMINI_API_KEY=key1                  single key, only if nothing else found
"""

import json
import logging
import os
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from .error_handler import ConfigurationError
from .pool import DEFAULT_COOLDOWN_SECONDS, KeyPool

lib_logger = logging.getLogger("key_pool")

DEFAULT_PREFIX = "GEMINI"


def get_key_prefix() -> str:
    return (os.getenv("KEY_POOL_PREFIX") or DEFAULT_PREFIX).strip().upper()


def get_default_cooldown() -> float:
    raw = os.getenv("KEY_POOL_DEFAULT_COOLDOWN")
    if raw is None or not raw.strip():
        return float(DEFAULT_COOLDOWN_SECONDS)
    try:
        return max(0.0, float(raw))
    except ValueError:
        raise ConfigurationError(
            f"KEY_POOL_DEFAULT_COOLDOWN must be a number of seconds, got {raw!r}"
        )


def _split_csv(raw: str, strip_quotes: bool = False) -> List[str]:
    values = [value.strip() for value in raw.split(",")]
    if strip_quotes:
        values = [value.strip("'\"") for value in values]
    return [value for value in values if value]


def _parse_key_list(raw: str) -> List[str]:
    trimmed = raw.strip()
    if not (trimmed.startswith("[") and trimmed.endswith("]")):
        return _split_csv(trimmed)

    try:
        parsed = json.loads(trimmed.replace("'", '"'))
    except json.JSONDecodeError:
        lib_logger.debug("API key list is not valid JSON, falling back to commas.")
        return _split_csv(trimmed.strip("[]"), strip_quotes=True)

    if not isinstance(parsed, list):
        return []
    return [key.strip() for key in parsed if isinstance(key, str) and key.strip()]


def load_api_keys(
    env: Optional[Mapping[str, str]] = None, prefix: Optional[str] = None
) -> List[str]:
    """
    Returns the configured credentials in order. May return an empty list;
    the pool decides whether that is fatal.
    """
    if env is None:
        load_dotenv()
        env = os.environ
    prefix = (prefix or get_key_prefix()).upper()

    keys: List[str] = []

    multiple = env.get(f"{prefix}_API_KEYS")
    if multiple:
        keys.extend(_parse_key_list(multiple))

    index = 1
    while True:
        numbered = env.get(f"{prefix}_API_KEY_{index}")
        if not numbered:
            break
        keys.append(numbered.strip())
        index += 1

    if not keys:
        single = env.get(f"{prefix}_API_KEY")
        if single and single.strip():
            keys.append(single.strip())

    return keys


def create_pool_from_env(
    env: Optional[Mapping[str, str]] = None, prefix: Optional[str] = None
) -> KeyPool:
    """Builds a KeyPool from the environment, failing loudly if no key is set."""
    prefix = (prefix or get_key_prefix()).upper()
    keys = load_api_keys(env, prefix)
    if not keys:
        raise ConfigurationError(
            f"No {prefix.title()} API keys provided. Please set {prefix}_API_KEY "
            f"or {prefix}_API_KEYS environment variable."
        )
    return KeyPool(keys)
