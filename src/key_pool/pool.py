# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
In-memory API key pool with lazy rate-limit expiry.

The pool hands out the first usable credential in configured order and
absorbs rate-limit feedback from callers. A rate-limited key is excluded
until its reset time passes; the flag itself is never cleared eagerly,
every read re-derives the effective status from the reset timestamp.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from .error_handler import ConfigurationError, mask_credential
from .event_logger import log_pool_event

lib_logger = logging.getLogger("key_pool")
lib_logger.propagate = False
if not lib_logger.handlers:
    lib_logger.addHandler(logging.NullHandler())

DEFAULT_COOLDOWN_SECONDS = 60


@dataclass
class KeyStatus:
    """Live state of a single credential."""

    key: str
    last_used: float = 0.0
    rate_limited: bool = False
    rate_limit_reset: float = 0.0

    def is_available(self, now: float) -> bool:
        return not self.rate_limited or self.rate_limit_reset <= now

    def cooldown_remaining(self, now: float) -> float:
        if self.is_available(now):
            return 0.0
        return self.rate_limit_reset - now


class KeyPool:
    """
    Hands out credentials for outbound AI calls and tracks their rate limits.

    Selection always returns the first eligible key in configured order, so a
    healthy first key is reused for every call. Exhaustion is reported as
    ``None`` rather than an exception; only an empty configuration is fatal.

    All mutations run under a per-pool lock, which makes the scan-then-update
    in ``get_next_key`` atomic when the pool is shared between threads.
    """

    def __init__(
        self,
        credentials: Optional[Iterable[str]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._clock = clock
        self._lock = threading.Lock()
        self._statuses: Dict[str, KeyStatus] = {}
        if credentials is not None:
            self.initialize(credentials)

    def initialize(self, credentials: Iterable[str]) -> None:
        """
        Replaces the pool state with one fresh KeyStatus per credential.

        Blank entries are skipped and duplicates collapse onto their first
        occurrence.

        Raises:
            ConfigurationError: If no usable credential was given.
        """
        statuses: Dict[str, KeyStatus] = {}
        for credential in credentials or ():
            if not isinstance(credential, str) or not credential.strip():
                continue
            if credential in statuses:
                lib_logger.debug(
                    f"Ignoring duplicate credential {mask_credential(credential)}"
                )
                continue
            statuses[credential] = KeyStatus(key=credential)

        if not statuses:
            raise ConfigurationError(
                "No API keys provided. At least one credential is required."
            )

        with self._lock:
            self._statuses = statuses
        lib_logger.info(f"Key pool initialized with {len(statuses)} key(s).")

    def _select_locked(self, now: float) -> Optional[KeyStatus]:
        # Dicts keep insertion order, which is the configured order.
        for status in self._statuses.values():
            if status.is_available(now):
                status.last_used = now
                return status
        return None

    def get_next_key(self) -> Optional[str]:
        """
        Returns the first usable credential and stamps its ``last_used``.

        Returns None when every key is rate limited and none has reached its
        reset time.
        """
        with self._lock:
            status = self._select_locked(self._clock())
        return status.key if status else None

    def mark_rate_limited(
        self, credential: str, cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS
    ) -> None:
        """
        Excludes ``credential`` from selection for ``cooldown_seconds``.

        Unknown credentials are ignored. After marking, selection runs once
        more so the outcome (fallback found or pool exhausted) can be logged.
        """
        with self._lock:
            status = self._statuses.get(credential)
            if status is None:
                return
            now = self._clock()
            cooldown = max(0.0, float(cooldown_seconds))
            status.rate_limited = True
            status.rate_limit_reset = now + cooldown
            fallback = self._select_locked(now)

        masked = mask_credential(credential)
        log_pool_event("key_rate_limited", credential, cooldown_seconds=cooldown)
        if fallback is not None:
            lib_logger.info(
                f"Key {masked} rate limited for {cooldown:.1f}s. "
                f"Switched to next available API key {mask_credential(fallback.key)}."
            )
            log_pool_event("key_switched", fallback.key, previous=masked)
        else:
            lib_logger.warning(
                f"Key {masked} rate limited for {cooldown:.1f}s. "
                "All API keys are currently rate limited."
            )
            log_pool_event("pool_exhausted", None, pool_size=len(self))

    def is_available(self, credential: str) -> bool:
        with self._lock:
            status = self._statuses.get(credential)
            return status is not None and status.is_available(self._clock())

    def available_count(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for s in self._statuses.values() if s.is_available(now))

    def seconds_until_available(self) -> float:
        """Seconds until some key becomes usable, 0.0 if one is usable now."""
        with self._lock:
            if not self._statuses:
                return 0.0
            now = self._clock()
            return min(s.cooldown_remaining(now) for s in self._statuses.values())

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._statuses)

    def snapshot(self) -> List[Dict[str, Any]]:
        """Point-in-time view of every key, safe to hand to logs or UIs."""
        with self._lock:
            now = self._clock()
            return [
                {
                    "key": mask_credential(status.key),
                    "available": status.is_available(now),
                    "rate_limited": not status.is_available(now),
                    "cooldown_remaining": status.cooldown_remaining(now),
                    "last_used": status.last_used,
                }
                for status in self._statuses.values()
            ]

    def __len__(self) -> int:
        return len(self._statuses)

    def __contains__(self, credential: object) -> bool:
        return credential in self._statuses
