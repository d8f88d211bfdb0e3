import logging
import os
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# litellm fetches its model cost map over the network at import; use the bundled copy
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from key_pool import event_logger
from key_pool.pool import KeyPool


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _drop_event_handlers() -> None:
    logger = logging.getLogger("key_pool_events")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture(autouse=True)
def isolated_event_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("KEY_POOL_LOG_DIR", str(log_dir))
    monkeypatch.setattr(event_logger, "_event_logger", None)
    _drop_event_handlers()
    yield log_dir
    _drop_event_handlers()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_pool(clock: FakeClock):
    def _make(*keys: str) -> KeyPool:
        return KeyPool(list(keys), clock=clock)

    return _make


@pytest.fixture
def pool_logs(caplog: pytest.LogCaptureFixture):
    # The library logger does not propagate, so attach the capture handler directly
    logger = logging.getLogger("key_pool")
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.INFO, logger="key_pool")
    try:
        yield caplog
    finally:
        logger.removeHandler(caplog.handler)
