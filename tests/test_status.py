import pytest
from rich.console import Console

from key_pool import __main__ as cli
from key_pool.status import build_status_table, print_status


def render(pool) -> str:
    console = Console(record=True, width=120, color_system=None)
    print_status(pool, console)
    return console.export_text()


def test_table_lists_keys_masked_in_order(make_pool) -> None:
    pool = make_pool("sk-first-111111", "sk-second-222222")
    pool.mark_rate_limited("sk-first-111111", 30)

    table = build_status_table(pool)
    output = render(pool)

    assert table.row_count == 2
    assert "1/2 available" in output
    assert output.index("...111111") < output.index("...222222")
    assert "rate limited" in output
    assert "30s" in output
    assert "sk-first-111111" not in output


def test_main_prints_status(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.delenv("KEY_POOL_PREFIX", raising=False)
    monkeypatch.setenv("GEMINI_API_KEYS", "key-000001,key-000002")

    assert cli.main() == 0
    output = capsys.readouterr().out
    assert "...000001" in output
    assert "Key pool initialized with 2 key(s)." in output


def test_main_reports_missing_configuration(monkeypatch: pytest.MonkeyPatch, tmp_path, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("KEY_POOL_PREFIX", "NOBODY")

    assert cli.main() == 1
    assert "Configuration error" in capsys.readouterr().out
