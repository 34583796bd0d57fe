import io

import pytest

from conftest import RFC_SECRET
from errors import ClockError
from storage import SecretVault
from ui import CLEAR_SCREEN, CodeDisplay


@pytest.fixture
def vault(ready_crypto, vault_path):
    return SecretVault(
        vault_path, ready_crypto, {"mail": RFC_SECRET, "github": RFC_SECRET, "legacy": "bad!"}
    )


def test_render(vault):
    frame = CodeDisplay(vault).render(59)
    assert frame == (
        "Current TOTP Codes:\n"
        "-------------------\n"
        "github: 287082\n"
        "mail: 287082\n"
        "\n"
        "Refreshing in 1 seconds... (Ctrl+C to exit)\n"
    )


def test_render_empty_vault(ready_crypto, vault_path):
    frame = CodeDisplay(SecretVault(vault_path, ready_crypto)).render(60)
    assert "Refreshing in 30 seconds" in frame
    assert ": " not in frame.split("-------------------")[1].split("Refreshing")[0]


def test_run_redraws_each_interval(vault):
    times = iter([59, 60, 61])
    sleeps = []
    out = io.StringIO()

    display = CodeDisplay(vault, clock=lambda: next(times), sleep=sleeps.append, out=out)
    display.run(frames=3)

    assert sleeps == [1, 1, 1]
    text = out.getvalue()
    assert text.count(CLEAR_SCREEN) == 3
    assert "github: 287082" in text
    assert "Refreshing in 30 seconds" in text


def test_run_stops_on_interrupt(vault):
    def interrupt(_seconds):
        raise KeyboardInterrupt

    out = io.StringIO()
    with pytest.raises(KeyboardInterrupt):
        CodeDisplay(vault, clock=lambda: 59, sleep=interrupt, out=out).run()
    assert out.getvalue().count(CLEAR_SCREEN) == 1


@pytest.mark.parametrize("now", [-5, 30 * 2 ** 64])
def test_unusable_clock_raises_clock_error(vault, now):
    out = io.StringIO()
    display = CodeDisplay(vault, clock=lambda: now, sleep=lambda _s: None, out=out)
    with pytest.raises(ClockError):
        display.run(frames=1)
    assert out.getvalue() == ""
