"""Tests for the command-line harness."""

import sys
from unittest.mock import patch

import pytest

from main import build_parser, main

pytestmark = pytest.mark.smoke


def _values(out: str) -> dict:
    return dict(line.split("=", 1) for line in out.strip().splitlines())


def test_key_on_key_color(capsys):
    assert main(["key", "--pixel", "0", "1", "0"]) == 0
    values = _values(capsys.readouterr().out)
    assert values["method"] == "distance"
    assert float(values["alpha"]) == 1.0


def test_key_yellow_bias(capsys):
    assert main(["key", "--pixel", "1", "1", "0", "--yellow-range", "3"]) == 0
    values = _values(capsys.readouterr().out)
    assert float(values["effective_tolerance"]) == pytest.approx(0.6)
    assert float(values["alpha"]) == 0.0


def test_key_hex_and_invert(capsys):
    assert main(["key", "--pixel", "#ffffff", "--invert"]) == 0
    values = _values(capsys.readouterr().out)
    assert float(values["raw_alpha"]) == 0.0
    assert float(values["alpha"]) == 1.0


def test_key_with_preset(capsys):
    args = ["key", "--pixel", "0", "0", "1", "--preset", "blue_screen_cyan_cast"]
    assert main(args) == 0
    assert float(_values(capsys.readouterr().out)["alpha"]) == 1.0


def test_bad_color_returns_error(capsys):
    assert main(["key", "--pixel", "nothex"]) == 2
    assert "error:" in capsys.readouterr().err


def test_unknown_method_rejected_by_parser():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["key", "--pixel", "0", "1", "0", "--method", "gaussian"])


def test_calibrate(capsys):
    assert main(["calibrate"]) == 0
    assert "fx.color_key" in capsys.readouterr().out


def test_console_entry_initializes_diagnostics(capsys):
    with (
        patch("main.init_diagnostics") as init_diag,
        patch("main._init_sentry") as init_sentry,
        patch.object(sys, "argv", ["colorkeyer", "key", "--pixel", "0", "1", "0"]),
    ):
        assert main() == 0
    init_diag.assert_called_once()
    init_sentry.assert_called_once()
    assert "alpha=1.000000" in capsys.readouterr().out


def test_explicit_argv_skips_diagnostics(capsys):
    with (
        patch("main.init_diagnostics") as init_diag,
        patch("main._init_sentry") as init_sentry,
    ):
        assert main(["key", "--pixel", "0", "1", "0"]) == 0
    init_diag.assert_not_called()
    init_sentry.assert_not_called()
