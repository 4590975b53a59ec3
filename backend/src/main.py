"""Command-line harness for the color keyer.

Usage:
    python main.py key --pixel 1 1 0 --yellow-range 3
    python main.py key --pixel "#20e040" --preset green_screen_yellow_spill
    python main.py calibrate
"""

import argparse
import logging
import os
import sys
from pathlib import Path

import sentry_sdk

from _version import __version__
from diagnostics import init_diagnostics
from keyer.color import Color
from keyer.estimator import effective_tolerance, estimate
from keyer.params import (
    DIRECTIONS,
    PRESETS,
    KeyMethod,
    KeyParameters,
    preset,
)
from keyer.postprocess import finalize

logger = logging.getLogger(__name__)

_CONSENT_PATH = os.path.expanduser("~/.colorkeyer/telemetry_consent")


def _init_sentry():
    """Consent-gated: no DSN unless the consent file says yes."""
    dsn = ""
    if os.path.exists(_CONSENT_PATH) and Path(_CONSENT_PATH).read_text().strip() == "yes":
        dsn = os.environ.get("SENTRY_DSN", "")
    sentry_sdk.init(
        dsn=dsn,
        release=f"colorkeyer@{__version__}",
        environment=os.environ.get("SENTRY_ENV", "development"),
        traces_sample_rate=0.0,
        max_breadcrumbs=50,
    )


def _color_arg(values: list[str]) -> Color:
    if len(values) == 1:
        return Color.from_hex(values[0])
    return Color.from_value(values)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="colorkeyer", description=__doc__.splitlines()[0])
    parser.add_argument("--version", action="version", version=__version__)
    sub = parser.add_subparsers(dest="command", required=True)

    key = sub.add_parser("key", help="Alpha for a single pixel")
    key.add_argument("--pixel", nargs="+", required=True, help="R G B floats or #rrggbb")
    key.add_argument("--key", nargs="+", default=None, help="R G B floats or #rrggbb")
    key.add_argument("--preset", choices=sorted(PRESETS), default=None)
    key.add_argument("--method", choices=[m.value for m in KeyMethod], default=None)
    key.add_argument("--variance", type=float, default=None)
    for d in DIRECTIONS:
        key.add_argument(f"--{d}-range", type=float, default=None)
    key.add_argument("--gain", type=float, default=None)
    key.add_argument("--invert", action="store_true")

    sub.add_parser("calibrate", help="Print the knob calibration report")
    return parser


def _params_from_args(args) -> KeyParameters:
    options: dict = {}
    if args.key is not None:
        options["key_color"] = _color_arg(args.key)
    if args.method is not None:
        options["method"] = args.method
    if args.variance is not None:
        options["variance"] = args.variance
    for d in DIRECTIONS:
        value = getattr(args, f"{d}_range")
        if value is not None:
            options[f"{d}_range"] = value
    if args.gain is not None:
        options["gain"] = args.gain
    if args.invert:
        options["invert"] = True

    if args.preset:
        return preset(args.preset, **options)
    return KeyParameters.from_options(options)


def _cmd_key(args) -> int:
    params = _params_from_args(args)
    pixel = _color_arg(args.pixel)
    raw = estimate(pixel, None, params)
    print(f"method={params.method.value}")
    print(f"effective_tolerance={effective_tolerance(pixel, params):.6f}")
    print(f"raw_alpha={raw:.6f}")
    print(f"alpha={finalize(raw, params):.6f}")
    return 0


def _cmd_calibrate(args) -> int:
    from effects._calibration import calibrate_all, print_report, validate_curves

    errors = validate_curves()
    for e in errors:
        print(f"CURVE ERROR: {e}")
    print_report(calibrate_all())
    return 1 if errors else 0


def main(argv: list[str] | None = None) -> int:
    """Console entry point. Diagnostics and Sentry start only for a real run
    (argv taken from the command line), not when called with explicit argv.
    """
    if argv is None:
        init_diagnostics()
        _init_sentry()
    args = build_parser().parse_args(argv)
    try:
        if args.command == "key":
            return _cmd_key(args)
        return _cmd_calibrate(args)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
