#!/usr/bin/env python3
"""inference_effects/main.py — CLI entry-point for inspecting cached effects.

Usage examples
--------------
    # Decode a word read from a method-metadata cache
    python -m inference_effects decode 0x1e8

    # Build a word from a preset, pessimising some properties
    python -m inference_effects encode --base total --taint nothrow

    # Merge several cached words the way the interpreter would
    python -m inference_effects merge 0x1f8 0x1e8 0x1fa --format json

    # Decode / build an override byte
    python -m inference_effects override-decode 0x05
    python -m inference_effects override-encode --flag consistent --flag nothrow

    # List the named presets
    python -m inference_effects presets

Exit codes
----------
    0   Success.
    1   Bad input (malformed word, unknown preset or field name).
    2   Infrastructure failure (no command, unwritable output, ...).

The module doubles as ``python -m inference_effects`` via the companion
``inference_effects/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, TextIO

from inference_effects import __version__
from inference_effects.codec import check_unsigned, decode_effects, encode_effects
from inference_effects.config import CodecConfig
from inference_effects.effectbits import CONSISTENCY_WIDTH, Consistency
from inference_effects.effects import (
    BOOL_FIELDS,
    PRESETS,
    Effects,
    describe_effects,
    format_effects,
    merge_all,
)
from inference_effects.errors import EffectsError
from inference_effects.override import (
    OVERRIDE_FIELDS,
    EffectsOverride,
    decode_effects_override,
    encode_effects_override,
)

_log = logging.getLogger("inference_effects")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

# Handler installed by _configure_logging; reused across main() calls.
_cli_handler: Optional[logging.Handler] = None


def _configure_logging(verbosity: int) -> None:
    """Set up the root ``inference_effects`` logger.

    Calling it again only adjusts the level; the stderr handler is added
    once per process.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    global _cli_handler

    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("inference_effects")
    root.setLevel(level)
    if _cli_handler is not None:
        return

    _cli_handler = logging.StreamHandler(sys.stderr)
    _cli_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(_cli_handler)


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _parse_int(raw: str) -> int:
    """Parse decimal, ``0x`` hex, ``0o`` octal or ``0b`` binary."""
    try:
        return int(raw, 0)
    except ValueError:
        raise EffectsError(f"not an integer: {raw!r}") from None


def _config_from_args(args: argparse.Namespace) -> CodecConfig:
    return CodecConfig(strict=args.strict)


def _write_effects(
    effects: Effects,
    word: int,
    fmt: str,
    stream: TextIO,
) -> None:
    if fmt == "json":
        payload: Dict[str, Any] = {"word": word, **describe_effects(effects)}
        stream.write(json.dumps(payload, indent=2) + "\n")
        return
    stream.write(f"word         {word:#010x}\n")
    stream.write(f"effects      {format_effects(effects)}\n")
    for key, value in describe_effects(effects).items():
        if key == "consistent":
            value = repr(Consistency(value))
        stream.write(f"  {key:<28} {value}\n")


def _with_output(args: argparse.Namespace, write) -> int:
    out = _open_output(args.output)
    try:
        write(out)
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


# ===========================================================================
# Sub-command implementations
# ===========================================================================

def cmd_decode(args: argparse.Namespace) -> int:
    """Decode a 32-bit effects word and report its predicates."""
    word = _parse_int(args.word)
    effects = decode_effects(word, config=_config_from_args(args))
    _log.info("Decoded %#x → %s", word, effects)
    return _with_output(
        args, lambda out: _write_effects(effects, word, args.format, out)
    )


def cmd_encode(args: argparse.Namespace) -> int:
    """Build an effects word from a preset plus tainted fields."""
    try:
        effects = PRESETS[args.base]
    except KeyError:
        raise EffectsError(f"unknown preset: {args.base}") from None

    changes: Dict[str, Any] = {}
    for name in args.taint or []:
        if name not in BOOL_FIELDS:
            raise EffectsError(f"unknown effect field: {name}")
        changes[name] = False
    if args.consistent is not None:
        changes["consistent"] = check_unsigned(
            _parse_int(args.consistent), CONSISTENCY_WIDTH
        )
    effects = effects.replace(**changes)

    word = encode_effects(effects)
    _log.info("Encoded %s → %#x", effects, word)
    return _with_output(
        args, lambda out: _write_effects(effects, word, args.format, out)
    )


def cmd_merge(args: argparse.Namespace) -> int:
    """Merge several cached words into one aggregate."""
    config = _config_from_args(args)
    parts = [decode_effects(_parse_int(raw), config=config) for raw in args.words]
    merged = merge_all(parts)
    word = encode_effects(merged)
    _log.info("Merged %d word(s) → %#x", len(parts), word)
    return _with_output(
        args, lambda out: _write_effects(merged, word, args.format, out)
    )


def _write_override(eo: EffectsOverride, byte: int, fmt: str, stream: TextIO) -> None:
    if fmt == "json":
        payload: Dict[str, Any] = {"byte": byte}
        payload.update({name: getattr(eo, name) for name in OVERRIDE_FIELDS})
        stream.write(json.dumps(payload, indent=2) + "\n")
        return
    stream.write(f"byte         {byte:#04x}\n")
    declared = ", ".join(eo.declared()) or "(none)"
    stream.write(f"declared     {declared}\n")


def cmd_override_decode(args: argparse.Namespace) -> int:
    """Decode an effects-override byte."""
    byte = _parse_int(args.byte)
    eo = decode_effects_override(byte, config=_config_from_args(args))
    return _with_output(
        args, lambda out: _write_override(eo, byte, args.format, out)
    )


def cmd_override_encode(args: argparse.Namespace) -> int:
    """Build an effects-override byte from flag names."""
    flags: Dict[str, bool] = {}
    for name in args.flag or []:
        if name not in OVERRIDE_FIELDS:
            raise EffectsError(f"unknown override flag: {name}")
        flags[name] = True
    eo = EffectsOverride(**flags)
    byte = encode_effects_override(eo)
    return _with_output(
        args, lambda out: _write_override(eo, byte, args.format, out)
    )


def cmd_presets(args: argparse.Namespace) -> int:
    """List the named presets with their encoded words."""
    def write(out: TextIO) -> None:
        if args.format == "json":
            payload = {name: encode_effects(e) for name, e in PRESETS.items()}
            out.write(json.dumps(payload, indent=2) + "\n")
            return
        for name, e in PRESETS.items():
            out.write(f"  {name:<14} {encode_effects(e):#07x}  {format_effects(e)}\n")
        out.write(f"\n{len(PRESETS)} preset(s) available.\n")

    return _with_output(args, write)


# ===========================================================================
# Argument parser construction
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    parser = argparse.ArgumentParser(
        prog="inference-effects",
        description=(
            "Inspect, build and merge the compact effect words stored in\n"
            "method-metadata caches."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              inference-effects decode 0x1e8
              inference-effects encode --base total --taint nothrow
              inference-effects merge 0x1f8 0x1e8
              inference-effects override-encode --flag consistent
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject words with reserved bits set.",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    def _add_output_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "-o", "--output",
            default=None,
            metavar="FILE",
            help='Output file ("-" or omit for stdout).',
        )
        p.add_argument(
            "-f", "--format",
            choices=["summary", "json"],
            default="summary",
            help="Output format (default: summary).",
        )

    # --- decode ------------------------------------------------------------
    p_decode = subparsers.add_parser(
        "decode",
        help="Decode a 32-bit effects word.",
    )
    p_decode.add_argument("word", help="Word (decimal, 0x.., 0b..).")
    _add_output_args(p_decode)
    p_decode.set_defaults(func=cmd_decode)

    # --- encode ------------------------------------------------------------
    p_encode = subparsers.add_parser(
        "encode",
        help="Build an effects word from a preset.",
    )
    p_encode.add_argument(
        "--base",
        default="total",
        choices=sorted(PRESETS),
        help="Preset to start from (default: total).",
    )
    p_encode.add_argument(
        "--taint",
        action="append",
        metavar="FIELD",
        help=f"Mark FIELD as violated; one of {', '.join(BOOL_FIELDS)}.",
    )
    p_encode.add_argument(
        "--consistent",
        default=None,
        metavar="BITS",
        help="Consistency register value (0 .. 7).",
    )
    _add_output_args(p_encode)
    p_encode.set_defaults(func=cmd_encode)

    # --- merge -------------------------------------------------------------
    p_merge = subparsers.add_parser(
        "merge",
        help="Merge effects words into one aggregate.",
    )
    p_merge.add_argument("words", nargs="+", metavar="WORD")
    _add_output_args(p_merge)
    p_merge.set_defaults(func=cmd_merge)

    # --- override-decode / override-encode ---------------------------------
    p_odecode = subparsers.add_parser(
        "override-decode",
        help="Decode an effects-override byte.",
    )
    p_odecode.add_argument("byte", help="Byte (decimal, 0x.., 0b..).")
    _add_output_args(p_odecode)
    p_odecode.set_defaults(func=cmd_override_decode)

    p_oencode = subparsers.add_parser(
        "override-encode",
        help="Build an effects-override byte.",
    )
    p_oencode.add_argument(
        "--flag",
        action="append",
        metavar="NAME",
        help=f"Declare NAME; one of {', '.join(OVERRIDE_FIELDS)}.",
    )
    _add_output_args(p_oencode)
    p_oencode.set_defaults(func=cmd_override_encode)

    # --- presets -----------------------------------------------------------
    p_presets = subparsers.add_parser(
        "presets",
        help="List the named presets.",
    )
    _add_output_args(p_presets)
    p_presets.set_defaults(func=cmd_presets)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the inference-effects CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except EffectsError as exc:
        _log.error("%s", exc)
        return EXIT_ERROR
    except OSError as exc:
        _log.error("I/O failure: %s", exc)
        return EXIT_INFRA
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130  # Standard UNIX convention for SIGINT


if __name__ == "__main__":
    raise SystemExit(main())
