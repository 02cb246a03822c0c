"""Command-line interface for gif_dither.

Human-readable progress goes to stderr; --json prints a structured result
(or error) for scripting.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import NoReturn

from gif_dither.core.palettes import PALETTES, PaletteError, get_palette
from gif_dither.core.processor import EXECUTORS


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gif-dither",
        description="Dither animated GIFs onto small fixed palettes.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- convert subcommand ---
    convert = subparsers.add_parser(
        "convert",
        help="Dither an animation.",
    )
    convert.add_argument("input", help="Input GIF (or video) file path.")
    convert.add_argument(
        "-o", "--output",
        help="Output file path. Defaults to <input>_dithered.gif.",
    )
    convert.add_argument(
        "-p", "--palette",
        default=None,
        help="Palette id (1-6) or name (default: 1, onebit). "
        "Unknown ids fall back to the default.",
    )
    convert.add_argument(
        "--delay",
        type=int,
        default=None,
        help="Override every frame delay, in ms (default: keep source delays).",
    )
    convert.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of parallel workers (default: one per CPU).",
    )
    convert.add_argument(
        "--executor",
        choices=EXECUTORS,
        default="process",
        help="Run frames in worker processes or threads (default: process).",
    )
    convert.add_argument(
        "--palette-accurate",
        action="store_true",
        help="Diffuse error against the palette's own luminance.",
    )
    convert.add_argument(
        "--json",
        action="store_true",
        help="Output structured JSON (pipe-friendly).",
    )
    convert.add_argument(
        "--debug",
        action="store_true",
        help="Show stack traces on error.",
    )

    # --- palettes subcommand ---
    palettes = subparsers.add_parser(
        "palettes",
        help="List available palettes.",
    )
    palettes.add_argument(
        "--json",
        action="store_true",
        help="Output structured JSON.",
    )

    return parser


def _auto_output_path(input_path: Path) -> Path:
    """Generate default output path from input."""
    return input_path.parent / f"{input_path.stem}_dithered.gif"


def _fail(message: str, code: str, is_json: bool, debug: bool = False) -> NoReturn:
    """Report an error on stderr and exit with code 1."""
    if debug:
        import traceback
        traceback.print_exc(file=sys.stderr)
    if is_json:
        err = {"status": "error", "error": message, "code": code}
        print(json.dumps(err), file=sys.stderr)
    else:
        print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _run_convert(args: argparse.Namespace) -> None:
    """Run the convert pipeline."""
    from gif_dither.core.processor import Settings, process_animation
    from gif_dither.core.reader import open_media, read_frames
    from gif_dither.core.writer import save_output

    is_json = args.json

    # Configuration errors abort before any input is read.
    try:
        palette = get_palette(args.palette)
    except PaletteError as e:
        _fail(str(e), "INVALID_PALETTE", is_json, args.debug)
    try:
        settings = Settings(
            palette=palette,
            delay_ms=args.delay,
            workers=args.workers,
            executor=args.executor,
            palette_accurate=args.palette_accurate,
        )
    except ValueError as e:
        _fail(str(e), "INVALID_ARGUMENT", is_json, args.debug)

    input_path = Path(args.input).resolve()
    try:
        reader = open_media(input_path)
        info = reader.info
        frames = read_frames(reader)
    except FileNotFoundError as e:
        _fail(str(e), "FILE_NOT_FOUND", is_json, args.debug)
    except (ValueError, OSError) as e:
        _fail(str(e), "INVALID_INPUT", is_json, args.debug)

    if args.output:
        output_path = Path(args.output).resolve()
    else:
        output_path = _auto_output_path(input_path)

    def on_progress(done: int, total: int) -> None:
        if not is_json:
            print(f"\rDithering frame {done}/{total}...", end="", file=sys.stderr)

    try:
        animation = process_animation(frames, settings, on_progress=on_progress)
        save_output(animation, output_path)
    except Exception as e:
        if not is_json:
            print(file=sys.stderr)
        _fail(f"Error during processing: {e}", "PROCESSING_ERROR", is_json, args.debug)

    if not is_json:
        print(f"\nSaved to {output_path}", file=sys.stderr)
    else:
        result = {
            "status": "success",
            "input": str(input_path),
            "output": str(output_path),
            "settings": {
                "palette": palette.name.value,
                "palette_id": palette.id,
                "delay_ms": settings.delay_ms,
                "workers": settings.max_workers,
                "executor": settings.executor,
                "palette_accurate": settings.palette_accurate,
            },
            "metadata": {
                "input_frames": len(frames),
                "output_frames": len(animation),
                "width": info.width,
                "height": info.height,
                "input_format": info.format,
                "output_format": output_path.suffix.lstrip("."),
            },
        }
        print(json.dumps(result, indent=2))


def _run_palettes(args: argparse.Namespace) -> None:
    if args.json:
        listing = [
            {
                "id": p.id,
                "name": p.name.value,
                "description": p.description,
                "colors": [list(c) for c in p.colors],
            }
            for p in PALETTES.values()
        ]
        print(json.dumps(listing, indent=2))
        return

    for p in PALETTES.values():
        swatch = " ".join("#%02x%02x%02x" % c for c in p.colors)
        print(f"{p.id}  {p.name.value:<8} {p.description:<22} {swatch}")


def main(argv: list[str] | None = None) -> None:
    """Main entry point.

    Routing:
      gif-dither convert <file> [opts]  -> dither an animation
      gif-dither palettes               -> list palettes
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command == "convert":
        _run_convert(args)
    elif args.command == "palettes":
        _run_palettes(args)
    else:
        parser.print_help(sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
