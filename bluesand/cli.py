"""CLI entrypoints for bluesand commands."""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Callable, TextIO

from tqdm import tqdm

from .config import DEFAULT_CONFIG_PATH, ConfigError, load_config
from .coordinator import ProcessingOptions, ScanCoordinator
from .logging import configure_logging
from .writers import write_reports

EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the YAML configuration (defaults to {DEFAULT_CONFIG_PATH.as_posix()}).",
    )


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {parsed}")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bluesand",
        description="Map anchor-term prominence across source trees.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors to the console.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a DEBUG-level log to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan",
        help="Scan the configured roots and write word map reports.",
    )
    _add_verbose_option(scan_parser, suppress_default=True)
    _add_config_option(scan_parser)
    scan_parser.add_argument(
        "--outdir",
        type=Path,
        default=Path("docs"),
        help="Directory for WORDMAP_RAW.csv, WORDMAP_TABLE.md and SUMMARY.md (defaults to docs).",
    )
    scan_parser.add_argument(
        "--workers",
        "--dop",
        dest="workers",
        type=_non_negative_int,
        default=0,
        help="Maximum parallel file scans (defaults to the CPU count).",
    )
    scan_parser.add_argument(
        "--csv-only",
        action="store_true",
        help="Only write the raw CSV export.",
    )
    scan_parser.add_argument(
        "--sample",
        type=_non_negative_int,
        default=0,
        help="Scan only the first N discovered files.",
    )
    scan_parser.add_argument(
        "--no-progress",
        dest="show_progress",
        action="store_false",
        help="Suppress the progress bar on stderr.",
    )

    validate_parser = subparsers.add_parser(
        "validate",
        help="Load and validate the configuration without scanning.",
    )
    _add_verbose_option(validate_parser, suppress_default=True)
    _add_config_option(validate_parser)

    return parser


class ScanProgressBar:
    """Progress sink that drives a tqdm bar, sized on the first notification."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stderr
        self._bar: tqdm | None = None

    def __call__(self, processed: int, total: int) -> None:
        if self._bar is None:
            self._bar = tqdm(total=total, desc="Scanning", unit="file", file=self._stream)
        self._bar.update(processed - self._bar.n)

    @property
    def processed(self) -> int:
        return self._bar.n if self._bar is not None else 0

    def finish(self) -> None:
        if self._bar is not None:
            self._bar.close()


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for bluesand commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file
    )

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(EXIT_CONFIG_ERROR, f"ERROR loading config: {exc}\n")

    if args.command == "validate":
        print("Config OK.")
        return

    if args.command != "scan":  # pragma: no cover - argparse enforces choices
        parser.exit(EXIT_FAILURE, "Unknown command\n")

    output_dir: Path = args.outdir
    options = ProcessingOptions(
        output_dir=output_dir,
        max_parallelism=args.workers or None,
        show_progress=bool(args.show_progress),
        sample=args.sample,
    )
    print(
        f"bluesand | config={args.config.resolve()}  outdir={output_dir.resolve()}  "
        f"workers={options.max_parallelism or 'auto'}"
    )

    progress_bar = ScanProgressBar()
    cancel_event = threading.Event()
    previous_handler = _install_cancel_handler(cancel_event)
    try:
        try:
            result = ScanCoordinator().execute(
                config, options, progress=progress_bar, cancel_event=cancel_event
            )
        finally:
            if previous_handler is not None:
                signal.signal(signal.SIGINT, previous_handler)
            progress_bar.finish()
    except ConfigError as exc:
        parser.exit(EXIT_CONFIG_ERROR, f"ERROR: {exc}\n")
    except Exception as exc:  # pragma: no cover - defensive guard
        parser.exit(
            EXIT_FAILURE, f"bluesand scan failed: {exc}\nRun with --verbose for more details.\n"
        )

    if result.cancelled:
        print(f"Scan stopped early after {result.files_scanned} files; writing partial results.")

    if result.is_empty:
        print("No anchor term matches found.")
        return

    written = write_reports(output_dir, result, csv_only=bool(args.csv_only))
    print("Wrote " + ", ".join(_relativize(path) for path in written))


def _install_cancel_handler(
    cancel_event: threading.Event,
) -> Callable[..., Any] | int | None:
    """Route Ctrl-C to the scan's cancel event; only possible on the main thread."""
    if threading.current_thread() is not threading.main_thread():
        return None
    return signal.signal(signal.SIGINT, lambda signum, frame: cancel_event.set())


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
