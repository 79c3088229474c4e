"""CLI interface for wpinventory."""

from __future__ import annotations

import json
import logging
import sys
import threading
from dataclasses import replace
from pathlib import Path

import click

from wpinventory.core.detector import Detector
from wpinventory.core.header_parser import HEADER_WINDOW, NAME_FIELD, parse_header
from wpinventory.core.version_resolver import resolve_version
from wpinventory.errors import FatalScanError, MissingHeaderError
from wpinventory.models.plugin_record import VersionSource
from wpinventory.models.scan_result import ScanResult
from wpinventory.settings import DetectorConfig, Settings
from wpinventory.utils import first_per_slug, format_elapsed, result_to_dict


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _run_detection(detector: Detector, root: Path) -> ScanResult:
    """Run a scan in a worker thread so Ctrl-C can cancel it cleanly."""
    cancel = threading.Event()
    outcome: dict[str, object] = {}

    def _target() -> None:
        try:
            outcome["result"] = detector.detect(root, cancel=cancel)
        except Exception as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=_target, name="wpinventory-detect", daemon=True)
    worker.start()
    try:
        while worker.is_alive():
            worker.join(0.1)
    except KeyboardInterrupt:
        cancel.set()
        worker.join()

    if "error" in outcome:
        raise outcome["error"]  # type: ignore[misc]
    return outcome["result"]  # type: ignore[return-value]


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """wpinventory — detect installed WordPress plugins and their versions."""
    _setup_logging(verbose)


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("root", type=click.Path(path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--unique", is_flag=True, help="Keep only the first record per slug")
@click.option("--workers", "-w", type=click.IntRange(min=1), default=None, help="Worker threads")
def scan(root: Path, as_json: bool, unique: bool, workers: int | None) -> None:
    """Detect plugin headers under ROOT (e.g. wp-content/plugins)."""
    config = DetectorConfig.from_settings()
    if workers:
        config = replace(config, max_workers=workers)

    try:
        result = _run_detection(Detector(config), root)
    except FatalScanError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    records = first_per_slug(result.records) if unique else result.records

    if as_json:
        click.echo(json.dumps(result_to_dict(result, records), indent=2))
        return

    if not records:
        click.echo("No plugins found.")
    for record in records:
        version = record.version or click.style("unknown", fg="bright_black")
        source_tag = ""
        if record.version_source is VersionSource.CONSTANT_FALLBACK:
            source_tag = click.style(" [from constant]", fg="blue")
        mismatch_tag = ""
        if record.version_mismatch:
            mismatch_tag = click.style(f" [version mismatch: constant {record.constant_version}]", fg="red", bold=True)
        click.echo(
            f"  {click.style('✓', fg='green')} {record.name:35s} {version:12s} "
            f"{click.style(record.slug, fg='cyan')}{source_tag}{mismatch_tag}"
        )
        click.echo(f"      {record.relative_path}")

    for diagnostic in result.diagnostics:
        click.echo(
            f"  {click.style('!', fg='yellow')} {diagnostic.path} — {diagnostic.kind.value}: {diagnostic.cause}"
        )

    mismatches = sum(1 for r in records if r.version_mismatch)
    summary = f"\n{len(records)} plugin(s) in {result.files_scanned} file(s), {format_elapsed(result.elapsed)}"
    if mismatches:
        summary += click.style(f", {mismatches} version mismatch(es)", fg="red", bold=True)
    if result.cancelled:
        summary += click.style(" (cancelled, partial result)", fg="yellow")
    click.echo(summary + "\n")


# ── header ───────────────────────────────────────────────────────────────

@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def header(file: Path, as_json: bool) -> None:
    """Show the plugin header parsed from a single FILE."""
    try:
        with open(file, "rb") as f:
            data = f.read(HEADER_WINDOW)
    except OSError as exc:
        click.echo(f"Error: Cannot read {file}: {exc.strerror or exc}", err=True)
        sys.exit(1)

    try:
        fields = parse_header(data)
    except MissingHeaderError as exc:
        click.echo(f"No plugin header in {file}: {exc}", err=True)
        sys.exit(1)

    resolution = resolve_version(fields, data)

    if as_json:
        click.echo(json.dumps({
            "fields": dict(fields),
            "version": resolution.version,
            "version_source": resolution.source.value,
            "version_mismatch": resolution.mismatch,
            "constant_version": resolution.constant_version,
        }, indent=2))
        return

    click.echo(f"\n  {click.style(fields[NAME_FIELD], bold=True)}")
    for name, value in fields.items():
        click.echo(f"  {click.style(name + ':', fg='cyan'):30s} {value}")
    click.echo(f"\n  Resolved version: {resolution.version or 'unknown'} ({resolution.source.value})")
    if resolution.mismatch:
        click.echo(click.style(
            f"  Version mismatch: constant declares {resolution.constant_version}", fg="red", bold=True
        ))
    click.echo()


# ── config ───────────────────────────────────────────────────────────────

@main.group()
def config() -> None:
    """Read and write persistent settings."""


@config.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Print the value stored under KEY (dot notation)."""
    value = Settings.instance().get(key)
    if value is None:
        click.echo(f"'{key}' is not set.", err=True)
        sys.exit(1)
    click.echo(json.dumps(value))


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Store VALUE under KEY. VALUE is parsed as JSON when possible."""
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    settings = Settings.instance()
    settings.set(key, parsed)
    click.echo(f"{key} = {json.dumps(parsed)}  ({settings.path})")


if __name__ == "__main__":
    main()
