"""Cyclopts CLI entrypoint for building and checking landing page bundles.

The ``landing`` console script defined here runs the full build pipeline for a
``site.yaml`` configuration and can re-run the runtime elision check against
an already published output directory. On failure the command exits with
status 1 and writes a machine-readable JSON report naming the error kind, the
offending asset path, and the section kind.

Examples
--------
Build the default configuration:

>>> from landing_build.cli import main
>>> main()  # doctest: +SKIP

Build into a custom directory and keep the failure report:

>>> from landing_build.cli import app
>>> app(
...     ["build", "--output-dir", "public", "--report", "report.json"]
... )  # doctest: +SKIP
"""

from __future__ import annotations

import json
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import SiteConfigError, load_site_config
from .elision import check_published_bundle
from .errors import BuildError, config_error_report
from .log import configure_logging, get_logger
from .pipeline import BuildPipeline

DEFAULT_CONFIG = Path("site.yaml")

app = App(name="landing", config=cyclopts.config.Env("LANDING_", command=False))  # type: ignore[unknown-argument]

logger = get_logger(__name__)


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:
            return str(path)
    return str(path)


def _fail(report: dict[str, str | None], report_path: Path | None) -> typ.NoReturn:
    """Emit the failure report on stderr (and to ``report_path``) and exit 1."""
    payload = json.dumps(report, sort_keys=True)
    print(payload, file=sys.stderr)
    if report_path is not None:
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(payload + "\n", encoding="utf-8")
    raise SystemExit(1)


@app.command(help="Build the static bundle for a site configuration.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="LANDING_CONFIG")
    ] = DEFAULT_CONFIG,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="LANDING_OUTPUT_DIR"),
    ] = None,
    workers: typ.Annotated[
        int | None, Parameter(help="Override the transcoding worker count")
    ] = None,
    verify: typ.Annotated[
        bool | None,
        Parameter(help="Assemble twice and fail on diverging output"),
    ] = None,
    report: typ.Annotated[
        Path | None, Parameter(help="Also write the failure report to this file")
    ] = None,
    verbose: bool = False,
    json_logs: bool = False,
) -> None:
    """Build the landing page bundle described by ``config``.

    Parameters
    ----------
    config : Path, optional
        Path to the ``site.yaml`` configuration file (overridable via
        ``LANDING_CONFIG``).
    output_dir : Path or None, optional
        Override ``build.output_dir`` from the configuration.
    workers : int or None, optional
        Override ``build.workers`` from the configuration.
    verify : bool or None, optional
        Override ``build.verify_determinism`` from the configuration.
    report : Path or None, optional
        File the JSON failure report is additionally written to.
    verbose : bool, optional
        Log per-unit debug events.
    json_logs : bool, optional
        Render log events as JSON lines.

    Returns
    -------
    None
        Writes the bundle and prints the published paths.

    Raises
    ------
    SystemExit
        With status 1 when configuration loading or any build stage fails.
    """
    configure_logging(verbose=verbose, json_logs=json_logs)
    try:
        site_config = load_site_config(config)
        if output_dir is not None:
            site_config.build.output_dir = output_dir
        if workers is not None:
            site_config.build.workers = workers
        result = BuildPipeline(site_config).run(verify=verify)
    except BuildError as exc:
        logger.error("build.failed", error=exc.kind, message=exc.message)
        _fail(exc.to_report(), report)
    except (SiteConfigError, FileNotFoundError) as exc:
        logger.error("build.failed", error="InvalidConfig", message=str(exc))
        _fail(config_error_report(exc), report)
    for path in result.written:
        print(f"wrote {_format_path(path)}")


@app.command(help="Verify a published bundle ships no unrequested island runtime.")
def check(
    *,
    output_dir: typ.Annotated[
        Path, Parameter(help="Published output folder", env_var="LANDING_OUTPUT_DIR")
    ] = Path("dist"),
    report: typ.Annotated[
        Path | None, Parameter(help="Also write the failure report to this file")
    ] = None,
) -> None:
    """Run the runtime elision check against ``output_dir``."""
    configure_logging()
    try:
        islands = check_published_bundle(output_dir)
    except BuildError as exc:
        _fail(exc.to_report(), report)
    label = ", ".join(sorted(islands)) if islands else "none"
    print(f"islands: {label}")


def main() -> None:
    """Invoke the Cyclopts application that powers the `landing` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
