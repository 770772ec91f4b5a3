"""Diagnostics command implementation."""

from __future__ import annotations

import json
import logging
import sys
import time
from argparse import Namespace
from dataclasses import dataclass
from importlib import metadata as importlib_metadata
from typing import Any, Iterable

from f007th_push import __version__
from f007th_push.config import PushConfig, config_summary
from f007th_push.config_layering import resolve_push_config
from f007th_push.diagnostics_helpers import probe_url_endpoint
from f007th_push.errors import ConfigurationError

SectionStatus = str

logger = logging.getLogger(__name__)

_REQUIRED_PACKAGES = ("requests", "tomli-w")


@dataclass(slots=True)
class Section:
    """Represents the status of a diagnostic check."""

    name: str
    status: SectionStatus
    message: str
    details: dict[str, Any]


def run_diagnostics(args: Namespace) -> int:
    """Run diagnostics and emit results in the requested format."""
    sections: list[Section] = [_check_environment()]
    config_section, push_config = _check_config(args)
    sections.append(config_section)
    sections.append(_check_endpoint(push_config))

    summary = _summarize_sections(sections)

    if getattr(args, "json", False):
        report: dict[str, Any] = {section.name.lower(): _section_to_mapping(section) for section in sections}
        report["meta"] = {
            "tool": "f007th-push",
            "version": __version__,
            "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        }
        report["summary"] = summary
        indent = 2 if getattr(args, "verbose", False) else None
        print(json.dumps(report, indent=indent, default=str))
    else:
        _print_text_report(sections, verbose=getattr(args, "verbose", False))
        logger.info(
            "Diagnostics: %d ok, %d warning, %d error",
            summary["ok"],
            summary["warning"],
            summary["error"],
        )

    return 1 if any(section.status == "error" for section in sections) else 0


def _check_environment() -> Section:
    packages: dict[str, str | None] = {}
    missing: list[str] = []
    for package in _REQUIRED_PACKAGES:
        try:
            packages[package] = importlib_metadata.version(package)
        except importlib_metadata.PackageNotFoundError:
            packages[package] = None
            missing.append(package)

    if missing:
        status: SectionStatus = "warning"
        message = f"Missing packages: {', '.join(missing)}"
    else:
        status = "ok"
        message = "Required packages present"

    details = {"python_version": sys.version.split()[0], "packages": packages}
    return Section("Environment", status, message, details)


def _check_config(args: Namespace) -> tuple[Section, PushConfig | None]:
    try:
        push_config = resolve_push_config(args)
        push_config.validate()
    except ConfigurationError as exc:
        return Section("Config", "error", str(exc), {}), None
    details = {
        "url": push_config.url,
        "server_type": push_config.server_type.value,
        "changes_only": push_config.changes_only,
        "summary": config_summary(push_config),
    }
    return Section("Config", "ok", "Configuration valid", details), push_config


def _check_endpoint(push_config: PushConfig | None) -> Section:
    if push_config is None or not push_config.url:
        return Section("Endpoint", "warning", "Skipped; no valid server URL", {})
    timeout = push_config.connect_timeout or 1.0
    result = probe_url_endpoint(push_config.url, timeout=timeout)
    details = {"host": result.host, "port": result.port, "latency_ms": result.latency_ms}
    if result.success:
        return Section("Endpoint", "ok", f"Reachable in {result.latency_ms} ms", details)
    details["error"] = result.error
    return Section("Endpoint", "error", f"Unreachable: {result.error}", details)


def _summarize_sections(sections: Iterable[Section]) -> dict[str, int]:
    summary = {"ok": 0, "warning": 0, "error": 0}
    for section in sections:
        summary[section.status] = summary.get(section.status, 0) + 1
    return summary


def _section_to_mapping(section: Section) -> dict[str, Any]:
    return {"status": section.status, "message": section.message, "details": section.details}


def _print_text_report(sections: Iterable[Section], *, verbose: bool) -> None:
    for section in sections:
        print(f"[{section.status.upper():7}] {section.name}: {section.message}")
        if verbose:
            for key, value in section.details.items():
                if key == "summary":
                    print(value)
                else:
                    print(f"    {key}: {value}")
