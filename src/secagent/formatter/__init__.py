"""Report rendering — scan results to markdown."""

from secagent.formatter.report import (
    DEFAULT_MAX_CHARS,
    render_findings,
    render_image_layers,
    render_report,
    render_secrets,
    render_vulns,
    truncate,
)

__all__ = [
    "DEFAULT_MAX_CHARS",
    "render_findings",
    "render_image_layers",
    "render_report",
    "render_secrets",
    "render_vulns",
    "truncate",
]
