"""Markdown reports for scan results.

Every renderer returns text already truncated to ``max_chars`` so a single
tool result never floods the host's context window.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from secagent.scanner.models import (
        GenericFinding,
        ImageScanResult,
        Package,
        PackageVuln,
        ScanResult,
        Secret,
    )

DEFAULT_MAX_CHARS = 50_000

_SECRET_STATUS = {
    "VALIDATION_VALID": "**ACTIVE**",
    "VALIDATION_INVALID": "INACTIVE",
    "VALIDATION_FAILED": "VALIDATION_ERROR",
}


def truncate(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    if len(text) > max_chars:
        return text[:max_chars] + "\n\n... (truncated)\n"
    return text


def _cell(value: str) -> str:
    return value.replace("\n", " ").replace("|", "\\|")


def render_report(result: ScanResult, *, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Full report: summary, vulnerabilities, secrets, then the package inventory."""
    lines = [
        "# Security Scan Results",
        "",
        "## Summary",
        "",
        f"- **Packages found:** {len(result.packages)}",
        f"- **Vulnerabilities found:** {len(result.vulns)}",
        f"- **Secrets found:** {len(result.secrets)}",
        f"- **Generic findings:** {len(result.findings)}",
        "",
    ]
    out = "\n".join(lines) + "\n"

    if result.has_vulns:
        out += render_vulns(result.vulns, max_chars=max_chars) + "\n"
    if result.has_secrets:
        out += render_secrets(result.secrets, max_chars=max_chars) + "\n"

    out += "## Package Inventory\n\n"
    out += "| Package | Version | Ecosystem | Location |\n"
    out += "|---------|---------|-----------|----------|\n"
    for pkg in result.packages:
        out += f"| {pkg.name} | {pkg.version} | {pkg.ecosystem} | {pkg.location} |\n"

    return truncate(out, max_chars)


def render_vulns(vulns: list[PackageVuln], *, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Focused vulnerability table."""
    out = "## Vulnerabilities\n\n"
    out += "| CVE / ID | Severity | Package | Version | Fixed Version |\n"
    out += "|----------|----------|---------|---------|---------------|\n"

    for v in vulns:
        vuln_id, severity, fixed = "unknown", "", ""
        if v.vulnerability is not None:
            vuln_id = v.vulnerability.id or "unknown"
            severity = v.vulnerability.severity_score
            fixed = v.vulnerability.fixed_version
        name = v.package.name if v.package else ""
        version = v.package.version if v.package else ""
        out += f"| {vuln_id} | {severity} | {name} | {version} | {fixed} |\n"

    return truncate(out, max_chars)


def render_secrets(secrets: list[Secret], *, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Numbered table of detected secrets with their validation status."""
    out = "## Secrets Detected\n\n"
    out += "| # | Location | Status |\n"
    out += "|---|----------|--------|\n"

    for i, secret in enumerate(secrets, start=1):
        status = "NOT_VALIDATED"
        if secret.validated:
            status = _SECRET_STATUS.get(secret.validation.status, secret.validation.status)
        out += f"| {i} | {secret.location} | {status} |\n"

    return truncate(out, max_chars)


def render_findings(findings: list[GenericFinding], *, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Table of detector findings (misconfigurations, weak credentials, EOL software)."""
    out = "## Security Findings\n\n"
    out += "| ID | Title | Severity | Description | Recommendation |\n"
    out += "|----|-------|----------|-------------|----------------|\n"

    for finding in findings:
        ref, title, sev, desc, rec = "", "", "", "", ""
        adv = finding.adv
        if adv is not None:
            ref = adv.id.reference if adv.id else ""
            title = adv.title
            sev = adv.sev.value
            desc = _cell(adv.description)
            rec = _cell(adv.recommendation)
        out += f"| {ref} | {title} | {sev} | {desc} | {rec} |\n"

    return truncate(out, max_chars)


def render_image_layers(result: ImageScanResult, *, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Packages grouped by the image layer that introduced them, then vulnerabilities."""
    out = "# Container Image Scan Results\n\n"
    out += f"- **Packages found:** {len(result.packages)}\n"
    out += f"- **Vulnerabilities found:** {len(result.vulns)}\n\n"

    by_layer: dict[int, list[Package]] = {}
    commands: dict[int, str] = {}
    for pkg in result.packages:
        idx, cmd = -1, ""
        if pkg.layer_metadata is not None:
            idx = pkg.layer_metadata.index
            cmd = pkg.layer_metadata.command
        by_layer.setdefault(idx, []).append(pkg)
        if cmd:
            commands[idx] = cmd

    for idx in sorted(by_layer):
        if idx < 0:
            out += "## Unknown Layer\n\n"
        else:
            out += f"## Layer {idx}"
            if idx in commands:
                out += f": `{commands[idx]}`"
            out += "\n\n"

        out += "| Package | Version | Ecosystem |\n"
        out += "|---------|---------|-----------|\n"
        for pkg in by_layer[idx]:
            out += f"| {pkg.name} | {pkg.version} | {pkg.ecosystem} |\n"
        out += "\n"

    if result.has_vulns:
        out += render_vulns(result.vulns, max_chars=max_chars)

    return truncate(out, max_chars)
