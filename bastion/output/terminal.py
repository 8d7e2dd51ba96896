"""Rich terminal output for bastion reports."""
from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from bastion.models import Category, CheckStatus, Finding, Report

CATEGORY_ORDER = [
    Category.SYSTEM_PROTECTION,
    Category.FIREWALL_NETWORK,
    Category.SHARING_SERVICES,
    Category.PRIVACY_PERMISSIONS,
    Category.FILE_HYGIENE,
    Category.PERSISTENCE,
]

STATUS_STYLES = {
    CheckStatus.PASS: "bold green",
    CheckStatus.FAIL: "bold red",
    CheckStatus.WARN: "bold yellow",
    CheckStatus.INFO: "cyan",
    CheckStatus.INCONCLUSIVE: "magenta",
}

BAR_WIDTH = 20


def make_console(color: bool = True) -> Console:
    """Console for report output. ``color=False`` drops all styling."""
    return Console(no_color=not color, highlight=False, emoji=False)


def render(report: Report, color: bool = True, console: Console | None = None) -> None:
    """Render the report to the terminal using Rich."""
    console = console or make_console(color)

    _render_header(report, console)
    _render_findings(report, console)
    _render_score(report, console)
    _render_category_bars(report, console)
    _render_summary(report, console)


# ── Header ──────────────────────────────────────────────────────────────

def _render_header(report: Report, console: Console) -> None:
    header = Text()
    header.append("  BASTION ", style="bold white")
    header.append(f"v{report.version} -- Host Security Audit", style="dim")
    console.print(Panel(header, style="bold blue"))
    console.print(f"  [dim]Host:[/dim] {escape(report.hostname)}")
    console.print(f"  [dim]Time:[/dim] {escape(report.timestamp)}")
    caps = report.capabilities
    emulated = " (Rosetta)" if caps.is_emulated else ""
    console.print(
        f"  [dim]System:[/dim] {escape(caps.os_version)} {escape(caps.architecture)}{emulated}"
    )
    console.print()


# ── Findings ────────────────────────────────────────────────────────────

def _render_findings(report: Report, console: Console) -> None:
    grouped: dict[Category, list[Finding]] = {}
    for f in report.findings:
        grouped.setdefault(f.category, []).append(f)

    for category in CATEGORY_ORDER:
        findings = grouped.get(category)
        if not findings:
            continue
        console.rule(f"[bold]{category.display_name.upper()}[/bold]", style="bold")
        for f in findings:
            _render_finding(f, console)
        console.print()


def _render_finding(finding: Finding, console: Console) -> None:
    style = STATUS_STYLES[finding.status]
    label = f"{finding.status.symbol:<4}"
    console.print(
        f"  [{style}]{label}[/{style}]  {escape(finding.check)}: {escape(finding.detail)}"
    )
    if finding.remediation and finding.status != CheckStatus.PASS:
        console.print(f"        [dim]→ {escape(finding.remediation)}[/dim]")


# ── Score ───────────────────────────────────────────────────────────────

def _score_color(score: float) -> str:
    if score >= 90:
        return "green"
    if score >= 70:
        return "yellow"
    if score >= 50:
        return "orange1"
    return "red"


def _render_score(report: Report, console: Console) -> None:
    score = report.risk_score
    color = _score_color(score.composite)
    console.print(
        f"  [bold]SECURITY SCORE[/bold]  [{color}]{score.composite:.0f}/100[/{color}]"
        f"  (Grade: [bold]{score.grade}[/bold])"
    )
    console.print(
        f"  [bold]CONFIDENCE[/bold]      {score.confidence * 100:.0f}% ({score.confidence_label})"
    )
    if score.confidence < 0.9:
        console.print(
            "  [yellow]⚠ Some checks were inconclusive; the score may not "
            "reflect actual posture.[/yellow]"
        )
    console.print()


def render_bar(score: float, width: int = BAR_WIDTH) -> str:
    """Filled/empty block bar for a 0-100 score."""
    filled = int(width * max(0.0, min(100.0, score)) / 100)
    return "█" * filled + "░" * (width - filled)


def _render_category_bars(report: Report, console: Console) -> None:
    scores = report.risk_score.category_scores
    inconclusive = report.risk_score.inconclusive_counts
    present = {f.category for f in report.findings}
    for category in CATEGORY_ORDER:
        if category not in present or category not in scores:
            continue
        value = scores[category]
        color = _score_color(value)
        note = ""
        if inconclusive.get(category):
            note = f"  [magenta]{inconclusive[category]} inconclusive[/magenta]"
        console.print(
            f"  {category.display_name:<22} [{color}]{render_bar(value)}[/{color}] "
            f"{value:>5.0f}{note}"
        )
    console.print()


# ── Summary ─────────────────────────────────────────────────────────────

def _render_summary(report: Report, console: Console) -> None:
    console.print(
        f"  [green]{report.pass_count} PASS[/green] · "
        f"[yellow]{report.warn_count} WARN[/yellow] · "
        f"[red]{report.fail_count} FAIL[/red] · "
        f"[magenta]{report.inconclusive_count} INCONCLUSIVE[/magenta]"
    )
    if not report.capabilities.has_full_access:
        console.print()
        console.print(
            "  [dim]Note: running without Full Disk Access. Permission checks are "
            "limited; grant it to your terminal in System Settings > Privacy & "
            "Security > Full Disk Access.[/dim]"
        )
    console.print()
