"""Markdown output rendering for migration results."""
from pgshift.models.migration import MigrationResult


def _format_elapsed(elapsed_ms: int) -> str:
    if elapsed_ms < 1000:
        return f"{elapsed_ms} ms"
    return f"{elapsed_ms / 1000:.1f} s"


def render_markdown(result: MigrationResult) -> str:
    """Render migration result as Markdown report."""
    status_emoji = "🟢" if result.success else "🔴"
    status = "SUCCESS" if result.success else "FAILED"

    lines = [
        "# pgshift Migration Report",
        f"**Status:** {status_emoji} {status}",
        f"**Tables Migrated:** {result.tables_migrated}",
        f"**Rows Transferred:** {result.total_rows}",
        f"**Elapsed:** {_format_elapsed(result.elapsed_ms)}",
        ""
    ]

    lines.extend([
        "## Errors",
        ""
    ])

    if not result.errors:
        lines.append("No errors.")
    else:
        for error in result.errors:
            lines.append(f"- {error}")
    lines.append("")

    return "\n".join(lines)
