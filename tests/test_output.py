"""Tests for output renderers."""
import json

from pgshift.models.migration import MigrationResult
from pgshift.output.json import render_json
from pgshift.output.markdown import render_markdown


def test_render_json():
    """Test JSON rendering."""
    result = MigrationResult(tables_migrated=2, total_rows=30, errors=[], elapsed_ms=40)

    data = json.loads(render_json(result))

    assert data["tables_migrated"] == 2
    assert data["total_rows"] == 30
    assert data["errors"] == []
    assert data["success"] is True


def test_render_markdown_success():
    """Test Markdown report for a clean run."""
    result = MigrationResult(tables_migrated=2, total_rows=30, errors=[], elapsed_ms=40)

    output = render_markdown(result)

    assert "# pgshift Migration Report" in output
    assert "**Status:** 🟢 SUCCESS" in output
    assert "**Rows Transferred:** 30" in output
    assert "**Elapsed:** 40 ms" in output
    assert "No errors." in output


def test_render_markdown_with_errors():
    """Test Markdown report lists each error."""
    result = MigrationResult(
        tables_migrated=1,
        total_rows=10,
        errors=["public.orders: Batch insert failed: boom", "Migration cancelled by user"],
        elapsed_ms=2500,
    )

    output = render_markdown(result)

    assert "**Status:** 🔴 FAILED" in output
    assert "**Elapsed:** 2.5 s" in output
    assert "- public.orders: Batch insert failed: boom" in output
    assert "- Migration cancelled by user" in output
