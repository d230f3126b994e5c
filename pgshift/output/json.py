"""JSON output rendering for migration results."""
import json  # pylint: disable=import-self,redefined-builtin

from pgshift.models.migration import MigrationResult


def render_json(result: MigrationResult) -> str:
    """Render migration result as JSON string."""
    return json.dumps(result.to_dict(), indent=2)
