"""Column semantic and relationship inference"""

from schemascope.inference.name_patterns import apply_name_inference, infer_from_name
from schemascope.inference.relationships import infer_relationships
from schemascope.inference.sampling import analyze_boolean_columns, analyze_guid_columns

__all__ = [
    "analyze_boolean_columns",
    "analyze_guid_columns",
    "apply_name_inference",
    "infer_from_name",
    "infer_relationships",
]
