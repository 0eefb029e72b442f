"""
Version constants for the extraction and merge components.

Bump a component version whenever its observable output changes for the same input.
"""

API_VERSION = "1.0.0"

PARSER_VERSION = "eml-parser-1.0.0"
LEGACY_PARSER_VERSION = "msg-parser-1.0.0"
MERGER_VERSION = "pdf-merger-1.0.0"


def get_component_versions() -> dict:
    """Return the current component versions keyed by component name."""
    return {
        "parser": PARSER_VERSION,
        "legacy_parser": LEGACY_PARSER_VERSION,
        "merger": MERGER_VERSION,
    }
