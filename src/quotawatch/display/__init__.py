"""Display utilities for quotawatch.

This module provides rendering and output utilities for both terminal
(Rich-based) and JSON output modes.
"""
from __future__ import annotations

from quotawatch.display.json import output_json
from quotawatch.display.json import output_json_error
from quotawatch.display.json import output_json_pretty
from quotawatch.display.json import rule_to_dict
from quotawatch.display.json import status_to_dict
from quotawatch.display.rich import ConsoleTray
from quotawatch.display.rich import alerts_table
from quotawatch.display.rich import format_usage
from quotawatch.display.rich import render_usage_bar
from quotawatch.display.rich import status_table

__all__ = [
    # Rich rendering
    "render_usage_bar",
    "format_usage",
    "status_table",
    "alerts_table",
    "ConsoleTray",
    # JSON output
    "output_json",
    "output_json_pretty",
    "output_json_error",
    "status_to_dict",
    "rule_to_dict",
]
