"""
Workflows package - Example workflow templates.
"""

from nodeflow.workflows.templates import create_templates, get_template, register_templates

__all__ = [
    "create_templates",
    "get_template",
    "register_templates",
]
