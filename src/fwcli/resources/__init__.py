"""Typed operations on the service's projects and analyses."""

from fwcli.resources.projects import ProjectOperations, parse_project_id

__all__ = ["ProjectOperations", "parse_project_id"]
