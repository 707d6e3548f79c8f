"""Project commands -- upload firmware, read analyses, download reports.

Each command maps one-to-one to a
:class:`~fwcli.resources.ProjectOperations` call. Results go to stdout in
the active output format; progress and hints go to stderr.

Typical workflow::

    fwcli create bios.bin --type UEFI --name "Board rev B"
    fwcli overview 3f0c...          # summary of all analyzers
    fwcli analysis 3f0c... PeimDxe  # one analyzer in detail
    fwcli report 3f0c... --output-dir reports/
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

import typer

from fwcli import __version__
from fwcli.commands import error_boundary, is_forced, open_session
from fwcli.output import (
    format_response,
    info,
    print_data,
    print_table,
    success,
    suggest,
    warning,
)


def list_command(ctx: typer.Context) -> None:
    """List the projects of the account."""
    from fwcli.resources import ProjectOperations

    with error_boundary():
        with open_session(ctx) as (_session, client):
            projects = ProjectOperations(client).list_projects()

    if not projects:
        info("No projects yet.")
        suggest("Upload a firmware image: fwcli create <FIRMWARE> --type <TYPE> --name <NAME>")
        return

    rows = [
        [
            str(project.id),
            project.name,
            project.firmware_type or "",
            project.firmware_subtype or "",
            project.status or "",
            project.created_at.isoformat() if project.created_at else "",
        ]
        for project in projects
    ]
    print_table(["ID", "Name", "Type", "Subtype", "Status", "Created"], rows, title="Projects")


def create_command(
    ctx: typer.Context,
    firmware: Path = typer.Argument(help="Firmware image to upload."),
    firmware_type: str = typer.Option(
        ..., "--type", "-t", help="Firmware type, e.g. UEFI."
    ),
    name: str = typer.Option(..., "--name", "-n", help="Project name."),
    subtype: Optional[str] = typer.Option(None, "--subtype", help="Firmware subtype."),
    description: Optional[str] = typer.Option(
        None, "--description", "-d", help="Project description."
    ),
) -> None:
    """Upload a firmware image and create a project for it.

    The new project id is printed to stdout so it can be captured by
    scripts. The upload is never retried automatically; if it breaks off,
    run the command again.

    Example::

        fwcli create bios.bin --type UEFI --name "Board rev B"
        PROJECT=$(fwcli -q create bios.bin -t UEFI -n nightly)
    """
    from fwcli.resources import ProjectOperations

    with error_boundary():
        with open_session(ctx) as (_session, client):
            project_id = ProjectOperations(client).create(
                firmware, firmware_type, name, subtype=subtype, description=description
            )

    print_data(str(project_id))
    success(f'Project "{name}" created.')
    suggest(f"Follow the analysis: fwcli overview {project_id}")


def overview_command(
    ctx: typer.Context,
    project_id: str = typer.Argument(help="Project id (UUID)."),
) -> None:
    """Show the analysis overview of a project."""
    from fwcli.resources import ProjectOperations

    with error_boundary():
        with open_session(ctx) as (_session, client):
            overview = ProjectOperations(client).overview(project_id)
    format_response(overview)


def analysis_command(
    ctx: typer.Context,
    project_id: str = typer.Argument(help="Project id (UUID)."),
    analyzer: str = typer.Argument(help="Analyzer name, e.g. PeimDxe."),
) -> None:
    """Show the output of one analyzer for a project."""
    from fwcli.resources import ProjectOperations

    with error_boundary():
        with open_session(ctx) as (_session, client):
            result = ProjectOperations(client).analysis(project_id, analyzer)
    format_response(result.model_dump(mode="json", exclude_none=True))


def delete_command(
    ctx: typer.Context,
    project_id: str = typer.Argument(help="Project id (UUID)."),
) -> None:
    """Delete a project and all its analyses.

    Asks for confirmation unless ``--force`` is given.
    """
    from fwcli.resources import ProjectOperations, parse_project_id

    with error_boundary():
        pid = parse_project_id(project_id)
        if not is_forced(ctx):
            confirmed = typer.confirm(f"Delete project {pid}?")
            if not confirmed:
                info("Cancelled.")
                raise typer.Exit()
        with open_session(ctx) as (_session, client):
            ProjectOperations(client).delete(pid)
    success(f"Project {pid} deleted.")


def report_command(
    ctx: typer.Context,
    project_id: str = typer.Argument(help="Project id (UUID)."),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for the PDF (default: reports_dir setting, else cwd).",
    ),
) -> None:
    """Download the PDF report of a project.

    The report is written to ``<output-dir>/<project_id>.pdf`` and its
    path printed to stdout.
    """
    from fwcli.resources import ProjectOperations

    with error_boundary():
        with open_session(ctx) as (_session, client):
            directory = output_dir
            if directory is None:
                configured = client.config.reports_dir
                directory = Path(configured).expanduser() if configured else Path.cwd()
            path = ProjectOperations(client).report(project_id, directory)

    print_data(str(path))
    success("Report downloaded.")


def check_update_command(ctx: typer.Context) -> None:
    """Check whether a newer fwcli release is available."""
    from fwcli.resources import ProjectOperations

    with error_boundary():
        with open_session(ctx) as (_session, client):
            latest = ProjectOperations(client).updates_check()

    format_response({"current": __version__, "latest": latest.version})
    if _version_key(latest.version) > _version_key(__version__):
        warning(f"fwcli {latest.version} is available (installed: {__version__}).")
    else:
        success("fwcli is up to date.")


def _version_key(version: str) -> tuple[int, ...]:
    """Numeric components of a dotted version, e.g. ``"v1.2.10"`` -> ``(1, 2, 10)``."""
    return tuple(int(part) for part in re.findall(r"\d+", version))
