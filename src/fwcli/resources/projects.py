"""Project and analysis operations.

:class:`ProjectOperations` turns each remote route under
``/api/v1/projects`` into a typed call. Authentication, retries and error
classification are all handled by the :class:`~fwcli.client.ApiClient`
passed in; this module only builds requests and decodes responses.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union
from uuid import UUID

from fwcli.client.api_client import ApiClient
from fwcli.client.response import parse_json, parse_model, parse_model_list
from fwcli.client.upload import UploadReader
from fwcli.config import atomic_write
from fwcli.exceptions import InvalidUsageError, LocalStorageError, NotFoundError, ServerError
from fwcli.models import Analysis, LatestVersion, Project, ProjectId
from fwcli.output import debug

PROJECTS_PATH = "/api/v1/projects"
UPDATES_PATH = "/api/updates_check"

_RESULT_KEYS = ("result_payload", "result", "results")


def parse_project_id(value: Union[str, UUID]) -> UUID:
    """Validate a project id given on the command line.

    A malformed id cannot name an existing project, so it is reported as
    :class:`~fwcli.exceptions.NotFoundError` without contacting the service.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(value.strip())
    except (ValueError, AttributeError) as exc:
        raise NotFoundError(f"Project not found: {value}", resource=str(value)) from exc


class ProjectOperations:
    """Typed calls against projects and their analyses.

    Args:
        client: An entered :class:`~fwcli.client.ApiClient` with a bound
            session.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def list_projects(self) -> list[Project]:
        response = self._client.request("GET", PROJECTS_PATH)
        if response.status_code == 204 or not response.content:
            return []
        return parse_model_list(response, Project)

    def create(
        self,
        firmware_path: Path,
        firmware_type: str,
        name: str,
        subtype: Optional[str] = None,
        description: Optional[str] = None,
    ) -> UUID:
        """Upload a firmware image as a new project.

        The file is streamed, never loaded into memory. The request is sent
        once; if it breaks off, the whole call has to be repeated.

        Args:
            firmware_path: Firmware image on disk.
            firmware_type: Firmware family understood by the service
                (e.g. ``"UEFI"``).
            name: Project name.
            subtype: Optional firmware subtype.
            description: Optional free-form description.

        Returns:
            The id of the new project.

        Raises:
            InvalidUsageError: If *firmware_path* is missing or a directory.
            LocalStorageError: If the file cannot be opened.
            UploadFailedError: If the upload broke off mid-body.
        """
        if not firmware_path.exists():
            raise InvalidUsageError(f"Firmware file not found: {firmware_path}")
        if firmware_path.is_dir():
            raise InvalidUsageError(f"Firmware path is a directory: {firmware_path}")

        fields = {"name": name, "type": firmware_type}
        if subtype is not None:
            fields["subtype"] = subtype
        if description is not None:
            fields["description"] = description

        try:
            reader = UploadReader(firmware_path)
        except OSError as exc:
            raise LocalStorageError(
                f"Cannot open firmware file {firmware_path}: {exc.strerror or exc}"
            ) from exc

        with reader:
            debug(f"Uploading {reader.name} ({reader.size} bytes)")
            response = self._client.request(
                "POST",
                PROJECTS_PATH,
                data=fields,
                files={"file": (reader.name, reader, "application/octet-stream")},
            )
        return parse_model(response, ProjectId).id

    def overview(self, project_id: Union[str, UUID]) -> dict[str, Any]:
        """Return the overview document of a project."""
        pid = parse_project_id(project_id)
        response = self._client.request("GET", f"{PROJECTS_PATH}/{pid}/overview")
        data = parse_json(response)
        if not isinstance(data, dict):
            raise ServerError(f"Unexpected overview for project {pid}: not a JSON object")
        return data

    def analysis(self, project_id: Union[str, UUID], analyzer_name: str) -> Analysis:
        """Return the output of *analyzer_name* for a project.

        The service returns either an analysis record or the bare analyzer
        output; the latter becomes the record's ``result_payload``.
        """
        pid = parse_project_id(project_id)
        response = self._client.request(
            "GET", f"{PROJECTS_PATH}/{pid}/analysis/{analyzer_name}"
        )
        data = parse_json(response)
        if isinstance(data, dict) and any(key in data for key in _RESULT_KEYS):
            return parse_model(response, Analysis, project_id=str(pid), analyzer_name=analyzer_name)
        return Analysis(project_id=pid, analyzer_name=analyzer_name, result_payload=data)

    def delete(self, project_id: Union[str, UUID]) -> None:
        pid = parse_project_id(project_id)
        self._client.request("DELETE", f"{PROJECTS_PATH}/{pid}")

    def report(self, project_id: Union[str, UUID], directory: Path) -> Path:
        """Download the PDF report of a project into *directory*.

        Returns:
            Path of the written ``<project_id>.pdf``.

        Raises:
            ServerError: If the service returns an empty report.
            LocalStorageError: If the file cannot be written.
        """
        pid = parse_project_id(project_id)
        response = self._client.request(
            "GET", f"{PROJECTS_PATH}/{pid}/report", accept="application/pdf"
        )
        if not response.content:
            raise ServerError(f"Empty report for project {pid}")

        target = directory / f"{pid}.pdf"
        try:
            atomic_write(target, response.content)
        except OSError as exc:
            raise LocalStorageError(
                f"Cannot write report {target}: {exc.strerror or exc}"
            ) from exc
        debug(f"Wrote {len(response.content)} bytes to {target}")
        return target

    def updates_check(self) -> LatestVersion:
        """Ask the service for the latest released client version."""
        response = self._client.request("GET", UPDATES_PATH, requires_auth=False)
        return parse_model(response, LatestVersion)
