"""fwcli -- command-line client for a remote firmware-analysis service.

The client authenticates a user (password login or long-lived API key),
submits firmware images for analysis, and retrieves project state, analyzer
results and PDF reports. All analysis happens server-side; the client only
moves bytes and metadata.

Typical workflow::

    fwcli login                                  # start a session
    fwcli create firmware.bin --type uefi --name board-v2
    fwcli analysis <project-id> PeimDxe
    fwcli report <project-id>

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for credentials, projects and configuration.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Error taxonomy with exit-code mapping.
    exit_codes: Numeric exit codes, one per error category.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.3.0"
