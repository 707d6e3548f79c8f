"""Persistent store for the single active credential.

The credential lives in ``~/.local/share/fwcli/credentials.json`` (XDG) or
the platform-equivalent directory. Writes are atomic (temp file, fsync,
``os.replace``) and the temp file is created ``0o600`` before any secret is
written, so the file is never readable by other users, not even briefly,
and a concurrent CLI invocation only ever sees the old credential, the new
one, or no file at all.

The file holds one serialised :data:`~fwcli.models.Credential`, either a
:class:`~fwcli.models.SessionToken` or an :class:`~fwcli.models.ApiKey`.

See Also:
    :class:`~fwcli.auth.session.SessionManager` -- the only writer.
"""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from fwcli.config import atomic_write, get_data_dir
from fwcli.exceptions import InsecureCredentialStoreError, LocalStorageError
from fwcli.models import Credential
from fwcli.output import debug

_FILENAME = "credentials.json"
_credential_adapter: TypeAdapter[Credential] = TypeAdapter(Credential)


class CredentialStore:
    """Read/write the active credential.

    ``load()`` treats a missing or corrupt file as "logged out" and never
    fails on bad content; only an unreadable file raises. ``save()`` and
    ``clear()`` surface I/O problems as
    :class:`~fwcli.exceptions.LocalStorageError`.

    Args:
        path: Optional explicit file path. Defaults to
            ``<data_dir>/credentials.json``.

    Example::

        store = CredentialStore()
        store.save(ApiKey(key_id="k1", secret="s3cr3t"))
        assert store.load().key_id == "k1"
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path if path is not None else get_data_dir() / _FILENAME

    @property
    def path(self) -> Path:
        """The filesystem path of the credential file."""
        return self._path

    def load(self) -> Optional[Credential]:
        """Load the stored credential.

        Returns:
            The credential, or ``None`` if the file is absent or its
            content cannot be parsed.

        Raises:
            LocalStorageError: If the file exists but cannot be read.
        """
        if not self._path.is_file():
            return None
        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            raise LocalStorageError(
                f"Cannot read credential file {self._path}: {exc.strerror or exc}"
            ) from exc
        try:
            return _credential_adapter.validate_python(json.loads(raw.decode("utf-8")))
        except (json.JSONDecodeError, ValidationError, UnicodeDecodeError):
            debug(f"Ignoring unreadable credential file {self._path}")
            return None

    def save(self, credential: Credential) -> None:
        """Persist *credential* atomically with ``0o600`` permissions.

        Raises:
            LocalStorageError: If the file cannot be written.
            InsecureCredentialStoreError: If the written file still ends up
                accessible to other users (e.g. a filesystem ignoring
                ``chmod``).
        """
        data = _credential_adapter.dump_python(credential, mode="json")
        text = json.dumps(data, indent=2) + "\n"
        try:
            atomic_write(self._path, text, mode=0o600)
        except OSError as exc:
            raise LocalStorageError(
                f"Cannot write credential file {self._path}: {exc.strerror or exc}"
            ) from exc
        self.verify_permissions()

    def clear(self) -> None:
        """Delete the stored credential. No-op when nothing is stored.

        Raises:
            LocalStorageError: If the file exists but cannot be removed.
        """
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            raise LocalStorageError(
                f"Cannot remove credential file {self._path}: {exc.strerror or exc}"
            ) from exc

    def verify_permissions(self) -> None:
        """Fail if the credential file is accessible to group or others.

        Not checked on Windows, where POSIX mode bits are meaningless.

        Raises:
            InsecureCredentialStoreError: If any group/other bit is set.
        """
        if os.name == "nt":
            return
        try:
            mode = stat.S_IMODE(self._path.stat().st_mode)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise LocalStorageError(
                f"Cannot inspect credential file {self._path}: {exc.strerror or exc}"
            ) from exc
        if mode & 0o077:
            raise InsecureCredentialStoreError(
                f"Credential file {self._path} has permissions {mode:#o}; "
                f"it must be accessible by its owner only (chmod 600)"
            )
