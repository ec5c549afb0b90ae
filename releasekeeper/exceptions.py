"""
Exception hierarchy for releasekeeper.

Every error derives from :class:`ReleaseKeeperError` and carries a
``details`` mapping (project, URL, path, ...) that is appended to the
message when the error is printed. Subclasses declare which keyword
arguments they accept; each becomes an attribute and, when not ``None``,
an entry in ``details``.
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, Mapping, MutableMapping, Optional, Tuple

#: Longest response body kept in ``details``.
MAX_DETAIL_LENGTH = 200


class ReleaseKeeperError(Exception):
    """Base exception for all releasekeeper errors.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: MutableMapping[str, Any] = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({extra})"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


class _StructuredError(ReleaseKeeperError):
    """Base for errors built from keyword fields.

    ``fields`` lists ``(argument, details key)`` pairs in the order they
    appear in ``details``.
    """

    fields: ClassVar[Tuple[Tuple[str, str], ...]] = ()

    def __init__(self, message: str, **kwargs: Any) -> None:
        accepted = {name for name, _ in self.fields}
        unexpected = sorted(set(kwargs) - accepted)
        if unexpected:
            raise TypeError(
                f"{type(self).__name__} got unexpected field(s): {', '.join(unexpected)}"
            )

        details: Dict[str, Any] = {}
        for name, key in self.fields:
            value = kwargs.get(name)
            setattr(self, name, value)
            if value is not None:
                details[key] = self.render_detail(name, value)

        super().__init__(message, details)

    def render_detail(self, name: str, value: Any) -> Any:
        """Value stored in ``details`` for field ``name``."""
        return value


class ParseError(_StructuredError):
    """A version, branch or constraint string is malformed.

    Keyword Args:
        value: The raw string that failed to parse.
        project: Project the value belongs to, when known.
    """

    fields = (("value", "value"), ("project", "project"))


class ResolutionError(_StructuredError):
    """Release data is inconsistent and cannot be resolved.

    Keyword Args:
        project: Project being resolved.
        release: Version string of the offending release.
    """

    fields = (("project", "project"), ("release", "release"))


class CatalogError(_StructuredError):
    """A release-history document cannot be understood.

    Keyword Args:
        project: Project whose catalog was being read.
        source: URL or file path the document came from.
    """

    fields = (("project", "project"), ("source", "source"))


class StateError(_StructuredError):
    """An installed-state document is malformed.

    Keyword Args:
        state_path: Path of the state document.
        entry: Name of the offending extension entry, if any.
    """

    fields = (("state_path", "path"), ("entry", "entry"))


class NetworkError(_StructuredError):
    """An HTTP request failed.

    Keyword Args:
        url: URL being accessed.
        status_code: HTTP status code, if a response arrived.
        response_body: Raw response body; ``details`` keeps a truncated copy.
    """

    fields = (
        ("url", "url"),
        ("status_code", "status_code"),
        ("response_body", "response"),
    )

    def render_detail(self, name: str, value: Any) -> Any:
        if name == "response_body" and len(value) > MAX_DETAIL_LENGTH:
            return value[:MAX_DETAIL_LENGTH] + "..."
        return value


class FetchError(NetworkError):
    """A project's release history does not exist on the update server.

    Accepts the :class:`NetworkError` fields plus ``project``.
    """

    fields = NetworkError.fields + (("project", "project"),)


class ConfigError(_StructuredError):
    """A configuration file is malformed or holds invalid values.

    Keyword Args:
        config_path: Path of the configuration file.
        option: Name of the offending option, if any.
    """

    fields = (("config_path", "path"), ("option", "option"))


class FileOperationError(_StructuredError):
    """Reading a file failed.

    Keyword Args:
        file_path: Path to the file involved.
        operation: Operation being performed.
        original_error: Exception that triggered this error; ``details``
            keeps its text.
    """

    fields = (
        ("file_path", "path"),
        ("operation", "operation"),
        ("original_error", "original_error"),
    )

    def render_detail(self, name: str, value: Any) -> Any:
        return str(value) if name == "original_error" else value
