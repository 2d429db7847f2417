"""Error taxonomy and user-facing error display."""

import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console

if TYPE_CHECKING:
    from avsuite.config import AvSuiteConfig

logger = logging.getLogger(__name__)
console = Console()


class ErrorCategory(Enum):
    """Categories of errors for better user experience."""

    CONFIGURATION = "configuration"
    METADATA = "metadata"
    DEPENDENCY = "dependency"
    EXTERNAL_TOOL = "external_tool"
    FILESYSTEM = "filesystem"
    SYSTEM = "system"
    CANCELLED = "cancelled"


class FailureKind(Enum):
    """Best-effort classification of an ffmpeg failure."""

    FILE_NOT_FOUND = "file_not_found"
    CORRUPT_INPUT = "corrupt_input"
    UNSUPPORTED_CODEC = "unsupported_codec"
    GENERIC = "generic"

    @property
    def summary(self) -> str:
        return {
            FailureKind.FILE_NOT_FOUND: "The file couldn't be found",
            FailureKind.CORRUPT_INPUT: "This file appears to be corrupted",
            FailureKind.UNSUPPORTED_CODEC: "This file format isn't fully supported",
            FailureKind.GENERIC: "Something went wrong processing this file",
        }[self]


def classify_failure(diagnostics: str) -> FailureKind:
    """Derive a short category from ffmpeg's diagnostic text."""
    if "No such file" in diagnostics:
        return FailureKind.FILE_NOT_FOUND
    if "Invalid" in diagnostics:
        return FailureKind.CORRUPT_INPUT
    if "codec" in diagnostics or "Codec" in diagnostics:
        return FailureKind.UNSUPPORTED_CODEC
    return FailureKind.GENERIC


class AvSuiteError(Exception):
    """Base exception for avsuite with enhanced user experience."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        *,
        solution: str | None = None,
        details: str | None = None,
        recoverable: bool = True,
        log_level: int = logging.ERROR,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.solution = solution
        self.details = details
        self.recoverable = recoverable
        self.log_level = log_level
        self.original_error = original_error

    def display_to_user(self) -> None:
        """Display error to user with helpful context."""
        category_styles = {
            ErrorCategory.CONFIGURATION: ("⚙️", "yellow"),
            ErrorCategory.METADATA: ("⏱️", "yellow"),
            ErrorCategory.DEPENDENCY: ("📦", "red"),
            ErrorCategory.EXTERNAL_TOOL: ("🔧", "red"),
            ErrorCategory.FILESYSTEM: ("📁", "red"),
            ErrorCategory.SYSTEM: ("💻", "red"),
            ErrorCategory.CANCELLED: ("⏹️", "blue"),
        }

        emoji, color = category_styles.get(self.category, ("❌", "red"))

        console.print(
            f"\n{emoji} [{color}bold]{self.category.value.replace('_', ' ').title()} Error[/{color}bold]",
        )
        console.print(f"[{color}]{self.message}[/{color}]")

        if self.details:
            console.print(f"\n[dim]Details:[/dim] {self.details}")

        if self.solution:
            console.print(f"\n[green]💡 Solution:[/green] {self.solution}")

        if self.recoverable:
            console.print(
                "\n[dim]This error only affects the current item. You can try again.[/dim]",
            )
        else:
            console.print(
                "\n[dim]This error requires intervention before continuing.[/dim]",
            )

        if self.original_error:
            logger.log(
                self.log_level,
                "%s: %s",
                self.category.value,
                self.message,
                exc_info=self.original_error,
            )
        else:
            logger.log(self.log_level, "%s: %s", self.category.value, self.message)


class BuildError(AvSuiteError):
    """Raised by the argument builder. Never reaches the external process."""


class ConfigurationError(AvSuiteError):
    """Bad or missing user-supplied input."""

    def __init__(self, message: str, *, config_path: Path | None = None, **kwargs):
        solution = kwargs.pop("solution", None)
        if not solution and config_path:
            solution = f"Check your configuration file at {config_path}"
        super().__init__(
            message,
            ErrorCategory.CONFIGURATION,
            solution=solution,
            **kwargs,
        )


class MetadataError(AvSuiteError):
    """Duration or size unavailable for an operation that needs it."""

    def __init__(self, message: str, **kwargs):
        solution = kwargs.pop(
            "solution",
            "Wait for the media probe to finish, or check the file with ffprobe",
        )
        super().__init__(message, ErrorCategory.METADATA, solution=solution, **kwargs)


class MissingMetadata(MetadataError, BuildError):
    """A derived parameter depends on a descriptor field that is absent."""

    def __init__(self, field: str, **kwargs):
        self.field = field
        label = field.replace("_", " ")
        super().__init__(f"Cannot determine the {label} of the input file", **kwargs)


class MissingSecondaryInput(ConfigurationError, BuildError):
    """The operation needs a second file and none was given."""

    def __init__(self, field: str, **kwargs):
        self.field = field
        label = field.replace("_", " ")
        solution = kwargs.pop("solution", f"Select a {label} and try again")
        super().__init__(f"No {label} selected", solution=solution, **kwargs)


class MissingAsset(ConfigurationError, BuildError):
    """An auxiliary model or asset is not installed where expected."""

    def __init__(self, path: Path, *, install_hint: str | None = None, **kwargs):
        self.path = path
        solution = kwargs.pop("solution", install_hint or f"Install the asset at {path}")
        super().__init__(f"Required asset not found: {path}", solution=solution, **kwargs)


class InvalidParameter(ConfigurationError, BuildError):
    """A parameter value is outside what the operation accepts."""

    def __init__(self, field: str, reason: str, **kwargs):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}", **kwargs)


class LaunchError(AvSuiteError):
    """The external process could not be started."""

    def __init__(self, message: str, **kwargs):
        solution = kwargs.pop("solution", "Check ffmpeg is installed and executable")
        super().__init__(
            message,
            ErrorCategory.DEPENDENCY,
            solution=solution,
            recoverable=kwargs.pop("recoverable", False),
            **kwargs,
        )


class DependencyError(LaunchError):
    """Missing or broken dependency errors."""

    def __init__(
        self,
        dependency: str,
        *,
        install_command: str | None = None,
        **kwargs,
    ):
        self.dependency = dependency
        message = f"Required dependency '{dependency}' is not available"
        solution = kwargs.pop("solution", None)
        if not solution and install_command:
            solution = f"Install with: {install_command}"
        if solution:
            kwargs["solution"] = solution
        super().__init__(message, **kwargs)


class ExecutionError(AvSuiteError):
    """The external process exited with a nonzero status."""

    def __init__(
        self,
        tool: str,
        exit_code: int | None = None,
        diagnostics: str = "",
        **kwargs,
    ):
        self.tool = tool
        self.exit_code = exit_code
        self.diagnostics = diagnostics
        self.failure_kind = classify_failure(diagnostics)

        message = f"{tool} failed"
        if exit_code is not None:
            message += f" with exit code {exit_code}"
        message += f": {self.failure_kind.summary}"

        details = kwargs.pop("details", diagnostics or None)
        solution = kwargs.pop(
            "solution",
            "Check the details above; the input may need a different operation",
        )

        super().__init__(
            message,
            ErrorCategory.EXTERNAL_TOOL,
            details=details,
            solution=solution,
            **kwargs,
        )


class OperationCancelled(AvSuiteError):
    """The operation was cancelled before it finished."""

    def __init__(self, message: str = "Operation cancelled", **kwargs):
        super().__init__(
            message,
            ErrorCategory.CANCELLED,
            log_level=kwargs.pop("log_level", logging.INFO),
            **kwargs,
        )


def handle_error(
    error: Exception,
    *,
    category: ErrorCategory | None = None,
    **kwargs,
) -> None:
    """Convert generic exceptions to AvSuiteError and display to user."""
    if isinstance(error, AvSuiteError):
        error.display_to_user()
        return

    if category is None:
        if isinstance(error, FileNotFoundError | PermissionError):
            category = ErrorCategory.FILESYSTEM
        else:
            category = ErrorCategory.SYSTEM

    wrapped = AvSuiteError(
        message=str(error) or "An unexpected error occurred",
        category=category,
        original_error=error,
        **kwargs,
    )
    wrapped.display_to_user()


def check_dependencies(config: "AvSuiteConfig") -> list[DependencyError]:
    """Check for missing dependencies and return list of errors."""
    from avsuite.services.ffmpeg import locate_ffprobe, resolve_ffmpeg

    errors = []

    try:
        ffmpeg = resolve_ffmpeg(config)
    except DependencyError as e:
        errors.append(e)
        return errors

    if not locate_ffprobe(ffmpeg).exists():
        errors.append(
            DependencyError(
                "ffprobe",
                solution="ffprobe ships with ffmpeg; reinstall ffmpeg",
                details="ffprobe is required to read media durations",
            ),
        )

    return errors
