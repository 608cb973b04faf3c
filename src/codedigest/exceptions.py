from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CodeDigestError(Exception):
    """Base exception for errors in the codedigest package."""


@dataclass(frozen=True)
class ConfigurationError(CodeDigestError):
    """Raised when the resolved configuration cannot be used for a run.

    Configuration errors are fatal and are always reported before any traversal begins.
    """


@dataclass(frozen=True)
class RootPathNotFoundError(ConfigurationError):
    """Raised when the directory to digest does not exist."""

    path: Path
    message: str = "Path does not exist"

    def __str__(self) -> str:
        return f"{self.message}: {self.path}"


@dataclass(frozen=True)
class NotADirectoryRootError(ConfigurationError):
    """Raised when the directory to digest is not a directory."""

    path: Path
    message: str = "Path is not a directory"

    def __str__(self) -> str:
        return f"{self.message}: {self.path}"


@dataclass(frozen=True)
class PatternFileNotFoundError(ConfigurationError):
    """Raised when an ignore or include pattern file is missing."""

    path: Path
    kind: str = "Pattern"

    def __str__(self) -> str:
        return f"{self.kind} file not found: {self.path}"


@dataclass(frozen=True)
class InvalidThresholdError(ConfigurationError):
    """Raised when a size or depth threshold is not strictly positive."""

    name: str
    value: int

    def __str__(self) -> str:
        return f"{self.name} must be positive (got {self.value})"


@dataclass(frozen=True)
class InvalidArgumentsError(ConfigurationError):
    """Raised with every configuration problem found before a run."""

    problems: tuple[ConfigurationError, ...]

    def __str__(self) -> str:
        return "Invalid arguments:\n" + "\n".join(str(p) for p in self.problems)
