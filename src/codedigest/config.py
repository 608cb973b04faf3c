from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB
MAX_DIRECTORY_DEPTH = 20
MAX_TOTAL_SIZE_BYTES = 500 * 1024 * 1024  # 500 MiB
CHUNK_SIZE = 1024 * 1024  # 1 MiB

DIGEST_SEPARATOR = "=" * 48
TREE_TRUNCATED_MARKER = "[Directory tree truncated due to size]"

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    "*.pyc",
    "*.pyo",
    "*.pyd",
    "__pycache__",
    ".pytest_cache",
    ".coverage",
    ".tox",
    ".nox",
    ".mypy_cache",
    ".ruff_cache",
    ".hypothesis",
    "poetry.lock",
    "Pipfile.lock",
    "node_modules",
    "bower_components",
    "package-lock.json",
    "yarn.lock",
    ".npm",
    ".yarn",
    ".pnpm-store",
    "*.class",
    "*.jar",
    "*.war",
    "*.ear",
    "*.nar",
    ".gradle/",
    "build/",
    ".settings/",
    ".classpath",
    "gradle-app.setting",
    "*.gradle",
    ".project",
    "*.o",
    "*.obj",
    "*.dll",
    "*.dylib",
    "*.exe",
    "*.lib",
    "*.out",
    "*.a",
    "*.pdb",
    ".build/",
    "*.xcodeproj/",
    "*.xcworkspace/",
    "*.pbxuser",
    "*.mode1v3",
    "*.mode2v3",
    "*.perspectivev3",
    "*.xcuserstate",
    "xcuserdata/",
    ".swiftpm/",
    "*.gem",
    ".bundle/",
    "vendor/bundle",
    "Gemfile.lock",
    ".ruby-version",
    ".ruby-gemset",
    ".rvmrc",
    "Cargo.lock",
    "**/*.rs.bk",
    "target/",
    "pkg/",
    "obj/",
    "*.suo",
    "*.user",
    "*.userosscache",
    "*.sln.docstates",
    "packages/",
    "*.nupkg",
    "bin/",
    ".git",
    ".svn",
    ".hg",
    ".gitignore",
    ".gitattributes",
    ".gitmodules",
    "*.svg",
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.gif",
    "*.ico",
    "*.pdf",
    "*.mov",
    "*.mp4",
    "*.mp3",
    "*.wav",
    "venv",
    ".venv",
    "env",
    ".env",
    "virtualenv",
    ".idea",
    ".vscode",
    ".vs",
    "*.swo",
    "*.swn",
    ".settings",
    "*.sublime-*",
    "*.log",
    "*.bak",
    "*.swp",
    "*.tmp",
    "*.temp",
    ".cache",
    ".sass-cache",
    ".eslintcache",
    ".DS_Store",
    "Thumbs.db",
    "desktop.ini",
    "build",
    "dist",
    "target",
    "out",
    "*.egg-info",
    "*.egg",
    "*.whl",
    "*.so",
    "site-packages",
    ".docusaurus",
    ".next",
    ".nuxt",
    "*.min.js",
    "*.min.css",
    "*.map",
    ".terraform",
    "*.tfstate*",
    "vendor/",
)

TEXT_EXTENSIONS: frozenset[str] = frozenset({
    ".txt",
    ".md",
    ".py",
    ".js",
    ".java",
    ".c",
    ".cpp",
    ".h",
    ".hpp",
    ".cs",
    ".go",
    ".rs",
    ".swift",
    ".rb",
    ".php",
    ".html",
    ".css",
    ".json",
    ".xml",
    ".yaml",
    ".yml",
    ".sh",
    ".bat",
    ".sql",
    ".csv",
    ".tsv",
    ".ini",
    ".cfg",
    ".toml",
    ".lua",
    ".pl",
    ".pm",
    ".r",
    ".ts",
})


class WalkConfig(BaseModel):
    """Fully resolved configuration consumed by the walker and the tree renderer.

    Attributes:
        ignore_patterns: ordered ignore patterns; later entries override earlier ones.
        include_patterns: include patterns; when non-empty a file must match one of them.
        max_file_size: files above this many bytes are skipped.
        max_total_size: cumulative byte budget for all collected files.
        max_depth: deepest directory level the walk descends into (root is 0).
        quiet: hide per-file events.
        ultra_quiet: hide everything but errors.
        omit_excluded: prune excluded entries from the rendered tree.
    """

    model_config = ConfigDict(frozen=True)

    ignore_patterns: tuple[str, ...] = Field(default=DEFAULT_IGNORE_PATTERNS, description="Ignore patterns")
    include_patterns: tuple[str, ...] = Field(default=(), description="Include patterns")
    max_file_size: int = Field(default=MAX_FILE_SIZE, ge=0, description="Max size of a single file")
    max_total_size: int = Field(default=MAX_TOTAL_SIZE_BYTES, ge=0, description="Max cumulative size")
    max_depth: int = Field(default=MAX_DIRECTORY_DEPTH, ge=0, description="Max directory depth")
    quiet: bool = Field(default=False, description="Suppress added/skipped events")
    ultra_quiet: bool = Field(default=False, description="Suppress all non-error output")
    omit_excluded: bool = Field(default=False, description="Omit excluded entries from the tree")


class FileRecord(BaseModel):
    """A file accepted into the digest.

    Attributes:
        rel: Path relative to the walk root, with POSIX separators.
        content: Text content of the file.
        size: File size in bytes.
    """

    model_config = ConfigDict(frozen=True)

    rel: str = Field(..., description="File path relative to the walk root")
    content: str = Field(..., description="File content")
    size: int = Field(..., ge=0, description="File size in bytes")


class ErrorEntry(BaseModel):
    """A non-fatal error met during the walk."""

    model_config = ConfigDict(frozen=True)

    timestamp: str = Field(..., description="ISO 8601 UTC timestamp")
    message: str = Field(..., description="Error message")


class Statistics(BaseModel):
    """Point-in-time summary of a finished run, with the configuration it ran under."""

    model_config = ConfigDict(frozen=True)

    file_count: int = Field(default=0, description="Files added to the digest")
    total_size: int = Field(default=0, description="Bytes added to the digest")
    skipped_files: int = Field(default=0, description="Files skipped by the size limit")
    excluded_files: int = Field(default=0, description="Entries excluded by pattern")
    non_text_files: int = Field(default=0, description="Files excluded as non-text")
    size_limit_reached: bool = Field(default=False, description="Total size budget was hit")
    elapsed_seconds: float = Field(default=0.0, ge=0, description="Wall time of the run")
    matched_ignore_patterns: tuple[str, ...] = Field(default=(), description="Ignore patterns that fired")
    include_patterns: tuple[str, ...] = Field(default=(), description="Include patterns in effect")
    errors: tuple[ErrorEntry, ...] = Field(default=(), description="Ordered error log")
    max_file_size: int = Field(default=MAX_FILE_SIZE, description="Configured max file size")
    max_total_size: int = Field(default=MAX_TOTAL_SIZE_BYTES, description="Configured max total size")
    max_depth: int = Field(default=MAX_DIRECTORY_DEPTH, description="Configured max depth")
    omit_excluded: bool = Field(default=False, description="Tree pruned to the selection")

    @computed_field
    @property
    def error_count(self) -> int:
        """Number of non-fatal errors recorded."""
        return len(self.errors)


class DigestResult(BaseModel):
    """Everything a run produces: selected files, tree text and statistics."""

    model_config = ConfigDict(frozen=True)

    files: tuple[FileRecord, ...] = Field(default=(), description="Selected files, in walk order")
    tree: str = Field(default="", description="Rendered directory tree")
    stats: Statistics = Field(default_factory=Statistics, description="Run statistics")
