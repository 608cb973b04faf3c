from __future__ import annotations

import os
from pathlib import Path

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field

from codedigest import config

ENV_FILE = find_dotenv(usecwd=True)
ENV_PREFIX = "CODEDIGEST_"


def env_defaults(env_file: str | None = None) -> dict[str, str]:
    """Collect `CODEDIGEST_*` defaults from a `.env` file and the environment.

    Variables set in the process environment win over the `.env` file.

    Args:
        env_file (str | None): the `.env` file to read, defaults to the one found from cwd

    Returns:
        dict[str, str]: lower-cased setting names without prefix, mapped to raw values
    """
    path = ENV_FILE if env_file is None else env_file
    values: dict[str, str | None] = dict(dotenv_values(path)) if path else {}
    values.update(os.environ)
    return {
        k[len(ENV_PREFIX) :].lower(): v
        for k, v in values.items()
        if k.startswith(ENV_PREFIX) and v is not None
    }


class Settings(BaseModel):
    """Configuration settings for a codedigest run, as given on the command line."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: Path = Field(default=Path(), description="Directory to process.")
    output: Path = Field(default=Path("digest.txt"), description="Output file.")
    ignore: Path | None = Field(default=None, description="File containing ignore patterns.")
    include: Path | None = Field(default=None, description="File containing include patterns.")
    ignore_pattern: list[str] = Field(default_factory=list, description="Extra ignore patterns.")
    include_pattern: list[str] = Field(default_factory=list, description="Extra include patterns.")

    max_size: int = Field(default=config.MAX_FILE_SIZE, description="Maximum file size in bytes.")
    max_total_size: int = Field(
        default=config.MAX_TOTAL_SIZE_BYTES,
        description="Maximum total size in bytes.",
    )
    max_depth: int = Field(default=config.MAX_DIRECTORY_DEPTH, description="Maximum directory depth.")

    omit_excluded: bool = Field(default=False, description="Omit excluded files from the tree.")
    quiet: bool = Field(default=False, description="Suppress 'added' and 'skipped' messages.")
    ultra_quiet: bool = Field(default=False, description="Suppress all non-error output.")
    skip_default_ignore: bool = Field(
        default=False,
        description="Use only user-provided ignore patterns.",
    )
    log_file: str = Field(default="", description="Log file path.")
