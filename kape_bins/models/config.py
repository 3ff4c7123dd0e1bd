"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pathlib import Path, PurePosixPath

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_CACHE_DIR_NAME = "bin"
DEFAULT_MODULE_EXTENSION = ".mkape"
DEFAULT_URL_PREFIX = "BinaryUrl:"


class CopyMapping(BaseModel):
    """
    A known executable nested inside an extracted archive.

    Both paths are relative to the cache directory. An empty destination means
    the cache root.
    """

    source: str
    destination: str = ""

    class Config:
        """Pydantic model configuration."""

        frozen = True
        str_strip_whitespace = True

    @field_validator("source", "destination")
    @classmethod
    def validate_relative(cls, v: str) -> str:
        """Rejects absolute paths and parent-directory hops."""
        v = v.replace("\\", "/")
        if v.startswith("/") or ".." in PurePosixPath(v).parts:
            raise ValueError(
                f"Copy mapping paths must stay inside the cache directory: '{v}'"
            )
        return v

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        if not v:
            raise ValueError("Copy mapping source cannot be empty.")
        return v

    def source_path(self, cache_dir: Path) -> Path:
        return cache_dir / self.source

    def destination_path(self, cache_dir: Path) -> Path:
        return cache_dir / self.destination if self.destination else cache_dir


DEFAULT_COPY_MAPPINGS: tuple[CopyMapping, ...] = (
    CopyMapping(source="win64/densityscout.exe"),
    CopyMapping(source="EvtxExplorer/EvtxECmd.exe"),
    CopyMapping(source="RegistryExplorer/RECmd.exe"),
    CopyMapping(source="ShellBagsExplorer/SBECmd.exe"),
    CopyMapping(source="sqlite-tools-win32-x86-3270200/sqlite3.exe"),
)


class SyncConfig(BaseModel):
    """A validated configuration model for a sync run."""

    # Locations
    root_dir: Path
    cache_dir_name: str = DEFAULT_CACHE_DIR_NAME

    # Module parsing
    module_extension: str = DEFAULT_MODULE_EXTENSION
    url_prefix: str = DEFAULT_URL_PREFIX

    # Network
    connect_timeout: float = 15.0
    read_timeout: float = 90.0

    # Behavior
    promote: bool = True
    dry_run: bool = False
    copy_mappings: list[CopyMapping] = Field(
        default_factory=lambda: list(DEFAULT_COPY_MAPPINGS)
    )

    # Internal fields not loaded from INI file
    config_path: str | None = Field(None, repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("cache_dir_name")
    @classmethod
    def validate_cache_dir_name(cls, v: str) -> str:
        """The cache directory must be a plain relative path below the root."""
        if not v:
            raise ValueError("Cache directory name cannot be empty.")
        if ".." in Path(v).parts or Path(v).is_absolute():
            raise ValueError(
                "Cache directory name cannot contain '..' or be an absolute path."
            )
        return v

    @field_validator("module_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        """Normalizes the module extension to a leading-dot form."""
        if not v or v == ".":
            raise ValueError("Module extension cannot be empty.")
        return v if v.startswith(".") else f".{v}"

    @field_validator("url_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if not v or any(c.isspace() for c in v):
            raise ValueError("URL prefix must be a non-empty token without spaces.")
        return v

    @field_validator("connect_timeout", "read_timeout")
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts must be positive numbers of seconds.")
        return v

    @model_validator(mode="after")
    def validate_root(self) -> "SyncConfig":
        """Ensures the scan root is an existing directory."""
        if not self.root_dir.is_dir():
            raise ValueError(f"Root directory does not exist: {self.root_dir}")
        return self

    @property
    def cache_dir(self) -> Path:
        return self.root_dir / self.cache_dir_name

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path", "root_dir", "dry_run"}
        return {key for key in cls.model_fields if key not in internal_fields}
