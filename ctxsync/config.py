"""
Configuration management for ctxsync.

Provides default configuration and loading from ~/.ctxsync/settings.toml.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Optional
try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Fallback for older Python versions

logger = logging.getLogger(__name__)


DEFAULT_TEXT_EXTENSIONS = [
    ".py", ".js", ".ts", ".jsx", ".tsx", ".java", ".go", ".rs",
    ".cpp", ".c", ".h", ".hpp", ".cs", ".rb", ".php", ".md", ".txt",
    ".json", ".yaml", ".yml", ".toml", ".xml", ".html", ".css",
    ".scss", ".sql", ".sh", ".bash",
]

DEFAULT_EXCLUDE_PATTERNS = [
    ".venv", "venv", ".env", "env", "node_modules", ".git", ".svn", ".hg",
    "__pycache__", ".pytest_cache", ".mypy_cache", ".tox", ".eggs",
    "*.egg-info", "dist", "build", ".idea", ".vscode", ".DS_Store",
    "*.pyc", "*.pyo", "*.pyd", ".Python", "pip-log.txt",
    "pip-delete-this-directory.txt", ".coverage", "htmlcov", ".gradle",
    "target", "bin", "obj",
]

DEFAULT_CONFIG = {
    "remote": {
        "base_url": "https://api.example.com",
        "token": "",
        "upload_timeout": 30.0,
        "query_timeout": 60.0,
        "custom_headers": {},
    },
    "indexer": {
        "text_extensions": DEFAULT_TEXT_EXTENSIONS,
        "exclude": DEFAULT_EXCLUDE_PATTERNS,
        "batch_size": 10,
        "max_lines_per_blob": 800,
        "max_file_size": 1048576,  # 1MB
    },
    "retry": {
        "max_retries": 3,
        "upload_delay": 1.0,
        "query_delay": 2.0,
    },
    "performance": {
        "max_workers": min(8, (os.cpu_count() or 1)),
    },
    "storage": {
        "data_dir": None,  # defaults to <home>/data
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "json": False,
    },
}

DEFAULT_SETTINGS_TOML = """# ctxsync configuration

[remote]
base_url = "https://api.example.com"
token = ""
upload_timeout = 30.0   # seconds per upload request
query_timeout = 60.0    # seconds per retrieval request

[remote.custom_headers]

[indexer]
batch_size = 10
max_lines_per_blob = 800
max_file_size = 1048576  # 1MB
# text_extensions = [".py", ".md"]
# exclude = ["node_modules", "*.min.js"]

[retry]
max_retries = 3
upload_delay = 1.0
query_delay = 2.0

[performance]
# max_workers = 8

[logging]
level = "INFO"
# file = "~/.ctxsync/ctxsync.log"
json = false
"""


def default_home() -> Path:
    """Get the ctxsync home directory (CTXSYNC_HOME or ~/.ctxsync)."""
    env_home = os.environ.get("CTXSYNC_HOME")
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / ".ctxsync"


class Config:
    """
    Configuration manager for ctxsync.

    Loads configuration from the user settings file if it exists,
    otherwise uses defaults.
    """

    def __init__(self, config_path: Optional[Path] = None, home: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            config_path: Settings file (defaults to <home>/settings.toml)
            home: ctxsync home directory (defaults to CTXSYNC_HOME or ~/.ctxsync)
        """
        self.home = Path(home) if home else default_home()
        self.config_path = Path(config_path) if config_path else self.home / "settings.toml"
        self._config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from file or use defaults."""
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    user_config = tomllib.load(f)
                logger.info(f"Loaded config from {self.config_path}")
                return self._merge_configs(DEFAULT_CONFIG, user_config)
            except (OSError, tomllib.TOMLDecodeError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.warning("Using default configuration")
                return copy.deepcopy(DEFAULT_CONFIG)
        else:
            logger.debug("No config file found, using defaults")
            return copy.deepcopy(DEFAULT_CONFIG)

    def _merge_configs(self, default: dict, user: dict) -> dict:
        """
        Recursively merge user config with defaults.

        User values take precedence, but missing keys use defaults.
        """
        merged = copy.deepcopy(default)
        for key, value in user.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._merge_configs(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get(self, *keys: str, default: Any = None) -> Any:
        """
        Get a configuration value by nested keys.

        Examples:
            config.get("indexer", "batch_size")
            config.get("remote", "base_url")

        Args:
            *keys: Nested keys to traverse
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self._config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, *keys: str, value: Any) -> None:
        """
        Set a configuration value by nested keys.

        Args:
            *keys: Nested keys to traverse
            value: Value to set
        """
        if not keys:
            return

        current = self._config
        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def write_default(self, overwrite: bool = False) -> bool:
        """
        Write a commented default settings file.

        Args:
            overwrite: Replace an existing settings file

        Returns:
            True if the file was written
        """
        if self.config_path.exists() and not overwrite:
            return False
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(DEFAULT_SETTINGS_TOML, encoding="utf-8")
        logger.info(f"Wrote default config to {self.config_path}")
        return True

    @property
    def data_dir(self) -> Path:
        """Directory holding persisted state."""
        data_dir = self.get("storage", "data_dir")
        if data_dir:
            return Path(data_dir).expanduser()
        return self.home / "data"

    @property
    def state_file(self) -> Path:
        """Location of the project record."""
        return self.data_dir / "projects.json"

    @property
    def remote(self) -> dict[str, Any]:
        """Get remote service configuration."""
        return self._config.get("remote", {})

    @property
    def indexer(self) -> dict[str, Any]:
        """Get indexer configuration."""
        return self._config.get("indexer", {})

    @property
    def retry(self) -> dict[str, Any]:
        """Get retry configuration."""
        return self._config.get("retry", {})

    def __repr__(self) -> str:
        """String representation."""
        return f"Config(config_path={self.config_path})"
