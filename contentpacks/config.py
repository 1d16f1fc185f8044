"""
Local Service Configuration
Handles settings for the content delivery service

Settings come from a JSON file (default: local_settings.json next to the
project root, or the file named by CDS_CONFIG) merged over DEFAULT_CONFIG.
Environment variables, optionally loaded from .env, override the file.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ContentPathNotConfigured(Exception):
    """
    Raised when the content folder is required but not usable.

    The content folder has to exist and be writable, since uploads and the
    startup scan write below it.
    """
    pass


# Environment variable -> dotted config key
ENV_OVERRIDES = {
    "CONTENT_PATH": "content_path",
    "STATIC_CONTENT_PATH": "static_content_path",
    "HOST": "webserver.host",
    "PORT": "webserver.port",
    "BASE_PATH": "webserver.base_path",
}


class LocalConfig:
    """Manages service settings stored in a JSON file"""

    DEFAULT_CONFIG = {
        "content_path": "",            # Folder holding {id}.zip archives and {id}/ folders
        "static_content_path": "",     # Folder served under /static (optional)
        "webserver": {
            "host": "0.0.0.0",
            "port": 8080,
            "base_path": ""            # Prefix for all routes, e.g. "/cds"
        },
        "validate_on_startup": True    # Run package validation after the startup scan
    }

    def __init__(self, config_path: Optional[str] = None, use_env: bool = True):
        """Initialize config manager with optional custom path"""
        if config_path:
            self.config_path = Path(config_path)
        elif os.getenv("CDS_CONFIG"):
            self.config_path = Path(os.environ["CDS_CONFIG"])
        else:
            # Default to root level local_settings.json
            self.config_path = Path(__file__).parent.parent / "local_settings.json"

        self.config = self._load_config()
        if use_env:
            self._apply_env_overrides()

    def _load_config(self) -> Dict[str, Any]:
        """Load config from file or use defaults"""
        defaults = copy.deepcopy(self.DEFAULT_CONFIG)
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    saved_config = json.load(f)
                if not isinstance(saved_config, dict):
                    raise ValueError("settings file must contain a JSON object")
                # Merge with defaults to handle new fields
                return self._merge_config(defaults, saved_config)
            except (json.JSONDecodeError, ValueError, IOError) as e:
                logger.warning(f"Error loading config {self.config_path}: {e}. Using defaults.")
                return defaults
        logger.warning("No configuration file found. Using default settings.")
        return defaults

    def _merge_config(self, defaults: Dict, saved: Dict) -> Dict:
        """Overlay known keys from the settings file onto a copy of the defaults"""
        for key, value in saved.items():
            if key not in defaults:
                logger.warning(f"Ignoring unknown setting: {key}")
                continue
            if isinstance(defaults[key], dict) and isinstance(value, dict):
                self._merge_config(defaults[key], value)
            else:
                defaults[key] = value
        return defaults

    def _apply_env_overrides(self) -> None:
        """Environment variables win over the settings file"""
        for env_var, key in ENV_OVERRIDES.items():
            value = os.getenv(env_var)
            if value:
                self.set(key, value)

    def _section(self, key: str, create: bool = False) -> Tuple[Optional[Dict], str]:
        """Dict holding the last part of a dotted key, and that last part"""
        *parents, leaf = key.split('.')
        section = self.config
        for part in parents:
            child = section.get(part)
            if not isinstance(child, dict):
                if not create:
                    return None, leaf
                child = section[part] = {}
            section = child
        return section, leaf

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by key (supports dot notation)"""
        section, leaf = self._section(key)
        if section is None:
            return default
        return section.get(leaf, default)

    def set(self, key: str, value: Any) -> None:
        """Set a config value by key (supports dot notation)"""
        section, leaf = self._section(key, create=True)
        section[leaf] = value

    # Convenience methods for common operations

    def get_content_path(self) -> str:
        return self.config.get("content_path", "") or ""

    def require_content_path(self) -> str:
        """
        Get the content folder or raise a clear error if it cannot be used.

        Returns:
            str: The content folder path

        Raises:
            ContentPathNotConfigured: If the folder is unset, missing or read-only
        """
        folder = self.get_content_path()
        if not folder:
            raise ContentPathNotConfigured(
                "No content path configured. "
                "Set content_path in local_settings.json or CONTENT_PATH in your .env file."
            )
        if not os.path.isdir(folder) or not os.access(folder, os.W_OK):
            raise ContentPathNotConfigured(
                f"The given content directory cannot be accessed: {folder}. "
                "Please ensure the directory exists and is writable."
            )
        return folder

    def set_content_path(self, path: str) -> None:
        self.config["content_path"] = path

    def get_static_content_path(self) -> Optional[str]:
        """Static folder if configured and readable, else None"""
        folder = self.config.get("static_content_path", "")
        if not folder:
            return None
        if not os.path.isdir(folder) or not os.access(folder, os.R_OK):
            logger.warning(
                f"The given directory for static content cannot be accessed: {folder}. "
                "Please ensure the directory exists and is readable."
            )
            return None
        return folder

    def get_host(self) -> str:
        return str(self.get("webserver.host", "0.0.0.0"))

    def get_port(self) -> int:
        """Port as int (env values arrive as strings)"""
        port = self.get("webserver.port", 8080)
        try:
            port = int(port)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid port setting: {port!r}")
        if not (1 <= port <= 65535):
            raise ValueError(f"Port must be 1-65535, got {port}")
        return port

    def get_base_path(self) -> str:
        """Route prefix without trailing slash ("" or "/something")"""
        base = str(self.get("webserver.base_path", "") or "").strip()
        base = base.rstrip("/")
        if base and not base.startswith("/"):
            base = "/" + base
        return base

    def should_validate_on_startup(self) -> bool:
        return bool(self.config.get("validate_on_startup", True))


# Global instance
_local_config = None


def get_local_config() -> LocalConfig:
    """Get the global config instance (loads .env on first use)"""
    global _local_config
    if _local_config is None:
        load_dotenv()
        _local_config = LocalConfig()
    return _local_config


def reset_local_config() -> None:
    """Drop the cached instance so the next call reloads settings"""
    global _local_config
    _local_config = None
