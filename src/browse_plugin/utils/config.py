"""Configuration management for the browse plugin."""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

from browse_plugin.utils.exceptions import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RefFallbackPolicy(Enum):
    """What to do when a ref's disambiguation index is out of range.

    FIRST falls back to the first live match. STRICT refuses to guess.
    """

    FIRST = "first"
    STRICT = "strict"


@dataclass
class AppConfig:
    """Application configuration."""

    plugin_root: Path
    browserbase_api_key: str | None = None
    browserbase_project_id: str | None = None
    cdp_url: str | None = None
    cdp_port: int = 9222
    navigation_timeout: int = 30000  # ms
    action_timeout: int = 10000  # ms
    launch_timeout: int = 15000  # ms
    screenshot_max_size: int = 2000  # px
    ref_fallback: RefFallbackPolicy = RefFallbackPolicy.FIRST
    log_level: str = "INFO"

    @property
    def browserbase_mode(self) -> bool:
        """True when both Browserbase credentials are configured."""
        return bool(self.browserbase_api_key and self.browserbase_project_id)

    @property
    def profile_dir(self) -> Path:
        return self.plugin_root / ".chrome-profile"

    @property
    def pid_file(self) -> Path:
        return self.plugin_root / ".chrome-pid"

    @property
    def screenshot_dir(self) -> Path:
        return self.plugin_root / "agent" / "browser_screenshots"

    @property
    def network_dir(self) -> Path:
        return self.plugin_root / "agent" / "browser_network"

    @property
    def browse_bin(self) -> Path:
        return self.plugin_root / "node_modules" / ".bin" / "browse"


class ConfigLoader:
    """Loads configuration from the plugin's .env file and the environment."""

    @staticmethod
    def load(plugin_root: Path | None = None) -> AppConfig:
        """Load configuration from environment.

        Args:
            plugin_root: Directory holding .env, the Chrome profile and
                screenshots. Defaults to BROWSE_PLUGIN_ROOT or the cwd.

        Raises:
            ConfigurationError: If a value is present but invalid.
        """
        root = plugin_root or Path(os.environ.get("BROWSE_PLUGIN_ROOT", "."))
        root = root.resolve()
        load_dotenv(root / ".env")

        return AppConfig(
            plugin_root=root,
            browserbase_api_key=os.environ.get("BROWSERBASE_API_KEY") or None,
            browserbase_project_id=os.environ.get("BROWSERBASE_PROJECT_ID") or None,
            cdp_url=os.environ.get("BROWSE_CDP_URL") or None,
            cdp_port=ConfigLoader._get_int_env("BROWSE_CDP_PORT", 9222),
            navigation_timeout=ConfigLoader._get_int_env(
                "BROWSE_NAVIGATION_TIMEOUT", 30000
            ),
            action_timeout=ConfigLoader._get_int_env("BROWSE_ACTION_TIMEOUT", 10000),
            launch_timeout=ConfigLoader._get_int_env("BROWSE_LAUNCH_TIMEOUT", 15000),
            screenshot_max_size=ConfigLoader._get_int_env(
                "BROWSE_SCREENSHOT_MAX_SIZE", 2000
            ),
            ref_fallback=ConfigLoader._get_fallback_policy(),
            log_level=ConfigLoader._get_log_level(),
        )

    @staticmethod
    def _get_int_env(name: str, default: int) -> int:
        """Get an integer environment variable.

        Args:
            name: The environment variable name.
            default: The default value if not set.

        Returns:
            The integer value.

        Raises:
            ConfigurationError: If the value is not a valid integer.
        """
        value = os.environ.get(name)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {name}: '{value}' is not a valid integer"
            ) from e

    @staticmethod
    def _get_fallback_policy() -> RefFallbackPolicy:
        value = os.environ.get("BROWSE_REF_FALLBACK", RefFallbackPolicy.FIRST.value)
        try:
            return RefFallbackPolicy(value.strip().lower())
        except ValueError as e:
            choices = ", ".join(p.value for p in RefFallbackPolicy)
            raise ConfigurationError(
                f"Invalid value for BROWSE_REF_FALLBACK: '{value}' "
                f"(expected one of: {choices})"
            ) from e

    @staticmethod
    def _get_log_level() -> str:
        value = os.environ.get("BROWSE_LOG_LEVEL", "INFO").strip().upper()
        if value not in LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid value for BROWSE_LOG_LEVEL: '{value}' "
                f"(expected one of: {', '.join(LOG_LEVELS)})"
            )
        return value
