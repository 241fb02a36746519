"""Policy loading from YAML, remote documents and environment variables."""

import os
from pathlib import Path
from typing import Optional, Dict, Any

from dotenv import load_dotenv

from moment_video.domain.exceptions import ConfigurationError
from moment_video.infrastructure.config.schema import VideoPolicy
from moment_video.shared.logging import get_logger
from moment_video.shared.remote_config import (
    deep_merge,
    download_remote_config,
    load_yaml_config,
    normalize_keys,
)

logger = get_logger(__name__)

ENV_PREFIX = "MOMENT_VIDEO_"

_TRUE_VALUES = ("true", "1", "yes", "on")


class PolicyLoader:
    """
    Loads a VideoPolicy from layered sources.

    Precedence, lowest to highest: built-in defaults, YAML file, remote
    document, environment variables, explicit overrides. Every layer is
    merged per key, so partial sections never wipe out defaults.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config_url: Optional[str] = None,
        env_file: Optional[Path] = None
    ):
        """
        Initialize policy loader.

        Args:
            config_path: Optional path to YAML policy file
            config_url: Optional URL of a JSON/YAML policy document
            env_file: Optional .env file to read before the environment
        """
        self.config_path = config_path or Path("moment_video.yaml")
        self.config_url = config_url
        self.env_file = env_file
        self._logger = get_logger(__name__)

    def load(self, overrides: Optional[Dict[str, Any]] = None) -> VideoPolicy:
        """
        Load and validate the policy.

        Returns:
            VideoPolicy instance

        Raises:
            ConfigurationError: If any value is invalid
        """
        if self.env_file is not None:
            load_dotenv(dotenv_path=self.env_file)

        config: Dict[str, Any] = {}

        if self.config_path.exists():
            self._logger.info(f"Loading policy from {self.config_path}")
            try:
                config = deep_merge(config, normalize_keys(load_yaml_config(self.config_path)))
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
        else:
            self._logger.debug(f"Policy file not found: {self.config_path}")

        config_url = self.config_url or os.getenv(f"{ENV_PREFIX}CONFIG_URL")
        if config_url:
            remote = download_remote_config(config_url, logger_instance=self._logger)
            if remote:
                config = deep_merge(config, normalize_keys(remote))
                self._logger.info(f"Remote policy merged: {sorted(remote.keys())}")
            else:
                self._logger.warning("Continuing without remote policy")

        config = deep_merge(config, self._load_from_env())

        if overrides:
            config = deep_merge(config, normalize_keys(overrides))

        return VideoPolicy.from_dict(config)

    def _load_from_env(self) -> Dict[str, Any]:
        """Load policy values from MOMENT_VIDEO_* environment variables."""
        env_config: Dict[str, Dict[str, Any]] = {
            "thumbnail": {},
            "validation": {},
            "processing": {},
            "transcoder": {},
        }

        # Transcoder
        if ffmpeg_path := os.getenv(f"{ENV_PREFIX}FFMPEG_PATH"):
            env_config["transcoder"]["ffmpeg_path"] = ffmpeg_path

        if ffprobe_path := os.getenv(f"{ENV_PREFIX}FFPROBE_PATH"):
            env_config["transcoder"]["ffprobe_path"] = ffprobe_path

        if temp_dir := os.getenv(f"{ENV_PREFIX}TEMP_DIR") or os.getenv("TMP_DIR"):
            env_config["transcoder"]["temp_dir"] = temp_dir

        # Processing
        if timeout := os.getenv(f"{ENV_PREFIX}TIMEOUT"):
            try:
                env_config["processing"]["timeout"] = float(timeout)
            except ValueError:
                self._logger.warning(f"Invalid {ENV_PREFIX}TIMEOUT value: {timeout}")

        if retry_attempts := os.getenv(f"{ENV_PREFIX}RETRY_ATTEMPTS"):
            try:
                env_config["processing"]["retry_attempts"] = int(retry_attempts)
            except ValueError:
                self._logger.warning(f"Invalid {ENV_PREFIX}RETRY_ATTEMPTS value: {retry_attempts}")

        if mode := os.getenv(f"{ENV_PREFIX}TRANSFORM_MODE"):
            env_config["processing"]["transform_mode"] = mode.lower()

        if target := os.getenv(f"{ENV_PREFIX}TARGET_RESOLUTION"):
            env_config["processing"]["target_resolution"] = target

        if auto_compress := os.getenv(f"{ENV_PREFIX}AUTO_COMPRESS"):
            env_config["processing"]["auto_compress"] = auto_compress.lower() in _TRUE_VALUES

        if auto_convert := os.getenv(f"{ENV_PREFIX}AUTO_CONVERT_TO_MP4"):
            env_config["processing"]["auto_convert_to_mp4"] = auto_convert.lower() in _TRUE_VALUES

        # Validation
        if max_size := os.getenv(f"{ENV_PREFIX}MAX_FILE_SIZE"):
            try:
                env_config["validation"]["max_file_size"] = int(max_size)
            except ValueError:
                self._logger.warning(f"Invalid {ENV_PREFIX}MAX_FILE_SIZE value: {max_size}")

        return {section: values for section, values in env_config.items() if values}


def load_policy(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> VideoPolicy:
    """Convenience wrapper around PolicyLoader."""
    return PolicyLoader(config_path=config_path).load(overrides)
