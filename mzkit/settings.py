import logging
import os

import pandas as pd

from .exceptions import SettingsError
from .resources.constants import NESTED_SCAN_POLICIES


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DecodeSettings:
    """Settings used when decoding mass spectrometry files.

    Settings can be imported from and exported to a CSV file with the
    columns `Setting` and `Value`.

    Attributes:
        max_workers (int | None): Number of threads used to decode scans.
            `None` lets the thread pool decide.
        nested_scan_policy (str): How mzXML scans nested more than one
            level deep are handled: 'raise' aborts the decode, 'ignore'
            skips them with a warning, 'recurse' decodes them.
        log_level (str): Logging level used by the command line interface.
    """

    def __init__(
            self,
            max_workers: int | None = None,
            nested_scan_policy: str = "raise",
            log_level: str = "INFO"
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.max_workers = self.validate_max_workers(max_workers)
        self.nested_scan_policy = self.validate_policy(nested_scan_policy)
        self.log_level = self.validate_log_level(log_level)

    @staticmethod
    def validate_max_workers(value) -> int | None:
        """Return `value` as a positive integer or None."""
        if value is None or (isinstance(value, str) and value.strip() in ("", "None")):
            return None
        if isinstance(value, float) and pd.isna(value):
            return None
        try:
            workers = int(value)
        except (TypeError, ValueError):
            raise SettingsError(f"Invalid max_workers: {value!r}") from None
        if workers < 1:
            raise SettingsError(f"max_workers must be at least 1, got {workers}")
        return workers

    @staticmethod
    def validate_policy(value: str) -> str:
        """Return a valid nested scan policy."""
        policy = str(value).strip().lower()
        if policy not in NESTED_SCAN_POLICIES:
            raise SettingsError(
                f"Unknown nested_scan_policy {value!r}, expected one of "
                f"{', '.join(NESTED_SCAN_POLICIES)}"
            )
        return policy

    @staticmethod
    def validate_log_level(value: str) -> str:
        """Return a valid logging level name."""
        level = str(value).strip().upper()
        if level not in LOG_LEVELS:
            raise SettingsError(f"Unknown log_level {value!r}")
        return level

    def collect_settings(self) -> dict:
        """Return all settings as a dictionary."""
        return {
            "max_workers": self.max_workers,
            "nested_scan_policy": self.nested_scan_policy,
            "log_level": self.log_level
        }

    def apply_settings(self, settings: dict) -> None:
        """Apply settings from a dictionary.

        Keep existing values if a setting is missing. Unknown settings
        are ignored with a warning.
        """
        for key, value in settings.items():
            if key == "max_workers":
                self.max_workers = self.validate_max_workers(value)
            elif key == "nested_scan_policy":
                self.nested_scan_policy = self.validate_policy(value)
            elif key == "log_level":
                self.log_level = self.validate_log_level(value)
            else:
                self.logger.warning(f"Ignoring unknown setting: {key}")

    def export_settings(self, path: str) -> None:
        """Export all settings to a CSV file."""
        settings = self.collect_settings()
        df = pd.DataFrame({
            "Setting": list(settings.keys()),
            "Value": ["" if v is None else v for v in settings.values()]
        })
        df.to_csv(path, index=False)
        self.logger.info(f"Settings exported to: {path}")

    @classmethod
    def import_settings(cls, path: str) -> "DecodeSettings":
        """Create settings from a CSV file.

        Args:
            path: Path to a CSV file with `Setting` and `Value` columns.

        Raises:
            SettingsError: If the file cannot be read or holds an invalid
                value.
        """
        if not os.path.isfile(path):
            raise SettingsError(f"Settings file not found: {path}")
        try:
            settings = (
                pd.read_csv(path, index_col="Setting", dtype=str)
                ["Value"]
                .to_dict()
            )
        except (ValueError, KeyError, pd.errors.ParserError) as e:
            raise SettingsError(f"Could not read settings file {path}: {e}") from e

        # Empty cells are read as NaN.
        settings = {
            key: (None if pd.isna(value) else value)
            for key, value in settings.items()
        }
        instance = cls()
        instance.apply_settings(settings)
        return instance
