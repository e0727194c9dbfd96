import yaml
from pathlib import Path
import os
from datetime import date, datetime
from typing import Any, Dict, Optional, List
import logging
import re

from prayer_engine.prayer.methods import CalculationAttribute


class Config:
    def __init__(self, config_path: Optional[str] = None):
        logging.debug("Initializing Config class")

        if config_path:
            self.config_file = Path(config_path).resolve()
            self.config_dir = self.config_file.parent
        else:
            self.config_dir = Path.cwd()
            self.config_file = self.config_dir / "config.yaml"

        logging.debug(f"Using config directory: {self.config_dir}")
        logging.debug(f"Using config file: {self.config_file}")

        # Load environment variables from .env file
        self._load_env_file()

        self._ensure_config_exists()
        self._load_config()

    def _get_default_config(self) -> Dict[str, Any]:
        return {
            "database": {
                "path": str(self.config_dir / "prayer_engine.db"),
                "schedule_path": str(self.config_dir / "schedule.db"),
            },
            "calculation": {
                "method": "makkah",
                "asr_method": "shafii",
                "high_latitude": "angleBased",
                "offsets": [0, 0, 0, 0, 0, 0],
                "timezone": None,  # None = system local offset for each date
                "iterations": 1,
                "allow_next_day": False,
            },
            "schedule": {
                "start": None,
                "end": None,
                "output": "ramadan_schedule.sql",
                "workers": 1,
                "default_country_code": "",
                "default_country_name": "",
                "targets": [],
            },
            "api": {
                "host": "127.0.0.1",
                "port": 8765,
            },
            "logging": {
                "level": "INFO",
                "file": str(self.config_dir / "prayer_engine.log"),
            },
        }

    def _ensure_config_exists(self) -> None:
        """Create default config if it doesn't exist"""
        if not self.config_dir.exists():
            logging.info(f"Creating config directory: {self.config_dir}")
            self.config_dir.mkdir(parents=True)

        if not self.config_file.exists():
            logging.info(f"Creating default config file: {self.config_file}")
            self.config_file.write_text(yaml.dump(self._get_default_config(), sort_keys=False))

    def _find_env_file(self) -> Optional[Path]:
        # Config directory first, then its parent, then the working directory
        for path in (self.config_dir / ".env", self.config_dir.parent / ".env", Path.cwd() / ".env"):
            if path.is_file():
                return path
        return None

    def _load_env_file(self) -> None:
        """Load KEY=value lines from a .env file into os.environ"""
        env_file = self._find_env_file()
        if env_file is None:
            logging.debug("No .env file found, skipping environment variable loading")
            return

        logging.info(f"Loading environment variables from: {env_file}")
        try:
            lines = env_file.read_text().splitlines()
        except OSError as e:
            logging.warning(f"Error loading .env file: {e}")
            return

        for line in lines:
            match = _ENV_LINE.match(line)
            if not match:
                continue
            key, value = match.group(1), match.group(2).strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]
            # The real environment wins
            os.environ.setdefault(key, value)

    def _substitute_env_vars(self, data: Any) -> Any:
        """Expand ${VAR}, ${VAR:-default} and $VAR in string values; unknown variables stay as written"""
        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}
        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]
        if isinstance(data, str) and "$" in data:
            return _ENV_REF.sub(_expand_env_ref, data)
        return data

    def _load_config(self) -> None:
        """Load configuration from file over the defaults, falling back to defaults on error"""
        defaults = self._get_default_config()
        try:
            logging.debug(f"Loading config from: {self.config_file}")
            with open(self.config_file) as f:
                loaded = yaml.safe_load(f)

            if not isinstance(loaded, dict):
                raise ValueError("Invalid config format: root must be a dictionary")

            self.data = _merge(defaults, self._substitute_env_vars(loaded))
            logging.debug(f"Loaded config data: {self.data}")

        except (OSError, ValueError, yaml.YAMLError) as e:
            logging.error(f"Error loading config: {e}")
            logging.info("Using default configuration")
            self.data = defaults

        log_file = self.get_section("logging").get("file")
        if log_file:
            self.data["logging"]["file"] = os.path.expanduser(str(log_file))

    def get_section(self, name: str) -> Dict[str, Any]:
        """Config section as a dict ({} when missing)"""
        section = self.data.get(name)
        return section if isinstance(section, dict) else {}

    def calculation_attribute(self) -> CalculationAttribute:
        """Raises ValueError for an unknown method / asr / high latitude value"""
        return CalculationAttribute.from_config(self.get_section("calculation"))

    def timezone(self) -> Optional[float]:
        value = self.get_section("calculation").get("timezone")
        return float(value) if value is not None else None

    def iterations(self) -> int:
        value = self.get_section("calculation").get("iterations")
        return int(value) if value is not None else 1

    def allow_next_day(self) -> bool:
        return bool(self.get_section("calculation").get("allow_next_day", False))

    def schedule_targets(self) -> List[Dict[str, Any]]:
        """Raw target entries: {code, name, lat, lng}"""
        targets = self.get_section("schedule").get("targets") or []
        return [t for t in targets if isinstance(t, dict) and t.get("code")]

    def schedule_dates(self) -> Optional[tuple]:
        """(start, end) dates, or None when either is not configured"""
        schedule = self.get_section("schedule")
        start, end = schedule.get("start"), schedule.get("end")
        if not start or not end:
            return None
        return _to_date(start), _to_date(end)


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value), "%Y-%m-%d").date()


_ENV_LINE = re.compile(r'^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$')
_ENV_REF = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}|\$([A-Za-z_][A-Za-z0-9_]*)')


def _expand_env_ref(match: "re.Match") -> str:
    name = match.group(1) or match.group(3)
    if name in os.environ:
        return os.environ[name]
    if match.group(2) is not None:
        return match.group(2)
    return match.group(0)


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Section-wise merge: mappings merge recursively, anything else replaces the default"""
    merged = dict(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged
