from typing import Any, Dict, List, Optional
import logging
import sys

from .config import Config
from .db import init_db
from prayer_engine.locations.base import FixedTimeStore, LocationDataset
from prayer_engine.locations.resolver import LocationResolver
from prayer_engine.locations.sql import SqlFixedTimeStore, SqlLocationDataset
from prayer_engine.prayer.calculator import PrayerTimeCalculator
from prayer_engine.prayer.methods import CalculationAttribute
from prayer_engine.prayer.service import PrayerTimeService
from prayer_engine.schedule.composer import ScheduleComposer, ScheduleTarget

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'


class EngineApp:
    """
    Wires config, logging, database and the engine components together.
    dataset/store may be injected (tests, embedding); otherwise the SQL-backed
    reference database from config is used.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        config: Optional[Config] = None,
        dataset: Optional[LocationDataset] = None,
        store: Optional[FixedTimeStore] = None,
        db_url: Optional[str] = None,
        setup_logging: bool = True,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)

        self.config = config or Config(config_path=config_path)

        if setup_logging:
            self._setup_logging()

        self.session_factory = None
        if dataset is None or store is None:
            self.session_factory = init_db(self.config.data, db_url=db_url)
        self.dataset = dataset or SqlLocationDataset(self.session_factory)
        self.store = store or SqlFixedTimeStore(self.session_factory)

        # Fail fast on a malformed calculation section
        self.attribute = self.config.calculation_attribute()
        self.timezone = self.config.timezone()

        self.resolver = LocationResolver(self.dataset)
        self.calculator = PrayerTimeCalculator(
            self.attribute,
            num_iterations=self.config.iterations(),
            allow_next_day=self.config.allow_next_day(),
        )
        self.prayer_service = PrayerTimeService(self.store, self.calculator)

        self.logger.info(
            f"Engine ready: method={self.attribute.method.value}, asr={self.attribute.asr_method.name}, "
            f"high_latitude={self.attribute.high_latitude.value}, timezone={self.timezone}"
        )

    def _setup_logging(self):
        """Configure logging to write to both file and stdout"""
        log_config = self.config.get_section("logging")
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        root_logger.setLevel(getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO))

        formatter = logging.Formatter(LOG_FORMAT)

        log_file = log_config.get("file")
        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        self.logger.info("Logging configured")

    def calculator_for(self, attribute: Optional[CalculationAttribute] = None) -> PrayerTimeCalculator:
        """Calculator for a per-request attribute; the configured one when attribute is None."""
        if attribute is None or attribute == self.attribute:
            return self.calculator
        return PrayerTimeCalculator(
            attribute,
            num_iterations=self.calculator.num_iterations,
            allow_next_day=self.calculator.allow_next_day,
        )

    def composer(self, attribute: Optional[CalculationAttribute] = None, timezone: Optional[float] = None) -> ScheduleComposer:
        schedule = self.config.get_section("schedule")
        return ScheduleComposer(
            resolver=self.resolver,
            store=self.store,
            calculator=self.calculator_for(attribute),
            timezone=timezone if timezone is not None else self.timezone,
            default_country_code=schedule.get("default_country_code", ""),
            default_country_name=schedule.get("default_country_name", ""),
            max_workers=schedule.get("workers", 1),
        )

    def schedule_targets(self, entries: Optional[List[Dict[str, Any]]] = None) -> List[ScheduleTarget]:
        entries = entries if entries is not None else self.config.schedule_targets()
        return [
            ScheduleTarget(
                code=str(e["code"]),
                name=str(e.get("name") or e["code"]),
                latitude=float(e.get("lat", 0) or 0),
                longitude=float(e.get("lng", 0) or 0),
            )
            for e in entries
        ]

