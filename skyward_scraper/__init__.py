"""Grade scraper for the legacy Skyward student portal."""
from .client import SkywardClient
from .config import ScraperConfig, config_from_env, load_config
from .models import ConnectionResult, CourseDetailsResult, CourseRecord, QuarterGrade, ScrapeResult

__all__ = [
    "SkywardClient",
    "ScraperConfig",
    "config_from_env",
    "load_config",
    "ConnectionResult",
    "CourseDetailsResult",
    "CourseRecord",
    "QuarterGrade",
    "ScrapeResult",
]
