# skyward_scraper/config.py
"""
Runtime configuration for the Skyward scraper.

Everything that tends to drift against the live portal (URLs, selector
candidates, marker strings, timeouts, pixel tolerances) lives here so it
can be tuned from a JSON file or the environment instead of code.

``load_config(path)`` reads a JSON object shaped like :class:`ScraperConfig`
(nested objects for the nested dataclasses, missing keys keep defaults).
``config_from_env()`` applies ``SKYWARD_*`` overrides on top.
"""
from __future__ import annotations

import json
import os
from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, List, Optional, Union, get_args, get_origin

QUARTERS = ("Q1", "Q2", "Q3", "Q4")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class Timeouts:
    """All waits are in seconds."""

    navigation_s: float = 30.0
    popup_race_s: float = 8.0
    grades_load_s: float = 45.0
    grades_grace_s: float = 15.0
    settle_s: float = 3.0
    poll_interval_s: float = 0.5
    launch_cooldown_s: float = 5.0


@dataclass
class Tolerances:
    """Pixel tolerances for joining grade cells to course blocks and quarter columns."""

    row_y_px: float = 40.0
    column_x_px: float = 30.0


@dataclass
class StealthSettings:
    viewport_width: int = 1366
    viewport_height: int = 768
    user_agent: str = DEFAULT_USER_AGENT
    locale: str = "en-US"
    languages: List[str] = field(default_factory=lambda: ["en-US", "en"])
    launch_args: List[str] = field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-blink-features=AutomationControlled",
            "--disable-features=IsolateOrigins,site-per-process",
            "--window-size=1366,768",
        ]
    )
    ignore_default_args: List[str] = field(default_factory=lambda: ["--enable-automation"])


@dataclass
class PortalSettings:
    """Markup knowledge about the Skyward deployment being scraped."""

    login_url: str = (
        "https://student.canyonsdistrict.org/scripts/wsisa.dll/WService=wsEAplus/seplog01.w"
    )
    # ordered: historical markup variants first, generic fallbacks last
    username_selectors: List[str] = field(
        default_factory=lambda: [
            'input[name="login"]',
            'input[id="login"]',
            'input[name="username"]',
            "#login",
            "input.login",
            'input[type="text"]',
        ]
    )
    password_selectors: List[str] = field(
        default_factory=lambda: [
            'input[name="password"]',
            'input[id="password"]',
            "#password",
            'input[type="password"]',
        ]
    )
    submit_selectors: List[str] = field(
        default_factory=lambda: [
            "#bLogin",
            'input[type="submit"]',
            'button[type="submit"]',
            'input[value="Sign In"]',
            'input[value="Login"]',
            "button",
        ]
    )
    login_form_marker: str = 'input[name="login"]'
    authenticated_markers: List[str] = field(
        default_factory=lambda: [
            "gradebook",
            "message center",
            "my students",
            "attendance",
            "log out",
            "logout",
        ]
    )
    error_markers: List[str] = field(default_factory=lambda: ["invalid", "incorrect", "failed"])
    error_text_selector: str = '.error, .errorMessage, [class*="error"], [id*="error"]'
    login_url_markers: List[str] = field(default_factory=lambda: ["seplog", "login"])
    authenticated_url_hint: str = "wsisa"
    gradebook_link_text: str = "gradebook"
    gradebook_url_patterns: List[str] = field(default_factory=lambda: ["gradebook", "sfgradebook"])
    loading_sentinel: str = "Loading..."
    required_quarter_markers: List[str] = field(default_factory=lambda: ["Q1", "Q2"])
    school_keywords: List[str] = field(default_factory=lambda: ["CANYON", "HIGH"])


@dataclass
class ScraperConfig:
    portal: str = "skyward"
    portal_settings: PortalSettings = field(default_factory=PortalSettings)
    timeouts: Timeouts = field(default_factory=Timeouts)
    tolerances: Tolerances = field(default_factory=Tolerances)
    stealth: StealthSettings = field(default_factory=StealthSettings)
    # Quarter flagged current when the page gives no highlight signal.
    # This is a guess about the school calendar, not something the portal reports.
    default_current_quarter: str = "Q3"
    debug: bool = False
    debug_dir: Path = Path("debug")

    def __post_init__(self) -> None:
        if self.default_current_quarter not in QUARTERS:
            raise ValueError(
                f"default_current_quarter must be one of {QUARTERS}, got {self.default_current_quarter!r}"
            )
        if not isinstance(self.debug_dir, Path):
            self.debug_dir = Path(self.debug_dir)


# ---------------------- JSON coercion ----------------------


def _unwrap_optional(t: Any) -> Any:
    if get_origin(t) is Union:
        non_none = [a for a in get_args(t) if a is not type(None)]
        if len(non_none) == 1:
            return non_none[0]
    return t


_NAMED_TYPES = {
    "PortalSettings": PortalSettings,
    "Timeouts": Timeouts,
    "Tolerances": Tolerances,
    "StealthSettings": StealthSettings,
}


def _resolve(t: Any) -> Any:
    # field.type is a string under `from __future__ import annotations`
    if isinstance(t, str):
        return _NAMED_TYPES.get(t, t)
    return _unwrap_optional(t)


def coerce_nested(obj: dict, cls: type) -> Any:
    """Build dataclass ``cls`` from ``obj``, recursing into nested dataclass fields."""
    if not is_dataclass(cls):
        return obj
    kwargs = {}
    for f in fields(cls):
        if f.name not in obj:
            continue
        val = obj[f.name]
        if val is MISSING:
            continue
        target = _resolve(f.type)
        if is_dataclass(target) and isinstance(val, dict):
            val = coerce_nested(val, target)
        kwargs[f.name] = val
    return cls(**kwargs)


def load_config(path: Union[str, Path]) -> ScraperConfig:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return coerce_nested(raw, ScraperConfig)


def _truthy(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def config_from_env(base: Optional[ScraperConfig] = None) -> ScraperConfig:
    """Apply ``SKYWARD_LOGIN_URL``, ``SKYWARD_DEBUG`` and ``SKYWARD_DEBUG_DIR`` overrides."""
    cfg = base or ScraperConfig()
    url = os.getenv("SKYWARD_LOGIN_URL")
    if url:
        cfg.portal_settings.login_url = url
    debug = os.getenv("SKYWARD_DEBUG")
    if debug is not None:
        cfg.debug = _truthy(debug)
    debug_dir = os.getenv("SKYWARD_DEBUG_DIR")
    if debug_dir:
        cfg.debug_dir = Path(debug_dir)
    return cfg
