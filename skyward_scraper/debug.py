# skyward_scraper/debug.py
"""Screenshots and DOM dumps written to ``debug_dir`` when ``debug`` is on."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from playwright.async_api import Page
from playwright.async_api import Error as PlaywrightError

from .config import ScraperConfig

logger = logging.getLogger(__name__)


class DebugRecorder:
    """No-op unless ``config.debug`` is set. Write failures are logged, never raised."""

    def __init__(self, config: ScraperConfig, run_id: Optional[str] = None) -> None:
        self.enabled = config.debug
        self.out_dir = Path(config.debug_dir)
        self.run_id = run_id or datetime.now().strftime("%Y%m%d-%H%M%S")
        self.written: List[Path] = []

    def _path(self, name: str) -> Path:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        return self.out_dir / f"{self.run_id}-{name}"

    async def screenshot(self, page: Optional[Page], stage: str) -> Optional[Path]:
        if not self.enabled or page is None:
            return None
        try:
            path = self._path(f"{stage}.png")
            await page.screenshot(path=str(path), full_page=True)
        except (PlaywrightError, OSError) as exc:
            logger.warning("Could not save %s screenshot: %s", stage, exc)
            return None
        logger.info("Saved %s screenshot to %s", stage, path)
        self.written.append(path)
        return path

    async def dump_dom(self, page: Optional[Page], prefix: str = "gradebook") -> Tuple[Optional[Path], List[Path]]:
        """
        Dump the main DOM and each frame's DOM as standalone HTML files for
        offline inspection. Returns (main_path, [frame_paths]).
        """
        if not self.enabled or page is None:
            return None, []
        try:
            main_path = self._path(f"{prefix}-MAIN.html")
            main_path.write_text(await page.content(), encoding="utf-8")
        except (PlaywrightError, OSError) as exc:
            logger.warning("Could not dump %s DOM: %s", prefix, exc)
            return None, []
        logger.info("Wrote main DOM to %s", main_path)
        self.written.append(main_path)

        frame_paths: List[Path] = []
        for i, frame in enumerate(page.frames[1:], start=1):
            try:
                html = await frame.content()
                fp = self._path(f"{prefix}-FRAME{i}.html")
                fp.write_text(html, encoding="utf-8")
            except (PlaywrightError, OSError) as exc:
                logger.debug("Skipping frame #%d: %s", i, exc)
                continue
            short = (frame.url or "").split("?")[0][-80:]
            logger.info("Wrote frame DOM #%d (%s) to %s", i, short, fp)
            frame_paths.append(fp)
            self.written.append(fp)
        return main_path, frame_paths
