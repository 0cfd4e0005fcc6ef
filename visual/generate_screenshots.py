"""
Screenshot Generator Module
Drives headless Chromium through Playwright and captures frames of an animated page.
"""

import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from utils.file_utils import ensure_directory, file_exists
from utils.settings import BROWSER_ARGS, CHROME_CANDIDATES, EXECUTABLE_ENV_VARS, Settings

logger = logging.getLogger(__name__)

READY_SCRIPT = """([selector, flag]) => !document.querySelector(selector) || window[flag] === true"""

SNAPSHOT_SCRIPT = """
({samplePoints, readyFlag, debugGlobal, cdnsGlobal, layers}) => {
  const dbg = window[debugGlobal];

  function sampleLayer(points) {
    if (!points || !points.geometry || !points.geometry.attributes) return null;
    const posAttr = points.geometry.attributes.position;
    if (!posAttr || !posAttr.array) return null;

    const arr = posAttr.array;
    const maxFloats = Math.min(arr.length, samplePoints * 3);
    return {
      totalFloats: arr.length,
      sampledFloats: maxFloats,
      head: Array.from(arr.slice(0, maxFloats)),
    };
  }

  const sampled = {};
  for (const name of layers) {
    sampled[name] = sampleLayer(dbg && dbg[name]);
  }

  return {
    heartOk: window[readyFlag] === true,
    cdnsTried: window[cdnsGlobal] || null,
    layers: sampled,
  };
}
"""


def resolve_chrome_path(explicit: Optional[str] = None,
                        environ: Optional[Mapping[str, str]] = None,
                        candidates=CHROME_CANDIDATES) -> Optional[str]:
    """
    Find a Chrome/Chromium executable.

    Checks the explicit path, then the executable environment variables, then
    the usual install locations. Returns None when nothing exists, which means
    Playwright's bundled Chromium is used.
    """
    env = os.environ if environ is None else environ
    ordered = [explicit] + [env.get(name) for name in EXECUTABLE_ENV_VARS] + list(candidates)
    for path in ordered:
        if file_exists(path):
            return str(path)
    return None


class ScreenshotGenerator:
    def __init__(self, settings: Optional[Settings] = None,
                 playwright_factory: Callable[[], Any] = sync_playwright):
        self.settings = settings or Settings()
        self._playwright_factory = playwright_factory
        self._playwright = None
        self.browser = None
        self.page = None
        self.executable_path: Optional[str] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def setup(self, executable_path: Optional[str] = None) -> None:
        """Initialize Playwright browser."""
        self.executable_path = executable_path
        launch_options = {'headless': True, 'args': list(BROWSER_ARGS)}
        if executable_path:
            launch_options['executable_path'] = executable_path

        logger.info(f"Launching Chromium ({executable_path or 'bundled'})")
        self._playwright = self._playwright_factory().start()
        self.browser = self._playwright.chromium.launch(**launch_options)
        self.page = self.browser.new_page(viewport=self.settings.viewport, device_scale_factor=1)

    def open(self, url: str) -> None:
        logger.info(f"Navigating to {url}")
        self.page.goto(url, wait_until='domcontentloaded')

    def wait_until_ready(self) -> Tuple[bool, int]:
        """
        Wait until the loading overlay is gone or the page raises its ready flag.

        Returns:
            (ready, waited_ms); a timeout gives ready=False rather than an error
        """
        started = time.monotonic()
        try:
            self.page.wait_for_function(
                READY_SCRIPT,
                arg=[self.settings.overlay_selector, self.settings.ready_flag],
                timeout=self.settings.overlay_timeout_ms,
            )
            ready = True
        except PlaywrightTimeoutError:
            logger.warning(f"Page not ready after {self.settings.overlay_timeout_ms} ms")
            ready = False
        waited_ms = int((time.monotonic() - started) * 1000)
        return ready, waited_ms

    def debug_snapshot(self, sample_points: Optional[int] = None) -> Dict[str, Any]:
        """Sample the head of each instrumented layer's position buffer."""
        args = {
            'samplePoints': sample_points if sample_points is not None else self.settings.sample_points,
            'readyFlag': self.settings.ready_flag,
            'debugGlobal': self.settings.debug_global,
            'cdnsGlobal': self.settings.cdns_global,
            'layers': list(self.settings.layers),
        }
        return self.page.evaluate(SNAPSHOT_SCRIPT, args)

    def capture_screenshot(self, label: str, out_dir: Path) -> Path:
        """Capture a viewport screenshot to ``<out_dir>/<label>.png``."""
        out_dir = Path(out_dir)
        ensure_directory(out_dir)
        output_path = out_dir / f"{label}.png"
        self.page.screenshot(path=str(output_path))
        logger.info(f"Captured frame {label}: {output_path}")
        return output_path

    def pause(self, ms: Optional[int] = None) -> None:
        self.page.wait_for_timeout(self.settings.frame_delta_ms if ms is None else ms)

    def close(self) -> None:
        if self.browser is not None:
            self.browser.close()
            self.browser = None
            self.page = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None
