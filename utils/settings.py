"""
Settings Module
Run configuration, read from MOTION_QA_* environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Exception raised for configuration-related errors."""

    pass


ENV_PREFIX = 'MOTION_QA_'

# Checked in order after the explicit --chrome path
EXECUTABLE_ENV_VARS = (
    'PLAYWRIGHT_CHROMIUM_EXECUTABLE_PATH',
    'PUPPETEER_EXECUTABLE_PATH',
    'CHROME_PATH',
)

CHROME_CANDIDATES = (
    '/usr/bin/google-chrome',
    '/usr/bin/google-chrome-stable',
    '/usr/bin/chromium',
    '/usr/bin/chromium-browser',
    '/Applications/Google Chrome.app/Contents/MacOS/Google Chrome',
)

BROWSER_ARGS = (
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--use-gl=egl',
)

DEFAULT_LAYERS = ('heartFill', 'heartEdge', 'outerDust', 'sparkle')


@dataclass
class Settings:
    viewport_width: int = 1280
    viewport_height: int = 720
    overlay_timeout_ms: int = 20_000
    frame_delta_ms: int = 600
    sample_points: int = 400
    threshold: float = 20
    overlay_selector: str = '#overlay'
    ready_flag: str = '__HEART_OK__'
    debug_global: str = '__HEART_DEBUG__'
    cdns_global: str = '__HEART_CDNS_TRIED__'
    layers: List[str] = field(default_factory=lambda: list(DEFAULT_LAYERS))
    frame_labels: List[str] = field(default_factory=lambda: ['t0', 't0.6', 't1.2'])

    @property
    def viewport(self) -> Dict[str, int]:
        return {'width': self.viewport_width, 'height': self.viewport_height}

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Build settings from the environment; unset variables keep their defaults."""
        env = os.environ if environ is None else environ
        settings = cls()

        width, height = _read_viewport(env, settings.viewport_width, settings.viewport_height)
        settings.viewport_width = width
        settings.viewport_height = height
        settings.overlay_timeout_ms = _read_int(env, 'OVERLAY_TIMEOUT_MS', settings.overlay_timeout_ms)
        settings.frame_delta_ms = _read_int(env, 'FRAME_DELTA_MS', settings.frame_delta_ms)
        settings.sample_points = _read_int(env, 'SAMPLE_POINTS', settings.sample_points)
        settings.threshold = _read_float(env, 'THRESHOLD', settings.threshold)
        settings.overlay_selector = env.get(ENV_PREFIX + 'OVERLAY_SELECTOR', settings.overlay_selector)
        settings.ready_flag = env.get(ENV_PREFIX + 'READY_FLAG', settings.ready_flag)
        settings.debug_global = env.get(ENV_PREFIX + 'DEBUG_GLOBAL', settings.debug_global)
        settings.cdns_global = env.get(ENV_PREFIX + 'CDNS_GLOBAL', settings.cdns_global)

        layers = env.get(ENV_PREFIX + 'LAYERS')
        if layers:
            settings.layers = [name.strip() for name in layers.split(',') if name.strip()]

        logger.debug(f"Loaded settings: {settings}")
        return settings


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}")
    if value < 0:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must not be negative, got {value}")
    return value


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}")


def _read_viewport(env: Mapping[str, str], width: int, height: int) -> Tuple[int, int]:
    # Format: 1280x720
    raw = env.get(ENV_PREFIX + 'VIEWPORT')
    if not raw:
        return width, height
    try:
        w, h = (int(part) for part in raw.lower().split('x'))
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}VIEWPORT must look like 1280x720, got {raw!r}")
    if w <= 0 or h <= 0:
        raise ConfigurationError(f"{ENV_PREFIX}VIEWPORT must be positive, got {raw!r}")
    return w, h
