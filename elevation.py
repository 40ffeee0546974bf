"""Terrain height lookups.

Every source answers ``elevation_at(point, point_crs)`` with a height or
``None`` when the value is not available (outside the raster, nodata,
failed coordinate transform, unreachable service). Callers decide what
``None`` means for them.
"""
from __future__ import annotations

import math
import time
from collections import OrderedDict
from pathlib import Path
from typing import Callable

import requests
from PIL import Image

from log import get_logger
from models import Point2D

logger = get_logger("elevation")

CoordinateTransform = Callable[[Point2D, str, str], Point2D]

OPEN_ELEVATION_URL = "https://api.open-elevation.com/api/v1/lookup"
USER_AGENT = "flythrough/1.0"

_WORLD_FILE_SUFFIXES = {
    ".tif": (".tfw", ".tifw", ".wld"),
    ".tiff": (".tfw", ".tiffw", ".wld"),
    ".png": (".pgw", ".pngw", ".wld"),
}


class ElevationSource:
    """Base class: CRS handling around a single-point ``_sample``."""

    def __init__(self, crs: str | None = None, transform: CoordinateTransform | None = None):
        self.crs = crs
        self.transform = transform

    def elevation_at(self, point, point_crs: str | None = None) -> float | None:
        pt = point if isinstance(point, Point2D) else Point2D(float(point[0]), float(point[1]))
        if point_crs and self.crs and point_crs != self.crs:
            if self.transform is None:
                logger.debug("No transform from %s to %s", point_crs, self.crs)
                return None
            try:
                pt = self.transform(pt, point_crs, self.crs)
            except (ValueError, ArithmeticError) as exc:
                logger.debug("Transform %s -> %s failed: %s", point_crs, self.crs, exc)
                return None
        return self._sample(pt)

    def _sample(self, point: Point2D) -> float | None:
        raise NotImplementedError


class FlatElevation(ElevationSource):
    def __init__(self, value: float = 0.0, **kwargs):
        super().__init__(**kwargs)
        self.value = float(value)

    def _sample(self, point: Point2D) -> float | None:
        return self.value


class CallableElevation(ElevationSource):
    """Wraps ``func(x, y) -> float | None``; handy for synthetic terrain."""

    def __init__(self, func: Callable[[float, float], float | None], **kwargs):
        super().__init__(**kwargs)
        self.func = func

    def _sample(self, point: Point2D) -> float | None:
        return self.func(point.x, point.y)


# ─── Raster DEM ──────────────────────────────────────────────────────────


def read_world_file(path: str | Path) -> tuple[float, float, float, float, float, float]:
    """Read an ESRI world file and return a GDAL-order geotransform.

    World files reference the center of the upper-left pixel; the
    geotransform references its outer corner.
    """
    values = [float(line) for line in Path(path).read_text().split() if line.strip()]
    if len(values) != 6:
        raise ValueError(f"World file must contain 6 values: {path}")

    a, d, b, e, c, f = values
    if b != 0.0 or d != 0.0:
        raise ValueError(f"Rotated world files are not supported: {path}")
    return (c - a / 2.0, a, 0.0, f - e / 2.0, 0.0, e)


def _find_world_file(image_path: Path) -> Path | None:
    suffixes = _WORLD_FILE_SUFFIXES.get(image_path.suffix.lower(), (".wld",))
    for suffix in suffixes:
        candidate = image_path.with_suffix(suffix)
        if candidate.exists():
            return candidate
    return None


class RasterElevation(ElevationSource):
    """Single-band DEM held in a Pillow image with a north-up geotransform."""

    def __init__(
        self,
        image: Image.Image,
        geotransform: tuple[float, float, float, float, float, float],
        *,
        nodata: float | None = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if image.mode.startswith("I;16"):
            image = image.convert("I")
        if image.mode not in ("F", "I"):
            image = image.convert("F")
        if geotransform[2] != 0.0 or geotransform[4] != 0.0:
            raise ValueError("Only north-up geotransforms are supported.")
        self.image = image
        self.geotransform = tuple(float(v) for v in geotransform)
        self.nodata = nodata
        self._pixels = image.load()

    @classmethod
    def open(
        cls,
        path: str | Path,
        *,
        world_file: str | Path | None = None,
        nodata: float | None = None,
        crs: str | None = None,
        transform: CoordinateTransform | None = None,
    ) -> RasterElevation:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"DEM file not found: {path}")

        wf = Path(world_file) if world_file else _find_world_file(path)
        if wf is None or not wf.exists():
            raise FileNotFoundError(f"No world file found next to DEM: {path}")

        with Image.open(path) as img:
            img.load()
            image = img.copy()
        logger.info("Loaded DEM %s (%dx%d, mode %s)", path.name, image.width, image.height, image.mode)
        return cls(image, read_world_file(wf), nodata=nodata, crs=crs, transform=transform)

    @property
    def extent(self) -> tuple[float, float, float, float]:
        """(xmin, ymin, xmax, ymax) in raster coordinates."""
        ox, pw, _, oy, _, ph = self.geotransform
        x2 = ox + pw * self.image.width
        y2 = oy + ph * self.image.height
        return min(ox, x2), min(oy, y2), max(ox, x2), max(oy, y2)

    def _pixel(self, point: Point2D) -> tuple[int, int] | None:
        ox, pw, _, oy, _, ph = self.geotransform
        px = math.floor((point.x - ox) / pw)
        py = math.floor((point.y - oy) / ph)
        if 0 <= px < self.image.width and 0 <= py < self.image.height:
            return px, py
        return None

    def _sample(self, point: Point2D) -> float | None:
        pixel = self._pixel(point)
        if pixel is None:
            return None

        value = float(self._pixels[pixel])
        if math.isnan(value):
            return None
        if self.nodata is not None and value == self.nodata:
            return None
        return value


# ─── Elevation web API ───────────────────────────────────────────────────


class HttpElevation(ElevationSource):
    """Open-Elevation compatible lookup; points are (lon, lat) in EPSG:4326.

    Answers are kept in a bounded LRU cache. After a network failure the
    service is not asked again for ``retry_after`` seconds, so playback ticks
    do not each wait out the request timeout while it is down.
    """

    def __init__(
        self,
        url: str = OPEN_ELEVATION_URL,
        *,
        timeout: float = 2.0,
        session: requests.Session | None = None,
        crs: str | None = "EPSG:4326",
        transform: CoordinateTransform | None = None,
        cache_size: int = 4096,
        retry_after: float = 30.0,
    ):
        super().__init__(crs=crs, transform=transform)
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.cache_size = max(int(cache_size), 1)
        self.retry_after = retry_after
        self._cache: OrderedDict[tuple[float, float], float | None] = OrderedDict()
        self._offline_until = 0.0

    def _remember(self, key: tuple[float, float], value: float | None) -> None:
        self._cache[key] = value
        self._cache.move_to_end(key)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)

    def _sample(self, point: Point2D) -> float | None:
        key = (round(point.x, 6), round(point.y, 6))
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]
        if time.monotonic() < self._offline_until:
            return None

        params = {"locations": f"{point.y:.6f},{point.x:.6f}"}
        try:
            resp = self.session.get(self.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            results = resp.json().get("results", [])
            value = float(results[0]["elevation"]) if results else None
        except requests.RequestException as exc:
            logger.warning(
                "Elevation request failed for %s: %s (pausing lookups for %.0fs)",
                key, exc, self.retry_after,
            )
            self._offline_until = time.monotonic() + self.retry_after
            return None
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Malformed elevation response for %s: %s", key, exc)
            value = None

        self._remember(key, value)
        return value


def source_from_config(config: dict | None) -> ElevationSource:
    """Build a source from ``{"type": "flat" | "raster" | "http", ...}``."""
    config = config or {}
    kind = str(config.get("type", "flat")).lower()
    crs = config.get("crs")

    if kind == "flat":
        try:
            value = float(config.get("value", 0.0))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid flat elevation value: {config.get('value')!r}") from exc
        return FlatElevation(value, crs=crs)
    if kind == "raster":
        path = config.get("path")
        if not path:
            raise ValueError("Raster elevation requires 'path'.")
        nodata = config.get("nodata")
        return RasterElevation.open(
            path,
            world_file=config.get("world_file"),
            nodata=None if nodata is None else float(nodata),
            crs=crs,
        )
    if kind == "http":
        return HttpElevation(
            config.get("url") or OPEN_ELEVATION_URL,
            timeout=float(config.get("timeout", 2.0)),
            crs=crs or "EPSG:4326",
        )
    raise ValueError(f"Unknown elevation source type: {kind!r}")
