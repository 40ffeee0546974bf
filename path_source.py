from __future__ import annotations

import json
from pathlib import Path

from models import Point2D

DEFAULT_CRS = "EPSG:4326"

_LINE_TYPES = ("LineString", "MultiLineString")
_POINT_TYPES = ("Point", "MultiPoint")


def _xy(coord) -> Point2D:
    return Point2D(float(coord[0]), float(coord[1]))


def _geometry_vertices(geometry: dict | None) -> list[Point2D]:
    if not geometry:
        return []

    gtype = geometry.get("type")
    coords = geometry.get("coordinates")
    if gtype == "GeometryCollection":
        out: list[Point2D] = []
        for child in geometry.get("geometries", []):
            out.extend(_geometry_vertices(child))
        return out
    if gtype not in _LINE_TYPES + _POINT_TYPES or coords is None:
        return []

    if gtype == "Point":
        return [_xy(coords)]
    if gtype == "MultiLineString":
        return [_xy(c) for line in coords for c in line]
    # LineString, MultiPoint
    return [_xy(c) for c in coords]


def extract_vertices(geojson: dict) -> list[Point2D]:
    """Flatten line and point geometries into one ordered vertex list."""
    gtype = geojson.get("type")
    try:
        if gtype == "FeatureCollection":
            vertices: list[Point2D] = []
            for feature in geojson.get("features", []):
                vertices.extend(_geometry_vertices(feature.get("geometry")))
            return vertices
        if gtype == "Feature":
            return _geometry_vertices(geojson.get("geometry"))
        return _geometry_vertices(geojson)
    except (IndexError, TypeError, ValueError, AttributeError) as exc:
        raise ValueError(f"Malformed GeoJSON coordinates: {exc}") from exc


def geojson_crs(geojson: dict) -> str:
    try:
        return geojson["crs"]["properties"]["name"]
    except (KeyError, TypeError):
        return DEFAULT_CRS


def load_path(filepath: str | Path) -> tuple[list[Point2D], str]:
    """Read a GeoJSON file and return (vertices, crs identifier)."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Path file not found: {filepath}")
    try:
        data = json.loads(filepath.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Not a JSON file: {filepath}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Not a GeoJSON object: {filepath}")
    return extract_vertices(data), geojson_crs(data)


def parse_path(value) -> list[Point2D]:
    """Accept ``[[x, y], ...]`` or a GeoJSON object."""
    if isinstance(value, dict):
        return extract_vertices(value)
    if isinstance(value, (list, tuple)):
        try:
            return [_xy(c) for c in value]
        except (IndexError, TypeError, ValueError) as exc:
            raise ValueError(f"Path must be a list of [x, y] pairs: {exc}") from exc
    raise ValueError("Path must be a list of [x, y] pairs or a GeoJSON object.")
