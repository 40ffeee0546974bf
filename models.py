from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import NamedTuple


class Point2D(NamedTuple):
    x: float
    y: float


class AltitudeMode(str, Enum):
    ABOVE_SAFE_PATH = "above_safe_path"
    FIXED_AMSL = "fixed_amsl"
    TERRAIN_RELATIVE = "terrain_relative"

    @classmethod
    def parse(cls, value: str | AltitudeMode) -> AltitudeMode:
        """Accept enum values, dialog labels ("Above Safe Path") or CamelCase names."""
        if isinstance(value, AltitudeMode):
            return value
        key = "".join(ch for ch in str(value).lower() if ch.isalpha())
        if key in ("abovesafepath", "safepath"):
            return cls.ABOVE_SAFE_PATH
        if key.startswith("fixed"):
            return cls.FIXED_AMSL
        if key in ("terrainrelative", "terrain", "relative"):
            return cls.TERRAIN_RELATIVE
        raise ValueError(f"Unknown altitude mode: {value!r}")


@dataclass(frozen=True)
class Keyframe:
    time: float
    x: float
    y: float
    z: float
    ground_z: float
    yaw: float
    pitch: float
    roll: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class KeyframeSequence:
    keyframes: list[Keyframe] = field(default_factory=list)
    terrain_warning: bool = False
    max_elevation: float = 0.0

    def __len__(self) -> int:
        return len(self.keyframes)

    def __getitem__(self, index: int) -> Keyframe:
        return self.keyframes[index]

    def __iter__(self):
        return iter(self.keyframes)

    @property
    def is_empty(self) -> bool:
        return not self.keyframes

    @property
    def total_duration(self) -> float:
        return self.keyframes[-1].time if self.keyframes else 0.0

    def to_dict(self) -> dict:
        return {
            "total_duration": self.total_duration,
            "terrain_warning": self.terrain_warning,
            "max_elevation": self.max_elevation,
            "keyframes": [k.to_dict() for k in self.keyframes],
        }


_PARAM_ALIASES = {
    "altitudeMode": "altitude_mode",
    "cameraHeight": "camera_height",
    "cameraPitch": "camera_pitch",
    "fieldOfView": "field_of_view",
    "verticalExaggeration": "vertical_exaggeration",
    "smoothingIterations": "smoothing",
    "enableBanking": "enable_banking",
    "bankingFactor": "banking_factor",
    "lookaheadDistance": "lookahead_distance",
    "lookAheadDistance": "lookahead_distance",
}


@dataclass
class AnimationParams:
    altitude_mode: AltitudeMode = AltitudeMode.ABOVE_SAFE_PATH
    camera_height: float = 200.0
    camera_pitch: float = 65.0
    field_of_view: float = 45.0
    vertical_exaggeration: float = 1.0
    speed: float = 50.0
    smoothing: int = 0
    enable_banking: bool = True
    banking_factor: float = 0.5
    lookahead_distance: float = 1000.0
    fps: int = 30

    @property
    def frame_interval(self) -> float:
        return 1.0 / max(self.fps, 1)

    @classmethod
    def from_dict(cls, data: dict) -> AnimationParams:
        kwargs: dict = {}
        for key, value in data.items():
            name = _PARAM_ALIASES.get(key, key)
            if name not in cls.__dataclass_fields__:
                continue
            kwargs[name] = value

        try:
            if "altitude_mode" in kwargs:
                kwargs["altitude_mode"] = AltitudeMode.parse(kwargs["altitude_mode"])
            for name in ("smoothing", "fps"):
                if name in kwargs:
                    kwargs[name] = int(kwargs[name])
            if "enable_banking" in kwargs:
                kwargs["enable_banking"] = bool(kwargs["enable_banking"])
            for name in (
                "camera_height", "camera_pitch", "field_of_view", "vertical_exaggeration",
                "speed", "banking_factor", "lookahead_distance",
            ):
                if name in kwargs:
                    kwargs[name] = float(kwargs[name])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid animation parameter: {exc}") from exc

        return cls(**kwargs)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["altitude_mode"] = self.altitude_mode.value
        return data


@dataclass(frozen=True)
class CameraPose:
    center: tuple[float, float, float]
    distance: float
    pitch: float
    yaw: float

    def to_dict(self) -> dict:
        return {
            "center": {"x": self.center[0], "y": self.center[1], "z": self.center[2]},
            "distance": self.distance,
            "pitch": self.pitch,
            "yaw": self.yaw,
        }


@dataclass
class PlaybackState:
    segment_index: int = 0
    elapsed: float = 0.0


@dataclass(frozen=True)
class InterpolatedState:
    x: float
    y: float
    ground_z: float
    z: float
    yaw: float
    pitch: float
    roll: float = 0.0


@dataclass(frozen=True)
class LookTarget:
    x: float
    y: float
    ground_z: float


@dataclass(frozen=True)
class PlaybackFrame:
    state: InterpolatedState
    target: LookTarget
    segment_index: int
    elapsed: float
    local_t: float
    t: float
