"""
Animation sampler and writer (.ani).

Each clip is resampled at integer frames (one frame per tick) into
fixed-stride arrays.

Format (little-endian):
    uint32  magic, uint32 version, float fps
    int32   frameCount, int32 boneCount
    float[3] position     x frameCount*boneCount   (index frame*boneCount + bone)
    float[4] rotation xyzw x frameCount*boneCount
    uint32  crc32(boneName) x boneCount
"""

import io
import logging
import struct
import zlib
from dataclasses import dataclass
from typing import List

from .constants import ANIMATION_MAGIC, ANIMATION_VERSION, DEFAULT_FPS
from .errors import ConversionError
from .mathutil import IDENTITY_QUAT, lerp3, quat_slerp

logger = logging.getLogger(__name__)

_ZERO3 = (0.0, 0.0, 0.0)


def bone_hash(name):
    """Stable 32-bit key for a bone name."""
    return zlib.crc32(name.encode("utf-8")) & 0xFFFFFFFF


def clip_fps(clip):
    return float(clip.ticks_per_second) if clip.ticks_per_second else DEFAULT_FPS


# ============================================================
# Key sampling
# ============================================================

def _bracket(keys, frame):
    """Return (i, t): interpolate keys[i] -> keys[i+1] by t, or t None for keys[i] alone."""
    last = len(keys) - 1
    for i in range(last):
        t1 = keys[i + 1][0]
        if frame <= t1:
            t0 = keys[i][0]
            if t1 <= t0:
                return i + 1, None
            t = (frame - t0) / (t1 - t0)
            return i, max(t, 0.0)
    return last, None


def sample_position(keys, frame):
    if not keys:
        return _ZERO3
    i, t = _bracket(keys, frame)
    if t is None:
        return tuple(keys[i][1])
    return lerp3(keys[i][1], keys[i + 1][1], t)


def sample_rotation(keys, frame):
    if not keys:
        return IDENTITY_QUAT
    i, t = _bracket(keys, frame)
    if t is None:
        return tuple(keys[i][1])
    return quat_slerp(keys[i][1], keys[i + 1][1], t)


# ============================================================
# Clip sampling
# ============================================================

@dataclass
class SampledClip:
    name: str
    fps: float
    frame_count: int
    bone_names: List[str]
    positions: List[tuple]
    rotations: List[tuple]

    @property
    def bone_count(self):
        return len(self.bone_names)


def sample_clip(clip, table):
    """Resample every channel of clip at frames 0 .. int(duration) - 1.

    Bones are ordered by their node's position in the flattened node table.
    """
    ordered = []
    seen = {}
    for channel in clip.channels:
        node_index = table.resolve(channel.node_name, kind="animation channel")
        if node_index in seen:
            raise ConversionError(
                f"Clip '{clip.name}' animates node '{channel.node_name}' twice")
        seen[node_index] = channel
        ordered.append(node_index)
    ordered.sort()

    frame_count = max(int(clip.duration), 0)
    bone_count = len(ordered)
    positions = [_ZERO3] * (frame_count * bone_count)
    rotations = [IDENTITY_QUAT] * (frame_count * bone_count)

    for bone_index, node_index in enumerate(ordered):
        channel = seen[node_index]
        for frame in range(frame_count):
            slot = frame * bone_count + bone_index
            positions[slot] = sample_position(channel.position_keys, frame)
            rotations[slot] = sample_rotation(channel.rotation_keys, frame)

    return SampledClip(
        name=clip.name,
        fps=clip_fps(clip),
        frame_count=frame_count,
        bone_names=[table.nodes[i].name for i in ordered],
        positions=positions,
        rotations=rotations,
    )


def write_animation(f, sampled):
    f.write(struct.pack("<IIf", ANIMATION_MAGIC, ANIMATION_VERSION, sampled.fps))
    f.write(struct.pack("<ii", sampled.frame_count, sampled.bone_count))
    for position in sampled.positions:
        f.write(struct.pack("<3f", *position))
    for rotation in sampled.rotations:
        f.write(struct.pack("<4f", *rotation))
    for name in sampled.bone_names:
        f.write(struct.pack("<I", bone_hash(name)))


def serialize_animation(clip, table):
    sampled = sample_clip(clip, table)
    buf = io.BytesIO()
    write_animation(buf, sampled)
    logger.info("Sampled clip '%s': %d frames x %d bones at %g fps",
                sampled.name, sampled.frame_count, sampled.bone_count, sampled.fps)
    return buf.getvalue()
