"""
Readers for the .msh and .ani artifacts.

Used by the inspection tools and tests. Magic and version are validated;
an unknown version is a hard error.
"""

import struct
from dataclasses import dataclass, field
from typing import List, Tuple

from .constants import ANIMATION_MAGIC, ANIMATION_VERSION, MESH_MAGIC, MESH_VERSION
from .layout import BASE_FORMAT, SKIN_FORMAT


class FormatError(ValueError):
    """The data is not a valid artifact of the expected kind and version."""


class _Cursor:
    def __init__(self, data):
        self.data = data
        self.offset = 0

    def unpack(self, fmt):
        size = struct.calcsize(fmt)
        if self.offset + size > len(self.data):
            raise FormatError(f"Unexpected end of data at offset {self.offset}")
        values = struct.unpack_from(fmt, self.data, self.offset)
        self.offset += size
        return values

    def int32(self):
        return self.unpack("<i")[0]

    def string(self):
        length = self.int32()
        if length < 0 or self.offset + length > len(self.data):
            raise FormatError(f"Bad string length {length} at offset {self.offset - 4}")
        text = self.data[self.offset:self.offset + length].decode("utf-8")
        self.offset += length
        return text

    def take(self, size):
        if size < 0 or self.offset + size > len(self.data):
            raise FormatError(f"Bad block size {size} at offset {self.offset}")
        block = self.data[self.offset:self.offset + size]
        self.offset += size
        return block


@dataclass
class SubmeshEntry:
    material: str
    vertex_offset: int
    vertex_size: int
    index_offset: int
    triangle_count: int
    name: str
    attributes: List[Tuple[str, int]]


@dataclass
class SkeletonEntry:
    name: str
    parent: str
    translation: Tuple[float, float, float]
    rotation: Tuple[float, float, float, float]


@dataclass
class MeshFile:
    version: int
    submeshes: List[SubmeshEntry]
    indices: List[int]
    vertex_data: bytes
    nodes: List[SkeletonEntry]
    lods: List[Tuple[int, float]] = field(default_factory=list)


@dataclass
class AnimationFile:
    version: int
    fps: float
    frame_count: int
    bone_count: int
    positions: List[Tuple[float, float, float]]
    rotations: List[Tuple[float, float, float, float]]
    bone_hashes: List[int]

    def position(self, frame, bone):
        return self.positions[frame * self.bone_count + bone]

    def rotation(self, frame, bone):
        return self.rotations[frame * self.bone_count + bone]


def _check_header(cur, magic, version, kind):
    file_magic, file_version = cur.unpack("<II")
    if file_magic != magic:
        raise FormatError(f"Not a {kind} file (magic 0x{file_magic:08X})")
    if file_version != version:
        raise FormatError(f"Unsupported {kind} version {file_version}")
    return file_version


def read_mesh(data):
    cur = _Cursor(data)
    version = _check_header(cur, MESH_MAGIC, MESH_VERSION, "mesh")

    submeshes = []
    for _ in range(cur.int32()):
        material = cur.string()
        vertex_offset, vertex_size = cur.unpack("<ii")
        index_offset, triangle_count = cur.unpack("<ii")
        name = cur.string()
        attributes = []
        for _ in range(cur.int32()):
            attr_name = cur.string()
            attributes.append((attr_name, cur.int32()))
        submeshes.append(SubmeshEntry(material, vertex_offset, vertex_size,
                                      index_offset, triangle_count, name, attributes))

    index_count = cur.int32()
    indices = list(cur.unpack(f"<{index_count}i")) if index_count else []
    vertex_data = cur.take(cur.int32())

    nodes = []
    for _ in range(cur.int32()):
        name = cur.string()
        parent = cur.string()
        translation = cur.unpack("<3f")
        rotation = cur.unpack("<4f")
        nodes.append(SkeletonEntry(name, parent, translation, rotation))

    lods = []
    for _ in range(cur.int32()):
        to_submesh = cur.int32()
        lods.append((to_submesh, cur.unpack("<f")[0]))

    return MeshFile(version, submeshes, indices, vertex_data, nodes, lods)


def read_animation(data):
    cur = _Cursor(data)
    version = _check_header(cur, ANIMATION_MAGIC, ANIMATION_VERSION, "animation")
    fps = cur.unpack("<f")[0]
    frame_count, bone_count = cur.unpack("<ii")
    n = frame_count * bone_count
    positions = [cur.unpack("<3f") for _ in range(n)]
    rotations = [cur.unpack("<4f") for _ in range(n)]
    hashes = list(cur.unpack(f"<{bone_count}I")) if bone_count else []
    return AnimationFile(version, fps, frame_count, bone_count, positions, rotations, hashes)


def unpack_vertices(vertex_data, skinned):
    """Split a vertex buffer into per-vertex value tuples."""
    fmt = SKIN_FORMAT + BASE_FORMAT[1:] if skinned else BASE_FORMAT
    stride = struct.calcsize(fmt)
    if len(vertex_data) % stride:
        raise FormatError(f"Vertex buffer size {len(vertex_data)} is not a multiple of {stride}")
    return [struct.unpack_from(fmt, vertex_data, i) for i in range(0, len(vertex_data), stride)]
