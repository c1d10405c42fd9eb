"""
Mesh artifact writer (.msh).

Format (little-endian):
    uint32  magic, uint32 version
    int32   numSubmeshes
    per submesh:
        int32 nameLen, char[] materialName
        int32 vertexByteOffset, int32 vertexByteSize
        int32 indexOffset (triangles), int32 triangleCount
        int32 nameLen, char[] meshName      (same as the material name)
        int32 numAttributes, then (int32 nameLen, char[] name, int32 semantic)
    int32   numIndices, int32[numIndices] mesh-local vertex indices
    int32   vertexBufferSize, then per vertex:
        [skinned] float[4] weights, int32[4] boneIndices
        float[3] position
        int8[4]  normal  (x, z, y, 0) * 127
        int8[4]  tangent (x, z, y, 0) * 127
        int16[2] uv * 2048
    skeleton block (see skeleton.py)
    int32 numLods (1), int32 toSubmesh, float distance (+inf)
"""

import io
import logging
import struct

from .constants import MESH_MAGIC, MESH_VERSION, NORMAL_SCALE, UV_SCALE
from .errors import ConversionError
from .layout import BASE_FORMAT, SKIN_FORMAT
from .skeleton import write_skeleton, write_string
from .skin import build_skin_influences

logger = logging.getLogger(__name__)

_ZERO3 = (0.0, 0.0, 0.0)
_ZERO2 = (0.0, 0.0)


# ============================================================
# Quantization
# ============================================================

def _saturate(value, lo, hi):
    return max(lo, min(hi, int(value)))


def pack_direction(v):
    """Signed-byte direction with Y and Z swapped: (x, z, y, 0)."""
    return (_saturate(v[0] * NORMAL_SCALE, -128, 127),
            _saturate(v[2] * NORMAL_SCALE, -128, 127),
            _saturate(v[1] * NORMAL_SCALE, -128, 127),
            0)


def pack_uv(uv):
    return (_saturate(uv[0] * UV_SCALE, -32768, 32767),
            _saturate(uv[1] * UV_SCALE, -32768, 32767))


# ============================================================
# Sections
# ============================================================

def write_header(f):
    f.write(struct.pack("<II", MESH_MAGIC, MESH_VERSION))


def write_submeshes(f, scene, layout):
    f.write(struct.pack("<i", len(scene.meshes)))
    vertex_offset = 0
    index_offset = 0
    for mesh in scene.meshes:
        name = scene.material_for(mesh).name
        vertex_size = mesh.vertex_count * layout.stride

        write_string(f, name)
        f.write(struct.pack("<ii", vertex_offset, vertex_size))
        f.write(struct.pack("<ii", index_offset, mesh.triangle_count))
        write_string(f, name)

        attributes = layout.attributes
        f.write(struct.pack("<i", len(attributes)))
        for attr_name, semantic in attributes:
            write_string(f, attr_name)
            f.write(struct.pack("<i", int(semantic)))

        vertex_offset += vertex_size
        index_offset += mesh.triangle_count


def write_indices(f, scene):
    index_count = sum(mesh.triangle_count * 3 for mesh in scene.meshes)
    f.write(struct.pack("<i", index_count))
    for mesh in scene.meshes:
        for face in mesh.faces:
            if len(face) != 3:
                raise ConversionError(
                    f"Mesh '{mesh.name}' has a non-triangular face {tuple(face)}")
            f.write(struct.pack("<3i", *face))


def write_vertices(f, scene, layout, table):
    f.write(struct.pack("<i", scene.vertex_count * layout.stride))

    influences = build_skin_influences(scene.meshes, table) if layout.skinned else None

    ii = 0
    for mesh in scene.meshes:
        for j in range(mesh.vertex_count):
            if influences is not None:
                info = influences[ii]
                f.write(struct.pack(SKIN_FORMAT, *info.weights, *info.bone_indices))
            ii += 1

            normal = mesh.normals[j] if mesh.normals else _ZERO3
            tangent = mesh.tangents[j] if mesh.tangents else _ZERO3
            uv = mesh.uvs[j] if mesh.uvs else _ZERO2
            f.write(struct.pack(BASE_FORMAT,
                                *mesh.positions[j],
                                *pack_direction(normal),
                                *pack_direction(tangent),
                                *pack_uv(uv)))


def write_lods(f, scene):
    f.write(struct.pack("<i", 1))
    f.write(struct.pack("<i", len(scene.meshes) - 1))
    f.write(struct.pack("<f", float("inf")))


def write_model(f, scene, layout, table, on_stage=None):
    """Write the complete mesh artifact to binary stream f.

    on_stage, if given, is called with "meshes" after the submesh table and
    with "geometry" after the index and vertex buffers.
    """
    write_header(f)
    write_submeshes(f, scene, layout)
    if on_stage:
        on_stage("meshes")
    write_indices(f, scene)
    write_vertices(f, scene, layout, table)
    if on_stage:
        on_stage("geometry")
    write_skeleton(f, table)
    write_lods(f, scene)


def serialize_model(scene, layout, table, on_stage=None):
    buf = io.BytesIO()
    write_model(buf, scene, layout, table, on_stage)
    data = buf.getvalue()
    logger.info("Serialized %d submeshes, %d vertices, %d nodes (%d bytes)",
                len(scene.meshes), scene.vertex_count, len(table), len(data))
    return data
