"""Shared binary-format constants for the mesh and animation artifacts."""

from enum import IntEnum

# ============================================================
# File headers
# ============================================================

MESH_MAGIC = 0x5F4C4D4F      # "OML_" little-endian
MESH_VERSION = 1

ANIMATION_MAGIC = 0x5F4C4146  # "FAL_" little-endian
ANIMATION_VERSION = 1

DEFAULT_FPS = 25.0

MESH_EXTENSION = ".msh"
ANIMATION_EXTENSION = ".ani"
MATERIAL_EXTENSION = ".mat"

# ============================================================
# Vertex layout
# ============================================================

RIGID_VERTEX_SIZE = 24
SKINNED_VERTEX_SIZE = 56

MAX_INFLUENCES = 4

NORMAL_SCALE = 127
UV_SCALE = 2048


class VertexAttributeDef(IntEnum):
    POSITION = 0
    FLOAT1 = 1
    FLOAT2 = 2
    FLOAT3 = 3
    FLOAT4 = 4
    INT1 = 5
    INT2 = 6
    INT3 = 7
    INT4 = 8
    SHORT2 = 9
    SHORT4 = 10
    BYTE4 = 11
    NONE = 12


SKIN_ATTRIBUTES = (
    ("in_weights", VertexAttributeDef.FLOAT4),
    ("in_indices", VertexAttributeDef.INT4),
)

BASE_ATTRIBUTES = (
    ("in_position", VertexAttributeDef.POSITION),
    ("in_normal", VertexAttributeDef.BYTE4),
    ("in_tangents", VertexAttributeDef.BYTE4),
    ("in_tex_coords", VertexAttributeDef.SHORT2),
)

SHADER_PATH = "shaders/{}.shd"
