"""Vertex layout selection: rigid or skinned, fixed for the whole scene."""

import logging
from enum import Enum

from .constants import (
    BASE_ATTRIBUTES,
    RIGID_VERTEX_SIZE,
    SHADER_PATH,
    SKIN_ATTRIBUTES,
    SKINNED_VERTEX_SIZE,
)

logger = logging.getLogger(__name__)

# weights, bone indices | position, normal, tangent, uv
SKIN_FORMAT = "<4f4i"
BASE_FORMAT = "<3f4b4b2h"


class VertexLayout(Enum):
    RIGID = "rigid"
    SKINNED = "skinned"

    @property
    def skinned(self):
        return self is VertexLayout.SKINNED

    @property
    def stride(self):
        return SKINNED_VERTEX_SIZE if self.skinned else RIGID_VERTEX_SIZE

    @property
    def attributes(self):
        if self.skinned:
            return SKIN_ATTRIBUTES + BASE_ATTRIBUTES
        return BASE_ATTRIBUTES

    @property
    def shader(self):
        return SHADER_PATH.format(self.value)


# ============================================================
# Layout policies
# ============================================================

def has_child_nodes(scene):
    """Skinned whenever the root node has any children.

    Coarse on purpose: a static scene with a grouped hierarchy is still
    exported as skinned.
    """
    if scene.root.children:
        return VertexLayout.SKINNED
    return VertexLayout.RIGID


def has_bone_weights(scene):
    """Skinned only when some mesh actually carries bone weights."""
    for mesh in scene.meshes:
        if any(bone.weights for bone in mesh.bones):
            return VertexLayout.SKINNED
    return VertexLayout.RIGID


LAYOUT_POLICIES = {
    "tree": has_child_nodes,
    "weights": has_bone_weights,
}


def select_vertex_layout(scene, policy="tree"):
    try:
        choose = LAYOUT_POLICIES[policy]
    except KeyError:
        raise ValueError(f"Unknown layout policy: {policy}") from None
    layout = choose(scene)
    logger.info("Vertex layout: %s (%d bytes/vertex, policy=%s)",
                layout.value, layout.stride, policy)
    return layout
