"""Per-vertex skin influence aggregation."""

import logging
from dataclasses import dataclass, field
from typing import List

from .constants import MAX_INFLUENCES
from .errors import ConversionError

logger = logging.getLogger(__name__)


@dataclass
class SkinInfluence:
    weights: List[float] = field(default_factory=lambda: [0.0] * MAX_INFLUENCES)
    bone_indices: List[int] = field(default_factory=lambda: [0] * MAX_INFLUENCES)
    count: int = 0

    def add(self, weight, bone_index):
        """Record one influence. Returns False when all slots are taken."""
        if self.count >= MAX_INFLUENCES:
            return False
        self.weights[self.count] = weight
        self.bone_indices[self.count] = bone_index
        self.count += 1
        return True


def build_skin_influences(meshes, table):
    """One SkinInfluence per global vertex, meshes numbered back to back.

    Weights are kept exactly as imported (no renormalization). Influences
    past the fourth are dropped.
    """
    influences = [SkinInfluence() for _ in range(sum(m.vertex_count for m in meshes))]
    dropped = 0

    offset = 0
    for mesh in meshes:
        for bone in mesh.bones:
            bone_index = table.resolve(bone.name, kind="bone")
            for vertex_id, weight in bone.weights:
                if not 0 <= vertex_id < mesh.vertex_count:
                    raise ConversionError(
                        f"Bone '{bone.name}' weights vertex {vertex_id} of mesh "
                        f"'{mesh.name}' which has {mesh.vertex_count} vertices")
                if not influences[offset + vertex_id].add(float(weight), bone_index):
                    dropped += 1
        offset += mesh.vertex_count

    if dropped:
        logger.debug("Dropped %d influences beyond %d per vertex", dropped, MAX_INFLUENCES)
    return influences
