"""
Read-only scene view handed to the converter by a scene loader.

The converter never mutates these objects; loaders build them once per run.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import ConversionError
from .mathutil import IDENTITY_QUAT, mat4_from_trs, mat4_identity

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]
Quat = Tuple[float, float, float, float]


@dataclass(eq=False)
class Node:
    name: str
    transform: List[float] = field(default_factory=mat4_identity)
    children: List["Node"] = field(default_factory=list)
    parent: Optional["Node"] = field(default=None, repr=False)

    @classmethod
    def from_trs(cls, name, translation=(0.0, 0.0, 0.0), rotation=IDENTITY_QUAT,
                 scale=(1.0, 1.0, 1.0)):
        return cls(name, mat4_from_trs(translation, rotation, scale))

    def add_child(self, child):
        child.parent = self
        self.children.append(child)
        return child

    def __repr__(self):
        return f"Node({self.name!r}, children={len(self.children)})"


@dataclass
class Bone:
    name: str
    weights: List[Tuple[int, float]] = field(default_factory=list)


@dataclass
class Mesh:
    name: str
    positions: List[Vec3]
    faces: List[Tuple[int, int, int]]
    normals: List[Vec3] = field(default_factory=list)
    tangents: List[Vec3] = field(default_factory=list)
    uvs: List[Vec2] = field(default_factory=list)
    material_index: int = 0
    bones: List[Bone] = field(default_factory=list)

    @property
    def vertex_count(self):
        return len(self.positions)

    @property
    def triangle_count(self):
        return len(self.faces)


@dataclass
class Material:
    name: str
    diffuse_textures: List[str] = field(default_factory=list)

    @property
    def diffuse_texture(self):
        """First diffuse texture slot, the only one honored on export."""
        return self.diffuse_textures[0] if self.diffuse_textures else None


@dataclass
class AnimationChannel:
    node_name: str
    position_keys: List[Tuple[float, Vec3]] = field(default_factory=list)
    rotation_keys: List[Tuple[float, Quat]] = field(default_factory=list)


@dataclass
class AnimationClip:
    name: str
    ticks_per_second: float
    duration: float
    channels: List[AnimationChannel] = field(default_factory=list)


@dataclass
class Scene:
    root: Node
    meshes: List[Mesh] = field(default_factory=list)
    materials: List[Material] = field(default_factory=list)
    animations: List[AnimationClip] = field(default_factory=list)
    source_path: Optional[str] = None

    @property
    def vertex_count(self):
        return sum(m.vertex_count for m in self.meshes)

    def material_for(self, mesh):
        if not 0 <= mesh.material_index < len(self.materials):
            raise ConversionError(
                f"Mesh '{mesh.name}' references missing material {mesh.material_index}")
        return self.materials[mesh.material_index]
