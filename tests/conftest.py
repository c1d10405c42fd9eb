import math

import pytest

from modelconv.scene import AnimationChannel, AnimationClip, Bone, Material, Mesh, Node, Scene

SQRT_HALF = math.sqrt(0.5)
QUAT_Z90 = (0.0, 0.0, SQRT_HALF, SQRT_HALF)


def make_quad(name="Quad", material_index=0, bones=None):
    return Mesh(
        name=name,
        positions=[(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)],
        faces=[(0, 1, 2), (0, 2, 3)],
        normals=[(0.0, 0.0, 1.0)] * 4,
        tangents=[(1.0, 0.0, 0.0)] * 4,
        uvs=[(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)],
        material_index=material_index,
        bones=bones or [],
    )


def make_rig():
    """Root -> Hips -> (Spine -> Hand, Leg)."""
    root = Node("Root")
    hips = root.add_child(Node.from_trs("Hips", translation=(0.0, 1.0, 0.0)))
    spine = hips.add_child(Node.from_trs("Spine", translation=(0.0, 1.0, 0.0), rotation=QUAT_Z90))
    spine.add_child(Node.from_trs("Hand", translation=(1.0, 0.0, 0.0)))
    hips.add_child(Node.from_trs("Leg", translation=(1.0, 0.0, 0.0)))
    return root


@pytest.fixture
def quad_scene():
    return Scene(root=Node("Root"), meshes=[make_quad()], materials=[Material("Mat")])


@pytest.fixture
def rig_scene():
    mesh = Mesh(
        name="Body",
        positions=[(0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 2.0, 0.0)],
        faces=[(0, 1, 2)],
        normals=[(0.0, 1.0, 0.0)] * 3,
        tangents=[(1.0, 0.0, 0.0)] * 3,
        uvs=[(0.5, 0.5)] * 3,
        bones=[
            Bone("Hips", [(0, 1.0), (1, 0.5)]),
            Bone("Spine", [(1, 0.5)]),
            Bone("Leg", [(2, 0.25)]),
        ],
    )
    walk = AnimationClip("Walk", ticks_per_second=30.0, duration=10.0, channels=[
        AnimationChannel("Spine",
                         position_keys=[(0.0, (0.0, 1.0, 0.0)), (10.0, (0.0, 2.0, 0.0))],
                         rotation_keys=[(0.0, (0.0, 0.0, 0.0, 1.0)), (10.0, QUAT_Z90)]),
        AnimationChannel("Hips",
                         position_keys=[(0.0, (0.0, 0.0, 0.0)), (10.0, (10.0, 0.0, 0.0))],
                         rotation_keys=[(0.0, (0.0, 0.0, 0.0, 1.0))]),
    ])
    idle = AnimationClip("Idle", ticks_per_second=0.0, duration=3.9, channels=[
        AnimationChannel("Hips", position_keys=[(0.0, (0.0, 1.0, 0.0))]),
    ])
    return Scene(root=make_rig(), meshes=[mesh], materials=[Material("Skin", ["tex/skin.png"])],
                 animations=[walk, idle])
