from types import SimpleNamespace

import pytest
import trimesh

from modelconv.config import ConversionOptions
from modelconv.errors import SceneLoadError
from modelconv.loaders import (
    _assimp_animation,
    _assimp_material,
    _assimp_mesh,
    _assimp_node,
    _flat,
    _group,
    _matrix,
    load_scene,
)
from modelconv.mathutil import mat4_identity
from modelconv.pipeline import run_conversion
from modelconv.reader import read_mesh


def ai_mesh(**overrides):
    fields = dict(
        name="Body",
        vertices=[(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)],
        indices=[(0, 1, 2)],
        normals=[(0.0, 0.0, 1.0)] * 3,
        tangents=[(1.0, 0.0, 0.0)] * 3,
        texcoords=[],
        material_index=2,
        bones=[],
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_flatten_and_group():
    assert _flat(None) == []
    assert _flat([1, (2, 3), [4]]) == [1.0, 2.0, 3.0, 4.0]
    assert _group([1, 2, 3, 4, 5, 6, 7], 3) == [(1.0, 2.0, 3.0), (4.0, 5.0, 6.0)]
    assert _group([(1, 2), (3, 4)], 2) == [(1.0, 2.0), (3.0, 4.0)]
    assert _matrix(None) == mat4_identity()
    assert _matrix([[float(r * 4 + c) for c in range(4)] for r in range(4)])[7] == 7.0


def test_assimp_mesh_geometry():
    mesh = _assimp_mesh(ai_mesh())
    assert mesh.name == "Body"
    assert mesh.positions[1] == (1.0, 0.0, 0.0)
    assert mesh.faces == [(0, 1, 2)]
    assert mesh.normals == [(0.0, 0.0, 1.0)] * 3
    assert mesh.tangents == [(1.0, 0.0, 0.0)] * 3
    assert mesh.material_index == 2
    assert mesh.uvs == []


@pytest.mark.parametrize("texcoords", [
    [[(0.0, 0.5), (1.0, 0.5), (0.25, 1.0)]],
    [[(0.0, 0.5, 0.0), (1.0, 0.5, 0.0), (0.25, 1.0, 0.0)]],
])
def test_assimp_texcoords_two_or_three_components(texcoords):
    mesh = _assimp_mesh(ai_mesh(texcoords=texcoords))
    assert mesh.uvs == [(0.0, 0.5), (1.0, 0.5), (0.25, 1.0)]


def test_assimp_bones():
    bone = SimpleNamespace(name="Hips", weights=[(0, 1.0), (2, 0.25)])
    mesh = _assimp_mesh(ai_mesh(bones=[bone]))
    assert mesh.bones[0].name == "Hips"
    assert mesh.bones[0].weights == [(0, 1.0), (2, 0.25)]


def test_assimp_rotation_keys_become_xyzw():
    channel = SimpleNamespace(
        name="Spine",
        position_keys=[(0.0, 1.0, 2.0, 3.0), (5.0, 4.0, 5.0, 6.0)],
        # time, w, x, y, z
        rotation_keys=[(0.0, 1.0, 0.0, 0.0, 0.0), (5.0, 0.5, 0.1, 0.2, 0.3)],
    )
    clip = _assimp_animation(SimpleNamespace(name="", ticks_per_second=24.0,
                                             duration=5.0, channels=[channel]))

    assert clip.name == ""
    assert (clip.ticks_per_second, clip.duration) == (24.0, 5.0)
    ch = clip.channels[0]
    assert ch.node_name == "Spine"
    assert ch.position_keys == [(0.0, (1.0, 2.0, 3.0)), (5.0, (4.0, 5.0, 6.0))]
    assert ch.rotation_keys == [(0.0, (0.0, 0.0, 0.0, 1.0)), (5.0, (0.1, 0.2, 0.3, 0.5))]


def test_assimp_material_and_nodes():
    module = SimpleNamespace(TextureType_DIFFUSE=1)
    material = _assimp_material(module, {"NAME": "Skin", "TEXTURES": {1: ["tex/skin.png"]}}, 0)
    assert (material.name, material.diffuse_textures) == ("Skin", ["tex/skin.png"])
    assert _assimp_material(module, {}, 3).name == "material_3"

    child = SimpleNamespace(name="Hips", transformation=None, children=[])
    root = _assimp_node(SimpleNamespace(name="Root", transformation=mat4_identity(),
                                        children=[child]))
    assert [c.name for c in root.children] == ["Hips"]
    assert root.children[0].parent is root


def test_trimesh_glb_scene(tmp_path):
    path = tmp_path / "crate.glb"
    trimesh.Scene(trimesh.creation.box()).export(str(path))

    scene = load_scene(path, backend="trimesh")

    assert scene.source_path == str(path)
    assert len(scene.meshes) == 1
    assert scene.meshes[0].triangle_count == 12
    assert len(scene.meshes[0].normals) == scene.meshes[0].vertex_count
    assert len(scene.materials) == 1
    assert scene.root.children
    assert all(child.parent is scene.root for child in scene.root.children)

    result = run_conversion(scene, ConversionOptions(destination=tmp_path / "out"))
    assert result.ok
    mesh = read_mesh(result.mesh_path.read_bytes())
    assert result.mesh_path.name == "crate.msh"
    assert len(mesh.indices) == 36


def test_unknown_backend(tmp_path):
    path = tmp_path / "a.obj"
    path.write_text("")
    with pytest.raises(ValueError):
        load_scene(path, backend="blender")
    with pytest.raises(SceneLoadError):
        load_scene(tmp_path / "missing.obj", backend="trimesh")
