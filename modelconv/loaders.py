"""
Scene loaders: wrap an import library and build the read-only scene view.

    assimp  - assimp_py; meshes, bones, materials and animation clips
    trimesh - trimesh; static geometry and the node graph only
"""

import logging
from pathlib import Path

from .errors import SceneLoadError
from .mathutil import mat4_identity
from .scene import AnimationChannel, AnimationClip, Bone, Material, Mesh, Node, Scene

logger = logging.getLogger(__name__)


# ============================================================
# Helpers
# ============================================================

def _flat(values):
    """Flatten one level of nesting (accepts flat lists or lists of tuples)."""
    if values is None:
        return []
    out = []
    for v in values:
        if isinstance(v, (list, tuple)):
            out.extend(float(x) for x in v)
        else:
            out.append(float(v))
    return out


def _group(values, n):
    flat = _flat(values)
    return [tuple(flat[i:i + n]) for i in range(0, len(flat) - n + 1, n)]


def _matrix(value):
    flat = _flat(value)
    return flat if len(flat) == 16 else mat4_identity()


# ============================================================
# assimp_py
# ============================================================

def _assimp_node(ai_node):
    node = Node(ai_node.name or "", _matrix(getattr(ai_node, "transformation", None)))
    for child in ai_node.children or []:
        node.add_child(_assimp_node(child))
    return node


def _assimp_mesh(ai_mesh):
    positions = _group(ai_mesh.vertices, 3)
    count = len(positions)

    uvs = []
    if ai_mesh.texcoords:
        channel = _flat(ai_mesh.texcoords[0])
        components = 3 if len(channel) == 3 * count else 2
        uvs = [tuple(channel[i:i + 2]) for i in range(0, len(channel), components)]

    bones = []
    for ai_bone in ai_mesh.bones or []:
        weights = [(int(v), w) for v, w in _group(ai_bone.weights, 2)]
        bones.append(Bone(ai_bone.name, weights))

    return Mesh(
        name=ai_mesh.name or "",
        positions=positions,
        faces=[tuple(int(i) for i in f) for f in _group(ai_mesh.indices, 3)],
        normals=_group(ai_mesh.normals, 3),
        tangents=_group(getattr(ai_mesh, "tangents", None), 3),
        uvs=uvs,
        material_index=ai_mesh.material_index,
        bones=bones,
    )


def _assimp_material(assimp_py, ai_material, index):
    name = ai_material.get("NAME") or f"material_{index}"
    textures = ai_material.get("TEXTURES") or {}
    diffuse = textures.get(assimp_py.TextureType_DIFFUSE) or []
    return Material(name, [str(p) for p in diffuse])


def _assimp_animation(ai_anim):
    channels = []
    for ch in ai_anim.channels or []:
        position_keys = [(k[0], k[1:4]) for k in _group(ch.position_keys, 4)]
        # assimp stores quaternions as (w, x, y, z)
        rotation_keys = [(k[0], (k[2], k[3], k[4], k[1])) for k in _group(ch.rotation_keys, 5)]
        channels.append(AnimationChannel(ch.name, position_keys, rotation_keys))
    return AnimationClip(ai_anim.name or "", ai_anim.ticks_per_second, ai_anim.duration, channels)


def load_assimp(path):
    import assimp_py

    flags = (assimp_py.Process_Triangulate |
             assimp_py.Process_CalcTangentSpace |
             assimp_py.Process_LimitBoneWeights)
    try:
        ai_scene = assimp_py.ImportFile(str(path), flags)
    except Exception as e:
        raise SceneLoadError(path, str(e)) from e
    if ai_scene is None or not ai_scene.meshes:
        raise SceneLoadError(path, "scene has no meshes")

    return Scene(
        root=_assimp_node(ai_scene.root_node),
        meshes=[_assimp_mesh(m) for m in ai_scene.meshes],
        materials=[_assimp_material(assimp_py, m, i) for i, m in enumerate(ai_scene.materials)],
        animations=[_assimp_animation(a) for a in ai_scene.animations or []],
        source_path=str(path),
    )


# ============================================================
# trimesh
# ============================================================

def load_trimesh(path):
    import trimesh

    try:
        tm_scene = trimesh.load(str(path), force="scene")
    except Exception as e:
        raise SceneLoadError(path, str(e)) from e
    if not tm_scene.geometry:
        raise SceneLoadError(path, "scene has no meshes")

    graph = tm_scene.graph
    root = Node(graph.base_frame)
    nodes = {graph.base_frame: root}
    geometry_names = list(tm_scene.geometry)

    meshes = []
    materials = []
    material_index = {}

    # edge_data maps (parent, child) -> {"matrix": ..., "geometry": ...}
    pending = dict(graph.transforms.edge_data)
    while pending:
        progressed = False
        for (parent, child), data in list(pending.items()):
            if parent not in nodes:
                continue
            matrix = data.get("matrix")
            local = _flat(matrix.tolist()) if matrix is not None else mat4_identity()
            nodes[child] = nodes[parent].add_child(Node(str(child), local))
            del pending[(parent, child)]
            progressed = True
        if not progressed:
            raise SceneLoadError(path, "scene graph is not a tree")

    for geom_name in geometry_names:
        geom = tm_scene.geometry[geom_name]
        material_name = str(geom_name)
        visual = getattr(geom, "visual", None)
        material = getattr(visual, "material", None)
        if material is not None and getattr(material, "name", None):
            material_name = material.name
        if material_name not in material_index:
            material_index[material_name] = len(materials)
            materials.append(Material(material_name))

        uv = getattr(visual, "uv", None)
        meshes.append(Mesh(
            name=str(geom_name),
            positions=[tuple(v) for v in geom.vertices.tolist()],
            faces=[tuple(f) for f in geom.faces.tolist()],
            normals=[tuple(n) for n in geom.vertex_normals.tolist()],
            uvs=[tuple(t[:2]) for t in uv.tolist()] if uv is not None else [],
            material_index=material_index[material_name],
        ))

    return Scene(root=root, meshes=meshes, materials=materials, source_path=str(path))


LOADERS = {
    "assimp": load_assimp,
    "trimesh": load_trimesh,
}


def load_scene(path, backend="assimp"):
    path = Path(path)
    if not path.is_file():
        raise SceneLoadError(path, "file not found")
    try:
        loader = LOADERS[backend]
    except KeyError:
        raise ValueError(f"Unknown scene backend: {backend}") from None
    logger.info("Loading %s with %s", path, backend)
    scene = loader(path)
    logger.info("  %d meshes, %d vertices, %d materials, %d animations",
                len(scene.meshes), scene.vertex_count,
                len(scene.materials), len(scene.animations))
    return scene
