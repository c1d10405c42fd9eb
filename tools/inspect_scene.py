#!/usr/bin/env python3
"""
Print what a scene loader sees in a source file: node hierarchy, meshes,
bones, materials and animation clips.

Usage: python inspect_scene.py <model.fbx> [--backend assimp|trimesh]
"""

import argparse
import os
import sys

from modelconv.layout import has_bone_weights, has_child_nodes
from modelconv.loaders import LOADERS, load_scene


def print_node(node, depth=0):
    name = node.name if node.name else "(unnamed)"
    t = node.transform
    print(f"{'  '*depth}{name}  children={len(node.children)}  "
          f"t=({t[3]:.3f}, {t[7]:.3f}, {t[11]:.3f})")
    for c in node.children:
        print_node(c, depth+1)


def inspect_file(path, backend):
    print(f"\n{'='*60}")
    print(f"FILE: {os.path.basename(path)} ({os.path.getsize(path)} bytes)")
    print(f"{'='*60}")

    scene = load_scene(path, backend=backend)

    print("\n--- NODE HIERARCHY ---")
    print_node(scene.root)
    print(f"  layout: tree={has_child_nodes(scene).value} weights={has_bone_weights(scene).value}")

    print(f"\n--- MESHES ({len(scene.meshes)}) ---")
    for i, mesh in enumerate(scene.meshes):
        print(f"  Mesh[{i}]: name='{mesh.name}' verts={mesh.vertex_count} "
              f"faces={mesh.triangle_count} material={mesh.material_index}")
        print(f"    has_normals={bool(mesh.normals)} has_tangents={bool(mesh.tangents)} "
              f"has_texcoords={bool(mesh.uvs)}")
        for j, bone in enumerate(mesh.bones):
            print(f"      Bone[{j}]: '{bone.name}' weights={len(bone.weights)}")
        if mesh.positions:
            xs = [p[0] for p in mesh.positions]
            ys = [p[1] for p in mesh.positions]
            zs = [p[2] for p in mesh.positions]
            print(f"    bounds: X[{min(xs):.2f}, {max(xs):.2f}] "
                  f"Y[{min(ys):.2f}, {max(ys):.2f}] Z[{min(zs):.2f}, {max(zs):.2f}]")

    print(f"\n--- MATERIALS ({len(scene.materials)}) ---")
    for i, mat in enumerate(scene.materials):
        print(f"  Material[{i}]: '{mat.name}' diffuse={mat.diffuse_textures}")

    print(f"\n--- ANIMATIONS ({len(scene.animations)}) ---")
    for i, anim in enumerate(scene.animations):
        print(f"  Animation[{i}]: name='{anim.name}'")
        print(f"    duration={anim.duration} ticks_per_sec={anim.ticks_per_second}")
        print(f"    num_channels={len(anim.channels)}")
        for j, ch in enumerate(anim.channels):
            print(f"      Channel[{j}]: bone='{ch.node_name}' "
                  f"pos_keys={len(ch.position_keys)} rot_keys={len(ch.rotation_keys)}")


def main():
    parser = argparse.ArgumentParser(description="Inspect a source scene")
    parser.add_argument("paths", nargs="+")
    parser.add_argument("--backend", choices=sorted(LOADERS), default="assimp")
    args = parser.parse_args()

    for path in args.paths:
        if os.path.exists(path):
            inspect_file(path, args.backend)
        else:
            print(f"NOT FOUND: {path}")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
