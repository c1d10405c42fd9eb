#!/usr/bin/env python3
"""
Dump a written .msh or .ani file.

Usage: python inspect_msh.py <file.msh|file.ani> [--vertices N]
"""

import argparse
import sys

from modelconv.reader import FormatError, read_animation, read_mesh, unpack_vertices


def dump_mesh(data, max_vertices):
    mesh = read_mesh(data)
    print(f"Mesh version {mesh.version}: {len(mesh.submeshes)} submeshes, "
          f"{len(mesh.indices)} indices, {len(mesh.vertex_data)} vertex bytes")

    skinned = False
    for i, sub in enumerate(mesh.submeshes):
        attrs = ", ".join(f"{n}:{t}" for n, t in sub.attributes)
        print(f"  Submesh[{i}]: material='{sub.material}' vertices@{sub.vertex_offset}"
              f"+{sub.vertex_size} tris@{sub.index_offset}+{sub.triangle_count}")
        print(f"    attributes: {attrs}")
        skinned = skinned or any(n == "in_weights" for n, _ in sub.attributes)

    if max_vertices:
        for i, v in enumerate(unpack_vertices(mesh.vertex_data, skinned)[:max_vertices]):
            print(f"    v{i}: {v}")

    print(f"  Skeleton ({len(mesh.nodes)} nodes):")
    for node in mesh.nodes:
        tx, ty, tz = node.translation
        qx, qy, qz, qw = node.rotation
        print(f"    {node.name} (parent='{node.parent}') "
              f"t=({tx:.4f}, {ty:.4f}, {tz:.4f}) q=({qx:.4f}, {qy:.4f}, {qz:.4f}, {qw:.4f})")

    for to_submesh, distance in mesh.lods:
        print(f"  LOD: up to submesh {to_submesh}, distance {distance}")


def dump_animation(data):
    anim = read_animation(data)
    print(f"Animation version {anim.version}: {anim.fps} fps, "
          f"{anim.frame_count} frames, {anim.bone_count} bones")
    for bone, h in enumerate(anim.bone_hashes):
        first = anim.position(0, bone) if anim.frame_count else None
        print(f"  Bone[{bone}] hash=0x{h:08X} first position={first}")


def main():
    parser = argparse.ArgumentParser(description="Dump a .msh or .ani file")
    parser.add_argument("path")
    parser.add_argument("--vertices", type=int, default=0, help="Print the first N vertices")
    args = parser.parse_args()

    with open(args.path, "rb") as f:
        data = f.read()

    try:
        if args.path.lower().endswith(".ani"):
            dump_animation(data)
        else:
            dump_mesh(data, args.vertices)
    except FormatError as e:
        print(f"ERROR: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
