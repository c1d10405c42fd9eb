"""
Skeleton flattening and serialization.

The node tree is flattened once, depth-first with parents before children,
into an arena addressed by index. Each entry keeps its parent index and its
transform relative to the model's base pose (all ancestor local transforms
composed with its own). Names resolve to indices through a map built up
front; the first node with a given name wins.

Skeleton block:
    int32   node_count
    per node, in pre-order:
        int32 nameLen, char[nameLen] name
        int32 parentLen, char[parentLen] parentName   (0 for the root)
        float[3] translation
        float[4] rotation (x, y, z, w)
"""

import struct
from dataclasses import dataclass
from typing import List, Optional

from .errors import UnresolvedNameError
from .mathutil import decompose_no_scaling, mat4_identity, mat4_multiply


@dataclass
class FlatNode:
    name: str
    parent: Optional[int]
    transform: List[float]


class NodeTable:
    """Flattened node arena with O(1) name lookup."""

    def __init__(self, root):
        self.nodes = []
        self._visit(root, None, mat4_identity())
        self._index = {}
        for i, node in enumerate(self.nodes):
            self._index.setdefault(node.name, i)

    def _visit(self, node, parent, parent_transform):
        transform = mat4_multiply(parent_transform, node.transform)
        index = len(self.nodes)
        self.nodes.append(FlatNode(node.name, parent, transform))
        for child in node.children:
            self._visit(child, index, transform)

    def __len__(self):
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes)

    @property
    def names(self):
        return [node.name for node in self.nodes]

    def find(self, name):
        """Index of the first node called name, or None."""
        return self._index.get(name)

    def resolve(self, name, kind="node"):
        index = self._index.get(name)
        if index is None:
            raise UnresolvedNameError(kind, name)
        return index

    def parent_name(self, index):
        parent = self.nodes[index].parent
        return "" if parent is None else self.nodes[parent].name


def count_nodes(node):
    return 1 + sum(count_nodes(child) for child in node.children)


def write_string(f, text):
    data = text.encode("utf-8")
    f.write(struct.pack("<i", len(data)))
    f.write(data)


def write_skeleton(f, table):
    f.write(struct.pack("<i", len(table)))
    for i, node in enumerate(table):
        write_string(f, node.name)
        write_string(f, table.parent_name(i))
        translation, rotation = decompose_no_scaling(node.transform)
        f.write(struct.pack("<3f", *translation))
        f.write(struct.pack("<4f", *rotation))
