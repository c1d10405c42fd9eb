"""
Material descriptors (.mat) and their diffuse textures.

One descriptor per source material:
    {"shader": "shaders/<rigid|skinned>.shd", "texture": {"source": "<path>"}}
The texture entry is only written when the material has a diffuse texture.
Texture files are copied (or converted through an ImageCodec) next to the
descriptors, keeping their source-relative subdirectories.
"""

import json
import logging
import posixpath
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from PIL import Image, UnidentifiedImageError

from .constants import MATERIAL_EXTENSION
from .errors import ArtifactWriteError, CodecError

logger = logging.getLogger(__name__)


# ============================================================
# Image codec
# ============================================================

@dataclass
class CodecResult:
    ok: bool
    error: str = ""


class ImageCodec:
    """Decode a source image and re-encode it in the target format with Pillow."""

    def __init__(self, flip_vertical=True):
        self.flip_vertical = flip_vertical

    def convert(self, source, destination):
        try:
            with Image.open(source) as img:
                img.load()
                if img.mode not in ("RGB", "RGBA"):
                    img = img.convert("RGBA")
                if self.flip_vertical:
                    img = img.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
                img.save(destination)
        except (OSError, ValueError, KeyError, UnidentifiedImageError) as e:
            return CodecResult(False, str(e) or type(e).__name__)
        return CodecResult(True)


# ============================================================
# Descriptor emission
# ============================================================

@dataclass
class MaterialReport:
    written: List[Path] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)

    @property
    def ok(self):
        return not self.errors


def converted_texture_path(texture_path, texture_format):
    """Sibling of texture_path with the target format's extension."""
    texture_path = texture_path.replace("\\", "/")
    directory, filename = posixpath.split(texture_path)
    stem = posixpath.splitext(filename)[0]
    converted = f"{stem}.{texture_format}"
    return posixpath.join(directory, converted) if directory else converted


def material_descriptor(shader, texture_source=None):
    descriptor = {"shader": shader}
    if texture_source is not None:
        descriptor["texture"] = {"source": texture_source}
    return json.dumps(descriptor)


def material_filename(material, index):
    name = material.name or f"material_{index}"
    return name + MATERIAL_EXTENSION


def relative_texture_path(texture_path):
    """Forward-slash texture path relative to the source directory."""
    return texture_path.replace("\\", "/").lstrip("/")


def _process_texture(relative, source_dir, destination, convert, texture_format, codec):
    """Copy or convert one texture; raises on failure."""
    source = Path(source_dir) / relative
    target_dir = destination / posixpath.dirname(relative)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArtifactWriteError(target_dir, e) from e

    suffix = posixpath.splitext(relative)[1].lstrip(".").lower()
    if convert and suffix != texture_format.lower():
        target = destination / converted_texture_path(relative, texture_format)
        result = codec.convert(source, target)
        if not result.ok:
            raise CodecError(source, result.error)
        logger.info("Converted texture %s -> %s", source, target)
    else:
        target = destination / relative
        try:
            shutil.copyfile(source, target)
        except OSError as e:
            raise ArtifactWriteError(target, e) from e
        logger.info("Copied texture %s -> %s", source, target)


def write_materials(scene, layout, destination, convert_textures=False,
                    texture_format="dds", codec=None, on_material=None):
    """Write every material descriptor and its texture; keeps going past failures."""
    destination = Path(destination)
    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArtifactWriteError(destination, e) from e
    codec = codec or ImageCodec()
    source_dir = Path(scene.source_path).parent if scene.source_path else Path(".")
    report = MaterialReport()

    count = len(scene.materials)
    for i, material in enumerate(scene.materials):
        if on_material:
            on_material(i, count)

        texture = material.diffuse_texture
        texture_source = None
        if texture is not None:
            texture = relative_texture_path(texture)
            texture_source = (converted_texture_path(texture, texture_format)
                              if convert_textures else texture)

        path = destination / material_filename(material, i)
        try:
            path.write_text(material_descriptor(layout.shader, texture_source), encoding="utf-8")
        except OSError as e:
            logger.error("Could not write material %s: %s", path, e)
            report.errors.append(ArtifactWriteError(path, e))
            continue
        report.written.append(path)

        if texture is None:
            continue
        try:
            _process_texture(texture, source_dir, destination,
                             convert_textures, texture_format, codec)
        except (ArtifactWriteError, CodecError) as e:
            logger.warning("%s", e)
            report.errors.append(e)

    return report


def convert_texture(source, destination_dir, texture_format="dds", codec=None):
    """Convert a lone image into destination_dir, returning the new path."""
    codec = codec or ImageCodec()
    source = Path(source)
    target = Path(destination_dir) / f"{source.stem}.{texture_format}"
    result = codec.convert(source, target)
    if not result.ok:
        raise CodecError(source, result.error)
    return target
