"""
Conversion pipeline: scene -> .msh, .ani and .mat artifacts.

run_conversion() is synchronous and runs the stages strictly in order.
ConversionWorker drives it from a single background thread and publishes
milestone events on a queue so a front-end never blocks on the work.
"""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .animation import serialize_animation
from .constants import ANIMATION_EXTENSION, MESH_EXTENSION
from .errors import ArtifactWriteError, ConversionError
from .layout import select_vertex_layout
from .materials import convert_texture, write_materials
from .mesh_writer import serialize_model
from .skeleton import NodeTable

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tga", ".tif", ".tiff", ".gif", ".dds"}


# ============================================================
# Progress and results
# ============================================================

class Milestone(Enum):
    STARTED = "started"
    SCENE_LOADED = "scene_loaded"
    MESHES_WRITTEN = "meshes_written"
    GEOMETRY_WRITTEN = "geometry_written"
    MESH_SAVED = "mesh_saved"
    ANIMATIONS_WRITTEN = "animations_written"
    MATERIAL = "material"
    DONE = "done"


@dataclass
class ProgressEvent:
    milestone: Milestone
    fraction: float
    detail: str = ""


@dataclass
class Failure:
    artifact: str
    error: Exception


@dataclass
class ConversionResult:
    mesh_path: Optional[Path] = None
    animation_paths: List[Path] = field(default_factory=list)
    material_paths: List[Path] = field(default_factory=list)
    texture_path: Optional[Path] = None
    failures: List[Failure] = field(default_factory=list)

    @property
    def ok(self):
        return not self.failures


def _write_artifact(path, data):
    try:
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise ArtifactWriteError(path, e) from e
    logger.info("Written: %s (%d bytes)", path, len(data))


# ============================================================
# Stages
# ============================================================

def run_conversion(scene, options, on_progress=None, name=None):
    """Convert scene into options.destination.

    The mesh (with skeleton) is all-or-nothing: any error there propagates
    before animations or materials are touched. Animation clips and
    materials are independent files; their failures are collected in the
    result instead.
    """
    def report(milestone, fraction, detail=""):
        if on_progress:
            on_progress(ProgressEvent(milestone, fraction, detail))

    destination = options.destination
    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArtifactWriteError(destination, e) from e

    if name is None:
        name = Path(scene.source_path).stem if scene.source_path else "model"

    result = ConversionResult()
    layout = select_vertex_layout(scene, options.layout_policy)
    table = NodeTable(scene.root)

    stage_fraction = {
        "meshes": (Milestone.MESHES_WRITTEN, 1 / 3 + 1 / 9),
        "geometry": (Milestone.GEOMETRY_WRITTEN, 1 / 3 + 2 / 9),
    }
    data = serialize_model(scene, layout, table,
                           on_stage=lambda stage: report(*stage_fraction[stage]))
    mesh_path = destination / (name + MESH_EXTENSION)
    _write_artifact(mesh_path, data)
    result.mesh_path = mesh_path
    report(Milestone.MESH_SAVED, 2 / 3, str(mesh_path))

    if options.import_animations and scene.animations:
        _write_animations(scene, options, table, result)
        report(Milestone.ANIMATIONS_WRITTEN, 2 / 3, f"{len(result.animation_paths)} clips")

    if options.import_materials:
        count = len(scene.materials)
        materials = write_materials(
            scene, layout, destination,
            convert_textures=options.convert_textures,
            texture_format=options.texture_format,
            on_material=lambda i, n: report(Milestone.MATERIAL, 2 / 3 + i / (3 * n),
                                            scene.materials[i].name),
        )
        result.material_paths.extend(materials.written)
        result.failures.extend(Failure("material", e) for e in materials.errors)
        logger.info("Materials: %d/%d written, %d errors",
                    len(materials.written), count, len(materials.errors))

    report(Milestone.DONE, 1.0, "done" if result.ok else "failed")
    return result


def _write_animations(scene, options, table, result):
    clips = scene.animations
    if options.first_clip_only:
        clips = clips[:1]
    elif len(clips) > 1:
        logger.info("Writing all %d animation clips", len(clips))

    for i, clip in enumerate(clips):
        clip_name = clip.name or f"animation_{i}"
        path = options.destination / (clip_name + ANIMATION_EXTENSION)
        try:
            _write_artifact(path, serialize_animation(clip, table))
        except ConversionError as e:
            logger.error("Animation '%s' failed: %s", clip_name, e)
            result.failures.append(Failure(f"animation:{clip_name}", e))
            continue
        result.animation_paths.append(path)


def is_texture(path):
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS


def convert_file(source, options, backend="assimp", on_progress=None):
    """Load source with a scene loader and convert it.

    A lone image source is converted straight to the target texture format.
    """
    from .loaders import load_scene

    def report(milestone, fraction, detail=""):
        if on_progress:
            on_progress(ProgressEvent(milestone, fraction, detail))

    source = Path(source)
    report(Milestone.STARTED, 0.0, str(source))

    if is_texture(source):
        try:
            options.destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtifactWriteError(options.destination, e) from e
        result = ConversionResult()
        try:
            result.texture_path = convert_texture(source, options.destination,
                                                  options.texture_format)
        except ConversionError as e:
            result.failures.append(Failure("texture", e))
        report(Milestone.DONE, 1.0, "done" if result.ok else "failed")
        return result

    scene = load_scene(source, backend=backend)
    report(Milestone.SCENE_LOADED, 1 / 3, f"{len(scene.meshes)} meshes")
    return run_conversion(scene, options, on_progress=on_progress)


# ============================================================
# Background worker
# ============================================================

class ConversionWorker:
    """Runs conversions on one background thread.

    Progress events for every run land on self.events; reading them never
    blocks the worker.
    """

    def __init__(self):
        self.events = queue.Queue()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="modelconv")
        self._lock = threading.Lock()
        self._active = set()

    def _claim(self, destination):
        key = Path(destination).resolve()
        with self._lock:
            if key in self._active:
                raise ConversionError(f"A conversion into {destination} is already running")
            self._active.add(key)
        return key

    def _release(self, key):
        with self._lock:
            self._active.discard(key)

    def _run(self, key, fn, *args, **kwargs):
        try:
            return fn(*args, on_progress=self.events.put_nowait, **kwargs)
        finally:
            self._release(key)

    def _submit(self, destination, fn, *args, **kwargs):
        key = self._claim(destination)
        try:
            return self._executor.submit(self._run, key, fn, *args, **kwargs)
        except RuntimeError:
            self._release(key)
            raise

    def submit(self, source, options, backend="assimp"):
        return self._submit(options.destination, convert_file, source, options,
                            backend=backend)

    def submit_scene(self, scene, options, name=None):
        return self._submit(options.destination, run_conversion, scene, options, name=name)

    def shutdown(self, wait=True):
        self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.shutdown()
