import threading

import pytest
from PIL import Image

from modelconv.cli import main
from modelconv.config import ConversionOptions
from modelconv.errors import ConversionError, SceneLoadError, UnresolvedNameError
from modelconv.pipeline import ConversionWorker, Milestone, convert_file, run_conversion
from modelconv.reader import read_animation, read_mesh
from modelconv.scene import AnimationChannel, AnimationClip, Bone, Node


def test_quad_end_to_end(tmp_path, quad_scene):
    events = []
    options = ConversionOptions(destination=tmp_path)
    result = run_conversion(quad_scene, options, on_progress=events.append, name="quad")

    assert result.ok
    assert result.mesh_path == tmp_path / "quad.msh"
    mesh = read_mesh(result.mesh_path.read_bytes())
    assert [s.material for s in mesh.submeshes] == ["Mat"]
    assert len(mesh.indices) == 6
    assert len(mesh.vertex_data) == 4 * 24
    assert len(mesh.nodes) == 1
    assert mesh.nodes[0].parent == ""

    assert result.material_paths == [tmp_path / "Mat.mat"]
    assert '"shader": "shaders/rigid.shd"' in (tmp_path / "Mat.mat").read_text()
    assert result.animation_paths == []

    milestones = [e.milestone for e in events]
    assert milestones == [Milestone.MESHES_WRITTEN, Milestone.GEOMETRY_WRITTEN,
                          Milestone.MESH_SAVED, Milestone.MATERIAL, Milestone.DONE]
    fractions = [e.fraction for e in events]
    assert fractions == sorted(fractions)
    assert fractions[-1] == 1.0


def test_mesh_name_defaults_to_source_stem(tmp_path, quad_scene):
    quad_scene.source_path = str(tmp_path / "models" / "crate.fbx")
    result = run_conversion(quad_scene, ConversionOptions(destination=tmp_path / "out"))
    assert result.mesh_path == tmp_path / "out" / "crate.msh"


def test_all_clips_are_written(tmp_path, rig_scene):
    result = run_conversion(rig_scene, ConversionOptions(destination=tmp_path,
                                                         import_materials=False), name="rig")

    assert [p.name for p in result.animation_paths] == ["Walk.ani", "Idle.ani"]
    assert read_animation((tmp_path / "Idle.ani").read_bytes()).fps == 25.0
    assert not (tmp_path / "Skin.mat").exists()


def test_first_clip_only(tmp_path, rig_scene):
    options = ConversionOptions(destination=tmp_path, first_clip_only=True, import_materials=False)
    result = run_conversion(rig_scene, options, name="rig")
    assert [p.name for p in result.animation_paths] == ["Walk.ani"]


def test_animations_can_be_skipped(tmp_path, rig_scene):
    options = ConversionOptions(destination=tmp_path, import_animations=False,
                                import_materials=False)
    assert run_conversion(rig_scene, options, name="rig").animation_paths == []


def test_bad_clip_does_not_stop_the_run(tmp_path, rig_scene):
    rig_scene.animations.insert(0, AnimationClip("Broken", 30.0, 2.0,
                                                 [AnimationChannel("Tail")]))
    result = run_conversion(rig_scene, ConversionOptions(destination=tmp_path), name="rig")

    assert not result.ok
    assert result.failures[0].artifact == "animation:Broken"
    assert isinstance(result.failures[0].error, UnresolvedNameError)
    assert [p.name for p in result.animation_paths] == ["Walk.ani", "Idle.ani"]
    assert (tmp_path / "rig.msh").exists()
    assert (tmp_path / "Skin.mat").exists()
    # The texture file is missing from the source tree
    assert any(f.artifact == "material" for f in result.failures)


def test_unresolved_bone_aborts_before_other_artifacts(tmp_path, rig_scene):
    rig_scene.meshes[0].bones.append(Bone("Tail", [(0, 1.0)]))
    with pytest.raises(UnresolvedNameError):
        run_conversion(rig_scene, ConversionOptions(destination=tmp_path), name="rig")
    assert not (tmp_path / "rig.msh").exists()
    assert not (tmp_path / "Walk.ani").exists()
    assert not (tmp_path / "Skin.mat").exists()


def test_weights_policy(tmp_path, quad_scene):
    quad_scene.root.add_child(Node("Group"))
    options = ConversionOptions(destination=tmp_path, layout_policy="weights")
    result = run_conversion(quad_scene, options, name="quad")
    assert len(read_mesh(result.mesh_path.read_bytes()).vertex_data) == 4 * 24


def test_options_validation(tmp_path):
    with pytest.raises(ValueError):
        ConversionOptions(destination=tmp_path, layout_policy="bones")
    assert ConversionOptions(destination=str(tmp_path), texture_format=".DDS").texture_format == "dds"


def test_missing_source(tmp_path):
    with pytest.raises(SceneLoadError):
        convert_file(tmp_path / "nothing.fbx", ConversionOptions(destination=tmp_path))


def test_lone_image_is_converted(tmp_path):
    Image.new("RGB", (4, 4), (0, 255, 0)).save(tmp_path / "grass.png")
    options = ConversionOptions(destination=tmp_path / "out", texture_format="bmp")
    result = convert_file(tmp_path / "grass.png", options)
    assert result.ok
    assert result.texture_path == tmp_path / "out" / "grass.bmp"
    assert result.texture_path.exists()


def test_worker_reports_progress(tmp_path, quad_scene):
    with ConversionWorker() as worker:
        result = worker.submit_scene(quad_scene, ConversionOptions(destination=tmp_path),
                                     name="quad").result(timeout=30)
    assert result.ok

    events = []
    while not worker.events.empty():
        events.append(worker.events.get_nowait())
    assert events[-1].milestone is Milestone.DONE


def test_worker_refuses_overlapping_destination(tmp_path, quad_scene):
    gate = threading.Event()
    options = ConversionOptions(destination=tmp_path)
    with ConversionWorker() as worker:
        # Hold the single worker thread so the first run stays queued
        worker._executor.submit(gate.wait)
        first = worker.submit_scene(quad_scene, options, name="quad")
        with pytest.raises(ConversionError):
            worker.submit_scene(quad_scene, options, name="again")
        gate.set()
        assert first.result(timeout=30).ok

        second = worker.submit_scene(quad_scene, options, name="again")
        assert second.result(timeout=30).ok


def test_cli_converts_image(tmp_path, capsys):
    Image.new("RGB", (2, 2)).save(tmp_path / "rock.png")
    code = main([str(tmp_path / "rock.png"), "-o", str(tmp_path / "out"),
                 "--texture-format", "bmp"])
    assert code == 0
    assert (tmp_path / "out" / "rock.bmp").exists()
    assert "Done." in capsys.readouterr().out


def test_cli_missing_source(tmp_path, capsys):
    assert main([str(tmp_path / "missing.fbx"), "-o", str(tmp_path)]) == 1
    assert "ERROR" in capsys.readouterr().err
