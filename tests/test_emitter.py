"""Tests for automatic / user file emission."""

from orogen.generation import Emitter, Renderer
from orogen.errors import InternalError

import pytest


class TestEmitter:
    def test_automatic_files_live_in_the_automatic_area(self, tmp_path):
        emitter = Emitter(tmp_path)
        path = emitter.save_automatic("tasks", "TaskBase.hpp", "content")
        assert path == tmp_path / ".orogen" / "tasks" / "TaskBase.hpp"
        assert path.read_text() == "content"
        assert emitter.written == [path]

    def test_unchanged_content_is_not_rewritten(self, tmp_path):
        Emitter(tmp_path).save_automatic("a.txt", "same")
        emitter = Emitter(tmp_path)
        emitter.save_automatic("a.txt", "same")
        assert emitter.written == []
        assert emitter.generated == {tmp_path / ".orogen" / "a.txt"}

    def test_user_file_written_once(self, tmp_path):
        Emitter(tmp_path).save_user("tasks", "Task.cpp", "first")
        emitter = Emitter(tmp_path)
        emitter.save_user("tasks", "Task.cpp", "second")
        assert (tmp_path / "tasks" / "Task.cpp").read_text() == "first"
        assert (tmp_path / "templates" / "tasks" / "Task.cpp").read_text() == "second"

    def test_touch(self, tmp_path):
        emitter = Emitter(tmp_path)
        path = emitter.touch_automatic("cam.orogen.yaml")
        assert path.exists()
        assert path in emitter.generated

    def test_cleanup_removes_files_not_saved_this_run(self, tmp_path):
        old = Emitter(tmp_path)
        old.save_automatic("keep.txt", "k")
        old.save_automatic("old", "gone.txt", "g")

        emitter = Emitter(tmp_path)
        emitter.save_automatic("keep.txt", "k")
        removed = emitter.cleanup_automatic()

        assert removed == [tmp_path / ".orogen" / "old" / "gone.txt"]
        assert (tmp_path / ".orogen" / "keep.txt").exists()
        assert not (tmp_path / ".orogen" / "old").exists()

    def test_cleanup_leaves_user_files(self, tmp_path):
        (tmp_path / "mine.txt").write_text("mine")
        Emitter(tmp_path).cleanup_automatic()
        assert (tmp_path / "mine.txt").exists()

    def test_custom_automatic_area(self, tmp_path):
        emitter = Emitter(tmp_path, automatic_area="generated")
        assert emitter.save_automatic("x", "y").parent == tmp_path / "generated"


class TestRenderer:
    def test_template_override(self, tmp_path):
        (tmp_path / "gitignore.j2").write_text("custom {{ name }}\n")
        renderer = Renderer(template_dirs=[tmp_path])
        assert renderer.render("gitignore", name="x") == "custom x\n"

    def test_missing_template(self):
        with pytest.raises(InternalError, match="no template called nothing"):
            Renderer().render("nothing")

    def test_undefined_binding(self):
        with pytest.raises(InternalError, match="cannot render gitignore"):
            Renderer().render("gitignore")
