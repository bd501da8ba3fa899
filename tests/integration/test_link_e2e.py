"""
End-to-end tests: loading real files, writing bundles and the export map,
the linker driver and the command line.
"""

import json
import os
import pytest
from tests.test_utils import names
from doclink.__main__ import main
from doclink.analysis.module_graph import ModuleGraph
from doclink.analysis.module_system import ModuleLoader
from doclink.analysis.topo_serializer import TopoSerializer
from doclink.linker.driver import LinkerDriver
from doclink.linker.planner import Bundle, BundlePlanner
from doclink.linker.writer import BundleWriter
from doclink.shared.errors import (
    DuplicateDefinitionError,
    OverwriteDisallowedError,
    SelfOverwriteError,
    SourceReadError,
    StructuralError,
)
from doclink.utils.config import LinkerOptions

X_JS = "/** @module X \n * @requires Y */\nvar x = y + 1;\n"
Y_JS = "/** @module Y */\nvar y = 1;\n"

APP_PROJECT = {
    "app.js": "/**\n * @module app\n * @requires ui\n * @requires core\n * @export app.js\n */\nrun();\n",
    "ui.js": "/** @module ui\n * @requires core */\nui();\n",
    "core.js": "/** @module core */\ncore();\n",
    "admin.js": "/**\n * @module admin\n * @requires core\n * @export admin.js\n */\nadmin();\n",
}


def linked(root, **overrides):
    values = {"sources": [str(root)], "destination": str(root / "out")}
    values.update(overrides)
    return LinkerDriver(LinkerOptions.from_mapping(values)).link()


class TestSpecExample:
    def test_x_requires_y(self, tmp_path, engine, write_project):
        root = write_project({"x.js": X_JS, "y.js": Y_JS})
        graph = ModuleGraph()
        ModuleLoader(graph, engine).load(root)
        x, y = graph.get("X"), graph.get("Y")
        assert x.requires == {"Y": y}
        assert y.dependants == {"X": x}

        graph.mark_export("X", "x.bundle.js")
        order = TopoSerializer().serialize(x)
        assert names(order) == ["Y", "X"]

        (bundle,) = BundlePlanner(str(tmp_path / "out")).plan([(x, order)])
        assert bundle.sources == (str(root / "y.js"), str(root / "x.js"))

        BundleWriter().write(bundle, graph.sources)
        assert (tmp_path / "out" / "x.bundle.js").read_text() == Y_JS + X_JS


class TestModuleLoader:
    def test_directory_counters(self, graph, engine, write_project):
        root = write_project({
            "a.js": "/** @module a */",
            "notes.txt": "/** @module txt */",
            ".hidden.js": "/** @module hidden */",
            "sub/b.js": "/** @module b */",
        })
        ModuleLoader(graph, engine).load(root)
        assert names(graph) == ["a"]
        stats = graph.analyse()
        # a.js, notes.txt, .hidden.js and the sub directory
        assert stats["files_total"] == 4
        assert stats["files_processed"] == 1
        assert stats["files_ignored"] == 3

    def test_recursive_skips_hidden_directories(self, graph, engine, write_project):
        root = write_project({
            "a.js": "/** @module a */",
            "sub/b.js": "/** @module b */",
            ".git/c.js": "/** @module c */",
            "sub/.cache/d.js": "/** @module d */",
        })
        ModuleLoader(graph, engine, recursive=True).load(root)
        assert sorted(names(graph)) == ["a", "b"]

    def test_include_and_exclude_patterns(self, graph, engine, write_project):
        root = write_project({
            "a.js": "/** @module a */",
            "a.test.js": "/** @module a-test */",
            "b.mjs": "/** @module b */",
        })
        ModuleLoader(graph, engine, include=r"\.m?js$", exclude=r"\.test\.js$").load(root)
        assert sorted(names(graph)) == ["a", "b"]

    def test_explicit_file_is_always_loaded(self, graph, engine, write_project):
        root = write_project({"script.es": "/** @module script */"})
        ModuleLoader(graph, engine).load(root / "script.es")
        assert names(graph) == ["script"]

    def test_missing_path(self, graph, engine, tmp_path):
        with pytest.raises(SourceReadError):
            ModuleLoader(graph, engine).load(tmp_path / "nowhere")

    def test_failed_file_is_counted(self, graph, engine, write_project):
        root = write_project({"a.js": "/** @module a */", "b.js": "/** @module a */"})
        with pytest.raises(DuplicateDefinitionError):
            ModuleLoader(graph, engine).load(root)
        assert graph.files.errored == 1
        assert graph.files.processed == 1


class TestBundleWriter:
    def test_concatenates_raw_bytes(self, graph, tmp_path):
        first = graph.add_source(tmp_path / "a.js", raw=b"caf\xc3\xa9\r\n")
        second = graph.add_source(tmp_path / "b.js", raw=b"\xff\x00tail")
        bundle = Bundle((first.path, second.path), str(tmp_path / "dist" / "all.js"), "b")
        written = BundleWriter().write(bundle, graph.sources)
        assert (tmp_path / "dist" / "all.js").read_bytes() == b"caf\xc3\xa9\r\n\xff\x00tail"
        assert written == str(tmp_path / "dist" / "all.js")

    def test_overwrite_disallowed(self, graph, tmp_path):
        unit = graph.add_source(tmp_path / "a.js", raw=b"new")
        (tmp_path / "out.js").write_text("old")
        bundle = Bundle((unit.path,), str(tmp_path / "out.js"), "a")
        with pytest.raises(OverwriteDisallowedError):
            BundleWriter().write(bundle, graph.sources)
        assert (tmp_path / "out.js").read_text() == "old"
        BundleWriter(overwrite=True).write(bundle, graph.sources)
        assert (tmp_path / "out.js").read_text() == "new"

    @pytest.mark.parametrize("destination", ["dist/", "dist/.secret.js"])
    def test_invalid_destinations(self, tmp_path, destination):
        with pytest.raises(StructuralError):
            BundleWriter().writeable(f"{tmp_path}/{destination}")

    def test_directory_destination(self, tmp_path):
        (tmp_path / "taken").mkdir()
        with pytest.raises(StructuralError):
            BundleWriter().writeable(tmp_path / "taken")

    def test_write_all_checks_before_writing(self, graph, tmp_path):
        unit = graph.add_source(tmp_path / "a.js", raw=b"a")
        (tmp_path / "second.js").write_text("old")
        bundles = [
            Bundle((unit.path,), str(tmp_path / "first.js"), "a"),
            Bundle((unit.path,), str(tmp_path / "second.js"), "a"),
        ]
        with pytest.raises(OverwriteDisallowedError):
            BundleWriter().write_all(bundles, graph.sources)
        assert not (tmp_path / "first.js").exists()

    def test_write_all_same_destination_written_once(self, graph, tmp_path):
        a = graph.add_source(tmp_path / "a.js", raw=b"a")
        b = graph.add_source(tmp_path / "b.js", raw=b"b")
        bundles = [
            Bundle((a.path,), str(tmp_path / "all.js"), "a"),
            Bundle((b.path,), str(tmp_path / "all.js"), "b"),
        ]
        assert len(BundleWriter().write_all(bundles, graph.sources)) == 1
        assert (tmp_path / "all.js").read_text() == "b"


class TestExportMap:
    def test_write_dot(self, tmp_path):
        graph = ModuleGraph()
        graph.connect("app", "lib")
        path = BundleWriter().write_dot(graph, tmp_path / "deps.dot")
        assert (tmp_path / "deps.dot").read_text() == 'digraph doclink {\n"app";\n"lib"->"app";\n}\n'
        assert path == str(tmp_path / "deps.dot")

    def test_directory_gets_default_name(self, tmp_path):
        BundleWriter().write_dot(ModuleGraph(), tmp_path)
        assert (tmp_path / "doclink.dot").exists()

    def test_dot_cannot_overwrite_sources(self, graph, tmp_path):
        graph.add_source(tmp_path / "a.js", raw=b"")
        with pytest.raises(SelfOverwriteError):
            BundleWriter(overwrite=True).write_dot(graph, tmp_path / "a.js")


class TestLinkerDriver:
    def test_link_project(self, tmp_path, write_project):
        root = write_project(APP_PROJECT)
        result = linked(root)
        assert result.success, result.get_errors()
        assert [os.path.basename(b.destination) for b in result.bundles] == ["admin.js", "app.js"]
        app_bundle = (root / "out" / "app.js").read_text()
        assert app_bundle == APP_PROJECT["core.js"] + APP_PROJECT["ui.js"] + APP_PROJECT["app.js"]
        admin_bundle = (root / "out" / "admin.js").read_text()
        assert admin_bundle == APP_PROJECT["core.js"] + APP_PROJECT["admin.js"]
        assert result.summary() == "4 files, 4 modules processed for 2 export directives."

    def test_test_mode_writes_nothing(self, write_project):
        root = write_project(APP_PROJECT)
        result = linked(root, test=True)
        assert result.success
        assert len(result.bundles) == 2
        assert not (root / "out").exists()

    def test_strict_mode_orphans(self, write_project):
        root = write_project({"app.js": "/** @module app\n * @requires ghost\n * @export app.js */"})
        result = linked(root)
        assert not result.success
        (error,) = result.reporter.errors
        assert error.code == "E0401"
        assert "ghost" in error.message
        assert not (root / "out").exists()

        relaxed = linked(root, strict=False)
        assert relaxed.success
        assert (root / "out" / "app.js").exists()

    def test_cycles_reported_for_every_root(self, write_project):
        root = write_project({
            "a.js": "/** @module a\n * @requires b\n * @export a.js */",
            "b.js": "/** @module b\n * @requires a\n * @export b.js */",
            "c.js": "/** @module c\n * @export c.js */",
        })
        result = linked(root)
        assert not result.success
        assert [e.code for e in result.reporter.errors] == ["E0104", "E0104"]
        assert not (root / "out").exists()

    def test_load_error_is_reported_with_snippet(self, write_project):
        root = write_project({"x.js": "/**\n * @module x\n * @requires x\n */\n"})
        result = linked(root)
        assert not result.success
        report = result.get_errors()[0]
        assert "error[E0102]" in report
        assert "3 |  * @requires x" in report
        assert "aborting due to 1 previous error" in report

    def test_exportmap(self, write_project):
        root = write_project(APP_PROJECT)
        result = linked(root, exportmap=str(root / "map.dot"), test=True)
        assert result.exportmap == str(root / "map.dot")
        assert '"core"->"ui";' in (root / "map.dot").read_text()

    def test_existing_bundle_not_overwritten(self, write_project):
        root = write_project(APP_PROJECT)
        assert linked(root).success
        again = linked(root)
        assert not again.success
        assert again.reporter.errors[0].code == "E0302"
        assert linked(root, overwrite=True).success

    def test_relative_requires_bundled(self, tmp_path, write_project, resolver):
        root = write_project({
            "app.js": "/** @module app\n * @requires ./vendor/lib.js\n * @export app.js */\napp();\n",
            "vendor/lib.js": "lib();\n",
        })
        options = LinkerOptions(sources=[str(root)], destination=str(root / "out"))
        result = LinkerDriver(options, resolver=resolver).link()
        assert result.success, result.get_errors()
        assert (root / "out" / "app.js").read_text().startswith("lib();\n")
        assert graph_names(result) == ["app", "vendor/lib.js"]


def graph_names(result):
    return sorted(names(result.graph))


class TestCli:
    def test_main_links_and_prints_summary(self, write_project, capsys):
        root = write_project(APP_PROJECT)
        code = main([str(root), "--destination", str(root / "out")])
        assert code == 0
        assert (root / "out" / "app.js").exists()
        out = capsys.readouterr().out
        assert "4 files, 4 modules processed for 2 export directives." in out

    def test_main_reports_errors(self, write_project, capsys):
        root = write_project({"a.js": "/** @module a\n * @requires a */"})
        assert main([str(root), "--destination", str(root / "out")]) == 1
        assert "error[E0102]" in capsys.readouterr().err

    def test_config_file_and_cli_precedence(self, write_project, capsys):
        root = write_project(APP_PROJECT)
        conf = root / "doclink.json"
        conf.write_text(json.dumps({"destination": str(root / "from-conf"), "test": "false"}))
        assert main([str(root), "--conf", str(conf), "--quiet"]) == 0
        assert (root / "from-conf" / "app.js").exists()
        assert capsys.readouterr().out == ""

        assert main([str(root), "--conf", str(conf), "-d", str(root / "from-cli"), "-t"]) == 0
        assert not (root / "from-cli").exists()

    def test_bad_pattern(self, write_project, capsys):
        root = write_project(APP_PROJECT)
        assert main([str(root), "--include", "(["]) == 1
        assert "Invalid include pattern" in capsys.readouterr().err

    def test_exportmap_flag_default_name(self, write_project, monkeypatch):
        root = write_project(APP_PROJECT)
        monkeypatch.chdir(root)
        assert main([".", "--exportmap", "--test", "--quiet"]) == 0
        assert (root / "doclink.dot").exists()

    def test_exportmap_false_in_config_writes_nothing(self, write_project, monkeypatch):
        root = write_project(APP_PROJECT)
        conf = root / "doclink.json"
        conf.write_text(json.dumps({"exportmap": "false", "test": True}))
        monkeypatch.chdir(root)
        assert main([str(root), "--conf", str(conf), "--quiet"]) == 0
        assert not (root / "false").exists()
        assert not (root / "doclink.dot").exists()

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "doclink 0.1.0" in capsys.readouterr().out
