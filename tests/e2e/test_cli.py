"""CLI tests: input/output handling, overrides and error exits."""

import json

from click.testing import CliRunner

from edsl_layout.__main__ import main

DOC = {
    "nodes": [{"id": "a", "width": 100, "height": 50}, {"id": "b", "width": 100, "height": 50}],
    "edges": [{"from": "a", "to": "b"}],
}


def _invoke(args: list[str], doc=DOC):
    text = doc if isinstance(doc, str) else json.dumps(doc)
    return CliRunner().invoke(main, args, input=text)


class TestCliOutput:
    def test_stdin_to_stdout(self):
        result = _invoke([])
        assert result.exit_code == 0
        out = json.loads(result.output)
        a, b = out["nodes"]
        assert a["y"] == 0.0
        assert b["y"] == 200.0

    def test_direction_override(self):
        result = _invoke(["--direction", "LR"])
        assert result.exit_code == 0
        out = json.loads(result.output)
        assert out["config"]["direction"] == "left-to-right"
        assert out["nodes"][1]["x"] == 250.0

    def test_layout_override(self):
        result = _invoke(["--layout", "force", "--no-cache", "--sequential"])
        assert result.exit_code == 0
        assert json.loads(result.output)["config"]["layout"] == "force"

    def test_output_file(self, tmp_path):
        target = tmp_path / "out.json"
        result = _invoke(["-o", str(target)])
        assert result.exit_code == 0
        assert result.output == ""
        assert json.loads(target.read_text())["edges"][0]["start"] is not None

    def test_input_file(self, tmp_path):
        source = tmp_path / "in.json"
        source.write_text(json.dumps(DOC))
        result = CliRunner().invoke(main, [str(source)])
        assert result.exit_code == 0
        assert len(json.loads(result.output)["nodes"]) == 2


class TestCliErrors:
    def test_invalid_json(self):
        result = _invoke([], doc="{not json")
        assert result.exit_code == 1
        assert "parse error" in result.output

    def test_unknown_engine(self):
        result = _invoke(["--layout", "spiral"])
        assert result.exit_code == 1
        assert "Unknown layout engine: spiral" in result.output

    def test_unknown_direction(self):
        result = _invoke(["--direction", "up-ish"])
        assert result.exit_code == 1
        assert "Unknown direction" in result.output

    def test_dangling_edge(self):
        doc = {"nodes": [{"id": "a"}], "edges": [{"from": "a", "to": "ghost"}]}
        result = _invoke([], doc=doc)
        assert result.exit_code == 1
        assert "ghost" in result.output

    def test_bad_option_value(self):
        result = _invoke([], doc={"config": {"node_spacing": "far"}, "nodes": []})
        assert result.exit_code == 1
        assert "node_spacing" in result.output

    def test_bad_container_padding(self):
        doc = {"nodes": [{"id": "a"}], "containers": [{"id": "box", "children": ["a"], "attrs": {"padding": "big"}}]}
        result = _invoke([], doc=doc)
        assert result.exit_code == 1
        assert "layout error" in result.output
        assert "padding" in result.output

    def test_parallel_string_option(self):
        result = _invoke([], doc={"config": {"parallel": "maybe"}, "nodes": []})
        assert result.exit_code == 1
        assert "parallel" in result.output
