"""Tests for caller-visible step outputs."""

from prodmill.core.outputs import StepOutputs


def test_values_without_output_file():
    outputs = StepOutputs()

    outputs.set("issue_id", "pm-1")

    assert outputs.output_file is None
    assert outputs.values == {"issue_id": "pm-1"}


def test_appends_to_github_output(tmp_path, monkeypatch):
    output_file = tmp_path / "out"
    output_file.write_text("existing=1\n")
    monkeypatch.setenv("GITHUB_OUTPUT", str(output_file))

    StepOutputs().set("issue_id", "pm-1")

    assert output_file.read_text() == "existing=1\nissue_id=pm-1\n"


def test_multiline_value_uses_delimiter(tmp_path):
    output_file = tmp_path / "out"

    StepOutputs(output_file=output_file).set("notes", "a\nb")

    lines = output_file.read_text().splitlines()
    assert lines[0].startswith("notes<<ghadelimiter_")
    assert lines[1:3] == ["a", "b"]
    assert lines[3] == lines[0].split("<<", 1)[1]
