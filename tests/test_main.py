import json

import pytest

import main


def test_parse_arguments():
    args = main.parse_arguments(["--input", "receipts/", "--timeout", "5", "--report-format", "json"])
    assert args.input == "receipts/"
    assert args.timeout == 5.0
    assert args.report_format == "json"
    assert not args.evaluate


def test_evaluate_requires_ground_truth():
    with pytest.raises(SystemExit):
        main.parse_arguments(["--input", "r.jpg", "--evaluate"])


def test_collect_inputs_filters_unsupported_files(tmp_path):
    (tmp_path / "a.png").write_bytes(b"x")
    (tmp_path / "b.pdf").write_bytes(b"x")
    (tmp_path / "notes.txt").write_text("x")

    assert [p.name for p in main.collect_inputs(str(tmp_path))] == ["a.png", "b.pdf"]


def test_collect_inputs_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        main.collect_inputs(str(tmp_path / "missing"))


@pytest.mark.parametrize("results, failures, expected", [
    ([{"source_file": "a.png"}], [], main.EXIT_OK),
    ([{"source_file": "a.png"}], [{"source_file": "b.png"}], main.EXIT_PARTIAL),
    ([], [{"source_file": "b.png"}], main.EXIT_FAILED),
    ([], [], main.EXIT_FAILED),
])
def test_exit_codes(monkeypatch, tmp_path, fresh_config, results, failures, expected):
    monkeypatch.setattr(main, "run_extraction", lambda path, timeout_seconds=None: (results, failures))
    output = tmp_path / "out.json"

    code = main.main(["--input", str(tmp_path), "--output", str(output), "--quiet"])

    assert code == expected
    if results or failures:
        written = json.loads(output.read_text())
        assert written == {"results": results, "failures": failures}


def test_missing_input_is_an_error(tmp_path, fresh_config, capsys):
    assert main.main(["--input", str(tmp_path / "missing"), "--quiet"]) == main.EXIT_FAILED
    assert "Input path not found" in capsys.readouterr().err
