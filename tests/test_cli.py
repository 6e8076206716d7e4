import json

import pytest

from mjml_toolkit.cli import format_outline, load_document, main


@pytest.fixture(autouse=True)
def log_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("MJML_TOOLKIT_LOG_DIR", str(tmp_path / "logs"))


@pytest.fixture
def mjml_file(tmp_path, sample_mjml):
    path = tmp_path / "welcome.mjml"
    path.write_text(sample_mjml, encoding="utf-8")
    return path


def test_parse_prints_json_tree(mjml_file, capsys):
    assert main(["parse", str(mjml_file)]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["type"] == "mjml"
    assert [child["type"] for child in data["children"]] == ["mj-head", "mj-body"]


def test_build_from_json(tmp_path, tree, capsys):
    path = tmp_path / "tree.json"
    path.write_text(tree.to_json(), encoding="utf-8")
    assert main(["build", str(path), "--xml-declaration"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("<?xml")
    assert '<mj-column width="50%">' in out


def test_build_compact_is_single_line(tmp_path, tree, capsys):
    path = tmp_path / "tree.json"
    path.write_text(tree.to_json(), encoding="utf-8")
    assert main(["build", str(path), "--compact"]) == 0
    assert capsys.readouterr().out.strip().count("\n") == 0


def test_validate_clean_document(mjml_file, capsys):
    assert main(["validate", str(mjml_file)]) == 0
    assert "OK" in capsys.readouterr().out


def test_validate_reports_violations(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({
        "id": "root", "type": "mjml",
        "children": [{"id": "body", "type": "mj-body",
                      "children": [{"id": "t", "type": "mj-text", "content": "x"}]}],
    }), encoding="utf-8")
    assert main(["validate", str(path)]) == 1
    assert "invalid_parent" in capsys.readouterr().out


def test_tree_outline_with_ids(mjml_file, capsys):
    assert main(["tree", str(mjml_file), "--ids"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines()[0].startswith("mjml (")
    assert "    mj-section (Section) [" in out


def test_missing_file(tmp_path, capsys):
    assert main(["parse", str(tmp_path / "missing.mjml")]) == 1
    assert "File not found" in capsys.readouterr().err


def test_malformed_markup(tmp_path, capsys):
    path = tmp_path / "broken.mjml"
    path.write_text("<mjml><mj-body>", encoding="utf-8")
    assert main(["parse", str(path)]) == 1
    assert capsys.readouterr().err.startswith("Error:")


def test_load_document_detects_json(tree, sample_mjml):
    assert load_document(tree.to_json()) == tree
    assert load_document(sample_mjml).type.value == "mjml"


def test_format_outline_shows_widths(tree):
    outline = format_outline(tree)
    assert "mj-column (Column) width=50%" in outline
