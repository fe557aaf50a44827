import os
import sys

sys.path.insert(0, os.path.abspath("src"))

from pantry_receipts.paths import expand_abs, find_project_root, find_upwards


def test_find_upwards_walks_to_parent(tmp_path):
    (tmp_path / ".env").write_text("OPENAI_API_KEY=x\n", encoding="utf-8")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert find_upwards(str(nested), ".env") == str(tmp_path / ".env")
    assert find_upwards(str(nested), "missing-file.txt") is None


def test_find_project_root_uses_markers(tmp_path):
    (tmp_path / "pyproject.toml").write_text("[project]\n", encoding="utf-8")
    nested = tmp_path / "src" / "pkg"
    nested.mkdir(parents=True)

    assert find_project_root(str(nested)) == str(tmp_path)


def test_expand_abs_expands_env(monkeypatch, tmp_path):
    monkeypatch.setenv("PANTRY_TEST_DIR", str(tmp_path))
    assert expand_abs("$PANTRY_TEST_DIR/receipt.txt") == os.path.join(str(tmp_path), "receipt.txt")
