"""
Unit tests for utility helpers
"""
from scangrader.utils import ensure_directory, is_valid_image, list_scans


class TestHelpers:
    """Test cases for file helpers"""

    def test_is_valid_image(self):
        assert is_valid_image("scan.PNG")
        assert is_valid_image("scan.tiff")
        assert not is_valid_image("notes.pdf")

    def test_list_scans_sorted(self, tmp_path):
        for name in ("b.png", "a.jpg", "readme.txt"):
            (tmp_path / name).write_bytes(b"")
        (tmp_path / "sub.png").mkdir()
        assert [p.name for p in list_scans(tmp_path)] == ["a.jpg", "b.png"]

    def test_list_scans_missing_dir(self, tmp_path):
        assert list_scans(tmp_path / "nope") == []

    def test_ensure_directory(self, tmp_path):
        path = ensure_directory(tmp_path / "out" / "nested")
        assert path.is_dir()
