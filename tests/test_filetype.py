from __future__ import annotations

import pytest

from highlight_colors.services.filetype import filetype_for_path


@pytest.mark.parametrize(
    "path,expected",
    [
        ("styles/site.css", "css"),
        ("/tmp/App.TSX", "typescriptreact"),
        ("tailwind.config.js", "javascript"),
        ("theme.qss", "css"),
    ],
)
def test_filetype_for_path(path, expected):
    assert filetype_for_path(path) == expected


def test_unknown_paths_use_default():
    assert filetype_for_path("notes.unknownext") == ""
    assert filetype_for_path(None, default="text") == "text"
    assert filetype_for_path("", default="text") == "text"
