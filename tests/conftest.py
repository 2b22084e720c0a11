"""Shared test fixtures for sitegate."""

from pathlib import Path

import pytest

from sitegate.config.models import SitegateConfig

INDEX_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
<title>Home</title>
<link rel="stylesheet" href="style.css">
</head>
<body>
<h1>Home</h1>
<p><a href="docs/guide.md">Guide</a> and <a href="https://example.com">elsewhere</a></p>
</body>
</html>
"""

GUIDE_MD = """\
# Guide

Back to [home](../index.html).

- install Node
- run `npm install`
"""

CONTRIBUTING_MD = """\
---
title: Contributing
---
# Contributing

1. Fork the repository.
2. Open a pull request.
"""


@pytest.fixture
def sample_config():
    return SitegateConfig()


def write_site(root: Path) -> Path:
    """Create a small site whose documents are already canonical."""
    (root / "index.html").write_text(INDEX_HTML)
    (root / "style.css").write_text("body { margin: 0; }\n")
    (root / "docs").mkdir()
    (root / "docs" / "guide.md").write_text(GUIDE_MD)
    (root / "CONTRIBUTING.md").write_text(CONTRIBUTING_MD)
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / "node_modules" / "pkg" / "README.md").write_text("*  messy\n\n\n\n")
    return root


@pytest.fixture
def site(tmp_path):
    """A canonical site rooted at tmp_path/site."""
    root = tmp_path / "site"
    root.mkdir()
    return write_site(root)
