"""Sphinx configuration for the Network Notifier API documentation."""

import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.abspath(".."))

project = "Network Notifier API"
current_year = datetime.now().year
copyright = f"{current_year}, Network Notifier"
author = "Network Notifier Team"
release = "0.1.0"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
]

autodoc_member_order = "bysource"
napoleon_google_docstring = True
napoleon_numpy_docstring = False

exclude_patterns: list[str] = ["_build"]

html_theme = "alabaster"
