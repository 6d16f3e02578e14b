# Configuration file for the Sphinx documentation builder.
#
# mechsim documentation

import os
import sys

# Sphinx imports mechsim from the repository root
sys.path.insert(0, os.path.abspath(".."))

from mechsim import __version__  # noqa: E402

# -- Project information -----------------------------------------------------
project = "mechsim"
copyright = "2026, mechsim"
author = "mechsim"
release = __version__
version = ".".join(__version__.split(".")[:2])

# -- General configuration ---------------------------------------------------
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.mathjax",
    "sphinx.ext.intersphinx",
]

templates_path = ["_templates"]
exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

# -- Options for HTML output -------------------------------------------------
# sphinx_rtd_theme comes with the docs extra; alabaster ships with Sphinx
try:
    import sphinx_rtd_theme  # noqa: F401
    html_theme = "sphinx_rtd_theme"
except ImportError:
    html_theme = "alabaster"
html_title = "mechsim"

# -- Extension configuration -------------------------------------------------
autodoc_default_options = {
    "members": True,
    "member-order": "bysource",
    "show-inheritance": True,
}
autodoc_typehints = "description"

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "numpy": ("https://numpy.org/doc/stable/", None),
}

napoleon_google_docstring = True
napoleon_numpy_docstring = False
