from importlib import metadata

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.doctest",
    "sphinx.ext.intersphinx",
    "sphinx.ext.coverage",
    "sphinx.ext.viewcode",
]

# Add any paths that contain templates here, relative to this directory.
templates_path = ["_templates"]

source_suffix = ".rst"

# The master toctree document.
master_doc = "index"

# General information about the project.

project = "bisync-suffix"
copyright = "2023, bisync-suffix authors"
author = "bisync-suffix authors"

release = metadata.version(project)
# The short X.Y version.
version = ".".join(release.split(".")[:2])


language = "en"

pygments_style = "sphinx"
html_theme = "alabaster"
html_theme_options = {
    "description": "One call site, async and blocking builds",
    "page_width": "1080px",
    "sidebar_width": "300px",
    "fixed_sidebar": "false",
}
html_sidebars = {"**": ["about.html", "localtoc.html", "relations.html", "searchbox.html"]}

# One entry per manual page. List of tuples
# (source start file, name, description, authors, manual section).
man_pages = []

autodoc_member_order = "bysource"

nitpicky = False
nitpick_ignore = ["py:class"]

# -- Options for Texinfo output -------------------------------------------

# Grouping the document tree into Texinfo files. List of tuples
# (source start file, target name, title, author,
#  dir menu entry, description, category)
texinfo_documents = [
    (
        master_doc,
        "bisync-suffix",
        "bisync-suffix Documentation",
        author,
        "bisync-suffix",
        "Rename awaited method calls for async and blocking builds.",
        "Miscellaneous",
    )
]

# Example configuration for intersphinx: refer to the Python standard library.
intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "pytest": ("https://docs.pytest.org/en/latest", None),
    "setuptools": ("https://setuptools.pypa.io/en/latest", None),
}
