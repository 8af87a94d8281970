"""
py_biomorph - grows genome graphs by rewriting and renders them as organic
body meshes.
"""

__version__ = "0.1.0"
