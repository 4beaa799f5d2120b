"""
Layer 2: Renderers

Turn a resolved Document into JSON or a markdown book.
"""

from rendering.json_backend import bake_json
from rendering.mdbook import bake_mdbook

__all__ = [
    "bake_json",
    "bake_mdbook",
]
