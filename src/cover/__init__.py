"""Layer cover merging for vegetation survey observations."""

from .merge import merge_layer_covers, merge_layers

__all__ = ["merge_layer_covers", "merge_layers"]
