"""Procedural desert terrain algorithms.

Coherent noise, dune and salt-flat height synthesis, biome classification,
the global river network and texture weight composition. Everything here
works on global tile-unit coordinates so adjacent tiles agree exactly.
"""

from .biome import BiomeClassifier
from .heights import HeightSynthesizer
from .noise import NoiseField, fbm, inverse_lerp, ridged, sample, smoothstep
from .rivers import FalloffKernel, RiverAxis, RiverNetworkBuilder, RiverPath
from .splatmap import SplatLayer, SplatmapComposer, TextureLayer, compose_weights

__all__ = [
    "BiomeClassifier",
    "FalloffKernel",
    "HeightSynthesizer",
    "NoiseField",
    "RiverAxis",
    "RiverNetworkBuilder",
    "RiverPath",
    "SplatLayer",
    "SplatmapComposer",
    "TextureLayer",
    "compose_weights",
    "fbm",
    "inverse_lerp",
    "ridged",
    "sample",
    "smoothstep",
]
