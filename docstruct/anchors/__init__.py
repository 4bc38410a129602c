from docstruct.anchors.codec import ANCHOR_PREFIX, ANCHOR_SUFFIX, AnchorCodec, AnchorMatch
from docstruct.anchors.registry import AnchorRegistry

__all__ = ["ANCHOR_PREFIX", "ANCHOR_SUFFIX", "AnchorCodec", "AnchorMatch", "AnchorRegistry"]
