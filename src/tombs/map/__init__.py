from .grid import NEIGHBOR_OFFSETS, GridMap, Position, Rect
from .tiles import Tile, TileKind

__all__ = ["GridMap", "Rect", "Position", "NEIGHBOR_OFFSETS", "Tile", "TileKind"]
