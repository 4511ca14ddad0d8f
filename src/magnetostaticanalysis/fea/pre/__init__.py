from magnetostaticanalysis.fea.pre.boundary import FirstBoundary, FirstBoundaryProvider, FirstBoundaryValue
from magnetostaticanalysis.fea.pre.grid import Element, Grid, GridBuilder, Node2D, rectangular_grid
from magnetostaticanalysis.fea.pre.material import Material, MaterialRepository

__all__ = [
    "Element",
    "FirstBoundary",
    "FirstBoundaryProvider",
    "FirstBoundaryValue",
    "Grid",
    "GridBuilder",
    "Material",
    "MaterialRepository",
    "Node2D",
    "rectangular_grid",
]
