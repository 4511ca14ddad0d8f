from magnetostaticanalysis.fea.analysis.assembler import AssembledSystem, Equation, GaussExcluder, GlobalAssembler
from magnetostaticanalysis.fea.analysis.basis import Direction, LocalBasisFunction, LocalBasisFunctionsProvider
from magnetostaticanalysis.fea.analysis.local import LocalAssembler, LocalContribution
from magnetostaticanalysis.fea.analysis.portrait import Inserter, MatrixPortrait, MatrixPortraitBuilder

__all__ = [
    "AssembledSystem",
    "Direction",
    "Equation",
    "GaussExcluder",
    "GlobalAssembler",
    "Inserter",
    "LocalAssembler",
    "LocalBasisFunction",
    "LocalBasisFunctionsProvider",
    "LocalContribution",
    "MatrixPortrait",
    "MatrixPortraitBuilder",
]
