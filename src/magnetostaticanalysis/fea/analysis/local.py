from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from magnetostaticanalysis.config import CoordinateSystem
import magnetostaticanalysis.fea.analysis.gauss as gauss

if TYPE_CHECKING:
    import numpy.typing as npt

    from magnetostaticanalysis.fea.analysis.basis import LocalBasisFunctionsProvider
    from magnetostaticanalysis.fea.pre.grid import Element, Grid
    from magnetostaticanalysis.fea.pre.material import MaterialRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class LocalContribution:
    """
    Element stiffness matrix and load vector with their global equation numbers.
    """
    matrix: npt.NDArray[np.float64]
    vector: npt.NDArray[np.float64]
    dofs: npt.NDArray[np.int64]


class LocalAssembler:
    """
    Computes element contributions of the weak form

        ∫ ν ∇Az·∇v w dΩ = ∫ J v w dΩ,

    where the weight w is 1 for plane-parallel fields and r (= x) for axisymmetric ones.

    The 2x2 Gauss rule integrates both weights exactly on axis-aligned bilinear cells.
    """
    def __init__(
        self,
        grid: Grid,
        basis_provider: LocalBasisFunctionsProvider,
        materials: MaterialRepository,
        coordinate_system: CoordinateSystem = CoordinateSystem.PLANE,
        n_integration_points: int = 4,
    ) -> None:
        """
        Initialize the local assembler.

        Args:
            grid: The grid whose elements are assembled.
            basis_provider: Source of the element shape functions.
            materials: Material table indexed by element material id.
            coordinate_system: Plane-parallel or axisymmetric weighting.
            n_integration_points: Number of Gauss points (1, 4 or 9).
        """
        self.grid = grid
        self.basis_provider = basis_provider
        self.materials = materials
        self.coordinate_system = CoordinateSystem(coordinate_system)
        self.n_integration_points = n_integration_points

    def get_integration_scheme(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """
        Get the integration scheme for the bilinear element.

        Returns:
            Tuple of Gauss points and weights on the reference square.
        """
        return gauss.gauss_points_weights_quadrilateral(self.n_integration_points)

    def _weight(self, x: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        if self.coordinate_system == CoordinateSystem.AXISYMMETRIC:
            return x
        return np.ones_like(x)

    def assemble(self, element: Element) -> LocalContribution:
        """
        Compute the stiffness matrix and load vector of an element.

        Args:
            element: Element of the assembler's grid.

        Raises:
            MalformedInputError: If the element material id is unknown.

        Returns:
            The local contribution.
        """
        material = self.materials.get(element.material_id)

        lower_left, _ = self.grid.element_bounds(element)
        hx, hy = self.grid.element_steps(element)

        gauss_points, weights = self.get_integration_scheme()
        x, y, det_j = gauss.map_to_rectangle(gauss_points, lower_left.x, lower_left.y, hx, hy)

        n, dn_dx, dn_dy = self.basis_provider.evaluate(element, x, y)
        w = weights * self._weight(x) * det_j

        k_e = np.zeros((element.number_of_nodes, element.number_of_nodes), dtype=np.float64)
        f_e = np.zeros((element.number_of_nodes,), dtype=np.float64)

        for gp in range(weights.size):
            k_e += (np.outer(dn_dx[gp], dn_dx[gp]) + np.outer(dn_dy[gp], dn_dy[gp])) * w[gp]
            f_e += n[gp] * w[gp]

        return LocalContribution(
            matrix=material.nu * k_e,
            vector=material.current_density * f_e,
            dofs=element.global_dofs,
        )
