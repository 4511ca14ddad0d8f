from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Sequence

from magnetostaticanalysis.exceptions import MalformedInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Material:
    """
    Magnetic properties of one region of the grid.

    Attributes:
        nu: Coefficient of the stiffness term, ∇·(ν∇Az).
        current_density: Source current density J in A/m².
    """
    nu: float
    current_density: float = 0.0


class MaterialRepository:
    """
    Lookup table from material id to :class:`Material`.

    Material ids are the positions in the lists the repository was built from.
    """
    def __init__(self, nu: Sequence[float], current_density: Sequence[float]) -> None:
        """
        Initialize the repository from parallel lists.

        Args:
            nu: Coefficient ν per material id.
            current_density: Source current density J per material id.

        Raises:
            MalformedInputError: If the lists differ in length or a ν is not positive.
        """
        if len(nu) != len(current_density):
            raise MalformedInputError(
                f"Got {len(nu)} permeability values but {len(current_density)} current densities."
            )
        for material_id, value in enumerate(nu):
            if not value > 0.0:
                raise MalformedInputError(f"Material {material_id} has non-positive coefficient nu={value}.")

        self._materials = tuple(Material(float(n), float(j)) for n, j in zip(nu, current_density))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(materials={len(self._materials)})"

    def __len__(self) -> int:
        return len(self._materials)

    def __iter__(self) -> Iterator[Material]:
        return iter(self._materials)

    def get(self, material_id: int) -> Material:
        """
        Get the material with the given id.

        Raises:
            MalformedInputError: If no material has this id.
        """
        if not 0 <= material_id < len(self._materials):
            raise MalformedInputError(
                f"Unknown material id {material_id}; the repository holds {len(self._materials)} materials."
            )
        return self._materials[material_id]

    def __getitem__(self, material_id: int) -> Material:
        return self.get(material_id)

    def scaled(self, factor: float) -> MaterialRepository:
        """Return a copy with every ν multiplied by ``factor``."""
        return MaterialRepository(
            nu=[material.nu * factor for material in self._materials],
            current_density=[material.current_density for material in self._materials],
        )
