"""
Result sinks receive the values computed by field evaluation.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Protocol, TextIO

from magnetostaticanalysis.fea.pre.grid import Node2D

logger = logging.getLogger(__name__)


class ResultSink(Protocol):
    def report_az(self, point: Node2D, az: float) -> None: ...

    def report_b(self, point: Node2D, bx: float, by: float, b: float) -> None: ...

    def report_missed_area(self, point: Node2D) -> None: ...


class NullResultSink:
    """Discards everything."""
    def report_az(self, point: Node2D, az: float) -> None:
        pass

    def report_b(self, point: Node2D, bx: float, by: float, b: float) -> None:
        pass

    def report_missed_area(self, point: Node2D) -> None:
        pass


class ConsoleResultSink:
    """
    Prints results in the plain-text report format.
    """
    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout

    def _write(self, text: str) -> None:
        print(text, file=self.stream)

    def report_az(self, point: Node2D, az: float) -> None:
        self._write(f"Point ({point.x:.7E}, {point.y:.7E}): Az = {az:.7E}")

    def report_b(self, point: Node2D, bx: float, by: float, b: float) -> None:
        self._write(f"Point ({point.x:.7E}, {point.y:.7E}): Bx = {bx:.7E}, By = {by:.7E}, |B| = {b:.7E}")

    def report_missed_area(self, point: Node2D) -> None:
        self._write(f"Point ({point.x:.7E}, {point.y:.7E}) is outside of the calculation area.")


class LoggingResultSink:
    """Forwards results to the module logger."""
    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def report_az(self, point: Node2D, az: float) -> None:
        logger.log(self.level, f"Az({point.x:.6e}, {point.y:.6e}) = {az:.6e}")

    def report_b(self, point: Node2D, bx: float, by: float, b: float) -> None:
        logger.log(self.level, f"B({point.x:.6e}, {point.y:.6e}) = ({bx:.6e}, {by:.6e}), |B| = {b:.6e}")

    def report_missed_area(self, point: Node2D) -> None:
        logger.warning(f"Point ({point.x:.6e}, {point.y:.6e}) is outside of the calculation area.")


@dataclass
class CollectingResultSink:
    """
    Keeps every report in memory.

    Attributes:
        az: Reported (point, Az) pairs.
        b: Reported (point, Bx, By, |B|) tuples.
        missed: Points reported as outside the calculation area.
    """
    az: list[tuple[Node2D, float]] = field(default_factory=list)
    b: list[tuple[Node2D, float, float, float]] = field(default_factory=list)
    missed: list[Node2D] = field(default_factory=list)

    def report_az(self, point: Node2D, az: float) -> None:
        self.az.append((point, az))

    def report_b(self, point: Node2D, bx: float, by: float, b: float) -> None:
        self.b.append((point, bx, by, b))

    def report_missed_area(self, point: Node2D) -> None:
        self.missed.append(point)
