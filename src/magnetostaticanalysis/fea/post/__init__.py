from magnetostaticanalysis.fea.post.field import FieldSolver, FieldValue, FluxDensity
from magnetostaticanalysis.fea.post.locator import BucketElementLocator, LinearElementLocator
from magnetostaticanalysis.fea.post.sinks import (
    CollectingResultSink,
    ConsoleResultSink,
    LoggingResultSink,
    NullResultSink,
)

__all__ = [
    "BucketElementLocator",
    "CollectingResultSink",
    "ConsoleResultSink",
    "FieldSolver",
    "FieldValue",
    "FluxDensity",
    "LinearElementLocator",
    "LoggingResultSink",
    "NullResultSink",
]
