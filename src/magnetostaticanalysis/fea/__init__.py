"""
FEM Solver Engine
=================
The core implementation of the magnetostatic analysis.

Why is this file needed?
------------------------
1. Pre-processing (pre): grid, materials, boundary conditions and file input.
2. Analysis (analysis): basis functions, local and global assembly, boundary elimination.
3. Solvers (solvers): incomplete Cholesky preconditioned conjugate gradients.
4. Post-processing (post): element location and evaluation of Az and B.

Note: This package is pure NumPy/SciPy/Numba and performs no console output itself;
results are reported through result sinks.
"""
