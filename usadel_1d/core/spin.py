"""2x2 complex matrix algebra in spin space.

SpinMatrix wraps a complex array of shape (..., 2, 2). The leading axes are
batch axes: the diffusion equation is evaluated on a whole collocation mesh
at once, so every operation broadcasts over them. A plain 2x2 matrix is
simply the unbatched case.

Import Policy:
    from usadel_1d.core.spin import SpinMatrix, PAULI0, PAULI1, PAULI2, PAULI3

DO NOT use: from usadel_1d.core.spin import *
"""

from __future__ import annotations

from typing import Optional, Union

import numpy as np

from usadel_1d.core.constants import DETERMINANT_FLOOR, SPIN_TOLERANCE

Scalar = Union[complex, float, int, np.ndarray]


class SingularMatrixError(ArithmeticError):
    """Raised when a spin matrix is too close to singular to invert.

    Attributes:
        energy: Energy point at which the failure occurred (filled in by the
            BVP driver, None when raised directly by the algebra)
    """

    def __init__(self, message: str, energy: Optional[float] = None):
        super().__init__(message)
        self.energy = energy


class SpinMatrix:
    """Complex 2x2 matrix (optionally batched) in spin space.

    Multiplication between two SpinMatrix values is the matrix product.
    Multiplication with a scalar, or with an array of scalars matching the
    batch shape, scales every matrix.

    Attributes:
        matrix: Complex array of shape (..., 2, 2)
    """

    __slots__ = ("matrix",)

    # Make numpy defer to __rmul__ instead of building object arrays
    __array_ufunc__ = None

    def __init__(self, matrix=None):
        if matrix is None:
            matrix = np.zeros((2, 2), dtype=np.complex128)
        arr = np.asarray(matrix, dtype=np.complex128)
        if arr.shape[-2:] != (2, 2):
            raise ValueError(f"SpinMatrix requires shape (..., 2, 2), got {arr.shape}")
        self.matrix = arr

    # ------------------------------------------------------------------
    # Construction and serialization
    # ------------------------------------------------------------------

    @classmethod
    def from_real(cls, values) -> SpinMatrix:
        """Build from 8 reals per matrix (column-major re/im pairs).

        Args:
            values: Real array of shape (..., 8)

        Returns:
            SpinMatrix with batch shape values.shape[:-1]
        """
        values = np.asarray(values, dtype=np.float64)
        if values.shape[-1] != 8:
            raise ValueError(f"Expected 8 reals per spin matrix, got shape {values.shape}")
        entries = values[..., 0::2] + 1j * values[..., 1::2]
        matrix = np.empty(values.shape[:-1] + (2, 2), dtype=np.complex128)
        matrix[..., 0, 0] = entries[..., 0]
        matrix[..., 1, 0] = entries[..., 1]
        matrix[..., 0, 1] = entries[..., 2]
        matrix[..., 1, 1] = entries[..., 3]
        return cls(matrix)

    def to_real(self) -> np.ndarray:
        """Serialize to 8 reals per matrix, inverse of from_real()."""
        m = self.matrix
        entries = np.stack(
            [m[..., 0, 0], m[..., 1, 0], m[..., 0, 1], m[..., 1, 1]], axis=-1
        )
        values = np.empty(m.shape[:-2] + (8,), dtype=np.float64)
        values[..., 0::2] = entries.real
        values[..., 1::2] = entries.imag
        return values

    @property
    def shape(self) -> tuple:
        """Batch shape (empty tuple for a single matrix)."""
        return self.matrix.shape[:-2]

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def __add__(self, other: SpinMatrix) -> SpinMatrix:
        if not isinstance(other, SpinMatrix):
            return NotImplemented
        return SpinMatrix(self.matrix + other.matrix)

    def __sub__(self, other: SpinMatrix) -> SpinMatrix:
        if not isinstance(other, SpinMatrix):
            return NotImplemented
        return SpinMatrix(self.matrix - other.matrix)

    def __neg__(self) -> SpinMatrix:
        return SpinMatrix(-self.matrix)

    def __mul__(self, other) -> SpinMatrix:
        if isinstance(other, SpinMatrix):
            return SpinMatrix(self.matrix @ other.matrix)
        return SpinMatrix(_as_factor(other) * self.matrix)

    def __rmul__(self, other) -> SpinMatrix:
        return SpinMatrix(_as_factor(other) * self.matrix)

    def __matmul__(self, other: SpinMatrix) -> SpinMatrix:
        if not isinstance(other, SpinMatrix):
            return NotImplemented
        return SpinMatrix(self.matrix @ other.matrix)

    def __truediv__(self, other) -> SpinMatrix:
        return SpinMatrix(self.matrix / _as_factor(other))

    def scale(self, factor: Scalar) -> SpinMatrix:
        return factor * self

    # ------------------------------------------------------------------
    # Matrix functions
    # ------------------------------------------------------------------

    def det(self) -> np.ndarray:
        m = self.matrix
        return m[..., 0, 0] * m[..., 1, 1] - m[..., 0, 1] * m[..., 1, 0]

    def trace(self) -> np.ndarray:
        return self.matrix[..., 0, 0] + self.matrix[..., 1, 1]

    def inverse(self) -> SpinMatrix:
        """Closed-form inverse.

        Raises:
            SingularMatrixError: If |det| is below DETERMINANT_FLOOR (or not
                finite) for any matrix in the batch
        """
        det = self.det()
        if not np.all(np.isfinite(det)) or np.any(np.abs(det) < DETERMINANT_FLOOR):
            raise SingularMatrixError(
                f"Spin matrix is singular: min |det| = {np.min(np.abs(det)):.3e}"
            )
        m = self.matrix
        adj = np.empty_like(m)
        adj[..., 0, 0] = m[..., 1, 1]
        adj[..., 1, 1] = m[..., 0, 0]
        adj[..., 0, 1] = -m[..., 0, 1]
        adj[..., 1, 0] = -m[..., 1, 0]
        return SpinMatrix(adj / np.asarray(det)[..., None, None])

    def conjugate(self) -> SpinMatrix:
        """Elementwise complex conjugate (the tilde operation on spin fields)."""
        return SpinMatrix(np.conj(self.matrix))

    def conjugate_transpose(self) -> SpinMatrix:
        return SpinMatrix(np.conj(np.swapaxes(self.matrix, -1, -2)))

    def isclose(self, other: SpinMatrix, atol: float = SPIN_TOLERANCE) -> bool:
        """Equality to an absolute numeric tolerance."""
        return bool(np.allclose(self.matrix, other.matrix, rtol=0.0, atol=atol))

    def norm(self) -> np.ndarray:
        """Frobenius norm per matrix."""
        return np.sqrt(np.sum(np.abs(self.matrix) ** 2, axis=(-2, -1)))

    def __repr__(self) -> str:
        return f"SpinMatrix({self.matrix!r})"


def _as_factor(value) -> np.ndarray:
    """Broadcast a scalar or per-point scalar array against (..., 2, 2)."""
    arr = np.asarray(value)
    if arr.ndim == 0:
        return arr
    return arr[..., None, None]


def commutator(a: SpinMatrix, b: SpinMatrix) -> SpinMatrix:
    """[A, B] = AB - BA"""
    return a * b - b * a


def anticommutator(a: SpinMatrix, b: SpinMatrix) -> SpinMatrix:
    """{A, B} = AB + BA"""
    return a * b + b * a


def spin_vector(vector) -> SpinMatrix:
    """Contract a real 3-vector with the Pauli vector, v·σ."""
    vx, vy, vz = vector
    return vx * PAULI1 + vy * PAULI2 + vz * PAULI3


def _constant(values) -> SpinMatrix:
    matrix = np.array(values, dtype=np.complex128)
    matrix.flags.writeable = False
    return SpinMatrix(matrix)


# Pauli matrices: process-wide immutable constants
PAULI0 = _constant([[1, 0], [0, 1]])
PAULI1 = _constant([[0, 1], [1, 0]])
PAULI2 = _constant([[0, -1j], [1j, 0]])
PAULI3 = _constant([[1, 0], [0, -1]])
PAULI = (PAULI0, PAULI1, PAULI2, PAULI3)
