"""
Pure vector helpers: magnitude, normalization, cosine similarity,
sign quantization and Hamming distance. No I/O.

normalize and cosine_similarity are total: zero or mismatched inputs are
handled with an epsilon floor or a zero similarity instead of raising.
"""

from typing import Optional, Sequence, Union
import numpy as np

from ..core.errors import ValidationError

DEFAULT_EPSILON = 1e-10

VectorLike = Union[Sequence[float], np.ndarray]


def as_vector(vector: VectorLike) -> np.ndarray:
    """Coerce a sequence of floats to a 1-D float64 array."""
    return np.asarray(vector, dtype=np.float64).reshape(-1)


def magnitude(vector: VectorLike) -> float:
    """L2 norm of a vector.

    Components are scaled by the largest absolute value first so the sum
    of squares does not overflow for very large inputs.
    """
    v = as_vector(vector)
    if len(v) == 0:
        return 0.0
    scale = np.max(np.abs(v))
    if scale == 0 or not np.isfinite(scale):
        return float(np.linalg.norm(v))
    return float(scale * np.linalg.norm(v / scale))


def dot_product(vector_a: VectorLike, vector_b: VectorLike) -> float:
    """Dot product over the shared leading components."""
    a = as_vector(vector_a)
    b = as_vector(vector_b)
    size = min(len(a), len(b))
    return float(np.dot(a[:size], b[:size]))


def normalize(vector: VectorLike, vector_magnitude: Optional[float] = None,
              epsilon: float = DEFAULT_EPSILON) -> np.ndarray:
    """Scale a vector to unit length.

    The magnitude is computed when not supplied (or supplied as zero).
    A zero magnitude is replaced with epsilon so the call never fails.
    """
    v = as_vector(vector)
    if not vector_magnitude:
        vector_magnitude = magnitude(v)
    if vector_magnitude == 0:
        vector_magnitude = epsilon
    return v / vector_magnitude


def cosine_similarity(vector_a: VectorLike, vector_b: VectorLike) -> float:
    """Cosine similarity; 0.0 on dimension mismatch or a zero-magnitude input."""
    a = as_vector(vector_a)
    b = as_vector(vector_b)
    if len(a) != len(b):
        return 0.0

    magnitude_a = magnitude(a)
    magnitude_b = magnitude(b)
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    return float(np.dot(a / magnitude_a, b / magnitude_b))


def code_length(dimension: int) -> int:
    """Hex characters in the binary code of a vector with the given dimension."""
    return ((dimension + 7) // 8) * 2


def quantize(normalized_vector: VectorLike) -> str:
    """Pack the sign bits of a vector into an uppercase hex string.

    Bit i is 1 iff component i is positive. Bits are packed most significant
    first and the bit string is zero-padded on the left to whole bytes.
    """
    v = as_vector(normalized_vector)
    bits = (v > 0).astype(np.uint8)
    padding = (-len(bits)) % 8
    if padding:
        bits = np.concatenate([np.zeros(padding, dtype=np.uint8), bits])
    return np.packbits(bits).tobytes().hex().upper()


def _code_bytes(code: Union[str, bytes]) -> bytes:
    if isinstance(code, (bytes, bytearray)):
        return bytes(code)
    try:
        return bytes.fromhex(code)
    except ValueError as e:
        raise ValidationError(f"Invalid binary code {code!r}: {e}") from e


def hamming_distance(code_a: Union[str, bytes], code_b: Union[str, bytes]) -> int:
    """Number of differing bits between two equal-length binary codes."""
    a = _code_bytes(code_a)
    b = _code_bytes(code_b)
    if len(a) != len(b):
        raise ValidationError(
            f"Binary code length mismatch: {len(a)} bytes vs {len(b)} bytes"
        )
    if not a:
        return 0

    xor = np.bitwise_xor(np.frombuffer(a, dtype=np.uint8), np.frombuffer(b, dtype=np.uint8))
    return int(np.unpackbits(xor).sum())


def prefix(vector: VectorLike, dimension: int) -> np.ndarray:
    """First `dimension` components of a vector."""
    return as_vector(vector)[:dimension]
