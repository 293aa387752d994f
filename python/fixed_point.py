import math
import numbers
from fractions import Fraction
from typing import NamedTuple

import numpy as np

ROUNDING_MODES = ('round_even', 'round', 'trunc')
OVERFLOW_MODES = ('wrap', 'throw')

# the array codec works on uint64 words and needs one spare bit for the signed view
ARRAY_MAX_BITS = 62


class FixedPointError(Exception):
    """Base class for fixed-point failures."""


class ConfigurationError(FixedPointError, ValueError):
    """Invalid (NB_total, NB_float) pair, mode selector, or mixed-format operation."""


class ArithmeticOverflow(FixedPointError, OverflowError):
    """Exact result does not fit the signed range while overflow='throw'."""


class AddResult(NamedTuple):
    value: 'FixedPointValue'
    overflow: bool


def check_configuration(NB_total, NB_float):
    if isinstance(NB_total, bool) or not isinstance(NB_total, numbers.Integral):
        raise ConfigurationError(f"NB_total must be an integer, got {NB_total!r}")
    if isinstance(NB_float, bool) or not isinstance(NB_float, numbers.Integral):
        raise ConfigurationError(f"NB_float must be an integer, got {NB_float!r}")
    if NB_total < 1:
        raise ConfigurationError(f"NB_total must be at least 1, got {NB_total}")
    if NB_float < 0 or NB_float > NB_total:
        raise ConfigurationError(
            f"NB_float must lie in [0, NB_total={NB_total}], got {NB_float}"
        )


def _check_array_configuration(NB_total, NB_float):
    check_configuration(NB_total, NB_float)
    if NB_total > ARRAY_MAX_BITS:
        raise ConfigurationError(
            f"array codec supports at most {ARRAY_MAX_BITS} bits, got {NB_total}"
        )


class FixedPointValue:
    def __init__(self, NB_total, NB_float, value=0, rounding='round_even', overflow='wrap'):
        check_configuration(NB_total, NB_float)
        if rounding not in ROUNDING_MODES:
            raise ConfigurationError(f"Unsupported rounding mode: {rounding}")
        if overflow not in OVERFLOW_MODES:
            raise ConfigurationError(f"Unsupported overflow mode: {overflow}")

        self.NB_total = int(NB_total)
        self.NB_float = int(NB_float)
        self.NB_int = self.NB_total - self.NB_float
        self.rounding = rounding
        self.overflow = overflow
        self.scale = 2 ** self.NB_float
        self.mask = (1 << self.NB_total) - 1

        self.max_value = (1 << (self.NB_total - 1)) - 1
        self.min_value = -(1 << (self.NB_total - 1))

        self._bits = self._convert(value)

    # alternate constructors

    @classmethod
    def from_real(cls, NB_total, NB_float, x, **cfg):
        if isinstance(x, numbers.Integral):
            x = float(x)
        return cls(NB_total, NB_float, x, **cfg)

    @classmethod
    def from_bits(cls, NB_total, NB_float, bits, **cfg):
        fp = cls(NB_total, NB_float, 0, **cfg)
        fp._bits = int(bits) & fp.mask
        return fp

    @classmethod
    def from_binary(cls, NB_total, NB_float, bin_str, **cfg):
        bin_str = bin_str.strip()
        if len(bin_str) != NB_total or set(bin_str) - {'0', '1'}:
            raise ValueError(f"Expected {NB_total} binary digits, got {bin_str!r}")
        return cls.from_bits(NB_total, NB_float, int(bin_str, 2), **cfg)

    # conversion

    def _round(self, value):
        """Round a scaled float to an integer; only exact halves consult the tie-break rule."""
        floor = math.floor(value)
        if self.rounding == 'trunc':
            return floor
        fract = value - floor
        if fract > 0.5:
            return floor + 1
        if fract < 0.5:
            return floor
        if self.rounding == 'round_even':
            return floor if floor % 2 == 0 else floor + 1
        # round half away from zero
        return floor + 1 if value > 0 else floor

    def _convert(self, value):
        if isinstance(value, numbers.Integral):
            fixed_val = int(value) << self.NB_float
        else:
            value = float(value)
            if not math.isfinite(value):
                raise ValueError(f"Cannot encode non-finite value {value!r}")
            fixed_val = self._round(math.ldexp(value, self.NB_float))
        return fixed_val & self.mask

    def _with_bits(self, bits):
        fp = FixedPointValue(self.NB_total, self.NB_float, 0,
                             rounding=self.rounding, overflow=self.overflow)
        fp._bits = bits & fp.mask
        return fp

    def _coerce(self, other):
        if isinstance(other, FixedPointValue):
            if (other.NB_total, other.NB_float) != (self.NB_total, self.NB_float):
                raise ConfigurationError(
                    f"Mixed formats: fixpnt<{self.NB_total},{self.NB_float}> and "
                    f"fixpnt<{other.NB_total},{other.NB_float}>"
                )
            return other
        if isinstance(other, numbers.Real):
            return FixedPointValue(self.NB_total, self.NB_float, other,
                                   rounding=self.rounding, overflow=self.overflow)
        return None

    @property
    def bits(self):
        return self._bits

    @property
    def value(self):
        """Signed two's-complement interpretation of the bit pattern."""
        if self._bits >> (self.NB_total - 1):
            return self._bits - (1 << self.NB_total)
        return self._bits

    def to_float(self):
        return math.ldexp(float(self.value), -self.NB_float)

    def __float__(self):
        return self.to_float()

    # arithmetic

    def add_checked(self, other):
        operand = self._coerce(other)
        if operand is None:
            raise TypeError(f"Cannot add FixedPointValue and {type(other).__name__}")
        exact = self.value + operand.value
        overflow = exact > self.max_value or exact < self.min_value
        return AddResult(self._with_bits(exact), overflow)

    def add(self, other):
        operand = self._coerce(other)
        if operand is None:
            raise TypeError(f"Cannot add FixedPointValue and {type(other).__name__}")
        result = self.add_checked(operand)
        if result.overflow and self.overflow == 'throw':
            raise ArithmeticOverflow(
                f"{self.to_float()} + {operand.to_float()} overflows "
                f"fixpnt<{self.NB_total},{self.NB_float}>"
            )
        return result.value

    def __add__(self, other):
        if not isinstance(other, (FixedPointValue, numbers.Real)):
            return NotImplemented
        return self.add(other)

    def __radd__(self, other):
        return self.__add__(other)

    # comparison

    def equals(self, other):
        """Bitwise equality; a plain number is first converted with this value's format."""
        other = self._coerce(other)
        return other is not None and other._bits == self._bits

    def __eq__(self, other):
        if not isinstance(other, FixedPointValue):
            return NotImplemented
        return ((self.NB_total, self.NB_float, self._bits) ==
                (other.NB_total, other.NB_float, other._bits))

    def __hash__(self):
        return hash((self.NB_total, self.NB_float, self._bits))

    def _ordering_operands(self, other):
        # plain reals are compared exactly, never rounded or wrapped into the format
        if isinstance(other, FixedPointValue):
            other = self._coerce(other)
            return self.value, other.value
        if isinstance(other, numbers.Integral):
            return Fraction(self.value, self.scale), int(other)
        if isinstance(other, numbers.Real):
            return Fraction(self.value, self.scale), float(other)
        return None

    def __lt__(self, other):
        operands = self._ordering_operands(other)
        if operands is None:
            return NotImplemented
        return operands[0] < operands[1]

    def __le__(self, other):
        operands = self._ordering_operands(other)
        if operands is None:
            return NotImplemented
        return operands[0] <= operands[1]

    def __gt__(self, other):
        operands = self._ordering_operands(other)
        if operands is None:
            return NotImplemented
        return operands[0] > operands[1]

    def __ge__(self, other):
        operands = self._ordering_operands(other)
        if operands is None:
            return NotImplemented
        return operands[0] >= operands[1]

    # display

    def to_hex(self):
        hex_digits = (self.NB_total + 3) // 4
        return f"0x{self._bits:0{hex_digits}X}"

    def to_binary(self):
        return bin(self._bits)[2:].zfill(self.NB_total)

    def __repr__(self):
        return f"<{self.to_binary()} {self.value} ({self.to_float()}) S({self.NB_int},{self.NB_float})>"

    def __str__(self):
        return str(self.to_float())

    def show_range(self):
        min_val = math.ldexp(self.min_value, -self.NB_float)
        max_val = math.ldexp(self.max_value, -self.NB_float)
        print(f"S({self.NB_int},{self.NB_float}): {min_val} to {max_val}")


# Vectorized codec over numpy arrays of bit patterns (np.uint64).

def all_encodings(NB_total):
    _check_array_configuration(NB_total, 0)
    return np.arange(1 << NB_total, dtype=np.uint64)


def signed_values(bits, NB_total):
    """Signed two's-complement view of W-bit patterns as int64."""
    bits = np.asarray(bits, dtype=np.uint64) & np.uint64((1 << NB_total) - 1)
    signed = bits.astype(np.int64)
    return np.where(signed >= (1 << (NB_total - 1)), signed - (1 << NB_total), signed)


def encode_reals(x, NB_total, NB_float, rounding='round_even'):
    """Encode real values into W-bit two's-complement patterns.

    Same rounding and wrap-around rules as ``FixedPointValue.from_real``:
    scale by ``2**NB_float``, round, then reduce modulo ``2**NB_total``.
    """
    _check_array_configuration(NB_total, NB_float)
    if rounding not in ROUNDING_MODES:
        raise ConfigurationError(f"Unsupported rounding mode: {rounding}")

    arr = np.asarray(x, dtype=np.float64)
    if not np.all(np.isfinite(arr)):
        raise ValueError("Cannot encode non-finite values")

    scaled = np.ldexp(arr, NB_float)
    fixed = np.floor(scaled)
    if rounding != 'trunc':
        fract = scaled - fixed
        tie = fract == 0.5
        if rounding == 'round_even':
            up = (fract > 0.5) | (tie & (np.fmod(fixed, 2.0) != 0))
        else:
            up = (fract > 0.5) | (tie & (scaled > 0))
        fixed = fixed + up

    # fmod is exact and keeps |r| < 2**NB_total, so the int64 cast is lossless
    wrapped = np.fmod(fixed, float(1 << NB_total)).astype(np.int64)
    return wrapped.astype(np.uint64) & np.uint64((1 << NB_total) - 1)


def decode_bits(bits, NB_total, NB_float):
    _check_array_configuration(NB_total, NB_float)
    return np.ldexp(signed_values(bits, NB_total).astype(np.float64), -NB_float)


def add_bits(a_bits, b_bits, NB_total):
    """Modular addition of W-bit patterns; carries beyond bit W are discarded."""
    _check_array_configuration(NB_total, 0)
    a = np.asarray(a_bits, dtype=np.uint64)
    b = np.asarray(b_bits, dtype=np.uint64)
    return (a + b) & np.uint64((1 << NB_total) - 1)
