"""
Exhaustive verification of fixed-point modular addition.

Every pair of W-bit encodings is added with FixedPointValue and compared against
a reference built independently: the two operands are summed as native floats
(exact for the small widths exercised here) and the sum is converted back into
the fixed-point domain, where the conversion applies the same wrap-around rule.
"""

import concurrent.futures
import functools
from typing import List, NamedTuple, Optional

import numpy as np

from fixed_point import (
    ConfigurationError,
    FixedPointValue,
    add_bits,
    all_encodings,
    check_configuration,
    decode_bits,
    encode_reals,
)

ENGINES = ('scalar', 'numpy')


class TestConfiguration(NamedTuple):
    NB_total: int
    NB_float: int
    label: str = "modular addition failed: "
    verbose: bool = False


class Mismatch(NamedTuple):
    a_bits: int
    b_bits: int
    result_bits: int
    reference_bits: int
    a_real: float
    b_real: float
    result_real: float
    reference_real: float


class VerificationResult(NamedTuple):
    label: str
    operation: str
    NB_total: int
    NB_float: int
    failure_count: int
    pairs_checked: int
    mismatches: List[Mismatch]
    error: Optional[str] = None

    @property
    def passed(self):
        return self.failure_count == 0 and self.error is None


def type_tag(NB_total, NB_float):
    return f"fixpnt<{NB_total},{NB_float}>"


def _binary(bits, NB_total):
    return bin(int(bits))[2:].zfill(NB_total)


def _operand_rows(nr_values, budget, seed):
    """Yield (i, js) rows of operand-pair indices.

    Full enumeration unless a budget smaller than the pair count is given, in which
    case exactly ``budget`` pairs are drawn uniformly at random.
    """
    if budget is None or nr_values * nr_values <= budget:
        js = np.arange(nr_values)
        for i in range(nr_values):
            yield i, js
        return

    rng = np.random.default_rng(seed)
    pairs = rng.integers(0, nr_values, size=(budget, 2))
    pairs = pairs[np.argsort(pairs[:, 0], kind='stable')]
    rows, starts = np.unique(pairs[:, 0], return_index=True)
    for i, js in zip(rows, np.split(pairs[:, 1], starts[1:])):
        yield int(i), js


def _report_mismatch(label, mismatch, NB_total):
    print(f"{label} {mismatch.a_real!r:>12} + {mismatch.b_real!r:>12} "
          f"!= {mismatch.reference_real!r:>12} instead it yielded {mismatch.result_real!r:>12} "
          f"{_binary(mismatch.reference_bits, NB_total)} vs {_binary(mismatch.result_bits, NB_total)}")


def verify_modular_addition(NB_total, NB_float, label, verbose=False, engine='scalar',
                            budget=None, seed=0, max_recorded=64):
    check_configuration(NB_total, NB_float)
    if engine not in ENGINES:
        raise ConfigurationError(f"Unsupported verification engine: {engine}")
    if budget is not None and budget < 1:
        raise ConfigurationError(f"Sample budget must be a positive pair count, got {budget}")

    nr_values = 1 << NB_total
    failure_count = 0
    pairs_checked = 0
    mismatches = []

    def record(i, j, result_bits, reference_bits):
        nonlocal failure_count
        failure_count += 1
        mismatch = Mismatch(
            i, j, int(result_bits), int(reference_bits),
            float(FixedPointValue.from_bits(NB_total, NB_float, i)),
            float(FixedPointValue.from_bits(NB_total, NB_float, j)),
            float(FixedPointValue.from_bits(NB_total, NB_float, result_bits)),
            float(FixedPointValue.from_bits(NB_total, NB_float, reference_bits)),
        )
        if len(mismatches) < max_recorded:
            mismatches.append(mismatch)
        if verbose:
            _report_mismatch(label, mismatch, NB_total)

    if engine == 'scalar':
        reals = [FixedPointValue.from_bits(NB_total, NB_float, i).to_float() for i in range(nr_values)]
        operands = [FixedPointValue.from_real(NB_total, NB_float, x) for x in reals]
        for i, js in _operand_rows(nr_values, budget, seed):
            a, ia = operands[i], reals[i]
            for j in js:
                j = int(j)
                result = a + operands[j]
                reference = FixedPointValue.from_real(NB_total, NB_float, ia + reals[j])
                if result != reference:
                    record(i, j, result.bits, reference.bits)
            pairs_checked += len(js)
    else:
        reals = decode_bits(all_encodings(NB_total), NB_total, NB_float)
        operand_bits = encode_reals(reals, NB_total, NB_float)
        for i, js in _operand_rows(nr_values, budget, seed):
            result_row = add_bits(operand_bits[i], operand_bits[js], NB_total)
            reference_row = encode_reals(reals[i] + reals[js], NB_total, NB_float)
            for k in np.nonzero(result_row != reference_row)[0]:
                record(i, int(js[k]), result_row[k], reference_row[k])
            pairs_checked += len(js)

    return VerificationResult(label, "addition", NB_total, NB_float,
                              failure_count, pairs_checked, mismatches)


def report_test_result(result, type_tag, op="addition"):
    if result.error is not None:
        print(f"{type_tag} {op} FAIL {result.error}")
    elif result.failure_count > 0:
        print(f"{type_tag} {op} FAIL {result.failure_count} failed test cases")
    else:
        print(f"{type_tag} {op} PASS")
    return result.failure_count


def generate_test_case(NB_total, NB_float, a, b):
    """Trace a single addition next to its native reference; returns True on agreement."""
    ref = a + b
    fa = FixedPointValue(NB_total, NB_float, a)
    fb = FixedPointValue(NB_total, NB_float, b)
    result = fa + fb
    cref = FixedPointValue(NB_total, NB_float, ref)
    passed = cref == result
    print(f"{a!r:>{NB_total}} + {b!r:>{NB_total}} = {ref!r:>{NB_total}}")
    print(f"{fa} + {fb} = {result} (reference: {cref})   {'PASS' if passed else 'FAIL'}")
    print()
    return passed


def trace_conversion(NB_total, NB_float, x):
    """Show the encoding of a single value; returns True when the value is represented exactly."""
    fp = FixedPointValue(NB_total, NB_float, x)
    exact = fp.to_float() == x
    print(f"{type_tag(NB_total, NB_float)} = {x!r}: {fp.to_binary()} {fp.to_hex()} -> {fp}   {'PASS' if exact else 'FAIL'}")
    return exact


def run_configuration(config, engine='scalar', budget=None, seed=0, max_recorded=64):
    try:
        return verify_modular_addition(config.NB_total, config.NB_float, config.label,
                                       config.verbose, engine=engine, budget=budget,
                                       seed=seed, max_recorded=max_recorded)
    except ConfigurationError as err:
        return VerificationResult(config.label, "addition", config.NB_total, config.NB_float,
                                  1, 0, [], str(err))


def run_suite(configurations, jobs=1, **opts):
    run = functools.partial(run_configuration, **opts)
    if jobs <= 1:
        return [run(config) for config in configurations]
    with concurrent.futures.ProcessPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(run, configurations))
