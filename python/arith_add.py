# arith_add.py: functional tests for fixed-point modular addition
# Runs the exhaustive verifier over a table of fixpnt<NB_total, NB_float> formats
# and turns the aggregated failure count into the process exit status.

import argparse
import os
import sys

from fixed_point import FixedPointError
from verify_add import (
    ENGINES,
    TestConfiguration,
    generate_test_case,
    report_test_result,
    run_suite,
    trace_conversion,
    type_tag,
)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

TAG = "modular addition failed: "

DEFAULT_FORMATS = (
    [(4, f) for f in range(5)]
    + [(8, f) for f in range(9)]
    + [(10, 3), (10, 5), (10, 7)]
)

STRESS_FORMATS = [
    (11, 3), (11, 5), (11, 7),
    (12, 0), (12, 4), (12, 8), (12, 12),
]

MANUAL_FORMATS = [(4, f) for f in range(5)]

# (NB_total, NB_float, a, b) traced one at a time in manual mode
MANUAL_TRACES = [
    (8, 4, 0.5, 1.0),
    (4, 1, 0, 2),
]

# (NB_total, NB_float, x) conversions whose encodings are shown in manual mode
MANUAL_CONVERSIONS = [
    (8, 4, 3.5),
    (8, 0, 4),
    (8, 4, 4.125),
]


def build_configurations(formats, tag=TAG, verbose=False):
    return [TestConfiguration(nbits, rbits, tag, verbose) for nbits, rbits in formats]


def parse_format(text):
    try:
        nbits, rbits = (int(part) for part in text.split(','))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected NB_total,NB_float, got {text!r}")
    return nbits, rbits


def positive_int(text):
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {text!r}")
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Fixed-point modular addition validation")
    parser.add_argument('--stress', action='store_true', help="append the 11- and 12-bit stress formats")
    parser.add_argument('--manual', action='store_true', help="trace individual cases and run the 4-bit formats verbosely")
    parser.add_argument('-v', '--verbose', action='store_true', help="print every failing operand pair")
    parser.add_argument('--config', dest='formats', action='append', type=parse_format, metavar='W,F',
                        help="verify only this format (repeatable)")
    parser.add_argument('--engine', choices=ENGINES, default='scalar')
    parser.add_argument('--budget', type=positive_int, default=None, help="sample this many pairs when a format has more")
    parser.add_argument('--seed', type=int, default=0)
    parser.add_argument('--jobs', type=int, default=1, help="verify formats in parallel processes")
    parser.add_argument('--plot', metavar='DIR', default=None, help="write an addition-table PNG per format")
    return parser.parse_args(argv)


def select_configurations(args):
    if args.manual:
        return build_configurations(MANUAL_FORMATS, "Manual Testing", True)
    if args.formats:
        formats = list(args.formats)
    else:
        formats = list(DEFAULT_FORMATS)
        if args.stress:
            formats += STRESS_FORMATS
    return build_configurations(formats, TAG, args.verbose)


def run(args):
    nr_failed = 0

    if args.manual:
        for nbits, rbits, x in MANUAL_CONVERSIONS:
            if not trace_conversion(nbits, rbits, x):
                nr_failed += 1
        for nbits, rbits, a, b in MANUAL_TRACES:
            if not generate_test_case(nbits, rbits, a, b):
                nr_failed += 1

    print("Fixed-point modular addition validation")

    configurations = select_configurations(args)
    results = run_suite(configurations, jobs=args.jobs, engine=args.engine,
                        budget=args.budget, seed=args.seed)

    for result in results:
        nr_failed += report_test_result(result, type_tag(result.NB_total, result.NB_float), "addition")

    if args.plot:
        # imported late: matplotlib is only needed when plots are requested
        from add_table_plot import plot_addition_table
        os.makedirs(args.plot, exist_ok=True)
        for result in results:
            if result.error is None:
                path = os.path.join(args.plot, f"fixpnt_{result.NB_total}_{result.NB_float}_add.png")
                plot_addition_table(result, path)
                print(f"Wrote {path}")

    return EXIT_FAILURE if nr_failed > 0 else EXIT_SUCCESS


def main(argv=None):
    args = parse_args(argv)
    try:
        return run(args)
    except FixedPointError as err:
        print(f"Uncaught fixpnt arithmetic exception: {err}", file=sys.stderr)
        return EXIT_FAILURE
    except Exception as err:
        print(f"Caught unknown exception: {err!r}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
