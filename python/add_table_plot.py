import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from fixed_point import add_bits, all_encodings, decode_bits, signed_values


def addition_table(NB_total, NB_float):
    """Wrapped sums of every operand pair as signed raw values, indexed by bit pattern."""
    codes = all_encodings(NB_total)
    sums = add_bits(codes[:, None], codes[None, :], NB_total)
    return signed_values(sums, NB_total)


def plot_addition_table(result, path, max_ticks=9):
    """
    Render the modular addition table of a verified format to a PNG file

    Parameters:
    result: VerificationResult of the format to draw; its recorded mismatches are overlaid
    path: output .png path
    max_ticks: number of labelled values per axis
    """
    NB_total, NB_float = result.NB_total, result.NB_float
    codes = all_encodings(NB_total)

    # order operands by value rather than by bit pattern so the wrap shows as a diagonal seam
    order = np.argsort(signed_values(codes, NB_total), kind='stable')
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))

    table = addition_table(NB_total, NB_float)[np.ix_(order, order)]
    reals = decode_bits(codes[order], NB_total, NB_float)
    scale = 2 ** NB_float

    fig, ax = plt.subplots(figsize=(8, 7))
    image = ax.imshow(table / scale, origin='lower', cmap='coolwarm', interpolation='nearest')
    cbar = fig.colorbar(image, ax=ax)
    cbar.set_label('a + b (wrapped)', fontsize=14)

    ticks = np.unique(np.linspace(0, len(order) - 1, min(max_ticks, len(order))).astype(int))
    ax.set_xticks(ticks)
    ax.set_xticklabels([f"{reals[t]:g}" for t in ticks])
    ax.set_yticks(ticks)
    ax.set_yticklabels([f"{reals[t]:g}" for t in ticks])

    if result.mismatches:
        a_idx = np.array([m.a_bits for m in result.mismatches])
        b_idx = np.array([m.b_bits for m in result.mismatches])
        ax.scatter(rank[b_idx], rank[a_idx], marker='x', color='k', s=40,
                   label=f'{result.failure_count} mismatches')
        ax.legend(fontsize=14, loc='upper left')

    ax.set_xlabel('b', fontsize=14)
    ax.set_ylabel('a', fontsize=14)
    status = 'PASS' if result.passed else 'FAIL'
    ax.set_title(f'fixpnt<{NB_total},{NB_float}> modular addition: {status}', fontsize=14)

    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path
