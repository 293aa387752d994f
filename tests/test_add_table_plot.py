import numpy as np

from add_table_plot import addition_table, plot_addition_table
from verify_add import Mismatch, VerificationResult, verify_modular_addition


def test_addition_table_wraps():
    table = addition_table(4, 1)
    assert table.shape == (16, 16)
    assert table[7, 7] == -2
    assert table[8, 8] == 0
    assert np.array_equal(table, table.T)
    assert table.min() == -8 and table.max() == 7


def test_plot_passing_format(tmp_path):
    result = verify_modular_addition(4, 1, "modular addition failed: ")
    path = plot_addition_table(result, str(tmp_path / "fixpnt_4_1_add.png"))
    with open(path, 'rb') as f:
        assert f.read(8) == b'\x89PNG\r\n\x1a\n'


def test_plot_marks_mismatches(tmp_path):
    mismatch = Mismatch(7, 7, 7, 14, 3.5, 3.5, 3.5, -1.0)
    result = VerificationResult("modular addition failed: ", "addition", 4, 1, 1, 256, [mismatch])
    path = tmp_path / "broken.png"
    plot_addition_table(result, str(path))
    assert path.stat().st_size > 0
