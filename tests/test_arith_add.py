import pytest

import arith_add
from fixed_point import ArithmeticOverflow


def test_default_format_table():
    formats = arith_add.DEFAULT_FORMATS
    assert formats[:5] == [(4, 0), (4, 1), (4, 2), (4, 3), (4, 4)]
    assert (8, 8) in formats
    assert formats[-3:] == [(10, 3), (10, 5), (10, 7)]
    assert len(formats) == 17
    assert (12, 12) in arith_add.STRESS_FORMATS


def test_select_configurations():
    args = arith_add.parse_args(['--stress'])
    configs = arith_add.select_configurations(args)
    assert len(configs) == 17 + 7
    assert all(c.label == arith_add.TAG and not c.verbose for c in configs)

    args = arith_add.parse_args(['--config', '6,2', '-v'])
    assert arith_add.select_configurations(args) == [arith_add.TestConfiguration(6, 2, arith_add.TAG, True)]


def test_clean_run_exits_zero(capsys):
    assert arith_add.main(['--config', '4,1', '--config', '8,4']) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "Fixed-point modular addition validation",
        "fixpnt<4,1> addition PASS",
        "fixpnt<8,4> addition PASS",
    ]


def test_numpy_engine_with_budget(capsys):
    assert arith_add.main(['--config', '10,5', '--engine', 'numpy', '--budget', '5000']) == 0
    assert "fixpnt<10,5> addition PASS" in capsys.readouterr().out


def test_bad_format_fails_without_aborting_the_rest(capsys):
    assert arith_add.main(['--config', '4,5', '--config', '4,1']) == 1
    out = capsys.readouterr().out
    assert "fixpnt<4,5> addition FAIL" in out
    assert "fixpnt<4,1> addition PASS" in out


def test_unparseable_format_is_a_usage_error():
    with pytest.raises(SystemExit):
        arith_add.parse_args(['--config', '4'])


@pytest.mark.parametrize("budget", ["0", "-3", "many"])
def test_budget_must_be_a_positive_integer(budget):
    with pytest.raises(SystemExit):
        arith_add.parse_args(['--config', '8,4', '--budget', budget])
    assert arith_add.parse_args(['--budget', '1']).budget == 1


def test_fixed_point_error_is_reported(monkeypatch, capsys):
    def boom(*args, **kwargs):
        raise ArithmeticOverflow("3.5 + 3.5 overflows fixpnt<4,1>")

    monkeypatch.setattr(arith_add, 'run_suite', boom)
    assert arith_add.main(['--config', '4,1']) == 1
    assert "Uncaught fixpnt arithmetic exception: 3.5 + 3.5" in capsys.readouterr().err


def test_unknown_fault_is_reported(monkeypatch, capsys):
    def boom(*args, **kwargs):
        raise RuntimeError("worker died")

    monkeypatch.setattr(arith_add, 'run_suite', boom)
    assert arith_add.main(['--config', '4,1']) == 1
    assert "Caught unknown exception" in capsys.readouterr().err


def test_manual_mode(capsys):
    assert arith_add.main(['--manual']) == 0
    out = capsys.readouterr().out
    assert "0.5 + 1.0 = 1.5 (reference: 1.5)" in out
    assert "0.0 + 2.0 = 2.0 (reference: 2.0)" in out
    assert "fixpnt<8,4> = 3.5: 00111000 0x38 -> 3.5   PASS" in out
    assert "fixpnt<8,0> = 4: 00000100 0x04 -> 4.0   PASS" in out
    assert "fixpnt<8,4> = 4.125: 01000010 0x42 -> 4.125   PASS" in out
    for f in range(5):
        assert f"fixpnt<4,{f}> addition PASS" in out


def test_plot_option_writes_one_png_per_format(tmp_path, capsys):
    assert arith_add.main(['--config', '4,1', '--config', '4,9', '--plot', str(tmp_path)]) == 1
    assert sorted(p.name for p in tmp_path.iterdir()) == ['fixpnt_4_1_add.png']
