from chronos.grid import UNNAMED_TASK, group_entries

from conftest import entry


def test_group_entries_sums_same_day_and_keeps_latest_id(march):
    entries = [
        entry('a', 'Build', 5, 30, hour=9),
        entry('b', 'Build', 5, 60, hour=14),
        entry('c', 'Build', 6, 45),
        entry('d', 'Review', 5, 15),
    ]
    matrix, remote, names = group_entries(entries, march)
    assert names == ['Build', 'Review']
    assert matrix['Build'] == {5: 5400, 6: 2700}
    assert remote['Build'][5] == 'b'
    assert remote['Build'][6] == 'c'
    assert matrix['Review'] == {5: 900}


def test_group_entries_latest_id_independent_of_input_order(march):
    entries = [entry('late', 'Build', 5, 30, hour=15), entry('early', 'Build', 5, 30, hour=8)]
    _, remote, _ = group_entries(entries, march)
    assert remote['Build'][5] == 'late'


def test_group_entries_skips_running_and_out_of_month(march):
    entries = [
        entry('run', 'Build', 5, 0, running=True),
        entry('feb', 'Old', 28, 60, month=(2024, 2)),
        entry('ok', '', 7, 60),
    ]
    matrix, remote, names = group_entries(entries, march)
    assert names == [UNNAMED_TASK]
    assert matrix == {UNNAMED_TASK: {7: 3600}}
    assert remote == {UNNAMED_TASK: {7: 'ok'}}


def test_group_entries_is_idempotent(march):
    entries = [entry('a', 'Build', 5, 30), entry('b', 'Build', 5, 60, hour=12), entry('c', 'Zeta', 1, 10)]
    assert group_entries(entries, march) == group_entries(list(entries), march)


def test_group_entries_empty_month(march):
    assert group_entries([], march) == ({}, {}, [])
