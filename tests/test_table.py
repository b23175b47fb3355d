from chronos.models import CellPosition, EditMode, ReportMonth
from chronos.table import (
    DAY_COLUMN_WIDTH,
    FIXED_WIDTH,
    TASK_COLUMN_WIDTH,
    _display_width,
    _pad_display,
    _sanitize_cell_text,
    _truncate,
    build_table,
    day_columns_for_width,
)

MARCH = ReportMonth(2024, 3)


def _day_cells(line, count):
    tail = line.split('│', 1)[1][1:]
    return [tail[i * DAY_COLUMN_WIDTH:(i + 1) * DAY_COLUMN_WIDTH].strip() for i in range(count)]


def test_cell_helpers_handle_unicode():
    assert _sanitize_cell_text('line1\nline2\tx') == 'line1 line2 x'
    assert _sanitize_cell_text(None) == ''

    truncated = _truncate('你好世界abc', 6)
    assert truncated.endswith('…')
    assert _display_width(truncated) <= 6

    assert _pad_display('abc', 6, align='right') == '   abc'
    assert _pad_display('你', 4).startswith('你')
    assert _display_width(_pad_display('你', 4)) == 4
    assert _pad_display('1234567890', 6, align='right') == '…67890'


def test_header_rows_show_days_and_weekdays():
    lines = build_table({}, [], MARCH, CellPosition()).splitlines()
    assert lines[0][TASK_COLUMN_WIDTH:TASK_COLUMN_WIDTH + DAY_COLUMN_WIDTH].strip() == 'Total'
    assert lines[1].startswith('Task')
    assert _day_cells(lines[0], 3) == ['1', '2', '3']
    assert _day_cells(lines[1], 4) == ['Fri', 'Sat', 'Sun', 'Mon']
    assert set(lines[2]) <= {'─', '┼'}


def test_empty_month_renders_placeholders_and_zero_totals():
    lines = build_table({}, [], MARCH, CellPosition()).splitlines()
    assert len(lines) == 5  # two headers, separator, separator, TOTAL
    total = lines[-1]
    assert total.startswith('TOTAL')
    assert total[TASK_COLUMN_WIDTH:TASK_COLUMN_WIDTH + DAY_COLUMN_WIDTH].strip() == '-'
    assert _day_cells(total, 4) == ['-', 'x', 'x', '-']


def test_rows_show_durations_selection_and_totals():
    matrix = {'Build': {1: 5400, 4: 1800}, 'Review': {1: 900}}
    lines = build_table(matrix, ['Build', 'Review'], MARCH, CellPosition(1, 0)).splitlines()
    build, review, total = lines[3], lines[4], lines[-1]
    assert build.startswith('Build')
    assert build[TASK_COLUMN_WIDTH:TASK_COLUMN_WIDTH + DAY_COLUMN_WIDTH].strip() == '2h'
    assert _day_cells(build, 4) == ['1h30m', 'x', 'x', '30m']
    assert _day_cells(review, 2) == ['>15m<', 'x']
    assert _day_cells(total, 4) == ['1h45m', 'x', 'x', '30m']
    assert total[TASK_COLUMN_WIDTH:TASK_COLUMN_WIDTH + DAY_COLUMN_WIDTH].strip() == '2h15m'


def test_selected_empty_cell_is_marked():
    lines = build_table({'Build': {}}, ['Build'], MARCH, CellPosition(0, 1)).splitlines()
    assert _day_cells(lines[3], 3) == ['-', '>x<', 'x']


def test_edit_buffer_replaces_selected_cell():
    matrix = {'Build': {5: 3600}}
    lines = build_table(matrix, ['Build'], MARCH, CellPosition(0, 4), EditMode.EDITING, '2h3').splitlines()
    assert _day_cells(lines[3], 5)[4] == '[2h3]'


def test_long_task_names_are_truncated_to_column():
    name = 'A' * 60
    row = build_table({name: {}}, [name], MARCH, CellPosition()).splitlines()[3]
    assert row[:TASK_COLUMN_WIDTH].endswith('…')
    assert row[TASK_COLUMN_WIDTH:TASK_COLUMN_WIDTH + DAY_COLUMN_WIDTH].strip() == '-'


def test_day_window_keeps_month_totals():
    matrix = {'Build': {1: 3600, 20: 1800}}
    lines = build_table(matrix, ['Build'], MARCH, CellPosition(0, 19), first_day=18, day_count=3).splitlines()
    assert _day_cells(lines[0], 3) == ['19', '20', '21']
    assert _day_cells(lines[3], 3) == ['-', '>30m<', '-']
    assert lines[3][TASK_COLUMN_WIDTH:TASK_COLUMN_WIDTH + DAY_COLUMN_WIDTH].strip() == '1h30m'
    assert len(lines[3]) == FIXED_WIDTH + 3 * DAY_COLUMN_WIDTH


def test_day_columns_for_width():
    assert day_columns_for_width(FIXED_WIDTH + 10 * DAY_COLUMN_WIDTH) == 10
    assert day_columns_for_width(FIXED_WIDTH + 10 * DAY_COLUMN_WIDTH + 7) == 10
    assert day_columns_for_width(10) == 1
