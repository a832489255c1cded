import pytest

from intbasic.syntax import keyword_pattern, parse, parse_line


def kinds(node):
    return [child.kind for child in node.children]


def statements(line):
    return [child for child in line.children if child.kind == 'statement']


def test_simple_line_shape():
    assert parse_line('10 END').sexp() == '(line (linenum) (statement (statement_end)))'


def test_leaves_keep_source_text_and_points():
    line = parse_line('10 GOTO 100', row=4)
    linenum, statement = line.children
    assert linenum.text == '10 '
    assert linenum.start_point == (4, 0)
    goto, target = statement.children
    assert goto.kind == 'statement_goto'
    assert target.kind == 'integer'
    assert target.text == '100'
    assert target.start_point == (4, 8)
    assert target.end_point == (4, 11)


def test_statements_are_separated():
    line = parse_line('10 GR: COLOR=4')
    assert kinds(line) == ['linenum', 'statement', 'sep_statement', 'statement']
    assert kinds(line.children[3]) == ['statement_coloreq', 'integer']


def test_keywords_may_contain_spaces():
    statement = statements(parse_line('10 G O T O 100'))[0]
    assert statement.children[0].kind == 'statement_goto'
    assert statement.children[0].text == 'G O T O'


def test_keyword_pattern_is_case_insensitive():
    assert keyword_pattern('PRINT').match('pr int')


def test_failed_keyword_statement_reads_as_assignment():
    statement = statements(parse_line('10 NEXTA=1'))[0]
    assignment = statement.children[0]
    assert assignment.kind == 'assignment_int'
    assert kinds(assignment) == ['int_name', 'eq_int', 'integer']
    assert assignment.children[0].text == 'NEXTA'


def test_next_with_variables():
    statement = statements(parse_line('10 NEXT I,J'))[0]
    assert kinds(statement) == ['statement_next', 'int_name', 'sep_next', 'int_name']


def test_let_assignment():
    assignment = statements(parse_line('10 LET X = 2'))[0].children[0]
    assert kinds(assignment) == ['statement_let', 'int_name', 'eq_int', 'integer']


def test_string_element_and_slice():
    assignment = statements(parse_line('10 A$(2) = B$(1,3)'))[0].children[0]
    assert assignment.kind == 'assignment_str'
    target, eq, source = assignment.children
    assert target.kind == 'str_array'
    assert kinds(target) == ['str_name', 'open_str', 'integer', 'close']
    assert eq.kind == 'eq_str'
    assert source.kind == 'str_slice'
    assert kinds(source) == ['str_name', 'open_slice', 'integer', 'sep_slice', 'integer', 'close']


def test_integer_array_in_expression():
    assignment = statements(parse_line('10 X = A(1) + 2'))[0].children[0]
    assert kinds(assignment) == ['int_name', 'eq_int', 'int_array', 'op_plus', 'integer']


def test_expressions_are_flat():
    assignment = statements(parse_line('10 X=-(1+2)*ABS(Y)'))[0].children[0]
    assert kinds(assignment) == [
        'int_name', 'eq_int', 'op_unary_minus', 'open_paren', 'integer', 'op_plus', 'integer', 'close',
        'op_times', 'fcall_abs', 'open_fcall', 'int_name', 'close',
    ]


def test_string_comparison_operators():
    statement = statements(parse_line('10 IF A$ = "Y" THEN 100'))[0]
    assert kinds(statement) == ['statement_if', 'str_name', 'op_eq_str', 'string', 'statement_then_line', 'integer']


def test_then_nests_a_statement():
    statement = statements(parse_line('10 IF X THEN PRINT 1'))[0]
    assert kinds(statement) == ['statement_if', 'int_name', 'statement_then', 'statement']
    assert kinds(statement.children[3]) == ['statement_print_int', 'integer']


def test_print_separators():
    statement = statements(parse_line('10 PRINT A;"B",'))[0]
    assert kinds(statement) == ['statement_print_int', 'int_name', 'semi_print_str', 'string', 'comma_print_null']


def test_input_with_prompt():
    statement = statements(parse_line('10 INPUT "NAME",N$'))[0]
    assert kinds(statement) == ['statement_input_prompt', 'string', 'sep_input_prompt', 'str_name']


def test_dim_list():
    statement = statements(parse_line('10 DIM A$(10),B(5)'))[0]
    assert kinds(statement) == [
        'statement_dim_str', 'str_name', 'open_dim_str', 'integer', 'close',
        'sep_dim', 'int_name', 'open_dim_int', 'integer', 'close',
    ]


def test_list_with_range():
    statement = statements(parse_line('10 LIST 100,200'))[0]
    assert kinds(statement) == ['statement_list_line', 'linenum', 'sep_list', 'linenum']


def test_remark_keeps_everything():
    line = parse_line('10 REM HI: THERE')
    assert kinds(line) == ['linenum', 'statement']
    assert line.children[1].children[1].text == ' HI: THERE'


def test_colon_inside_string_does_not_split():
    line = parse_line('10 PRINT "A:B"')
    assert kinds(line) == ['linenum', 'statement']


def test_error_keeps_partial_statement():
    line = parse_line('10 PRINT (')
    assert line.has_error()
    statement = line.children[1]
    assert kinds(statement) == ['statement_print', 'open_paren', 'ERROR']
    assert statement.children[-1].detail == 'expected expression'


def test_error_only_spans_its_statement():
    line = parse_line('10 GOTO ): END')
    assert kinds(line) == ['linenum', 'statement', 'sep_statement', 'statement']
    assert line.children[1].has_error()
    assert not line.children[3].has_error()


def test_missing_line_number():
    line = parse_line('PRINT 1')
    assert kinds(line) == ['ERROR']
    assert line.children[0].detail == 'expected line number'


@pytest.mark.parametrize('text', ['10 X = 1\n\n20 END\n', '10 X = 1\r\n\r\n20 END\r\n'])
def test_parse_skips_blank_lines(text):
    root = parse(text)
    assert root.kind == 'source_file'
    assert [line.start_point[0] for line in root.children] == [0, 2]


def test_sibling_links():
    line = parse_line('10 X=1')
    linenum, statement = line.children
    assert linenum.next_named_sibling is statement
    assert statement.prev_named_sibling is linenum
    assert statement.next_named_sibling is None
    assert statement.parent is line
