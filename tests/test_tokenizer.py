import pytest

from intbasic.detokenizer import detokenize
from intbasic.errors import LineTooLongError
from intbasic.tokenizer import pad_numbers, tokenize


@pytest.mark.parametrize('program, expected', [
    # output statements
    ('10 TEXT\n', '050A004B01'),
    ('10 TEXT\n20 PRINT "HELLO"\n', '050A004B010C14006128C8C5CCCCCF2901'),
    ('10 print A,B,,C;D$;;;E$\n', '130A0062C149C24A49C345C440474745C54001'),
    # expressions
    ('10 X = 1 + 1\n', '0D0A00D871B1010012B1010001'),
    ('10 X = -1\n', '0A0A00D87136B1010001'),
    ('10 X = --1\n', '0B0A00D8713636B1010001'),
    ('10 X = 6*(1 + (X1 + X2)*5)\n', '1B0A00D871B606001438B101001238D8B112D8B27214B505007201'),
    ('10 COLOR = I/2*(I<32)\n', '120A0066C915B202001438C91CB320007201'),
    ('10 X = 6*(abs(X0) + (sgn(X1) + asc(A$))*5)\n',
     '220A00D871B606001438313FD8B0721238303FD8B172123CC140727214B505007201'),
    # graphics
    ('10 gr: color=4\n20 X=5:Y=5\n30 plot X,Y\n40 hlin X+1,X+10 at Y\n50 vlin Y+1,Y+10 at X\n',
     '0A0A004C0366B40400010F1400D871B5050003D971B5050001081E0067D868D90112280069D812B101006AD812B10A'
     '006BD9011232006CD912B101006DD912B10A006ED801'),
    ('10 C = SCRN(X,Y)\n', '0B0A00C3713DD83ED97201'),
    # control
    ('32 X = 32\n', '092000D871B3200001'),
    ('10 gosub 1000: goto 100\n100 end\n1000 return\n', '0D0A005CB1E803035FB1640001056400510105E8035B01'),
    ('10 for i = 1 to LAST: print i: next I\n', '150A0055C956B1010057CCC1D3D40362C90359C901'),
    ('10 if x > y then 1000\n20 if x < y then 1010\n30 if x <> y then 1020\n40 if x = y then 1030\n',
     '0C0A0060D819D924B1E803010C140060D81CD924B1F203010C1E0060D81BD924B1FC03010C280060D816D924B1060401'),
    # escapes
    ('10 print "\\x8a1\\x8a2"\n', '0B0A0061288AB18AB22901'),
    ('10 rem \\x8a\\x8aAAA\\x8a\\x8a\n', '0D0A005DA08A8AC1C1C18A8A01'),
    ('0 PR# 0\n1 PRINT:PRINT "\\x84BLOAD DATA1,A$4000":END\n',
     '0800007EB00000011E01006303612884C2CCCFC1C4A0C4C1D4C1B1ACC1A4B4B0B0B029035101'),
    # mixed
    ('10 TEXT : CALL -936: VTAB 3\n24 PRINT : TAB 30: PRINT "16-FEB-79"\n40 REM123:REM456\n',
     '100A004B034D36B9A803036FB3030001171800630350B31E00036128B1B6ADC6C5C2ADB7B929010F28005DB1B2B3BAD2C5CDB4B5B601'),
])
def test_tokenize(program, expected):
    assert tokenize(program).hex().upper() == expected


def test_animals_fragment():
    program = (
        '160 PRINT : PRINT NEW$;: INPUT "?",A$:PREV=CUR: IF NOT LEN(A$) THEN 160:A$=A$(1,1): '
        'IF A$#"Y" AND A$#"N" THEN 160\n'
        '170 IF A$="Y" THEN CUR=RTPTR: IF A$="N" THEN CUR=WRNGPTR: GOTO 110\n'
    )
    expected = (
        '4AA000630361CEC5D74047035328BF2926C14003D0D2C5D671C3D5D20360373BC1407224B1A00003'
        'C14070C1402AB1010023B10100720360C1403A28D9291DC1403A28CE2924B1A000012EAA0060C140'
        '3928D92925C3D5D271D2D4D0D4D20360C1403928CE2925C3D5D271D7D2CEC7D0D4D2035FB16E0001'
    )
    assert tokenize(program).hex().upper() == expected


def test_blank_lines_and_crlf(tokenizer):
    assert tokenizer.tokenize('\r\n10 TEXT\r\n\r\n') == bytes.fromhex('050A004B01')


def test_empty_program(tokenizer):
    assert tokenizer.tokenize('') == b''


def test_line_too_long(tokenizer):
    program = '10 TEXT\n20 PRINT "' + 'A' * 130 + '"\n'
    with pytest.raises(LineTooLongError) as excinfo:
        tokenizer.tokenize(program)
    assert excinfo.value.row == 1
    assert excinfo.value.line_number == 20
    assert excinfo.value.length == 135
    assert str(excinfo.value) == 'Line 20 is 135 bytes tokenized, the limit is 126'


def test_longest_line_fits(tokenizer):
    # 2 bytes of line number, PRINT, two quotes and 121 characters
    record = tokenizer.tokenize_line('10 PRINT "' + 'A' * 121 + '"')
    assert len(record) == 128
    assert record[0] == 128
    assert record[-1] == 0x01


def test_pad_numbers_keeps_spacing():
    assert pad_numbers('10 X = 5 + 12') == '010 X = 005 + 012'
    assert pad_numbers('10 GOTO 1000') == '010 GOTO 1000'


def test_number_prefix_uses_the_value():
    # 0 padded to 000 and 7 padded to 007 still take the prefix of their value
    assert tokenize('10 X = 7\n').hex().upper() == '090A00D871B7070001'


def test_spaces_inside_numbers_are_ignored(tokenizer):
    assert tokenizer.tokenize('1 0 GOTO 1 00\n') == tokenizer.tokenize('10 GOTO 100\n')


def test_command_line_arguments_take_the_number_prefix(tokenizer):
    code = tokenizer.tokenize('10 LIST 100,200\n')
    assert code.hex().upper() == '0C0A0074B1640075B2C80001'
    assert detokenize(code, 0, len(code)) == '10 LIST 100,200\n'
