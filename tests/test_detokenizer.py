import pytest

from conftest import image_from_hex
from intbasic.detokenizer import detokenize
from intbasic.memory import new_image
from intbasic.settings import Settings
from intbasic.tokenizer import tokenize


@pytest.mark.parametrize('tokens, expected', [
    ('050A004B01', '10 TEXT \n'),
    ('050A004B010C14006128C8C5CCCCCF2901', '10 TEXT \n20 PRINT "HELLO"\n'),
    ('130A0062C149C24A49C345C440474745C54001', '10 PRINT A,B,,C;D$;;;E$\n'),
    ('0D0A00D871B1010012B1010001', '10 X=1+1\n'),
    ('0A0A00D87136B1010001', '10 X=-1\n'),
    ('0B0A00D8713636B1010001', '10 X=--1\n'),
    ('1B0A00D871B606001438B101001238D8B112D8B27214B505007201', '10 X=6*(1+(X1+X2)*5)\n'),
    ('120A0066C915B202001438C91CB320007201', '10 COLOR=I/2*(I<32)\n'),
    ('220A00D871B606001438313FD8B0721238303FD8B172123CC140727214B505007201',
     '10 X=6*( ABS (X0)+( SGN (X1)+ ASC(A$))*5)\n'),
    ('0A0A004C0366B40400010F1400D871B5050003D971B5050001081E0067D868D90112280069D812B101006AD812B10A'
     '006BD9011232006CD912B101006DD912B10A006ED801',
     '10 GR : COLOR=4\n20 X=5:Y=5\n30 PLOT X,Y\n40 HLIN X+1,X+10 AT Y\n50 VLIN Y+1,Y+10 AT X\n'),
    ('0B0A00C3713DD83ED97201', '10 C= SCRN(X,Y)\n'),
    ('092000D871B3200001', '32 X=32\n'),
    ('0D0A005CB1E803035FB1640001056400510105E8035B01', '10 GOSUB 1000: GOTO 100\n100 END \n1000 RETURN \n'),
    ('150A0055C956B1010057CCC1D3D40362C90359C901', '10 FOR I=1 TO LAST: PRINT I: NEXT I\n'),
    ('0C0A0060D819D924B1E803010C140060D81CD924B1F203010C1E0060D81BD924B1FC03010C280060D816D924B1060401',
     '10 IF X>Y THEN 1000\n20 IF X<Y THEN 1010\n30 IF X<>Y THEN 1020\n40 IF X=Y THEN 1030\n'),
    ('0B0A0061288AB18AB22901', '10 PRINT "\\x8a1\\x8a2"\n'),
    ('0D0A005DA08A8AC1C1C18A8A01', '10 REM \\x8a\\x8aAAA\\x8a\\x8a\n'),
    ('0800007EB00000011E01006303612884C2CCCFC1C4A0C4C1D4C1B1ACC1A4B4B0B0B029035101',
     '0 PR# 0\n1 PRINT : PRINT "\x04BLOAD DATA1,A$4000": END \n'),
    ('100A004B034D36B9A803036FB3030001171800630350B31E00036128B1B6ADC6C5C2ADB7B929010F28005DB1B2B3BAD2C5CDB4B5B601',
     '10 TEXT : CALL -936: VTAB 3\n24 PRINT : TAB 30: PRINT "16-FEB-79"\n40 REM123:REM456\n'),
])
def test_detokenize(detokenizer, tokens, expected):
    assert detokenizer.detokenize(image_from_hex(tokens)) == expected


def test_animals_fragment(detokenizer):
    tokens = (
        '4AA000630361CEC5D74047035328BF2926C14003D0D2C5D671C3D5D20360373BC1407224B1A00003'
        'C14070C1402AB1010023B10100720360C1403A28D9291DC1403A28CE2924B1A000012EAA0060C140'
        '3928D92925C3D5D271D2D4D0D4D20360C1403928CE2925C3D5D271D7D2CEC7D0D4D2035FB16E0001'
    )
    expected = (
        '160 PRINT : PRINT NEW$;: INPUT "?",A$:PREV=CUR: IF NOT LEN(A$) THEN 160:A$=A$(1,1): '
        'IF A$#"Y" AND A$#"N" THEN 160\n'
        '170 IF A$="Y" THEN CUR=RTPTR: IF A$="N" THEN CUR=WRNGPTR: GOTO 110\n'
    )
    assert detokenizer.detokenize(image_from_hex(tokens)) == expected


def test_color_demo_fragment(detokenizer):
    tokens = (
        '18DC0564B0000065D00364B1010065C4034DB20200035B0121D007503838B42800133BC140727215'
        'B2020012B10100720361C1400363035B0129B80B4C0355C956B0000057B31F000366C915B2020003'
        '6CB000006DB327006EC912B303000359C90129FFFF5DAAC3CFD0D9D2C9C7C8D4A0B1B9B7B8A0C1D0'
        'D0CCC5A0C3CFCDD0D5D4C5D2ACC9CEC3AEAA01'
    )
    expected = (
        '1500 POKE 0,P: POKE 1,D: CALL 2: RETURN \n'
        '2000 TAB ((40- LEN(A$))/2+1): PRINT A$: PRINT : RETURN \n'
        '3000 GR : FOR I=0 TO 31: COLOR=I/2: VLIN 0,39 AT I+3: NEXT I\n'
        '65535 REM*COPYRIGHT 1978 APPLE COMPUTER,INC.*\n'
    )
    assert detokenizer.detokenize(image_from_hex(tokens)) == expected


def test_explicit_bounds_on_raw_records():
    code = bytes.fromhex('050A004B01' '056400510105E8035B01')
    assert detokenize(code, 0, len(code)) == '10 TEXT \n100 END \n1000 RETURN \n'
    assert detokenize(code, 5, len(code)) == '100 END \n1000 RETURN \n'


def test_image_built_by_loader():
    image = new_image(tokenize('10 TEXT\n20 END\n'))
    assert detokenize(image) == '10 TEXT \n20 END \n'


def test_listing_reads_back_to_the_same_tokens():
    code = tokenize('10 X = 6*(1 + (X1 + X2)*5)\n20 PRINT "\\x8a1"\n')
    listing = detokenize(code, 0, len(code))
    assert tokenize(listing) == code


def test_custom_escapes():
    code = bytes.fromhex('0B0A0061288AB18AB22901')
    settings = Settings(escapes=[])
    assert detokenize(code, 0, len(code), settings) == '10 PRINT "\n1\n2"\n'


def test_empty_image_gives_empty_listing(detokenizer):
    assert detokenizer.detokenize(bytearray(0x10000)) == ''


def test_image_too_small_for_pointers(detokenizer):
    assert detokenizer.detokenize(b'\x05\x0a\x00') == ''


def test_start_beyond_image(detokenizer):
    assert detokenizer.detokenize(b'\x05\x0a\x00\x4b\x01', 10, 20) == ''


def test_truncated_record_keeps_complete_lines(detokenizer):
    code = bytes.fromhex('050A004B01' '0C14006128C8C5')
    assert detokenizer.detokenize(code, 0, len(code) + 10) == '10 TEXT \n'
