import pytest
from bencoding import (
    Decoder, Encoder, Dictionary, decode, encode,
    DecodeError, IncompleteError, MalformedError, NestingTooDeep,
    INT64_MAX, INT64_MIN,
)

# --- Decoder Tests ---

def test_decode_integer():
    assert decode(b'i58e') == (58, b'')
    assert decode(b'i-392e') == (-392, b'')
    assert decode(b'i0e') == (0, b'')

@pytest.mark.parametrize('data', [b'i03e', b'i-0e', b'i-03e', b'i00e'])
def test_decode_integer_rejects_non_canonical(data):
    with pytest.raises(MalformedError):
        decode(data)

@pytest.mark.parametrize('data', [b'ie', b'i-e', b'i4x2e', b'i+4e', b'i 4e'])
def test_decode_integer_rejects_garbage(data):
    with pytest.raises(MalformedError):
        decode(data)

def test_decode_integer_64_bit_bounds():
    assert decode(b'i9223372036854775807e')[0] == INT64_MAX
    assert decode(b'i-9223372036854775808e')[0] == INT64_MIN
    with pytest.raises(MalformedError):
        decode(b'i9223372036854775808e')
    with pytest.raises(MalformedError):
        decode(b'i-9223372036854775809e')

@pytest.mark.parametrize('data', [
    b'i' + b'1' * 20 + b'e',
    b'i-' + b'1' * 20 + b'e',
    b'i' + b'1' * 5000 + b'e',
])
def test_decode_integer_too_many_digits(data):
    with pytest.raises(MalformedError):
        decode(data)

def test_decode_string_length_with_too_many_digits():
    with pytest.raises(IncompleteError):
        decode(b'1' * 5000 + b':abc')

def test_decode_integer_missing_terminator_is_incomplete():
    with pytest.raises(IncompleteError):
        decode(b'i42')

def test_decode_string():
    assert decode(b'11:hello world') == (b'hello world', b'')
    assert decode(b'0:') == (b'', b'')

def test_decode_string_keeps_raw_bytes():
    assert decode(b'2:\xff\xfe') == (b'\xff\xfe', b'')

def test_decode_string_short_is_incomplete():
    with pytest.raises(IncompleteError):
        decode(b'5:foo')

def test_decode_huge_declared_length_is_incomplete():
    with pytest.raises(IncompleteError):
        decode(b'99999999999999999999:abc')

def test_decode_string_leading_zero():
    with pytest.raises(MalformedError):
        decode(b'03:abc')

def test_decode_string_bad_separator():
    with pytest.raises(MalformedError):
        decode(b'4-spam')

def test_decode_list():
    assert decode(b'li53e3:foo4:annee') == ([53, b'foo', b'anne'], b'')
    assert decode(b'le') == ([], b'')

def test_decode_list_unterminated():
    with pytest.raises(IncompleteError):
        decode(b'li1e')

def test_decode_dictionary():
    value, rest = decode(b'd3:bar4:spam3:fooi42ee')
    assert value == {b'bar': b'spam', b'foo': 42}
    assert isinstance(value, Dictionary)
    assert list(value) == [b'bar', b'foo']
    assert rest == b''

def test_decode_dictionary_rejects_descending_keys():
    with pytest.raises(MalformedError):
        decode(b'd3:fooi42e3:bar4:spame')

def test_decode_dictionary_rejects_duplicate_keys():
    with pytest.raises(MalformedError):
        decode(b'd3:fooi1e3:fooi2ee')

def test_decode_dictionary_rejects_non_string_key():
    with pytest.raises(MalformedError):
        decode(b'di2e4:spam3:fooi42ee')

def test_decode_dictionary_missing_value():
    with pytest.raises(IncompleteError):
        decode(b'd3:foo')

def test_decode_returns_remainder():
    assert decode(b'i1ei2e') == (1, b'i2e')
    decoder = Decoder(b'4:spamxyz')
    assert decoder.decode() == b'spam'
    assert decoder.remaining() == b'xyz'

def test_decode_empty_is_incomplete():
    with pytest.raises(IncompleteError):
        decode(b'')

def test_decode_invalid_leading_byte():
    with pytest.raises(MalformedError) as excinfo:
        decode(b'x')
    assert excinfo.value.position == 0

def test_decode_invalid_type():
    with pytest.raises(TypeError):
        Decoder('i42e')

def test_decode_accepts_bytearray():
    assert decode(bytearray(b'i7e')) == (7, b'')

def test_decode_complex():
    value, _ = decode(b'd4:infod6:lengthi123456e4:name8:test.txt12:piece lengthi32768e6:pieces20:aaaaaaaaaaaaaaaaaaaaee')
    assert value[b'info'][b'length'] == 123456
    assert value[b'info'][b'pieces'] == b'a' * 20

def test_errors_are_value_errors():
    assert issubclass(DecodeError, ValueError)
    assert issubclass(NestingTooDeep, MalformedError)
    assert not issubclass(IncompleteError, MalformedError)

# --- Nesting limit ---

def test_nesting_within_limit():
    data = b'l' * 10 + b'e' * 10
    value, _ = decode(data, max_depth=10)
    for _ in range(9):
        value = value[0]
    assert value == []

def test_nesting_over_limit():
    with pytest.raises(NestingTooDeep):
        decode(b'l' * 11 + b'e' * 11, max_depth=10)

def test_default_nesting_limit_stops_hostile_input():
    with pytest.raises(NestingTooDeep):
        decode(b'l' * 100000)

def test_nesting_counts_dicts():
    with pytest.raises(NestingTooDeep):
        decode(b'd1:ad1:ad1:aleeee', max_depth=3)

# --- Dictionary ---

def test_dictionary_sorts_on_construction():
    d = Dictionary([(b'zeta', 1), (b'alpha', 2), (b'mid', 3)])
    assert list(d.keys()) == [b'alpha', b'mid', b'zeta']

def test_dictionary_byte_order():
    d = Dictionary({b'b': 1, b'B': 2, b'a': 3})
    assert list(d) == [b'B', b'a', b'b']

def test_dictionary_rejects_duplicates():
    with pytest.raises(ValueError):
        Dictionary([(b'a', 1), ('a', 2)])

def test_dictionary_rejects_non_bytes_keys():
    with pytest.raises(TypeError):
        Dictionary({1: b'x'})

def test_dictionary_str_lookup():
    d = Dictionary({b'name': b'x'})
    assert d['name'] == b'x'
    assert 'name' in d
    assert b'other' not in d

# --- Encoder Tests ---

def test_encode_string():
    assert encode(b'spam') == b'4:spam'
    assert encode('spam') == b'4:spam'

def test_encode_integer():
    assert encode(42) == b'i42e'
    assert encode(-42) == b'i-42e'
    assert encode(0) == b'i0e'

def test_encode_integer_out_of_range():
    with pytest.raises(ValueError):
        encode(INT64_MAX + 1)

def test_encode_list():
    assert Encoder([b'spam', 42]).encode() == b'l4:spami42ee'

def test_encode_dictionary_sorts_keys():
    data = {b'foo': 42, b'bar': b'spam'}
    assert encode(data) == b'd3:bar4:spam3:fooi42ee'

def test_encode_nested():
    value = {b'foo': -546, b'baroo': [b'nopee', 84954]}
    assert encode(value) == b'd5:barool5:nopeei84954ee3:fooi-546ee'

@pytest.mark.parametrize('value', [{1, 2, 3}, None, 1.5, True])
def test_encode_invalid_type(value):
    with pytest.raises(TypeError):
        encode(value)

# --- Round trips ---

@pytest.mark.parametrize('data', [
    b'd3:bar4:spam3:fooi42ee',
    b'li53e3:foo4:annee',
    b'd8:announce3:url4:infod6:lengthi20e4:name1:xee',
    b'llleee',
])
def test_canonical_input_reencodes_identically(data):
    value, rest = decode(data)
    assert rest == b''
    assert encode(value) == data

def test_constructed_value_round_trips():
    value = Dictionary({
        b'foo': -546,
        b'baroo': [b'nopee', 84954, Dictionary({b'x': []})],
    })
    assert decode(encode(value)) == (value, b'')
