import base64

import pytest

from cryptol_client.shared.codec import decode, decode_bits, encode
from cryptol_client.shared.exceptions import CodecError
from cryptol_client.shared.values import (
    Bit,
    BitShape,
    BitVector,
    BitVectorShape,
    Integer,
    IntegerShape,
    Opaque,
    Record,
    RecordShape,
    Sequence,
    SequenceShape,
    Tuple,
    TupleShape,
    Unit,
)


def test_encode_scalars():
    assert encode(Bit(True)) is True
    assert encode(Integer(-5)) == -5
    assert encode(Unit()) == {"expression": "unit"}
    assert encode(BitVector(16, 1)) == {"expression": "bits", "encoding": "hex", "width": 16, "data": "0001"}
    assert encode(Opaque("f")) == {"expression": "variable", "identifier": "f"}


def test_source_text_passes_through():
    assert encode("[1, 2, 3] : [3][8]") == "[1, 2, 3] : [3][8]"


def test_encode_rejects_foreign_objects():
    with pytest.raises(CodecError):
        encode(3.5)  # type: ignore[arg-type]


def test_nested_value_survives_a_round_trip():
    wide = BitVector(384, (1 << 383) + 0xDEADBEEF)
    value = Record(
        {
            "header": Tuple((Bit(False), Unit(), Integer(2**70))),
            "blocks": Sequence(
                (
                    Record({"digest": wide, "chunks": Sequence((BitVector(8, 0xFF), BitVector(8, 0)))}),
                    Record({"digest": BitVector(384, 0), "chunks": Sequence(())}),
                )
            ),
        }
    )

    assert decode(encode(value)) == value


def test_wide_bit_vector_is_never_a_json_number():
    payload = encode(BitVector(128, (1 << 128) - 1))

    assert payload["data"] == "f" * 32
    assert decode(payload, BitVectorShape(128)) == BitVector(128, (1 << 128) - 1)


class TestDecodeHints:
    def test_integer_and_bit(self):
        assert decode(True, BitShape()) == Bit(True)
        assert decode(12, IntegerShape()) == Integer(12)
        with pytest.raises(CodecError, match="Expected a bit"):
            decode(1, BitShape())

    def test_bit_vector_width_mismatch(self):
        with pytest.raises(CodecError, match="width 16"):
            decode(encode(BitVector(8, 1)), BitVectorShape(16))

    def test_tuple_arity_mismatch(self):
        payload = encode(Tuple((Integer(1), Integer(2), Integer(3))))

        with pytest.raises(CodecError, match="arity 2, got arity 3"):
            decode(payload, TupleShape((IntegerShape(), IntegerShape())))

    def test_tuple_elements_are_checked(self):
        payload = encode(Tuple((Integer(1), Bit(True))))

        with pytest.raises(CodecError):
            decode(payload, TupleShape((IntegerShape(), IntegerShape())))

    def test_sequence_length_and_element(self):
        payload = encode(Sequence((BitVector(8, 1), BitVector(8, 2))))

        assert len(decode(payload, SequenceShape(BitVectorShape(8), 2))) == 2
        with pytest.raises(CodecError, match="length 3"):
            decode(payload, SequenceShape(length=3))
        with pytest.raises(CodecError):
            decode(payload, SequenceShape(BitVectorShape(16)))

    def test_record_missing_field(self):
        payload = {"expression": "record", "data": {"x": True}}

        with pytest.raises(CodecError, match="missing required field"):
            decode(payload, RecordShape({"x": BitShape(), "y": IntegerShape()}))

    def test_wrong_kind(self):
        with pytest.raises(CodecError, match="Expected a record, got a sequence"):
            decode({"expression": "sequence", "data": []}, RecordShape())


@pytest.mark.parametrize(
    "payload",
    [
        {"expression": "bits", "encoding": "hex", "width": 4, "data": "1f"},
        {"expression": "bits", "encoding": "hex", "width": 8, "data": "zz"},
        {"expression": "bits", "encoding": "octal", "width": 8, "data": "17"},
        {"expression": "bits", "encoding": "hex", "width": -1, "data": "0"},
        {"expression": "sequence", "data": {"0": 1}},
        {"expression": "variable"},
        {"expression": "float", "data": "1.5"},
        {"data": []},
        "0x01",
        None,
        1.5,
    ],
)
def test_malformed_payloads_raise_codec_error(payload):
    with pytest.raises(CodecError):
        decode(payload)


def test_unsupported_tag_is_named():
    with pytest.raises(CodecError, match="Unsupported value shape"):
        decode({"expression": "float", "data": "1.5"})


def test_base64_bits():
    raw = bytes(range(1, 9))
    payload = {"expression": "bits", "encoding": "base64", "width": 64, "data": base64.b64encode(raw).decode()}

    assert decode_bits(payload) == BitVector(64, int.from_bytes(raw, "big"))
    with pytest.raises(CodecError):
        decode_bits({**payload, "data": "not base64!"})
    with pytest.raises(CodecError, match="exceeds declared"):
        decode_bits({**payload, "width": 32})
