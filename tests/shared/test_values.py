import pytest

from cryptol_client.shared.exceptions import CodecError, ValidationError
from cryptol_client.shared.values import (
    BitVector,
    BitVectorShape,
    Integer,
    Record,
    RecordShape,
    Sequence,
    SequenceShape,
    Tuple,
)


class TestBitVector:
    def test_hex_is_zero_padded_to_width(self):
        assert BitVector(16, 1).hex() == "0001"
        assert BitVector(5, 0x1F).hex() == "1f"
        assert BitVector(0, 0).hex() == ""

    def test_wide_values(self):
        value = (1 << 383) | 1
        bits = BitVector(384, value)

        assert len(bits) == 384
        assert int(bits) == value
        assert len(bits.to_bytes()) == 48
        assert bits.to_bytes()[0] == 0x80

    @pytest.mark.parametrize(
        ("width", "value"),
        [(8, 256), (8, -1), (-1, 0), (4, True)],
    )
    def test_rejects_values_that_do_not_fit(self, width: int, value: int):
        with pytest.raises(CodecError):
            BitVector(width, value)


def test_sequences_and_tuples_freeze_their_elements():
    seq = Sequence([Integer(1), Integer(2)])
    tup = Tuple([Integer(1)])

    assert seq.elements == (Integer(1), Integer(2))
    assert list(seq) == [Integer(1), Integer(2)]
    assert len(tup) == 1
    assert hash(seq) == hash(Sequence((Integer(1), Integer(2))))


def test_record_equality_ignores_field_order():
    first = Record({"x": Integer(1), "y": Integer(2)})
    second = Record({"y": Integer(2), "x": Integer(1)})

    assert first == second
    assert first["x"] == Integer(1)
    with pytest.raises(TypeError):
        first.fields["z"] = Integer(3)  # type: ignore[index]


def test_records_are_unhashable():
    with pytest.raises(TypeError, match="Record"):
        hash(Record({"x": Integer(1)}))


@pytest.mark.parametrize(
    "build",
    [
        lambda: BitVectorShape(-8),
        lambda: SequenceShape(length=-1),
        lambda: RecordShape({"": None}),
    ],
)
def test_invalid_shapes_are_rejected(build):
    with pytest.raises(ValidationError):
        build()
