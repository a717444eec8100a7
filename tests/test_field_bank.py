import pytest

from mirrorcipher.errors import CorruptFieldError, DuplicatePerimeterValueError, InvalidSymbolError
from mirrorcipher.field_bank import FieldBank
from mirrorcipher.grid_graph import Mirror

from tests.conftest import GOLDEN_DEFINITION


def test_load_maps_symbols():
    bank = FieldBank(2, 1)
    assert bank.load(GOLDEN_DEFINITION) == 12
    assert bank.is_complete

    field = bank[0]
    assert [Mirror(int(m)) for m in field.cells] == [
        Mirror.FORWARD, Mirror.BACKWARD, Mirror.STRAIGHT, Mirror.EMPTY,
    ]
    assert field.perimeter_bytes() == b"ABCDEFGH"


def test_load_order_across_fields():
    # All mirrors first, then all perimeters
    bank = FieldBank(1, 2)
    bank.load(b"/-" + b"abcd" + b"efgh")

    assert bank[0].mirror_symbols() == b"/"
    assert bank[1].mirror_symbols() == b"-"
    assert bank[0].perimeter_bytes() == b"abcd"
    assert bank[1].perimeter_bytes() == b"efgh"


def test_trailing_symbols_are_not_consumed():
    bank = FieldBank(2, 1)
    assert bank.load(GOLDEN_DEFINITION + b"xyz") == len(GOLDEN_DEFINITION)
    assert bank.load_cell(ord('x')) is False
    assert bank.expected_length == 12


def test_invalid_mirror_symbol():
    bank = FieldBank(2, 1)
    bank.load_cell(ord('/'))

    with pytest.raises(InvalidSymbolError) as excinfo:
        bank.load_cell(ord('x'))

    assert excinfo.value.position == 1
    assert excinfo.value.symbol == ord('x')


def test_perimeter_phase_accepts_any_byte():
    bank = FieldBank(1, 1)
    bank.load(b" " + bytes([0, 0xff, ord('x'), ord('/')]))
    assert bank[0].perimeter_bytes() == bytes([0, 0xff, ord('x'), ord('/')])


def test_validate_requires_complete_bank():
    bank = FieldBank(2, 1)
    bank.load(GOLDEN_DEFINITION[:-1])

    with pytest.raises(CorruptFieldError):
        bank.validate()


def test_validate_reports_duplicate_field():
    bank = FieldBank(1, 2)
    bank.load(b"  " + b"abcd" + b"effg")

    with pytest.raises(DuplicatePerimeterValueError) as excinfo:
        bank.validate()

    assert excinfo.value.field_index == 1
    assert excinfo.value.value == ord('f')


def test_link_requires_validation():
    bank = FieldBank(2, 1)
    bank.load(GOLDEN_DEFINITION)

    with pytest.raises(CorruptFieldError):
        bank.link()

    bank.validate()
    bank.link()
    assert bank.is_linked


def test_from_definition_and_back():
    bank = FieldBank.from_definition(GOLDEN_DEFINITION, 2, 1)
    assert bank.is_linked
    assert bank.to_definition() == GOLDEN_DEFINITION
    assert bank.snapshot() == [(b"/\\- ", b"ABCDEFGH")]


def test_copy_keeps_stage_and_is_independent(golden_bank):
    clone = golden_bank.copy()
    assert clone.is_linked

    clone[0].rotate(0)
    assert golden_bank.to_definition() == GOLDEN_DEFINITION
    assert clone.to_definition() != GOLDEN_DEFINITION


@pytest.mark.parametrize("grid_size, field_count", [(0, 1), (65, 1), (2, 0)])
def test_geometry_limits(grid_size, field_count):
    with pytest.raises(ValueError):
        FieldBank(grid_size, field_count)
