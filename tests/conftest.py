import pytest

from mirrorcipher.field_bank import FieldBank

# 2x2 grid, one field:
#   / \        slots: top 0 1, right 2 3, bottom 4 5, left 6 7
#   -
GOLDEN_DEFINITION = b"/\\- " + b"ABCDEFGH"

# Argon2id settings small enough for tests
FAST_KDF = {'time_cost': 1, 'memory_cost': 1024, 'parallelism': 1, 'hash_len': 32, 'salt_len': 16}


def make_bank(definition, grid_size=2, field_count=1):
    return FieldBank.from_definition(definition, grid_size, field_count)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('MIRRORCIPHER_GRID_SIZE', 'MIRRORCIPHER_FIELD_COUNT', 'MIRRORCIPHER_KEY_FILE',
                 'MIRRORCIPHER_PASSPHRASE', 'MIRRORCIPHER_LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def golden_bank():
    return make_bank(GOLDEN_DEFINITION)


@pytest.fixture
def golden_field(golden_bank):
    return golden_bank[0]
