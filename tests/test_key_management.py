import json

import pytest

from mirrorcipher.cipher_core import MirrorCipher
from mirrorcipher.errors import KeyFileError
from mirrorcipher.field_bank import FieldBank
from mirrorcipher.kdf_km import FieldKey, derive_definition, derive_key, generate_definition

from tests.conftest import FAST_KDF, GOLDEN_DEFINITION


def test_generate_definition_loads():
    definition = generate_definition(4, 3)
    bank = FieldBank(4, 3)

    assert len(definition) == bank.expected_length
    bank.load(definition)
    bank.validate()
    assert set(definition[:3 * 16]) <= set(b"/\\- ")


def test_derive_key_is_deterministic():
    salt = b"0123456789abcdef"
    assert derive_key("secret", salt, FAST_KDF) == derive_key(b"secret", salt, FAST_KDF)
    assert len(derive_key("secret", salt, FAST_KDF)) == 32


def test_derive_definition_depends_on_passphrase_and_salt():
    salt = b"0123456789abcdef"
    first = derive_definition("correct horse", salt, 8, 2, FAST_KDF)

    assert first == derive_definition("correct horse", salt, 8, 2, FAST_KDF)
    assert first != derive_definition("correct horse", b"fedcba9876543210", 8, 2, FAST_KDF)
    assert first != derive_definition("battery staple", salt, 8, 2, FAST_KDF)
    FieldBank.from_definition(first, 8, 2)


def test_plain_key_file_round_trip(tmp_path):
    path = str(tmp_path / "plain.key")
    key = FieldKey(GOLDEN_DEFINITION, 2, 1, metadata={'purpose': 'testing'})
    key.save(path)

    assert not FieldKey.requires_passphrase(path)
    loaded = FieldKey.load(path)
    assert loaded.definition == GOLDEN_DEFINITION
    assert (loaded.grid_size, loaded.field_count) == (2, 1)
    assert loaded.metadata == {'purpose': 'testing'}
    assert loaded.fingerprint() == key.fingerprint()

    assert MirrorCipher(loaded.build_bank()).encrypt(b"ABAHC") == b"GCGEF"


def test_sealed_key_file_round_trip(tmp_path):
    path = str(tmp_path / "sealed.key")
    key = FieldKey.generate(4, 2)
    key.save(path, passphrase="hunter2", params=FAST_KDF)

    record = json.loads((tmp_path / "sealed.key").read_text(encoding='utf-8'))
    assert record['sealed'] is True
    assert record['kdf'] == 'argon2id'

    assert FieldKey.requires_passphrase(path)
    loaded = FieldKey.load(path, passphrase="hunter2")
    assert loaded.definition == key.definition


def test_sealed_key_file_wrong_passphrase(tmp_path):
    path = str(tmp_path / "sealed.key")
    FieldKey(GOLDEN_DEFINITION, 2, 1).save(path, passphrase="hunter2", params=FAST_KDF)

    with pytest.raises(KeyFileError):
        FieldKey.load(path, passphrase="hunter3")
    with pytest.raises(KeyFileError):
        FieldKey.load(path)


def test_sealed_geometry_is_authenticated(tmp_path):
    text = FieldKey(GOLDEN_DEFINITION, 2, 1).to_json(passphrase="pw", params=FAST_KDF)
    record = json.loads(text)
    record['field_count'] = 2

    with pytest.raises(KeyFileError):
        FieldKey.from_json(json.dumps(record), passphrase="pw")


def test_raw_definition_file(tmp_path):
    path = tmp_path / "raw.key"
    path.write_bytes(GOLDEN_DEFINITION + b"\n")

    key = FieldKey.load(str(path), grid_size=2, field_count=1)
    assert key.metadata == {'source': 'raw'}
    assert MirrorCipher(key.build_bank()).encrypt(b"A") == b"G"


@pytest.mark.parametrize("text", [
    '{"format": "something-else", "version": 1}',
    '{"format": "mirrorcipher-key", "version": 99}',
    '{"format": "mirrorcipher-key", "version": 1, "grid_size": 2}',
    '{not json',
])
def test_malformed_key_files(text):
    with pytest.raises(KeyFileError):
        FieldKey.from_json(text)


def test_missing_key_file(tmp_path):
    with pytest.raises(KeyFileError):
        FieldKey.load(str(tmp_path / "nope.key"))


@pytest.mark.parametrize("kdf_params", [
    dict(FAST_KDF, parallelism=0),
    [1, 1024, 1],
])
def test_sealed_key_file_bad_kdf_params(kdf_params):
    record = json.loads(FieldKey(GOLDEN_DEFINITION, 2, 1).to_json(passphrase="pw", params=FAST_KDF))
    record['kdf_params'] = kdf_params

    with pytest.raises(KeyFileError):
        FieldKey.from_json(json.dumps(record), passphrase="pw")
