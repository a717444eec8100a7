import base64
import json

from mirrorcipher.cli import main
from mirrorcipher.kdf_km import FieldKey

from tests.conftest import FAST_KDF, GOLDEN_DEFINITION


def test_generate_and_round_trip(tmp_path):
    key = tmp_path / "k.key"
    plain = tmp_path / "plain.txt"
    cipher = tmp_path / "cipher.bin"
    back = tmp_path / "back.txt"
    plain.write_bytes(b"attack at dawn\n" + bytes(range(256)))

    assert main(['generate', '-o', str(key), '--grid-size', '64', '--field-count', '2']) == 0
    record = json.loads(key.read_text(encoding='utf-8'))
    assert (record['grid_size'], record['field_count'], record['sealed']) == (64, 2, False)

    assert main(['crypt', '-k', str(key), '-i', str(plain), '-o', str(cipher)]) == 0
    assert main(['crypt', '-k', str(key), '-i', str(cipher), '-o', str(back)]) == 0
    assert back.read_bytes() == plain.read_bytes()


def test_base64_framing(tmp_path):
    key = tmp_path / "raw.key"
    key.write_bytes(GOLDEN_DEFINITION)
    plain = tmp_path / "plain.txt"
    plain.write_bytes(b"ABAHC")
    encoded = tmp_path / "cipher.b64"
    back = tmp_path / "back.txt"

    args = ['--grid-size', '2', '--field-count', '1']
    assert main(['crypt', '-k', str(key), '-i', str(plain), '-o', str(encoded), '-e'] + args) == 0
    assert base64.b64decode(encoded.read_bytes()) == b"GCGEF"

    assert main(['crypt', '-k', str(key), '-i', str(encoded), '-o', str(back), '-d'] + args) == 0
    assert back.read_bytes() == b"ABAHC"


def test_key_file_from_environment(tmp_path, monkeypatch):
    key = tmp_path / "raw.key"
    key.write_bytes(GOLDEN_DEFINITION)
    plain = tmp_path / "plain.txt"
    plain.write_bytes(b"A")
    out = tmp_path / "out.bin"

    monkeypatch.setenv('MIRRORCIPHER_KEY_FILE', str(key))
    monkeypatch.setenv('MIRRORCIPHER_GRID_SIZE', '2')
    monkeypatch.setenv('MIRRORCIPHER_FIELD_COUNT', '1')

    assert main(['crypt', '-i', str(plain), '-o', str(out)]) == 0
    assert out.read_bytes() == b"G"


def test_missing_key_is_a_usage_error(tmp_path):
    plain = tmp_path / "plain.txt"
    plain.write_bytes(b"A")
    assert main(['crypt', '-i', str(plain)]) == 2


def test_unknown_byte_fails(tmp_path, capsys):
    key = tmp_path / "raw.key"
    key.write_bytes(GOLDEN_DEFINITION)
    plain = tmp_path / "plain.txt"
    plain.write_bytes(b"AZ")
    out = tmp_path / "out.bin"

    code = main(['crypt', '-k', str(key), '-i', str(plain), '-o', str(out),
                 '--grid-size', '2', '--field-count', '1'])

    assert code == 1
    assert not out.exists()
    assert "not on the perimeter" in capsys.readouterr().err


def test_bad_key_file_fails(tmp_path):
    key = tmp_path / "bad.key"
    key.write_bytes(b'{"format": "mirrorcipher-key", "version": 1}')
    plain = tmp_path / "plain.txt"
    plain.write_bytes(b"A")

    assert main(['crypt', '-k', str(key), '-i', str(plain)]) == 1


def test_sealed_key_with_bad_kdf_params_fails(tmp_path, capsys):
    key = tmp_path / "sealed.key"
    record = json.loads(FieldKey(GOLDEN_DEFINITION, 2, 1).to_json(passphrase="pw", params=FAST_KDF))
    record['kdf_params']['parallelism'] = 0
    key.write_text(json.dumps(record), encoding='utf-8')
    plain = tmp_path / "plain.txt"
    plain.write_bytes(b"A")

    assert main(['--pass', 'pw', 'crypt', '-k', str(key), '-i', str(plain),
                 '-o', str(tmp_path / "out.bin")]) == 1
    assert "Invalid key derivation parameters" in capsys.readouterr().err
