"""
Key Generation and Key Files

This module produces field definitions (randomly, or deterministically
from a passphrase via Argon2id) and stores them in key files, optionally
sealed with AES-GCM under a passphrase-derived key.

Two key file formats are read:
- JSON key files written by FieldKey.save()
- raw definition files, the bare symbol stream a FieldBank loads
"""

import base64
import hashlib
import json
import logging
import secrets
import time
from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, Optional, Union

import argon2
import numpy as np
from argon2.exceptions import HashingError
from argon2.low_level import Type
from Cryptodome.Cipher import AES

from ..config import DEFAULT_GRID_SIZE, DEFAULT_FIELD_COUNT, check_geometry
from ..errors import KeyFileError
from ..field_bank.loader import FieldBank

logger = logging.getLogger(__name__)

# Default parameters for Argon2id
KDF_DEFAULT_PARAMS = {
    'time_cost': 4,       # Number of iterations
    'memory_cost': 65536, # 64 MB
    'parallelism': 4,     # Number of threads
    'hash_len': 32,       # Output size in bytes
    'salt_len': 16        # Salt size in bytes
}

KEY_FILE_FORMAT = 'mirrorcipher-key'
KEY_FILE_VERSION = 1

# Indexed by a random draw in 0..3
MIRROR_SYMBOLS = b' /\\-'


def generate_salt(length: int = KDF_DEFAULT_PARAMS['salt_len']) -> bytes:
    """
    Generate a cryptographically secure random salt.

    Args:
        length: Length of the salt in bytes

    Returns:
        Random salt as bytes
    """
    return secrets.token_bytes(length)


def derive_key(password: Union[str, bytes],
               salt: bytes,
               params: Optional[Dict[str, int]] = None) -> bytes:
    """
    Derive a key from a passphrase using Argon2id.

    Args:
        password: Passphrase to derive the key from
        salt: Salt value
        params: Optional Argon2id parameters; missing entries use
            KDF_DEFAULT_PARAMS

    Returns:
        Derived key as bytes
    """
    if isinstance(password, str):
        password = password.encode('utf-8')

    if params is None:
        params = KDF_DEFAULT_PARAMS

    return argon2.low_level.hash_secret_raw(
        secret=password,
        salt=salt,
        time_cost=params.get('time_cost', KDF_DEFAULT_PARAMS['time_cost']),
        memory_cost=params.get('memory_cost', KDF_DEFAULT_PARAMS['memory_cost']),
        parallelism=params.get('parallelism', KDF_DEFAULT_PARAMS['parallelism']),
        hash_len=params.get('hash_len', KDF_DEFAULT_PARAMS['hash_len']),
        type=Type.ID  # Argon2id variant
    )


def generate_definition(grid_size: int = DEFAULT_GRID_SIZE,
                        field_count: int = DEFAULT_FIELD_COUNT) -> bytes:
    """
    Generate a random field definition.

    Args:
        grid_size: Side length N of each mirror grid
        field_count: Number K of fields

    Returns:
        A definition stream for FieldBank.load()
    """
    check_geometry(grid_size, field_count)
    rng = secrets.SystemRandom()

    mirrors = bytes(secrets.choice(MIRROR_SYMBOLS)
                    for _ in range(field_count * grid_size * grid_size))
    perimeters = b''.join(bytes(rng.sample(range(256), 4 * grid_size))
                          for _ in range(field_count))

    logger.info("Generated random definition for %d fields of size %d", field_count, grid_size)
    return mirrors + perimeters


def derive_definition(passphrase: Union[str, bytes],
                      salt: bytes,
                      grid_size: int = DEFAULT_GRID_SIZE,
                      field_count: int = DEFAULT_FIELD_COUNT,
                      params: Optional[Dict[str, int]] = None) -> bytes:
    """
    Derive a field definition deterministically from a passphrase.

    The Argon2id output seeds a numpy Generator, which draws the mirror
    orientations and a perimeter permutation for every field.

    Args:
        passphrase: The passphrase
        salt: Salt value
        grid_size: Side length N of each mirror grid
        field_count: Number K of fields
        params: Optional Argon2id parameters

    Returns:
        A definition stream for FieldBank.load()
    """
    check_geometry(grid_size, field_count)

    seed = derive_key(passphrase, salt, params)
    rng = np.random.default_rng(int.from_bytes(seed, byteorder='big'))

    draws = rng.integers(0, len(MIRROR_SYMBOLS), size=field_count * grid_size * grid_size)
    mirrors = bytes(MIRROR_SYMBOLS[int(d)] for d in draws)
    perimeters = b''.join(
        bytes(int(v) for v in rng.permutation(256)[:4 * grid_size])
        for _ in range(field_count)
    )

    return mirrors + perimeters


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def _unb64(text: str) -> bytes:
    return base64.b64decode(text.encode('ascii'), validate=True)


def _seal_header(grid_size: int, field_count: int) -> bytes:
    # Bound into the GCM tag so the geometry cannot be swapped
    return f"{KEY_FILE_FORMAT}:{KEY_FILE_VERSION}:{grid_size}:{field_count}".encode('ascii')


@dataclass
class FieldKey:
    """A field definition together with its geometry."""
    definition: bytes
    grid_size: int = DEFAULT_GRID_SIZE
    field_count: int = DEFAULT_FIELD_COUNT
    created_at: int = dataclass_field(default_factory=lambda: int(time.time()))
    metadata: Dict[str, Any] = dataclass_field(default_factory=dict)

    @classmethod
    def generate(cls, grid_size: int = DEFAULT_GRID_SIZE,
                 field_count: int = DEFAULT_FIELD_COUNT) -> 'FieldKey':
        return cls(generate_definition(grid_size, field_count), grid_size, field_count)

    def build_bank(self) -> FieldBank:
        """Load, validate and link a fresh bank from this key."""
        return FieldBank.from_definition(self.definition, self.grid_size, self.field_count)

    def fingerprint(self) -> str:
        """Short SHA-256 fingerprint of the geometry and definition."""
        digest = hashlib.sha256(_seal_header(self.grid_size, self.field_count) + self.definition)
        return digest.hexdigest()[:16]

    def to_json(self, passphrase: Optional[Union[str, bytes]] = None,
                params: Optional[Dict[str, int]] = None) -> str:
        """
        Serialize the key, sealing the definition if a passphrase is given.

        Args:
            passphrase: Optional passphrase to seal the definition with
            params: Optional Argon2id parameters for the sealing key

        Returns:
            The key file contents
        """
        record = {
            'format': KEY_FILE_FORMAT,
            'version': KEY_FILE_VERSION,
            'created_at': self.created_at,
            'grid_size': self.grid_size,
            'field_count': self.field_count,
            'metadata': self.metadata,
            'sealed': passphrase is not None,
        }

        if passphrase is None:
            record['definition'] = _b64(self.definition)
        else:
            if params is None:
                params = KDF_DEFAULT_PARAMS
            salt = generate_salt(params.get('salt_len', KDF_DEFAULT_PARAMS['salt_len']))
            key = derive_key(passphrase, salt, params)

            nonce = secrets.token_bytes(12)
            cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
            cipher.update(_seal_header(self.grid_size, self.field_count))
            ciphertext, tag = cipher.encrypt_and_digest(self.definition)

            record.update({
                'kdf': 'argon2id',
                'kdf_params': dict(params),
                'salt': _b64(salt),
                'nonce': _b64(nonce),
                'tag': _b64(tag),
                'definition': _b64(ciphertext),
            })

        return json.dumps(record, indent=2)

    @classmethod
    def from_json(cls, text: str,
                  passphrase: Optional[Union[str, bytes]] = None) -> 'FieldKey':
        """
        Parse a key file, unsealing it if necessary.

        Args:
            text: The key file contents
            passphrase: Passphrase for sealed key files

        Returns:
            The key

        Raises:
            KeyFileError: If the file is malformed, the passphrase is
                missing, or authentication fails
        """
        try:
            record = json.loads(text)
            if record.get('format') != KEY_FILE_FORMAT:
                raise KeyFileError(f"Not a {KEY_FILE_FORMAT} file")
            if record.get('version') != KEY_FILE_VERSION:
                raise KeyFileError(f"Unsupported key file version {record.get('version')!r}")

            grid_size = int(record['grid_size'])
            field_count = int(record['field_count'])
            check_geometry(grid_size, field_count)
            payload = _unb64(record['definition'])

            if record.get('sealed'):
                if passphrase is None:
                    raise KeyFileError("Key file is sealed; a passphrase is required")
                params = record.get('kdf_params')
                if params is not None and not isinstance(params, dict):
                    raise KeyFileError("Malformed key file: kdf_params must be an object")
                try:
                    key = derive_key(passphrase, _unb64(record['salt']), params)
                except HashingError as e:
                    raise KeyFileError(f"Invalid key derivation parameters: {e}")
                cipher = AES.new(key, AES.MODE_GCM, nonce=_unb64(record['nonce']))
                cipher.update(_seal_header(grid_size, field_count))
                try:
                    definition = cipher.decrypt_and_verify(payload, _unb64(record['tag']))
                except ValueError:
                    raise KeyFileError("Failed to unseal key file: wrong passphrase or corrupted data")
            else:
                definition = payload

        except KeyFileError:
            raise
        except (ValueError, KeyError, TypeError) as e:
            raise KeyFileError(f"Malformed key file: {e}")

        return cls(
            definition=definition,
            grid_size=grid_size,
            field_count=field_count,
            created_at=int(record.get('created_at', 0)),
            metadata=record.get('metadata') or {},
        )

    def save(self, path: str,
             passphrase: Optional[Union[str, bytes]] = None,
             params: Optional[Dict[str, int]] = None) -> None:
        """
        Write the key to a JSON key file.

        Args:
            path: Destination path
            passphrase: Optional passphrase to seal the definition with
            params: Optional Argon2id parameters for the sealing key
        """
        with open(path, 'w', encoding='utf-8') as fh:
            fh.write(self.to_json(passphrase, params))
        logger.info("Wrote %s key file %s (fingerprint %s)",
                    'sealed' if passphrase is not None else 'plain', path, self.fingerprint())

    @staticmethod
    def requires_passphrase(path: str) -> bool:
        """
        Tell whether a key file is sealed.

        Raises:
            KeyFileError: If the file cannot be read or parsed
        """
        try:
            with open(path, 'rb') as fh:
                data = fh.read()
        except OSError as e:
            raise KeyFileError(f"Cannot read key file {path}: {e}")

        if data[:1] != b'{':
            return False
        try:
            return bool(json.loads(data.decode('utf-8')).get('sealed'))
        except (ValueError, AttributeError) as e:
            raise KeyFileError(f"Malformed key file: {e}")

    @classmethod
    def load(cls, path: str,
             passphrase: Optional[Union[str, bytes]] = None,
             grid_size: int = DEFAULT_GRID_SIZE,
             field_count: int = DEFAULT_FIELD_COUNT) -> 'FieldKey':
        """
        Read a JSON key file or a raw definition file.

        Args:
            path: Key file path
            passphrase: Passphrase for sealed key files
            grid_size: Geometry assumed for raw definition files
            field_count: Geometry assumed for raw definition files

        Returns:
            The key

        Raises:
            KeyFileError: If the file cannot be read or parsed
        """
        try:
            with open(path, 'rb') as fh:
                data = fh.read()
        except OSError as e:
            raise KeyFileError(f"Cannot read key file {path}: {e}")

        # Definition streams start with a mirror symbol, never '{'
        if data[:1] == b'{':
            try:
                text = data.decode('utf-8')
            except UnicodeDecodeError as e:
                raise KeyFileError(f"Malformed key file: {e}")
            key = cls.from_json(text, passphrase)
        else:
            check_geometry(grid_size, field_count)
            key = cls(definition=data, grid_size=grid_size, field_count=field_count,
                      metadata={'source': 'raw'})

        logger.debug("Loaded key file %s (fingerprint %s)", path, key.fingerprint())
        return key
