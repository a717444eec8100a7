"""
Command Line Interface

    mirrorcipher generate -o KEYFILE [--grid-size N] [--field-count K] [--seal]
                          [--from-passphrase --salt HEX]
    mirrorcipher crypt -k KEYFILE [-i IN] [-o OUT] [-e] [-d] [-D MS]

crypt both encrypts and decrypts, since the cipher is symmetric. Input and
output default to stdin/stdout. Passphrases are taken from --pass, then
MIRRORCIPHER_PASSPHRASE, then an interactive prompt.
"""

import argparse
import base64
import getpass
import logging
import sys
from typing import List, Optional

from . import __version__
from .cipher_core.driver import MirrorCipher
from .config import CipherSettings
from .kdf_km.key_management import FieldKey, derive_definition, generate_salt
from .visualize.render import FieldRenderer

logger = logging.getLogger('mirrorcipher')


def _build_parser(settings: CipherSettings) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog='mirrorcipher',
        description='Mirror field substitution cipher',
    )
    ap.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    ap.add_argument('-v', '--verbose', action='count', default=0,
                    help='More logging (-v info, -vv debug)')
    ap.add_argument('--pass', dest='pw', default=None,
                    help='Passphrase (unsafe on shared shells)')

    sub = ap.add_subparsers(dest='cmd', required=True)

    p_gen = sub.add_parser('generate', help='Create a new key file')
    p_gen.add_argument('-o', '--out', required=True, help='Key file to write')
    p_gen.add_argument('--grid-size', type=int, default=settings.grid_size,
                       help=f'Mirror grid side length (default {settings.grid_size})')
    p_gen.add_argument('--field-count', type=int, default=settings.field_count,
                       help=f'Number of mirror fields (default {settings.field_count})')
    p_gen.add_argument('--seal', action='store_true',
                       help='Seal the key file with a passphrase')
    p_gen.add_argument('--from-passphrase', action='store_true',
                       help='Derive the fields from the passphrase instead of at random')
    p_gen.add_argument('--salt', default=None,
                       help='Hex salt for --from-passphrase (default: random)')

    p_crypt = sub.add_parser('crypt', help='Encrypt or decrypt a byte stream')
    p_crypt.add_argument('-k', '--key', default=settings.key_file,
                         help='Key file (default: $MIRRORCIPHER_KEY_FILE)')
    p_crypt.add_argument('-i', '--input', default=None, help='Input file (default: stdin)')
    p_crypt.add_argument('-o', '--output', default=None, help='Output file (default: stdout)')
    p_crypt.add_argument('-e', '--encode', action='store_true',
                         help='Base64-encode the output')
    p_crypt.add_argument('-d', '--decode', action='store_true',
                         help='Base64-decode the input')
    p_crypt.add_argument('-D', '--debug', type=int, default=0, metavar='MS',
                         help='Animate the traversal with MS milliseconds per step')
    p_crypt.add_argument('--grid-size', type=int, default=settings.grid_size,
                         help='Grid size assumed for raw definition key files')
    p_crypt.add_argument('--field-count', type=int, default=settings.field_count,
                         help='Field count assumed for raw definition key files')

    return ap


def _passphrase(args, settings: CipherSettings, confirm: bool = False) -> str:
    if args.pw:
        return args.pw
    if settings.passphrase:
        return settings.passphrase

    pw = getpass.getpass('Passphrase: ')
    if confirm and getpass.getpass('Repeat passphrase: ') != pw:
        raise ValueError('Passphrases do not match')
    if not pw:
        raise ValueError('Empty passphrase')
    return pw


def _read_input(path: Optional[str]) -> bytes:
    if path is None:
        return sys.stdin.buffer.read()
    with open(path, 'rb') as fh:
        return fh.read()


def _write_output(path: Optional[str], data: bytes) -> None:
    if path is None:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    with open(path, 'wb') as fh:
        fh.write(data)


def _cmd_generate(args, settings: CipherSettings) -> int:
    pw = None
    if args.seal or args.from_passphrase:
        pw = _passphrase(args, settings, confirm=True)

    if args.from_passphrase:
        salt = bytes.fromhex(args.salt) if args.salt else generate_salt()
        definition = derive_definition(pw, salt, args.grid_size, args.field_count)
        key = FieldKey(definition, args.grid_size, args.field_count,
                       metadata={'derived': True, 'salt': salt.hex()})
    else:
        key = FieldKey.generate(args.grid_size, args.field_count)

    key.save(args.out, passphrase=pw if args.seal else None)
    print(f"Wrote: {args.out} (fingerprint {key.fingerprint()})", file=sys.stderr)
    return 0


def _cmd_crypt(args, settings: CipherSettings) -> int:
    if not args.key:
        print('No key file given (use -k or MIRRORCIPHER_KEY_FILE)', file=sys.stderr)
        return 2

    pw = None
    if FieldKey.requires_passphrase(args.key):
        pw = _passphrase(args, settings)

    key = FieldKey.load(args.key, passphrase=pw,
                        grid_size=args.grid_size, field_count=args.field_count)
    bank = key.build_bank()

    observer = FieldRenderer(delay_ms=args.debug) if args.debug > 0 else None
    cipher = MirrorCipher(bank, on_step=observer)

    data = _read_input(args.input)
    if args.decode:
        data = base64.b64decode(data)

    out = cipher.process_bytes(data)
    logger.info("Processed %d bytes with key %s", len(data), key.fingerprint())

    if args.encode:
        out = base64.b64encode(out) + b'\n'

    _write_output(args.output, out)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = CipherSettings.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    ap = _build_parser(settings)
    args = ap.parse_args(argv)

    level = settings.log_level
    if args.verbose == 1:
        level = 'INFO'
    elif args.verbose > 1:
        level = 'DEBUG'
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

    try:
        if args.cmd == 'generate':
            return _cmd_generate(args, settings)
        return _cmd_crypt(args, settings)

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        return 2
    except (ValueError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    raise SystemExit(main())
