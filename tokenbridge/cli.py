"""
tokenbridge/cli.py
Command-line interface for tokenbridge.

USAGE:
  tokenbridge sign --dataset ds-001
  tokenbridge sign --dataset ds-001 --timestamp 1700000000000 --json
  tokenbridge verify --dataset ds-001 --token <b64> --timestamp 1700000000000
  tokenbridge serve --port 3000

Configuration comes from tokenbridge_config.json in the current directory
and the environment (ACCESS_KEY, LOVRABET_APP_CODE, SECRET_KEY, ...).
"""

import argparse
import json
import logging
import sys

from tokenbridge import __version__
from tokenbridge.config import load_config, resolve_secret_key
from tokenbridge.errors import BridgeError
from tokenbridge.issuer import TokenIssuer
from tokenbridge.signer import verify_token

logger = logging.getLogger(__name__)

GREEN  = '\033[92m'
YELLOW = '\033[93m'
RED    = '\033[91m'
CYAN   = '\033[96m'
RESET  = '\033[0m'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog        = 'tokenbridge',
        description = 'tokenbridge: short-lived OpenAPI tokens and data service proxy',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument(
        '--verbose', '-v',
        action  = 'store_true',
        help    = 'Enable debug logging',
    )
    sub = parser.add_subparsers(dest='command', required=True)

    p_sign = sub.add_parser('sign', help='Issue a token for a dataset')
    p_sign.add_argument('--dataset', '-d', required=True, help='Dataset code to sign for')
    p_sign.add_argument(
        '--timestamp', '-t',
        type    = int,
        default = None,
        help    = 'Timestamp in ms to sign (default: now)',
    )
    p_sign.add_argument('--json', action='store_true', help='Print {token,timestamp,expiresAt} JSON')

    p_verify = sub.add_parser('verify', help='Check a token against the configured secret')
    p_verify.add_argument('--dataset', '-d', required=True, help='Dataset code the token was issued for')
    p_verify.add_argument('--token', required=True, help='Base64 token')
    p_verify.add_argument('--timestamp', '-t', required=True, type=int, help='Signed timestamp (ms)')

    p_serve = sub.add_parser('serve', help='Run the HTTP API under uvicorn')
    p_serve.add_argument('--host', default='127.0.0.1', help='Host to bind (default: 127.0.0.1)')
    p_serve.add_argument('--port', type=int, default=3000, help='Port to bind (default: 3000)')

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # ── LOGGING SETUP ────────────────────────────────────────
    logging.basicConfig(
        level   = logging.DEBUG if args.verbose else logging.INFO,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    config = load_config()

    if args.command == 'sign':
        issuer = TokenIssuer(config)
        if args.timestamp is not None:
            issuer.clock = lambda: args.timestamp
        try:
            result = issuer.issue(args.dataset)
        except BridgeError as exc:
            _print(f"{RED}Error: {exc.public_message}{RESET}", err=True)
            logger.debug(f"sign failed: {exc}")
            return 1
        if args.json:
            _print(json.dumps(result.to_dict()))
        else:
            _print(f"token      : {CYAN}{result.token}{RESET}")
            _print(f"timestamp  : {result.timestamp}")
            _print(f"expiresAt  : {result.expires_at}")
        return 0

    if args.command == 'verify':
        secret_key = resolve_secret_key(config)
        missing = [
            name for name, value in (
                ('LOVRABET_APP_CODE', config.app_code),
                ('ACCESS_KEY',        config.access_key),
                ('SECRET_KEY',        secret_key),
            ) if not value
        ]
        if missing:
            _print(f"{RED}Error: {', '.join(missing)} not configured{RESET}", err=True)
            return 1
        ok = verify_token(
            token          = args.token,
            timestamp      = args.timestamp,
            application_id = config.app_code,
            dataset_id     = args.dataset,
            access_key_id  = config.access_key,
            secret_key     = secret_key,
        )
        _print(f"{GREEN}valid{RESET}" if ok else f"{YELLOW}invalid or expired{RESET}")
        return 0 if ok else 1

    if args.command == 'serve':
        import uvicorn
        from tokenbridge.api import build_app

        server_app = build_app(config)
        _print(f"Starting tokenbridge at http://{args.host}:{args.port}  (docs: /docs)")
        uvicorn.run(server_app, host=args.host, port=args.port, log_level='info')
        return 0

    return 2


def _print(msg, err=False):
    print(msg, file=sys.stderr if err else sys.stdout)


if __name__ == '__main__':
    sys.exit(main())
