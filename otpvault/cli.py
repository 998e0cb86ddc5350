"""
otpvault - Command Line Interface

    otp init                            create the database
    otp add <secret> <issuer> <account> store (or replace) a secret
    otp get [filter]                    show current codes
    otp list                            list stored accounts
    otp qr [--output-dir DIR]           write enrollment QR images
    otp rm <issuer> <account>           delete a secret
    otp http [--addr HOST:PORT]         serve codes over HTTP

Global flags --db and --private-key default to $OTP_DB and $OTP_PRIVKEY.
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import Settings, parse_addr
from .crypto import load_private_key
from .errors import OTPVaultError
from .listing import (
    CODES_HEADER,
    ENTRIES_HEADER,
    QR_HEADER,
    code_rows,
    qr_rows,
    render_table,
)
from .logger import get_logger
from .store import SecretStore
from .vault import Vault


log = get_logger(__name__)


# =============================================================================
# Commands
# =============================================================================

def cmd_init(args) -> int:
    with SecretStore(args.db) as store:
        store.initialize()
    log.info("database initialized")
    return 0


def cmd_add(args) -> int:
    key = load_private_key(args.private_key)
    with SecretStore(args.db) as store:
        Vault(store, key).store_secret(args.account, args.issuer, args.secret)
    return 0


def cmd_get(args) -> int:
    key = load_private_key(args.private_key)
    with SecretStore(args.db) as store:
        vault = Vault(store, key)
        if not args.filter:
            sys.stdout.write(render_table(CODES_HEADER, code_rows(vault.codes())))
            return 0

        matches = vault.lookup(args.filter)
        if len(matches) == 1 and matches[0].ok:
            # single hit: just the code, handy for scripts
            print(matches[0].timecode.code)
        elif matches:
            sys.stdout.write(render_table(CODES_HEADER, code_rows(matches)))
    return 0


def cmd_list(args) -> int:
    with SecretStore(args.db) as store:
        rows = Vault(store).entries()
    sys.stdout.write(render_table(ENTRIES_HEADER, rows))
    return 0


def cmd_qr(args) -> int:
    key = load_private_key(args.private_key)
    with SecretStore(args.db) as store:
        results = Vault(store, key).export_qr(args.output_dir)
        sys.stdout.write(render_table(QR_HEADER, qr_rows(results)))
    return 0


def cmd_rm(args) -> int:
    with SecretStore(args.db) as store:
        Vault(store).remove_secret(args.account, args.issuer)
    return 0


def cmd_http(args) -> int:
    from .web import create_app

    try:
        host, port = parse_addr(args.addr)
    except ValueError as e:
        log.error("error: %s", e)
        return 2

    key = load_private_key(args.private_key)
    with SecretStore(args.db) as store:
        app = create_app(Vault(store, key))
        log.info("serving codes on http://%s:%d/", host, port)
        # one sqlite connection: handle requests one at a time
        app.run(host=host, port=port, threaded=False)
    return 0


# =============================================================================
# Parser
# =============================================================================

def build_parser(settings: Optional[Settings] = None) -> argparse.ArgumentParser:
    settings = settings or Settings.from_env()

    parser = argparse.ArgumentParser(
        prog="otp",
        description="OTP client: TOTP secrets encrypted with your RSA private key",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--db", default=settings.db_path,
                        help="SQLite database (env OTP_DB, default %(default)s)")
    parser.add_argument("--private-key", default=settings.private_key_path,
                        help="PEM RSA private key (env OTP_PRIVKEY, default %(default)s)")

    sub = parser.add_subparsers(dest="command", metavar="command")
    sub.required = True

    p = sub.add_parser("init", help="initialize the OTP database")
    p.set_defaults(func=cmd_init)

    p = sub.add_parser("add", help="add a new OTP key")
    p.add_argument("secret", nargs="?", default="")
    p.add_argument("issuer", nargs="?", default="")
    p.add_argument("account", nargs="?", default="")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("get", help="generate OTP codes")
    p.add_argument("filter", nargs="?", default="",
                   help="only show accounts/issuers containing this text")
    p.set_defaults(func=cmd_get)

    p = sub.add_parser("list", help="list all keys")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("qr", help="generate QR codes")
    p.add_argument("--output-dir", default=".", help="where to write PNG files")
    p.set_defaults(func=cmd_qr)

    p = sub.add_parser("rm", help="delete an OTP key")
    p.add_argument("issuer", nargs="?", default="")
    p.add_argument("account", nargs="?", default="")
    p.set_defaults(func=cmd_rm)

    p = sub.add_parser("http", help="serve OTP codes over HTTP")
    p.add_argument("--addr", default=settings.http_addr,
                   help="listen address (env OTP_HTTP_ADDR, default %(default)s)")
    p.set_defaults(func=cmd_http)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    settings = Settings.from_env()
    if settings.log_level:
        get_logger(level=settings.log_level)

    args = build_parser(settings).parse_args(argv)
    try:
        return args.func(args)
    except OTPVaultError as e:
        log.error("error: %s", e)
        return 1
    except KeyboardInterrupt:
        print("\nExiting...")
        return 130


if __name__ == "__main__":
    sys.exit(main())
