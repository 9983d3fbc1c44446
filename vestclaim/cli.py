#!/usr/bin/env python3
"""Inspect and claim vested tokens for the local wallet."""
import argparse
import getpass
import json
import os
import sys

from vestclaim.config import load_config
from vestclaim.errors import InvalidPassword
from vestclaim.log import setup_logging
from vestclaim.vesting import build_services
from vestclaim.wallet import KeystoreWallet


def _read_password(args, confirm=False):
    if args.password_env:
        password = os.getenv(args.password_env)
        if password is None:
            sys.exit(f"Environment variable {args.password_env} is not set")
        return password
    password = getpass.getpass("Wallet password: ")
    if confirm and getpass.getpass("Repeat password: ") != password:
        sys.exit("Passwords do not match")
    return password


def cmd_info(args, config):
    query, _ = build_services(config)
    if len(args.tokens) == 1:
        return query.get_vesting_info(args.tokens[0])
    return query.get_all_vesting_info(args.tokens)


def cmd_claim(args, config):
    _, claim = build_services(config)
    return claim.claim_vested_tokens(_read_password(args), args.token)


def cmd_wallet(args, config):
    wallet = KeystoreWallet(config.wallet_path)
    if args.action == "address":
        if not wallet.has_wallet():
            return {"success": False, "error": "No wallet found. Create a wallet first.", "code": "NoWallet"}
        return {"success": True, "address": wallet.get_address(), "path": str(wallet.path)}

    if wallet.has_wallet():
        return {"success": False, "error": f"Wallet already exists at {wallet.path}"}
    try:
        address = wallet.create(_read_password(args, confirm=True))
    except InvalidPassword as e:
        return e.to_result()
    return {"success": True, "address": address, "path": str(wallet.path)}


def build_parser():
    parser = argparse.ArgumentParser(prog="vestclaim", description=__doc__)
    parser.add_argument("--rpc-url", help="RPC endpoint (comma-separated for fallbacks)")
    parser.add_argument("--env-file", help=".env file to load before reading the environment")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("info", help="show vesting schedule(s) for token address(es)")
    p.add_argument("tokens", nargs="+", metavar="TOKEN")
    p.set_defaults(func=cmd_info)

    p = sub.add_parser("claim", help="release all currently vested tokens")
    p.add_argument("token", metavar="TOKEN")
    p.add_argument("--password-env", help="read the wallet password from this environment variable")
    p.set_defaults(func=cmd_claim)

    p = sub.add_parser("wallet", help="manage the local keystore wallet")
    p.add_argument("action", choices=["create", "address"])
    p.add_argument("--password-env", help="read the wallet password from this environment variable")
    p.set_defaults(func=cmd_wallet)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    config = load_config(args.env_file).with_rpc_url(args.rpc_url)
    setup_logging(config.log_level, stream=sys.stderr)

    result = args.func(args, config)
    print(json.dumps(result, indent=2))
    return 0 if result.get("success") else 1


if __name__ == "__main__":
    sys.exit(main())
