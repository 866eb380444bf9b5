from __future__ import annotations

import argparse
import asyncio
import json
import secrets
import sys

from pydantic import ValidationError

from .bus.websocket import WebSocketEventBus
from .client.sdk import SeedKey
from .config import SeedKeyOptions
from .dev.custodian import DevCustodian
from .dev.keys import DomainKeyring, b64d, b64e, challenge_bytes, verify_signature
from .errors import ErrorCode, SeedKeyError
from .logs import configure_logging, get_logger
from .models import AuthOptions
from .storage import JsonFileStore, SessionLedger
from .util.deps import check_dependencies, installed_versions

logger = get_logger("CLI")

DEFAULT_RELAY = "ws://127.0.0.1:8765"
DEFAULT_SESSION_FILE = "seedkey_session.json"


def self_check() -> bool:
    checks = []

    ok, missing = check_dependencies()
    checks.append(("Dependencies", ok))
    logger.debug("dependency_versions", **installed_versions())

    try:
        keyring = DomainKeyring.generate()
        data = challenge_bytes({"nonce": "n", "domain": "example.com"})
        sig = keyring.sign("example.com", data)
        checks.append(("Ed25519 sign/verify", verify_signature(keyring.public_key("example.com"), sig, data)))
        checks.append(("Per-domain keys", keyring.public_key("a.example") != keyring.public_key("b.example")))
    except Exception as e:
        logger.error("keyring_check_failed", error=str(e))
        checks.append(("Ed25519 sign/verify", False))

    try:
        b64d("invalid!@#$")
        checks.append(("Base64 strict decode", False))
    except ValueError:
        checks.append(("Base64 strict decode", True))

    for name, passed in checks:
        (logger.info if passed else logger.error)("self_check", check=name, status=("OK" if passed else "FAILED"))
    if missing:
        logger.error("missing_dependencies", missing=missing)
    return all(passed for _, passed in checks)


def _print(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


async def _run_custodian(relay: str, seed_b64: str, locked: bool) -> None:
    keyring = DomainKeyring(b64d(seed_b64)) if seed_b64 else DomainKeyring.generate()
    async with WebSocketEventBus(relay) as bus:
        custodian = DevCustodian(bus, keyring=keyring, locked=locked).start()
        try:
            await asyncio.Event().wait()
        finally:
            custodian.stop()


async def _run_client(args) -> int:
    options = SeedKeyOptions.from_env(
        backend_url=args.backend,
        origin=args.origin,
        timeout=args.timeout,
        debug=args.debug or None,
    )
    ledger = SessionLedger(JsonFileStore(args.session_file))

    async with WebSocketEventBus(args.relay) as bus:
        async with SeedKey(options, bus) as sdk:
            if args.command == "status":
                _print((await sdk.get_extension_status()).to_wire())
                return 0

            if args.command == "logout":
                token = ledger.get_access_token()
                if not token:
                    raise SeedKeyError(ErrorCode.INVALID_TOKEN, "No stored session")
                await sdk.logout(token)
                ledger.clear()
                _print({"success": True})
                return 0

            opts = AuthOptions.for_device(args.device_name) if args.device_name else None
            if args.command == "register":
                result = await sdk.register(opts)
            elif args.command == "login":
                result = await sdk.authenticate()
            else:
                result = await sdk.auth(opts)

            if result.token:
                ledger.save(result.token, result.user.id if result.user else None)
            _print(result.to_wire())
            return 0


def main():
    parser = argparse.ArgumentParser(description="SeedKey passwordless authentication client")
    parser.add_argument("--debug", action="store_true")
    parser.add_argument("--console", action="store_true", help="Human-readable logs instead of JSON")
    subparsers = parser.add_subparsers(dest="command", required=True)

    relay_parser = subparsers.add_parser("relay", help="Run the channel relay")
    relay_parser.add_argument("--host", default="127.0.0.1")
    relay_parser.add_argument("--port", type=int, default=8765)

    custodian_parser = subparsers.add_parser("custodian", help="Run the development key custodian")
    custodian_parser.add_argument("--relay", default=DEFAULT_RELAY)
    custodian_parser.add_argument("--seed-b64", default="", help="Base64 seed (>=16 bytes); random if omitted")
    custodian_parser.add_argument("--locked", action="store_true")

    for name, help_text in [
        ("status", "Report extension status"),
        ("auth", "Log in, registering if the user is unknown"),
        ("register", "Register a new account"),
        ("login", "Authenticate an existing account"),
        ("logout", "Invalidate the stored session"),
    ]:
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("--backend", default=None, help="Backend URL (or SEEDKEY_BACKEND_URL)")
        p.add_argument("--relay", default=DEFAULT_RELAY)
        p.add_argument("--origin", default=None)
        p.add_argument("--timeout", type=float, default=None)
        p.add_argument("--device-name", default=None)
        p.add_argument("--session-file", default=DEFAULT_SESSION_FILE)

    session_parser = subparsers.add_parser("session", help="Show the stored session")
    session_parser.add_argument("--session-file", default=DEFAULT_SESSION_FILE)

    subparsers.add_parser("gen-seed", help="Generate a custodian seed")
    subparsers.add_parser("check", help="Run dependency and crypto self-check")

    args = parser.parse_args()
    configure_logging(debug=args.debug, json=not args.console)

    if args.command == "check":
        if not self_check():
            sys.exit(1)
        print("✓ Self-check passed")
        return

    if args.command == "gen-seed":
        print(b64e(secrets.token_bytes(32)))
        return

    if args.command == "session":
        session = SessionLedger(JsonFileStore(args.session_file)).get_session()
        _print({
            "accessToken": session.access_token,
            "refreshToken": session.refresh_token,
            "userId": session.user_id,
            "isExpired": session.is_expired,
        })
        return

    if args.command == "relay":
        import uvicorn
        from .relay import build_relay_app
        logger.info("starting_relay", host=args.host, port=args.port)
        uvicorn.run(build_relay_app(), host=args.host, port=args.port, log_config=None)
        return

    if args.command == "custodian":
        try:
            asyncio.run(_run_custodian(args.relay, args.seed_b64, args.locked))
        except KeyboardInterrupt:
            logger.info("custodian_shutdown", reason="keyboard_interrupt")
        return

    try:
        sys.exit(asyncio.run(_run_client(args)))
    except KeyboardInterrupt:
        logger.info("client_shutdown", reason="keyboard_interrupt")
    except SeedKeyError as e:
        logger.error("seedkey_error", code=str(e.code), message=e.message)
        _print(e.to_dict())
        sys.exit(1)
    except ValidationError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()
