"""Evolution CLI — operational commands for the reward vault.

Usage:
    python -m evolution.cli show-config
    python -m evolution.cli make-commitment --type 1 --referrer 0x7099... --timestamp 100
    python -m evolution.cli sign-registration --type 1 --referrer 0x7099... --timestamp 100
    python -m evolution.cli recover --commitment 0x... --signature 0x...
    python -m evolution.cli reward --level 2 --amount 1000000
    python -m evolution.cli check-eligibility --level 0 --referrals 10 --evolved 0 --volume 10000

The approver key for sign-registration is read from APPROVER_KEY
(environment or .env) unless --key is given.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from evolution.crypto.commitment import commitment_hex, make_commitment
from evolution.crypto.signature import join, recover
from evolution.crypto.signer import ApproverSigner
from evolution.engine.criteria import TierCriteriaEngine
from evolution.engine.rewards import RewardPercentageTable
from evolution.errors import EvolutionError
from evolution.models.tiers import UserStats
from evolution.policy.resolver import PolicyResolver


DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "config"


def _resolver(args: argparse.Namespace) -> PolicyResolver:
    return PolicyResolver.from_config_dir(args.config)


def cmd_show_config(args: argparse.Namespace) -> int:
    print(json.dumps(_resolver(args).as_dict(), indent=2))
    return 0


def cmd_make_commitment(args: argparse.Namespace) -> int:
    commitment = make_commitment(args.type, args.referrer, args.timestamp)
    print(commitment_hex(commitment))
    return 0


def cmd_sign_registration(args: argparse.Namespace) -> int:
    """Produce an approver signature for a registration request."""
    signer = ApproverSigner(args.key) if args.key else ApproverSigner.from_env()
    commitment = make_commitment(args.type, args.referrer, args.timestamp)
    signature = signer.sign(commitment)
    print(json.dumps(
        {
            "approver": signer.address,
            "commitment": commitment_hex(commitment),
            "v": signature.v,
            "r": f"0x{signature.r:064x}",
            "s": f"0x{signature.s:064x}",
            "signature": "0x" + join(signature).hex(),
        },
        indent=2,
    ))
    return 0


def cmd_recover(args: argparse.Namespace) -> int:
    print(recover(args.commitment, args.signature))
    return 0


def cmd_reward(args: argparse.Namespace) -> int:
    resolver = _resolver(args)
    table = RewardPercentageTable(resolver.total_levels())
    table.set_table(resolver.reward_percentages())
    print(table.apply_reward(args.level, args.amount))
    return 0


def cmd_check_eligibility(args: argparse.Namespace) -> int:
    resolver = _resolver(args)
    engine = TierCriteriaEngine(resolver.total_levels())
    levels, criteria = resolver.evolution_criteria()
    engine.set_criteria(levels, criteria)
    stats = UserStats(
        referrals=args.referrals,
        evolved_referrals=args.evolved,
        volume=args.volume,
    )
    shortfall = engine.shortfall(args.level, stats)
    print(json.dumps({"level": args.level, "eligible": not shortfall, "shortfall": shortfall}, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="evolution",
        description="Evolution reward vault — operational CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to config directory (default: config/)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # show-config
    sub.add_parser("show-config", help="Show resolved configuration")

    # make-commitment / sign-registration share the request arguments
    for name, help_text in (
        ("make-commitment", "Compute a registration commitment"),
        ("sign-registration", "Sign a registration commitment as the approver"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--type", type=int, required=True, help="Verification type (uint8)")
        p.add_argument("--referrer", required=True, help="Referrer address")
        p.add_argument("--timestamp", type=int, required=True, help="Request timestamp")
        if name == "sign-registration":
            p.add_argument("--key", help="Approver private key (default: APPROVER_KEY)")

    # recover
    p_rec = sub.add_parser("recover", help="Recover the signer of a commitment")
    p_rec.add_argument("--commitment", required=True, help="Commitment (0x-hex)")
    p_rec.add_argument("--signature", required=True, help="65-byte signature (0x-hex)")

    # reward
    p_rew = sub.add_parser("reward", help="Compute a level-scaled reward")
    p_rew.add_argument("--level", type=int, required=True, help="User level")
    p_rew.add_argument("--amount", type=int, required=True, help="Base amount")

    # check-eligibility
    p_elig = sub.add_parser("check-eligibility", help="Check evolution criteria for a level")
    p_elig.add_argument("--level", type=int, required=True, help="Current level")
    p_elig.add_argument("--referrals", type=int, default=0)
    p_elig.add_argument("--evolved", type=int, default=0, help="Evolved referrals")
    p_elig.add_argument("--volume", type=int, default=0)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "WARNING")

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "show-config": cmd_show_config,
        "make-commitment": cmd_make_commitment,
        "sign-registration": cmd_sign_registration,
        "recover": cmd_recover,
        "reward": cmd_reward,
        "check-eligibility": cmd_check_eligibility,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args)
    except EvolutionError as exc:
        print(f"Failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
