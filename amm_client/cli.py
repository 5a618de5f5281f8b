#!/usr/bin/env python3
"""
Command-line interface for read-only AMM queries.

Usage:
    python -m amm_client.cli pool 0x<pool_id>
    python -m amm_client.cli pool-id 0x<tokenA> 0x<tokenB> 30
    python -m amm_client.cli liquidity 0x<pool_id> 0x<account>
    python -m amm_client.cli pools --from-block 0
"""

import argparse
import asyncio
import logging
import sys

from amm_client.config.base import ConfigError
from amm_client.config.manager import get_config
from amm_client.errors import AmmClientError
from amm_client.pipelines.amm_pipeline import AmmClient
from amm_client.pool_types import latest_pool_for_pair

logger = logging.getLogger(__name__)


async def show_pool(client: AmmClient, args) -> bool:
    pool = await client.get_pool(args.pool_id)
    if pool is None:
        logger.warning(f"⚠️  Pool {args.pool_id} does not exist")
        return False

    logger.info(f"🏊 Pool {pool.pool_id}")
    logger.info(f"   token0:       {pool.token0}")
    logger.info(f"   token1:       {pool.token1}")
    logger.info(f"   reserves:     {pool.reserve0} / {pool.reserve1}")
    logger.info(f"   fee:          {pool.fee_bps} bps")
    logger.info(f"   total supply: {pool.total_supply}")
    return True


async def show_pool_id(client: AmmClient, args) -> bool:
    pool_id = await client.get_pool_id(args.token_a, args.token_b, args.fee_bps)
    logger.info(f"🔑 {pool_id}")
    return True


async def show_liquidity(client: AmmClient, args) -> bool:
    balance = await client.get_user_liquidity(args.pool_id, args.account)
    logger.info(f"💧 {args.account} holds {balance} LP shares in {args.pool_id}")
    return True


async def list_pools(client: AmmClient, args) -> bool:
    events = await client.get_all_pools(args.from_block, args.to_block)

    if args.token_a and args.token_b:
        latest = latest_pool_for_pair(events, args.token_a, args.token_b)
        if latest is None:
            logger.warning(f"⚠️  No pool found for {args.token_a}/{args.token_b}")
            return False
        events = [latest]

    for event in events:
        logger.info(
            f"📊 {event.pool_id} {event.token0}/{event.token1} fee={event.fee_bps}bps "
            f"block={event.block_number}"
        )
    logger.info(f"🎯 {len(events)} pool(s)")
    return True


COMMANDS = {
    "pool": show_pool,
    "pool-id": show_pool_id,
    "liquidity": show_liquidity,
    "pools": list_pools,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Query an AMM deployment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Pool snapshot
  python -m amm_client.cli pool 0x5f1c...

  # Pool id for a pair and fee tier (token order does not matter)
  python -m amm_client.cli pool-id 0xTokenA 0xTokenB 30

  # Every pool created since the deployment block
  python -m amm_client.cli pools

  # Latest pool for a pair
  python -m amm_client.cli pools --pair 0xTokenA 0xTokenB
        """,
    )
    parser.add_argument("--rpc-url", help="Override RPC_URL")
    parser.add_argument("--amm-address", help="Override AMM_CONTRACT_ADDRESS")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    pool = subparsers.add_parser("pool", help="Show a pool snapshot")
    pool.add_argument("pool_id")

    pool_id = subparsers.add_parser("pool-id", help="Compute a pool id")
    pool_id.add_argument("token_a")
    pool_id.add_argument("token_b")
    pool_id.add_argument("fee_bps", type=int)

    liquidity = subparsers.add_parser("liquidity", help="Show an account's LP shares")
    liquidity.add_argument("pool_id")
    liquidity.add_argument("account")

    pools = subparsers.add_parser("pools", help="List created pools")
    pools.add_argument("--from-block", type=int, help="Start block (default: AMM_DEPLOYMENT_BLOCK)")
    pools.add_argument("--to-block", type=int, help="End block (default: latest)")
    pools.add_argument("--pair", nargs=2, metavar=("TOKEN_A", "TOKEN_B"), help="Only the latest pool for this pair")

    return parser


async def main(argv=None) -> int:
    """Main CLI function."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "pools":
        args.token_a, args.token_b = args.pair or (None, None)

    try:
        config = get_config()
        if args.rpc_url:
            config.chain.RPC_URL = args.rpc_url
        if args.amm_address:
            config.contracts.AMM_CONTRACT_ADDRESS = args.amm_address
        if args.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        client = AmmClient.from_config(config)
        success = await COMMANDS[args.command](client, args)
    except (AmmClientError, ConfigError, ValueError) as e:
        logger.error(f"❌ {args.command} failed: {e}")
        return 1

    return 0 if success else 1


def run():
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
