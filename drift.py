"""Account lists for calling the Drift program on behalf of a vault.

The order of every list here is fixed by the Drift program's instruction
handlers and must not change.
"""

from typing import List, Tuple

from driftpy.addresses import (
    get_state_public_key,
    get_user_account_public_key,
    get_user_stats_account_public_key,
)
from driftpy.constants.config import DRIFT_PROGRAM_ID
from solders.instruction import AccountMeta
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.sysvar import RENT

DRIFT_PROGRAM = DRIFT_PROGRAM_ID

# Devnet oracles and markets
SOL_ORACLE = Pubkey.from_string("BAtFj4kQttZRVep3UZS2aZRDixkGYgWsbqTBVDbnSsPF")
USDC_ORACLE = Pubkey.from_string("En8hkHLkRe9d9DraYmBTrus518BvmVH448YcvmrFM6Ce")
SOL_SPOT_MARKET = Pubkey.from_string("3x85u7SWkmmr7YQGYhtjARgxwegTLJgkSLRprfXod6rh")
USDC_SPOT_MARKET = Pubkey.from_string("6gMq3mRCKf8aP3ttTyYhuijVZ2LGi14oDsBbkgubfLB3")
SOL_PERP_MARKET = Pubkey.from_string("8UJgxaiQx5nTrdDgph5FiahMmzduuLTLf5WmsPegYA6W")

MAX_SEED_LENGTH = 32


def find_pda(seeds: List[bytes], program_id: Pubkey) -> Pubkey:
    """Program derived address for seeds, rejecting seeds the runtime would not accept"""
    for seed in seeds:
        if len(seed) > MAX_SEED_LENGTH:
            raise ValueError(f"Seed {seed!r} is {len(seed)} bytes, the limit is {MAX_SEED_LENGTH}")
    pda, _ = Pubkey.find_program_address(seeds, program_id)
    return pda


def get_vault_pda(program_id: Pubkey, vault_id: str) -> Pubkey:
    return find_pda([vault_id.encode()], program_id)


def get_drift_user(vault: Pubkey, sub_account_id: int = 0) -> Tuple[Pubkey, Pubkey]:
    """Drift user and user stats accounts owned by the vault"""
    return (
        get_user_account_public_key(DRIFT_PROGRAM, vault, sub_account_id),
        get_user_stats_account_public_key(DRIFT_PROGRAM, vault),
    )


def get_initialize_drift_keys(
    signer: Pubkey, program_id: Pubkey, vault_id: str, sub_account_id: int = 0
) -> List[AccountMeta]:
    """Accounts for initializing the vault's Drift user and user stats.

    The vault appears three times: once as the account being set up and
    twice as the authority/payer the vault program signs for.
    """
    vault = get_vault_pda(program_id, vault_id)
    user, user_stats = get_drift_user(vault, sub_account_id)
    state = get_state_public_key(DRIFT_PROGRAM)

    return [
        AccountMeta(pubkey=signer, is_signer=True, is_writable=False),
        AccountMeta(pubkey=vault, is_signer=False, is_writable=True),
        AccountMeta(pubkey=user, is_signer=False, is_writable=True),
        AccountMeta(pubkey=user_stats, is_signer=False, is_writable=True),
        AccountMeta(pubkey=state, is_signer=False, is_writable=True),
        AccountMeta(pubkey=vault, is_signer=True, is_writable=True),
        AccountMeta(pubkey=vault, is_signer=True, is_writable=True),
        AccountMeta(pubkey=RENT, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
    ]


def get_order_remaining_accounts() -> List[AccountMeta]:
    """Oracles and markets Drift needs to price a SOL-PERP order against USDC collateral"""
    return [
        AccountMeta(pubkey=SOL_ORACLE, is_signer=False, is_writable=False),
        AccountMeta(pubkey=USDC_ORACLE, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SOL_SPOT_MARKET, is_signer=False, is_writable=True),
        AccountMeta(pubkey=USDC_SPOT_MARKET, is_signer=False, is_writable=True),
        AccountMeta(pubkey=SOL_PERP_MARKET, is_signer=False, is_writable=True),
    ]
