"""Tests for Drift account derivation and account lists."""

import pytest
from driftpy.addresses import get_user_account_public_key, get_user_stats_account_public_key
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.sysvar import RENT

import drift
from drift import (
    DRIFT_PROGRAM,
    MAX_SEED_LENGTH,
    get_drift_user,
    get_initialize_drift_keys,
    get_order_remaining_accounts,
    get_vault_pda,
)


class TestVaultPda:
    def test_is_deterministic(self, program_id):
        assert get_vault_pda(program_id, "sunit") == get_vault_pda(program_id, "sunit")

    def test_uses_vault_id_as_only_seed(self, program_id):
        expected, _ = Pubkey.find_program_address([b"sunit"], program_id)
        assert get_vault_pda(program_id, "sunit") == expected

    def test_different_ids_give_different_vaults(self, program_id):
        assert get_vault_pda(program_id, "alpha") != get_vault_pda(program_id, "beta")

    def test_different_programs_give_different_vaults(self, program_id):
        other = Pubkey.from_string("11111111111111111111111111111112")
        assert get_vault_pda(program_id, "sunit") != get_vault_pda(other, "sunit")

    def test_accepts_seed_at_limit(self, program_id):
        get_vault_pda(program_id, "x" * MAX_SEED_LENGTH)

    def test_rejects_seed_over_limit(self, program_id):
        with pytest.raises(ValueError, match="limit is 32"):
            get_vault_pda(program_id, "x" * (MAX_SEED_LENGTH + 1))


class TestDriftUser:
    def test_matches_driftpy_derivation(self, program_id):
        vault = get_vault_pda(program_id, "sunit")
        user, user_stats = get_drift_user(vault)
        assert user == get_user_account_public_key(DRIFT_PROGRAM, vault, 0)
        assert user_stats == get_user_stats_account_public_key(DRIFT_PROGRAM, vault)

    def test_sub_account_changes_user_not_stats(self, program_id):
        vault = get_vault_pda(program_id, "sunit")
        user0, stats0 = get_drift_user(vault, 0)
        user1, stats1 = get_drift_user(vault, 1)
        assert user0 != user1
        assert stats0 == stats1


class TestInitializeDriftKeys:
    def test_has_nine_entries(self, signer, program_id):
        keys = get_initialize_drift_keys(signer.pubkey(), program_id, "sunit")
        assert len(keys) == 9

    def test_order_and_flags(self, signer, program_id):
        keys = get_initialize_drift_keys(signer.pubkey(), program_id, "sunit")
        vault = get_vault_pda(program_id, "sunit")
        user, user_stats = get_drift_user(vault)
        state, _ = Pubkey.find_program_address([b"drift_state"], DRIFT_PROGRAM)

        expected = [
            (signer.pubkey(), True, False),
            (vault, False, True),
            (user, False, True),
            (user_stats, False, True),
            (state, False, True),
            (vault, True, True),
            (vault, True, True),
            (RENT, False, False),
            (SYSTEM_PROGRAM_ID, False, False),
        ]
        assert [(k.pubkey, k.is_signer, k.is_writable) for k in keys] == expected

    def test_is_deterministic(self, signer, program_id):
        first = get_initialize_drift_keys(signer.pubkey(), program_id, "sunit")
        second = get_initialize_drift_keys(signer.pubkey(), program_id, "sunit")
        assert first == second


class TestOrderRemainingAccounts:
    def test_oracles_then_markets(self):
        accounts = get_order_remaining_accounts()
        assert [a.pubkey for a in accounts] == [
            drift.SOL_ORACLE,
            drift.USDC_ORACLE,
            drift.SOL_SPOT_MARKET,
            drift.USDC_SPOT_MARKET,
            drift.SOL_PERP_MARKET,
        ]

    def test_only_markets_are_writable(self):
        accounts = get_order_remaining_accounts()
        assert [a.is_writable for a in accounts] == [False, False, True, True, True]
        assert not any(a.is_signer for a in accounts)
