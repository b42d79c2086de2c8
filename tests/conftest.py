"""Shared fixtures for the vault API tests."""

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from unittest.mock import MagicMock
from solders.keypair import Keypair
from solders.pubkey import Pubkey

PROGRAM_ID = Pubkey.from_string("HHswWcPUCB6nCV927y5TbZyLwjTt2Enguc6f61U35gog")


@pytest.fixture
def program_id():
    return PROGRAM_ID


@pytest.fixture
def signer():
    return Keypair.from_seed(bytes(range(32)))


@pytest.fixture
def rpc_client():
    """Solana RPC client that never touches the network"""
    return MagicMock()
