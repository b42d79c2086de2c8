import json
import logging
import os
from typing import List, Optional

from dotenv import set_key
from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000
DEFAULT_AIRDROP_AMOUNT = LAMPORTS_PER_SOL
DEFAULT_MINIMUM_BALANCE = LAMPORTS_PER_SOL // 2

SAFE_MODE = os.getenv('SAFE_MODE', 'true').lower() == 'true'
AIRDROP_ENABLED = os.getenv('AIRDROP_ENABLED', 'true').lower() == 'true'
ENV_FILE = os.getenv('ENV_FILE', '.env')


class TransactionError(RuntimeError):
    """Raised when a transaction cannot be built, simulated or sent."""


def keypair_from_secret(secret: str) -> Keypair:
    """Parse a secret key stored as a JSON array of 64 bytes"""
    return Keypair.from_bytes(bytes(json.loads(secret)))


def keypair_to_secret(kp: Keypair) -> str:
    return json.dumps(list(bytes(kp)))


def confirm_signature(client: Client, signature: Signature) -> None:
    """Wait for signature to reach confirmed commitment and raise if the transaction failed"""
    resp = client.confirm_transaction(signature, commitment=Confirmed)
    status = resp.value[0] if resp.value else None
    if status is not None and status.err is not None:
        raise TransactionError(f"Transaction {signature} failed: {status.err}")


def get_balance(client: Client, pubkey: Pubkey) -> int:
    """Balance of an account in lamports"""
    return client.get_balance(pubkey, commitment=Confirmed).value


def airdrop_if_required(client: Client, pubkey: Pubkey, airdrop_amount: int, minimum_balance: int) -> int:
    """Request an airdrop when the balance is under minimum_balance. Returns the resulting balance."""
    balance = get_balance(client, pubkey)
    if balance >= minimum_balance:
        return balance

    logger.info("Balance of %s is %d lamports, requesting airdrop of %d", pubkey, balance, airdrop_amount)
    resp = client.request_airdrop(pubkey, airdrop_amount, commitment=Confirmed)
    confirm_signature(client, resp.value)
    return get_balance(client, pubkey)


def initialize_keypair(
    client: Client,
    env_variable_name: str = "PRIVATE_KEY",
    airdrop_amount: int = DEFAULT_AIRDROP_AMOUNT,
    minimum_balance: int = DEFAULT_MINIMUM_BALANCE,
    env_file: Optional[str] = None,
) -> Keypair:
    """Load the signer keypair from the environment, creating one if needed.

    A generated keypair is written to the env file so the same signer is
    used on the next start. On networks with a faucet the signer is topped
    up to airdrop_amount whenever it drops under minimum_balance.
    """
    secret = os.getenv(env_variable_name)
    if secret:
        kp = keypair_from_secret(secret)
    else:
        kp = Keypair()
        secret = keypair_to_secret(kp)
        path = env_file or ENV_FILE
        set_key(path, env_variable_name, secret)
        os.environ[env_variable_name] = secret
        logger.info("Generated new keypair %s, saved to %s", kp.pubkey(), path)

    if AIRDROP_ENABLED:
        airdrop_if_required(client, kp.pubkey(), airdrop_amount, minimum_balance)

    return kp


def send_instructions(client: Client, signer: Keypair, instructions: List[Instruction]) -> Signature:
    """Sign instructions with signer as fee payer, send and confirm the transaction"""
    payer = signer.pubkey()

    try:
        blockhash_resp = client.get_latest_blockhash(Confirmed)
        if not blockhash_resp or not blockhash_resp.value:
            raise TransactionError("Failed to get recent blockhash from Solana RPC")
        recent_blockhash = blockhash_resp.value.blockhash
    except RPCException as e:
        raise TransactionError(f"Failed to get blockhash: {e}") from e

    try:
        message = Message.new_with_blockhash(instructions, payer, recent_blockhash)
    except Exception as e:
        raise TransactionError(f"Failed to create transaction: {e}") from e

    # The payer is the only key this service can sign with
    required = list(message.account_keys[:message.header.num_required_signatures])
    if required != [payer]:
        raise TransactionError(f"Transaction requires signatures from {required}, only {payer} can sign")
    txn = Transaction([signer], message, recent_blockhash)

    # Simulate first so program errors surface with their logs
    if SAFE_MODE:
        try:
            simulation = client.simulate_transaction(txn)
        except RPCException as e:
            raise TransactionError(f"Transaction simulation RPC error: {e}") from e
        if simulation.value and simulation.value.err:
            for line in simulation.value.logs or []:
                logger.debug("simulation: %s", line)
            raise TransactionError(f"Transaction simulation failed: {simulation.value.err}")

    try:
        send_result = client.send_raw_transaction(
            bytes(txn),
            opts=TxOpts(skip_preflight=not SAFE_MODE, preflight_commitment=Confirmed)
        )
    except RPCException as e:
        raise TransactionError(f"RPC error sending transaction: {e}") from e

    if not send_result or not send_result.value:
        raise TransactionError("Failed to send transaction: No response from RPC")

    signature = send_result.value
    confirm_signature(client, signature)
    logger.info("Transaction %s confirmed", signature)
    return signature
