"""Client for the vault program: PDAs, instruction encoding and submission."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from borsh_construct import Bool, CStruct, Enum, F32, String
from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import ID as SYSTEM_PROGRAM_ID

from drift import DRIFT_PROGRAM, find_pda, get_initialize_drift_keys, get_vault_pda
from wallet import send_instructions

logger = logging.getLogger(__name__)

TREASURY_SEED = b"treasury"


def _user_info_fields() -> CStruct:
    return CStruct(
        "vault_id" / String,
        "user_pubkey" / String,
        "amount" / F32,
        "fund_status" / String,
        "bot_status" / String,
    )


VaultInstruction = Enum(
    "InitializeVault" / CStruct("vault_id" / String),
    "Deposit" / _user_info_fields(),
    "Withdraw" / _user_info_fields(),
    enum_name="VaultInstruction",
)

UserInfoAccountState = CStruct(
    "is_initialized" / Bool,
    "vault_id" / String,
    "user_pubkey" / String,
    "amount" / F32,
    "fund_status" / String,
    "bot_status" / String,
)


@dataclass
class UserInfo:
    """Decoded user info account."""
    is_initialized: bool
    vault_id: str
    user_pubkey: str
    amount: float
    fund_status: str
    bot_status: str

    @classmethod
    def decode(cls, data: bytes) -> "UserInfo":
        # Accounts are allocated larger than the state, trailing bytes are zero
        parsed = UserInfoAccountState.parse(data)
        return cls(
            is_initialized=parsed.is_initialized,
            vault_id=parsed.vault_id,
            user_pubkey=parsed.user_pubkey,
            amount=parsed.amount,
            fund_status=parsed.fund_status,
            bot_status=parsed.bot_status,
        )

    def to_dict(self) -> dict:
        return {
            "is_initialized": self.is_initialized,
            "vault_id": self.vault_id,
            "user_pubkey": self.user_pubkey,
            "amount": self.amount,
            "fund_status": self.fund_status,
            "bot_status": self.bot_status,
        }


def get_user_info_pda(program_id: Pubkey, signer: Pubkey, user_pubkey: str) -> Pubkey:
    return find_pda([bytes(signer), user_pubkey.encode()], program_id)


def get_treasury_pda(program_id: Pubkey, vault_id: str) -> Pubkey:
    return find_pda([TREASURY_SEED, vault_id.encode()], program_id)


def encode_initialize_vault(vault_id: str) -> bytes:
    return VaultInstruction.build(VaultInstruction.enum.InitializeVault(vault_id=vault_id))


def encode_deposit(vault_id: str, user_pubkey: str, amount: float, fund_status: str, bot_status: str) -> bytes:
    return VaultInstruction.build(VaultInstruction.enum.Deposit(
        vault_id=vault_id,
        user_pubkey=user_pubkey,
        amount=amount,
        fund_status=fund_status,
        bot_status=bot_status,
    ))


def encode_withdraw(vault_id: str, user_pubkey: str, amount: float, fund_status: str, bot_status: str) -> bytes:
    return VaultInstruction.build(VaultInstruction.enum.Withdraw(
        vault_id=vault_id,
        user_pubkey=user_pubkey,
        amount=amount,
        fund_status=fund_status,
        bot_status=bot_status,
    ))


def as_remaining_accounts(metas: List[AccountMeta], signer: Pubkey) -> List[AccountMeta]:
    """Clear signer flags on everything but the transaction signer.

    PDAs cannot sign the outer transaction; the vault program signs for
    them with their seeds when it calls into Drift.
    """
    return [
        AccountMeta(pubkey=m.pubkey, is_signer=m.is_signer and m.pubkey == signer, is_writable=m.is_writable)
        for m in metas
    ]


def initialize_vault_accounts(
    signer: Pubkey, program_id: Pubkey, vault_id: str, with_drift: bool = False
) -> List[AccountMeta]:
    vault = get_vault_pda(program_id, vault_id)
    accounts = [
        AccountMeta(pubkey=signer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=vault, is_signer=False, is_writable=True),
        AccountMeta(pubkey=SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    if with_drift:
        accounts.extend(as_remaining_accounts(get_initialize_drift_keys(signer, program_id, vault_id), signer))
        accounts.append(AccountMeta(pubkey=DRIFT_PROGRAM, is_signer=False, is_writable=False))
    return accounts


def deposit_accounts(signer: Pubkey, program_id: Pubkey, vault_id: str, user_pubkey: str) -> List[AccountMeta]:
    return [
        AccountMeta(pubkey=signer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=get_user_info_pda(program_id, signer, user_pubkey), is_signer=False, is_writable=True),
        AccountMeta(pubkey=get_vault_pda(program_id, vault_id), is_signer=False, is_writable=True),
        AccountMeta(pubkey=SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
    ]


def withdraw_accounts(signer: Pubkey, program_id: Pubkey, vault_id: str, user_pubkey: str) -> List[AccountMeta]:
    return [
        AccountMeta(pubkey=signer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=get_user_info_pda(program_id, signer, user_pubkey), is_signer=False, is_writable=True),
        AccountMeta(pubkey=get_vault_pda(program_id, vault_id), is_signer=False, is_writable=True),
        AccountMeta(pubkey=get_treasury_pda(program_id, vault_id), is_signer=False, is_writable=True),
    ]


def initialize_vault(
    client: Client, signer: Keypair, program_id: Pubkey, vault_id: str, with_drift: bool = False
) -> Signature:
    """Create the vault PDA for vault_id, optionally with its Drift user accounts"""
    ix = Instruction(
        program_id,
        encode_initialize_vault(vault_id),
        initialize_vault_accounts(signer.pubkey(), program_id, vault_id, with_drift),
    )
    logger.info("Initializing vault %s at %s", vault_id, get_vault_pda(program_id, vault_id))
    return send_instructions(client, signer, [ix])


def deposit(
    client: Client,
    signer: Keypair,
    program_id: Pubkey,
    vault_id: str,
    user_pubkey: str,
    amount: float,
    fund_status: str,
    bot_status: str,
) -> Signature:
    """Deposit amount SOL into the vault and record it in the user's info account"""
    ix = Instruction(
        program_id,
        encode_deposit(vault_id, user_pubkey, amount, fund_status, bot_status),
        deposit_accounts(signer.pubkey(), program_id, vault_id, user_pubkey),
    )
    logger.info("Depositing %s SOL into vault %s for %s", amount, vault_id, user_pubkey)
    return send_instructions(client, signer, [ix])


def update_user_info(
    client: Client,
    signer: Keypair,
    program_id: Pubkey,
    vault_id: str,
    user_pubkey: str,
    amount: float,
    fund_status: str,
    bot_status: str,
) -> Signature:
    """Withdraw amount SOL from the vault and update the user's statuses.

    The program takes a 2% fee into the vault's treasury.
    """
    ix = Instruction(
        program_id,
        encode_withdraw(vault_id, user_pubkey, amount, fund_status, bot_status),
        withdraw_accounts(signer.pubkey(), program_id, vault_id, user_pubkey),
    )
    logger.info("Updating user info for %s in vault %s (withdraw %s SOL)", user_pubkey, vault_id, amount)
    return send_instructions(client, signer, [ix])


def read_user_info(client: Client, signer: Keypair, program_id: Pubkey, user_pubkey: str) -> Optional[UserInfo]:
    pda = get_user_info_pda(program_id, signer.pubkey(), user_pubkey)
    resp = client.get_account_info(pda, commitment=Confirmed)
    if resp.value is None:
        return None
    return UserInfo.decode(bytes(resp.value.data))
