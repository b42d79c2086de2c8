# Vault API backend (backend.py)

# To run this code, install the required packages:

# pip install fastapi uvicorn pydantic solders solana driftpy borsh-construct python-dotenv

import os
import logging
from datetime import datetime
from typing import Optional
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from solders.pubkey import Pubkey
from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed

# Load environment variables
from dotenv import load_dotenv
load_dotenv()

import vault
import wallet

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("backend")

# Local validator by default
SOLANA_RPC_URL = os.getenv('SOLANA_RPC_URL', 'http://localhost:8899')
solana_client = Client(SOLANA_RPC_URL, commitment=Confirmed)

VAULT_PROGRAM_ID = Pubkey.from_string(os.getenv('VAULT_PROGRAM_ID', 'HHswWcPUCB6nCV927y5TbZyLwjTt2Enguc6f61U35gog'))

DEFAULT_VAULT_ID = os.getenv('DEFAULT_VAULT_ID', 'sunit')
DEFAULT_FUND_STATUS = os.getenv('DEFAULT_FUND_STATUS', 'active')
DEFAULT_BOT_STATUS = os.getenv('DEFAULT_BOT_STATUS', 'idle')
INIT_DRIFT_ACCOUNTS = os.getenv('INIT_DRIFT_ACCOUNTS', 'false').lower() == 'true'

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Using Solana RPC %s, vault program %s", SOLANA_RPC_URL, VAULT_PROGRAM_ID)
    yield

app = FastAPI(
    title="Vault API",
    description="Builds and submits vault program transactions",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

class InitVaultRequest(BaseModel):
    vault_id: str

class DepositRequest(BaseModel):
    vault_id: str
    user_pubkey: str
    amount: float
    fund_status: str = DEFAULT_FUND_STATUS
    bot_status: str = DEFAULT_BOT_STATUS

class UpdateUserInfoRequest(BaseModel):
    user_pubkey: str
    amount: float
    fund_status: str
    bot_status: str
    vault_id: Optional[str] = None

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error("Invalid request body for %s: %s", request.url.path, exc.errors())
    return PlainTextResponse("Invalid request", status_code=500)

@app.post("/initVault", summary="Initialize a vault")
def init_vault(req: InitVaultRequest):
    """Create the vault PDA for vault_id"""
    try:
        signer = wallet.initialize_keypair(solana_client)
        vault.initialize_vault(solana_client, signer, VAULT_PROGRAM_ID, req.vault_id, with_drift=INIT_DRIFT_ACCOUNTS)
        return PlainTextResponse("Initialized Vault successfully")
    except Exception:
        logger.exception("Error initializing vault %s", req.vault_id)
        return PlainTextResponse("Error initializing vault", status_code=500)

@app.post("/deposit", summary="Deposit into a vault")
def deposit(req: DepositRequest):
    """Deposit SOL into a vault on behalf of user_pubkey"""
    try:
        signer = wallet.initialize_keypair(solana_client)
        vault.deposit(
            solana_client,
            signer,
            VAULT_PROGRAM_ID,
            req.vault_id,
            req.user_pubkey,
            req.amount,
            req.fund_status,
            req.bot_status,
        )
        logger.info("Signer balance after deposit: %d", wallet.get_balance(solana_client, signer.pubkey()))
        return PlainTextResponse("Deposited successfully")
    except Exception:
        logger.exception("Error during deposit")
        return PlainTextResponse("Error during deposit", status_code=500)

@app.post("/updateUserInfo", summary="Withdraw from a vault and update user info")
def update_user_info(req: UpdateUserInfoRequest):
    """Withdraw SOL for user_pubkey and record the new fund and bot statuses"""
    try:
        signer = wallet.initialize_keypair(solana_client)
        vault.update_user_info(
            solana_client,
            signer,
            VAULT_PROGRAM_ID,
            req.vault_id or DEFAULT_VAULT_ID,
            req.user_pubkey,
            req.amount,
            req.fund_status,
            req.bot_status,
        )
        logger.info("Signer balance after withdraw: %d", wallet.get_balance(solana_client, signer.pubkey()))
        return PlainTextResponse("Updated user info successfully")
    except Exception:
        logger.exception("Error updating user info")
        return PlainTextResponse("Error updating user info", status_code=500)

@app.get("/userInfo/{user_pubkey}", summary="Read a user's info account")
def get_user_info(user_pubkey: str):
    """Decoded user info account for user_pubkey, owned by the signer"""
    try:
        signer = wallet.initialize_keypair(solana_client)
        info = vault.read_user_info(solana_client, signer, VAULT_PROGRAM_ID, user_pubkey)
    except Exception:
        logger.exception("Error reading user info for %s", user_pubkey)
        return PlainTextResponse("Error reading user info", status_code=500)
    if info is None:
        return PlainTextResponse("User info not found", status_code=404)
    return JSONResponse(info.to_dict())

@app.get("/health", summary="Health check")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "solana_rpc": SOLANA_RPC_URL,
        "vault_program": str(VAULT_PROGRAM_ID),
        "safe_mode": wallet.SAFE_MODE
    }

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 4001))
    uvicorn.run(app, host=os.environ.get("HOST", "0.0.0.0"), port=port)
