#!/usr/bin/env python3
"""JSON bridge over the vesting services.

Run with: uvicorn vestclaim.server:create_app --factory
"""
import logging
from typing import List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from vestclaim.claim import ClaimService
from vestclaim.config import load_config
from vestclaim.log import setup_logging
from vestclaim.query import VestingQueryService
from vestclaim.vesting import build_services

logger = logging.getLogger(__name__)


class BatchReq(BaseModel):
    token_addresses: List[str]


class ClaimReq(BaseModel):
    password: str
    token_address: str


def create_app(
    query: Optional[VestingQueryService] = None,
    claim: Optional[ClaimService] = None,
) -> FastAPI:
    if query is None or claim is None:
        config = load_config()
        setup_logging(config.log_level)
        default_query, default_claim = build_services(config)
        query = query or default_query
        claim = claim or default_claim

    app = FastAPI(title="vestclaim")

    @app.get("/health")
    def health():
        return JSONResponse({"ok": True, "vesting_manager_address": query.config.vesting_manager_address})

    @app.get("/vesting/{token_address}")
    def vesting(token_address: str):
        return JSONResponse(query.get_vesting_info(token_address))

    @app.post("/vesting/batch")
    def vesting_batch(req: BatchReq):
        return JSONResponse(query.get_all_vesting_info(req.token_addresses))

    @app.post("/claim")
    def claim_tokens(req: ClaimReq):
        # password is never logged
        result = claim.claim_vested_tokens(req.password, req.token_address.strip())
        if not result["success"]:
            logger.info("Claim for %s rejected: %s", req.token_address, result.get("code"))
        return JSONResponse(result)

    return app
