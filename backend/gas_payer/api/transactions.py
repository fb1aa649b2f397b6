from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from gas_payer import schemas
from gas_payer.api.security import get_client_credentials
from gas_payer.services.gas_payer_service import GasPayerService
from gas_payer.services.relay.base import ClientCredentials

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["Transaction Processing"])

_RESPONSES = {
    400: {"model": schemas.TransactionResult, "description": "Request or transaction validation failed"},
    500: {"model": schemas.TransactionResult, "description": "Internal server error"},
}


def get_gas_payer_service(request: Request) -> GasPayerService:
    """FastAPI dependency returning the service built at startup."""
    return request.app.state.gas_payer_service


def _respond(result: schemas.TransactionResult, status_code: int | None = None) -> JSONResponse:
    if status_code is None:
        status_code = 200 if result.success else 400
    return JSONResponse(status_code=status_code, content=result.model_dump(by_alias=True))


@router.post(
    "/signed-transaction",
    response_model=schemas.TransactionResult,
    responses=_RESPONSES,
    summary="Process signed transaction with gas management",
)
async def process_signed_transaction(
    payload: schemas.SignedTransactionRequest,
    service: GasPayerService = Depends(get_gas_payer_service),
    credentials: ClientCredentials | None = Depends(get_client_credentials),
) -> JSONResponse:
    """
    Ensure the user's wallet holds enough gas (funding it from the gas payer
    if not), then forward the signed transaction to the blockchain.
    """
    logger.info("Processing signed transaction for wallet: %s", payload.user_wallet_address)
    try:
        result = await service.process_signed_transaction(
            user_wallet_address=payload.user_wallet_address,
            signed_transaction_hex=payload.signed_transaction_hex,
            operation_name=payload.operation_name,
            credentials=credentials,
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Unexpected error in transaction controller for wallet: %s, operation: %s",
            payload.user_wallet_address,
            payload.operation_name,
        )
        return _respond(
            schemas.TransactionResult.failed(
                f"Internal server error processing transaction for operation "
                f"'{payload.operation_name}': {str(exc) or 'Unknown error occurred'}"
            ),
            status_code=500,
        )
    return _respond(result)


@router.post(
    "/fund-wallet",
    response_model=schemas.TransactionResult,
    responses=_RESPONSES,
    summary="Fund wallet conditionally",
    dependencies=[Depends(get_client_credentials)],
)
async def fund_wallet(
    payload: schemas.FundWalletRequest,
    service: GasPayerService = Depends(get_gas_payer_service),
) -> JSONResponse:
    """
    Top the wallet up to ``totalAmountNeededWei``. Only the difference is
    transferred when the wallet already holds part of the amount.
    """
    logger.info(
        "Processing fund wallet request for wallet: %s, amount: %s",
        payload.wallet_address,
        payload.total_amount_needed_wei,
    )
    try:
        result = await service.conditional_funding(
            wallet_address=payload.wallet_address,
            total_amount_needed_wei=payload.total_amount_needed_wei,
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Unexpected error in fund wallet controller for wallet: %s, amount: %s",
            payload.wallet_address,
            payload.total_amount_needed_wei,
        )
        return _respond(
            schemas.TransactionResult.failed(
                f"Internal server error processing wallet funding for "
                f"{payload.wallet_address}: {str(exc) or 'Unknown error occurred'}"
            ),
            status_code=500,
        )
    return _respond(result)
