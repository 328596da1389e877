# app/presentation/routes/devices.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from app.application.commands import RegisterDeviceCommand
from app.application.inventory_use_cases import DeviceRegistrationUseCase
from app.container import get_device_use_case, require_db
from app.presentation.schemas import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_db)])


@router.post("/token", response_model=MessageResponse, status_code=201)
async def save_token(
    req: RegisterDeviceCommand,
    response: Response,
    uc: DeviceRegistrationUseCase = Depends(get_device_use_case),
):
    token = (req.token or "").strip()
    if not token:
        raise HTTPException(status_code=400, detail="Token is required")
    try:
        out = await uc.register(token)
    except Exception as e:
        logger.exception("save token failed")
        raise HTTPException(status_code=500, detail=f"Failed to save token: {e}")
    if not out.created:
        response.status_code = 200
    return MessageResponse(message=out.message)
