import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import PlainTextResponse

from ..config import get_settings
from ..exceptions import CommandExecutionError, RuleValidationError
from ..models.rules import MessageResponse, Rule
from ..services.qos_manager import QoSManager
from ..utils.command_exec import build_executor

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache()
def get_qos_manager() -> QoSManager:
    """QoSManager for the configured host (shared, it holds no rule state)"""
    settings = get_settings()
    return QoSManager(
        build_executor(settings),
        tc_binary=settings.tc_binary,
        ip_binary=settings.ip_binary,
    )


def _require_interface(interface: Optional[str]) -> str:
    if not interface or not interface.strip():
        raise HTTPException(status_code=400, detail="missing interface parameter")
    return interface.strip()


@router.post("/qos/rules", response_model=MessageResponse)
def apply_qos_rule(rule: Rule, manager: QoSManager = Depends(get_qos_manager)):
    """
    Apply a QoS rule to an interface

    Any existing root qdisc on the interface is replaced.
    """
    try:
        manager.apply_rule(rule)
    except RuleValidationError as e:
        logger.warning(f"Rejected QoS rule for {rule.interface}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except CommandExecutionError as e:
        logger.error(f"Error applying QoS rule: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    logger.info(f"Successfully applied {rule.algorithm} rule to {rule.interface}")
    return {"message": "QoS rule applied successfully"}


@router.get(
    "/qos/rules",
    response_model=Rule,
    responses={204: {"description": "No rule on this interface"}},
)
def get_qos_rule(interface: Optional[str] = None, manager: QoSManager = Depends(get_qos_manager)):
    """Get the QoS rule currently active on an interface"""
    interface = _require_interface(interface)

    try:
        rule = manager.get_rule(interface)
    except CommandExecutionError as e:
        logger.error(f"Error getting QoS rule: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    if rule is None:
        return Response(status_code=204)
    return rule


@router.delete("/qos/rules", response_model=MessageResponse)
def delete_qos_rule(interface: Optional[str] = None, manager: QoSManager = Depends(get_qos_manager)):
    """Remove the QoS rule from an interface (restores the kernel default)"""
    interface = _require_interface(interface)

    try:
        manager.delete_rule(interface)
    except CommandExecutionError as e:
        logger.error(f"Error deleting QoS rule: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    logger.info(f"Successfully deleted QoS rule from {interface}")
    return {"message": "QoS rule deleted successfully"}


@router.get("/interfaces", response_model=List[str])
def list_interfaces(manager: QoSManager = Depends(get_qos_manager)):
    """List network interfaces that are up (loopback excluded)"""
    try:
        return manager.list_interfaces()
    except CommandExecutionError as e:
        logger.error(f"Error fetching interfaces: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch network interfaces")


@router.get("/ping", response_class=PlainTextResponse)
def ping():
    """Health check"""
    return "pong\n"
