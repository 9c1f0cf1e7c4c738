from enum import Enum
from pydantic import BaseModel, Field
from typing import Any, Dict


class Algorithm(str, Enum):
    """Root queueing disciplines we know how to install"""
    CAKE = "cake"
    FQ_CODEL = "fq_codel"
    TBF = "tbf"
    SFQ = "sfq"
    PFIFO_FAST = "pfifo_fast"  # kernel default


ALGORITHM_ALIASES = {
    "default": Algorithm.PFIFO_FAST,
}


class Rule(BaseModel):
    """QoS rule for a single network interface"""
    interface: str = Field(..., description="Network interface (e.g., 'eth0')")
    algorithm: str = Field(..., description="Queueing discipline (cake, fq_codel, tbf, sfq, pfifo_fast)")
    settings: Dict[str, Any] = Field(
        default_factory=dict,
        description="Algorithm parameters (e.g., {'bandwidth_mbit': 500} for cake/tbf)"
    )


class MessageResponse(BaseModel):
    message: str
