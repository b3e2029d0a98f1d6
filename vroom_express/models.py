"""
vroom-express - Pydantic Models
===============================
Request/response contracts of the gateway.

The routing problem itself is owned by vroom, so ``RoutingRequest`` only
types the keys the gateway inspects and lets everything else through
untouched.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# Keys consumed by the gateway and never forwarded to the solver
GATEWAY_KEYS = frozenset(["callbackUrl", "routeId", "batchId"])

# Keys echoed back into solver responses
IDENTIFIER_KEYS = ("routeId", "batchId")


# ============================================
# REQUEST MODELS
# ============================================

class RoutingRequest(BaseModel):
    """
    A vroom problem as submitted by a caller.

    Attributes:
        vehicles: Vehicle definitions (required by validation, not by parsing).
        jobs: Single-location tasks.
        shipments: Pickup/delivery pairs, each counting as two locations.
        matrix: Legacy single duration matrix.
        matrices: Per-profile matrices.
        options: Per-request solver overrides (``g``, ``c``, ``t``, ``x``, ``l``).
        callback_url: Webhook receiving the solution instead of the HTTP response.
        route_id: Caller identifier echoed in the response.
        batch_id: Caller identifier echoed in the response.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    vehicles: Optional[List[Any]] = None
    jobs: Optional[List[Any]] = None
    shipments: Optional[List[Any]] = None
    matrix: Optional[List[List[Any]]] = None
    matrices: Optional[Dict[str, Any]] = None
    options: Optional[Any] = None
    callback_url: Optional[str] = Field(default=None, alias="callbackUrl")
    route_id: Optional[Any] = Field(default=None, alias="routeId")
    batch_id: Optional[Any] = Field(default=None, alias="batchId")

    @property
    def location_count(self) -> int:
        """Number of locations vroom has to route (shipments count twice)."""
        return len(self.jobs or []) + 2 * len(self.shipments or [])

    def identifiers(self) -> Dict[str, Any]:
        """``routeId``/``batchId`` pairs present in the request."""
        values = {"routeId": self.route_id, "batchId": self.batch_id}
        return {k: v for k, v in values.items() if v is not None}


# ============================================
# RESPONSE MODELS
# ============================================

class ErrorResponse(BaseModel):
    """Standard error body, shaped like vroom's own error output."""
    code: int = Field(..., description="vroom error code")
    error: str = Field(..., description="Human readable message")


class CallbackAccepted(BaseModel):
    """Early acknowledgement sent when the solution goes to a webhook."""
    status: str = Field(default="accepted")
    routeId: Optional[Any] = None
    batchId: Optional[Any] = None
