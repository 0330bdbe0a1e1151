"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs."""

from typing import Any, Dict, Optional
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import uuid
from datetime import datetime, timezone


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        # Create the problem details object
        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if detail:
            self.problem_details["detail"] = detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        # Add extensions
        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )

    @property
    def code(self) -> Optional[str]:
        """Application-specific error code, if any."""
        return self.problem_details.get("code")

    def __str__(self) -> str:
        return self.problem_details.get("detail", self.title)


class ValidationError(ProblemDetailsException):
    """Exception for invalid distance, fare, class or request input."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        errors: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {"code": "VALIDATION_ERROR"}
        if errors:
            extensions["errors"] = errors

        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri="https://example.com/problems/validation-error",
            instance=instance,
            extensions=extensions,
        )


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri="https://example.com/problems/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for resource conflict errors."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri="https://example.com/problems/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


class InternalServerError(ProblemDetailsException):
    """Exception for internal server errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred while processing the request",
        error_id: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not error_id:
            error_id = str(uuid.uuid4())

        extensions = {
            "error_id": error_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        super().__init__(
            status_code=500,
            title="Internal Server Error",
            detail=detail,
            type_uri="https://example.com/problems/internal-server-error",
            instance=instance,
            extensions=extensions,
        )


# Business logic exceptions

class NoFareDefined(ProblemDetailsException):
    """Exception when no fare tier lies at or below the queried distance."""

    def __init__(
        self,
        train_class: str,
        distance_km: float,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"No fare tier defined for class {train_class} at {distance_km} km"

        super().__init__(
            status_code=404,
            title="No Fare Defined",
            detail=detail,
            type_uri="https://example.com/problems/no-fare-defined",
            instance=instance,
            extensions={
                "code": "NO_FARE_DEFINED",
                "retryable": False,
                "train_class": train_class,
                "distance_km": distance_km,
            },
        )


class SignatureMismatchError(ProblemDetailsException):
    """Exception when a payment callback signature does not verify."""

    def __init__(
        self,
        booking_id: int,
        gateway_order_id: str,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"Payment signature for booking {booking_id} did not verify"

        super().__init__(
            status_code=400,
            title="Signature Mismatch",
            detail=detail,
            type_uri="https://example.com/problems/signature-mismatch",
            instance=instance,
            extensions={
                "code": "SIGNATURE_MISMATCH",
                "retryable": False,
                "booking_id": booking_id,
                "gateway_order_id": gateway_order_id,
            },
        )


class DuplicatePNRError(ConflictError):
    """Exception when a generated PNR is already taken."""

    def __init__(self, pnr: str):
        super().__init__(
            detail=f"PNR {pnr} is already assigned to another booking",
            conflicting_resource={"pnr": pnr}
        )
        self.pnr = pnr
        self.problem_details.update({
            "code": "DUPLICATE_PNR",
            "retryable": True
        })


class InvalidTransitionError(ConflictError):
    """Exception for a booking or payment state change the state table forbids."""

    def __init__(self, booking_id: int, current_status: str, target_status: str):
        super().__init__(
            detail=f"Booking {booking_id} cannot move from {current_status} to {target_status}",
            conflicting_resource={
                "booking_id": booking_id,
                "current_status": current_status,
                "target_status": target_status
            }
        )
        self.booking_id = booking_id
        self.current_status = current_status
        self.target_status = target_status
        self.problem_details.update({
            "code": "INVALID_TRANSITION",
            "retryable": False
        })


class GatewayError(ProblemDetailsException):
    """Exception when the payment gateway cannot create an order."""

    def __init__(
        self,
        detail: str = "The payment gateway could not create an order",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=502,
            title="Payment Gateway Error",
            detail=detail,
            type_uri="https://example.com/problems/gateway-error",
            instance=instance,
            extensions={
                "code": "GATEWAY_ERROR",
                "retryable": True,
            },
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    problem = InternalServerError(instance=str(request.url))

    return JSONResponse(
        status_code=problem.status_code,
        content=problem.problem_details,
        media_type="application/problem+json",
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Convert FastAPI request validation failures to Problem Details with violations.

    Args:
        request: FastAPI request object
        exc: Validation error raised while parsing the request

    Returns:
        JSONResponse: 422 Problem Details response
    """
    violations = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=422,
        content={
            "type": "https://example.com/problems/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "The request data failed validation",
            "instance": str(request.url),
            "code": "VALIDATION_ERROR",
            "violations": violations,
        },
        media_type="application/problem+json",
    )
