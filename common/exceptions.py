"""
Domain exceptions raised by service functions.

Both subclass DRF's `APIException`, so views can let them propagate and
the default exception handler renders them as JSON.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class BusinessRuleError(APIException):
    """A request that is well formed but violates a business rule."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Operação não permitida."
    default_code = "business_rule"


class PlanLimitExceeded(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Limite do plano atingido."
    default_code = "plan_limit"

    def __init__(self, resource, limit, current, plan):
        self.resource = resource
        self.limit = limit
        self.current = current
        self.plan = plan
        super().__init__(detail={
            "detail": f"Limite de {resource} do plano {plan} atingido ({current}/{limit}).",
            "resource": resource,
            "limit": limit,
            "current": current,
            "plan": plan,
        })
