from rest_framework import status
from rest_framework.exceptions import APIException


class InvalidAmount(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The charge amount must be greater than zero.'
    default_code = 'invalid_amount'


class GatewayUnavailable(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'The payment gateway could not create the charge.'
    default_code = 'gateway_unavailable'


class LedgerWriteFailed(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'The payment could not be recorded.'
    default_code = 'ledger_write_failed'


class IdempotencyConflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This idempotency key was already used for a different payment.'
    default_code = 'idempotency_conflict'


class SettlementStepFailed(Exception):
    """A settlement step that failed after the payment was recorded.

    Never raised to the client; reported inside the settlement outcome.
    """
    code = 'settlement_step_failed'

    def __init__(self, message, failed_ids=()):
        super().__init__(message)
        self.failed_ids = frozenset(failed_ids)


class MembershipUpdateFailed(SettlementStepFailed):
    code = 'membership_update_failed'


class CapacityUpdateFailed(SettlementStepFailed):
    code = 'capacity_update_failed'
