"""Typed errors raised by the access-request lifecycle.

Each error is an HTTPException so routers can let it propagate, and carries a
stable ``code`` so callers can tell the kinds apart without parsing ``detail``.
"""
from fastapi import HTTPException, status


class AccessRequestError(HTTPException):
    code = "access_request_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class RequesterNotFound(AccessRequestError):
    code = "requester_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, requester_id: str):
        self.requester_id = requester_id
        super().__init__(f"Requester {requester_id} not found")


class ThesisNotFound(AccessRequestError):
    code = "thesis_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, thesis_id: str):
        self.thesis_id = thesis_id
        super().__init__(f"Thesis {thesis_id} not found")


class RequestNotFound(AccessRequestError):
    code = "request_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Access request {request_id} not found")


class InvalidTransition(AccessRequestError):
    """The request is no longer in a state that allows the action.

    Usually another admin (or the sweep) got there first; refresh and move on.
    """

    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, request_id: str, current: str, action: str):
        self.request_id = request_id
        self.current = current
        self.action = action
        super().__init__(f"Cannot {action} access request {request_id}: it is already {current}")


class NotRequestOwner(AccessRequestError):
    code = "not_request_owner"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Only the requester may cancel access request {request_id}")


class AdminRequired(AccessRequestError):
    code = "admin_required"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, actor_id: str):
        self.actor_id = actor_id
        super().__init__(f"User {actor_id} is not an administrator")


class StoreUnavailable(AccessRequestError):
    code = "store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, detail: str = "Record store is unavailable"):
        super().__init__(detail)
