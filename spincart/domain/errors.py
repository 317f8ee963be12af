# spincart/domain/errors.py
# bledy domeny: kazdy ma staly kind i status HTTP;
# IntegrityFault to blad wewnetrzny, klient dostaje ogolny komunikat


class ShopError(Exception):
    kind = "error"
    status_code = 400

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class NotFoundError(ShopError):
    kind = "not_found"
    status_code = 404


class ValidationError(ShopError, ValueError):
    kind = "validation_error"
    status_code = 400


class AlreadyPlayedError(ShopError):
    kind = "already_played"
    status_code = 409


class NotEligibleError(ShopError):
    kind = "not_eligible"
    status_code = 400


class NoRewardsAvailableError(ShopError):
    kind = "no_rewards_available"
    status_code = 400


class EmptyCartError(ShopError):
    kind = "empty_cart"
    status_code = 400


class AuthorizationError(ShopError, PermissionError):
    kind = "authorization_error"
    status_code = 403


class ConflictError(ShopError):
    kind = "conflict"
    status_code = 409


class IntegrityFault(ShopError):
    kind = "internal_error"
    status_code = 500
