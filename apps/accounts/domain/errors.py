from __future__ import annotations


class AccountDomainError(ValueError):
    pass


class AccountValidationError(AccountDomainError):
    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class RoleInvalidError(AccountValidationError):
    pass


class FullNameInvalidError(AccountValidationError):
    pass


class StaffProfileMissingError(AccountDomainError):
    pass


class AccountAlreadyExistsError(AccountValidationError):
    pass


class AccountNotFoundError(AccountDomainError):
    pass


class AccountForbiddenError(AccountDomainError):
    pass
