"""Exceptions raised by the client service layer."""


class ServiceError(RuntimeError):
    """The backend could not be reached or refused a save."""


class NotFoundError(ServiceError):
    """No record with the requested id exists in the collection."""


class DuplicateEmailError(ValueError):
    """Another user already has this email address."""


class LastTrainerError(ValueError):
    """Deleting this user would leave the roster without a trainer."""
