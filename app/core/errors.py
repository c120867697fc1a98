class AppError(Exception):
    """
    Base class for failures that end in a redirect plus a flash notice.

    `message` is shown to the user, `redirect_to` is where the browser goes.
    """

    default_redirect = "/listings"

    def __init__(self, message: str, redirect_to: str | None = None):
        super().__init__(message)
        self.message = message
        self.redirect_to = redirect_to or self.default_redirect


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class PermissionDeniedError(AppError):
    pass


class UploadError(AppError):
    pass


class AuthError(AppError):
    default_redirect = "/account/login"


class LoginRequiredError(AuthError):
    pass
