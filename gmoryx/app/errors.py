# gmoryx/app/errors.py


class GMOryxError(Exception):
    pass


class InterfaceEnumerationFailure(GMOryxError):
    """Network interfaces could not be listed (unsupported or denied)."""


class StartupFailure(GMOryxError):
    """The server could not register its handler or bind its listener."""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause


class ShutdownFailure(GMOryxError):
    """Stopping the server failed; callers log it and carry on."""


class HandlerRenderFailure(GMOryxError):
    """A response body could not be composed."""
