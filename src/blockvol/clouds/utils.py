import logging
import functools

from libcloud.common.types import InvalidCredsError

from blockvol.exceptions import BlockvolError
from blockvol.exceptions import CloudUnauthorizedError


log = logging.getLogger(__name__)


class LibcloudExceptionHandler(object):
    """Translate errors raised by libcloud to blockvol errors

    Decorate a controller method with an instance of this class, passing the
    `ProvisioningError` subclass that should wrap unexpected errors:

        @LibcloudExceptionHandler(VolumeListingError)
        def list_all_volumes(self):
            ...

    Errors that are already instances of `BlockvolError` are left untouched.
    """

    def __init__(self, exception_class):
        self.exception_class = exception_class

    def __call__(self, func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except BlockvolError:
                raise
            except InvalidCredsError as exc:
                log.error("Invalid creds on running %s: %s",
                          func.__name__, exc)
                raise CloudUnauthorizedError(exc=exc)
            except Exception as exc:
                log.error("Error on running %s: %r", func.__name__, exc)
                raise self.exception_class(exc=exc)
        return wrapper
