"""Custom exceptions used by blockvol

The hierarchy is closed: every error raised by a controller derives from
`BlockvolError` and belongs to exactly one of four kinds, so that callers
can branch on the class instead of parsing messages:

    ValidationError     bad input, detected before any remote call
    VolumeTimeoutError  a bounded wait expired before the awaited status
    StateError          a referenced entity is missing or in the wrong state
    ProvisioningError   any other failure of the underlying cloud api

"""


class BlockvolError(Exception):
    """All custom blockvol exceptions should subclass this one.

    When printed, this class will always print its default message plus
    the message provided during exception initialization, if provided.

    Extra keyword arguments are stored in `self.context` and describe the
    resources involved, eg `volume_id`, `size` or `location`.

    """
    msg = "Blockvol Error"
    http_code = 500

    def __init__(self, msg=None, exc=None, **context):
        if isinstance(msg, Exception) and exc is None:
            exc, msg = msg, None
        if msg is None and exc is not None:
            msg = str(exc) or repr(exc)
        if msg:
            msg = "%s: %s" % (self.msg, msg)
        else:
            msg = self.msg
        super(BlockvolError, self).__init__(msg)
        self.msg = msg
        self.exc = exc
        self.context = context
        if exc is not None:
            self.__cause__ = exc

    def __str__(self):
        return self.msg


# BAD REQUESTS (translated as 400 in views)
class ValidationError(BlockvolError):
    msg = "Bad request"
    http_code = 400


class RequiredParameterMissingError(ValidationError):
    msg = "Required parameter missing"


class VolumeSizeError(ValidationError):
    msg = "Invalid volume size"


class VolumeAlreadyAttachedError(ValidationError):
    msg = "Volume already attached"


class StorageTemplateNotFoundError(ValidationError):
    msg = "Storage template not found"


# TIMEOUTS
class VolumeTimeoutError(BlockvolError):
    msg = "Timed out waiting for volume"
    http_code = 504

    def __init__(self, msg=None, exc=None, resource_id='', status=None,
                 last_status=None, **context):
        super(VolumeTimeoutError, self).__init__(
            msg, exc, resource_id=resource_id, status=status,
            last_status=last_status, **context)
        self.resource_id = resource_id
        self.status = status
        self.last_status = last_status


# ILLEGAL STATE
class StateError(BlockvolError):
    msg = "Illegal state"
    http_code = 409


class NotFoundError(StateError):
    msg = "Not Found"
    http_code = 404


class MachineNotFoundError(NotFoundError):
    msg = "Machine not found"


class VolumeNotFoundError(NotFoundError):
    msg = "Volume not found"


class CloudNotFoundError(NotFoundError):
    msg = "Cloud not found"


# PROVISIONING
class ProvisioningError(BlockvolError):
    msg = "Provisioning error"
    http_code = 503


class CloudUnavailableError(ProvisioningError):
    msg = "Cloud unavailable"


class CloudUnauthorizedError(ProvisioningError):
    msg = "Invalid cloud credentials"
    http_code = 401


class MachineListingError(ProvisioningError):
    msg = "Error while listing machines"


class VolumeCreationError(ProvisioningError):
    msg = "Error while creating volume"


class VolumeAttachmentError(ProvisioningError):
    msg = "Error while attaching volume"


class VolumeDetachmentError(ProvisioningError):
    msg = "Error while detaching volume"


class VolumeDeletionError(ProvisioningError):
    msg = "Error while deleting volume"


class VolumeListingError(ProvisioningError):
    msg = "Error while listing volumes"


class VolumeStatusQueryError(ProvisioningError):
    msg = "Error while getting volume description"


class TagQueryError(ProvisioningError):
    msg = "Error while querying tags"


class TagCreationError(ProvisioningError):
    msg = "Error while applying tags"
