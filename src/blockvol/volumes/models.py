import logging

import mongoengine as me


log = logging.getLogger(__name__)


class VolumeStatus(object):
    """Provider independent volume status.

    Controllers translate the status reported by the provider to one of
    these values, see `BaseStorageController.STATUS_MAP`.
    """
    CREATING = 'creating'
    AVAILABLE = 'available'
    IN_USE = 'in-use'
    DETACHING = 'detaching'
    DELETING = 'deleting'
    DELETED = 'deleted'
    ERROR = 'error'
    UNKNOWN = 'unknown'

    ALL = (CREATING, AVAILABLE, IN_USE, DETACHING, DELETING, DELETED, ERROR,
           UNKNOWN)


class VolumeDetails(me.EmbeddedDocument):
    """A block storage volume as observed in the cloud

    Instances are snapshots of remote state. They are never saved; the
    cloud account owns the volume.
    """

    id = me.StringField(required=True)
    name = me.StringField(default='')
    size = me.IntField()
    location = me.StringField()
    status = me.StringField(choices=VolumeStatus.ALL,
                            default=VolumeStatus.UNKNOWN)
    extra = me.DictField()

    def as_dict(self):
        """Returns the API representation of the `VolumeDetails` object."""
        return {
            'id': self.id,
            'name': self.name or '',
            'size': self.size,
            'location': self.location,
            'status': self.status,
            'extra': self.extra,
        }

    def __str__(self):
        return '%s "%s" (%s)' % (self.__class__.__name__, self.name, self.id)
