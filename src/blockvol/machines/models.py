import logging

import mongoengine as me


log = logging.getLogger(__name__)


class BlockDevice(me.EmbeddedDocument):
    """A block device in a machine's hardware description

    Instance store and other devices that start with the machine have no
    `volume_id`.
    """
    device_name = me.StringField()
    volume_id = me.StringField(default='')


class ComputeNode(me.EmbeddedDocument):
    """A running machine, as described by the cloud"""

    provider_id = me.StringField(required=True)
    name = me.StringField()
    private_ips = me.ListField(me.StringField())
    public_ips = me.ListField(me.StringField())
    devices = me.ListField(me.EmbeddedDocumentField(BlockDevice))

    @property
    def addresses(self):
        return set(self.private_ips or []) | set(self.public_ips or [])

    @property
    def attached_volume_ids(self):
        """Ids of the volumes attached to this machine"""
        return {device.volume_id for device in self.devices
                if device.volume_id}

    def has_address(self, address):
        return address in self.addresses

    def as_dict(self):
        return {
            'provider_id': self.provider_id,
            'name': self.name,
            'private_ips': list(self.private_ips or []),
            'public_ips': list(self.public_ips or []),
            'volumes': sorted(self.attached_volume_ids),
        }

    def __str__(self):
        return '%s "%s" (%s)' % (self.__class__.__name__, self.name,
                                 self.provider_id)
