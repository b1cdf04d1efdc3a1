"""Definition of cloud-specific compute subcontroller classes.

This file should only contain subclasses of `BaseComputeController`.

"""

import logging

from libcloud.compute.providers import get_driver
from libcloud.compute.drivers.ec2 import EC2NodeDriver

from blockvol import config

from blockvol.machines.models import BlockDevice

from blockvol.clouds.controllers.compute.base import BaseComputeController


log = logging.getLogger(__name__)


class AmazonComputeController(BaseComputeController):

    _connection_cls = EC2NodeDriver

    def _connect(self):
        return get_driver(config.PROVIDERS['ec2']['driver'])(
            self.cloud.apikey, self.cloud.apisecret, region=self.cloud.region)

    def _fetch_node(self, provider_id):
        try:
            nodes = self.connection.list_nodes(ex_node_ids=[provider_id])
        except Exception as exc:
            # EC2 fails the whole request for an unknown instance id.
            log.debug("Could not describe instance %s: %r", provider_id, exc)
            return None
        return nodes[0] if nodes else None

    def _get_node_metadata__devices(self, libcloud_node):
        devices = []
        for mapping in libcloud_node.extra.get('block_device_mapping') or []:
            ebs = mapping.get('ebs') or {}
            devices.append(BlockDevice(device_name=mapping.get('device_name'),
                                       volume_id=ebs.get('volume_id') or ''))
        return devices
