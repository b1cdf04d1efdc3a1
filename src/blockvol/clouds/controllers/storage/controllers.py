"""Definition of cloud-specific storage subcontroller classes.

This file should only contain subclasses of `BaseStorageController`.

"""

import logging

from libcloud.compute.drivers.ec2 import EC2NodeDriver

from blockvol.clouds.controllers.storage.base import BaseStorageController


log = logging.getLogger(__name__)


class AmazonStorageController(BaseStorageController):

    _connection_cls = EC2NodeDriver

    def _ec2_request(self, params):
        return self.connection.connection.request(self.connection.path,
                                                  params=params)

    def _create_volume__create(self, location, size, template):
        # `EC2NodeDriver.create_volume` tags the new volume in the same call,
        # before its id is handed back. Volumes are named once available.
        params = {'Action': 'CreateVolume', 'Size': str(size),
                  'AvailabilityZone': location}
        if template.volume_type:
            params['VolumeType'] = template.volume_type
        return self.connection._to_volume(self._ec2_request(params).object)

    def _detach_volume(self, volume_id, node):
        # `EC2NodeDriver.detach_volume` can't pass the instance id.
        self._ec2_request({'Action': 'DetachVolume', 'VolumeId': volume_id,
                           'InstanceId': node.provider_id, 'Force': 1})

    def _describe_volumes(self, volume_ids=None):
        if volume_ids:
            return self.connection.list_volumes(
                ex_filters={'volume-id': list(volume_ids)})
        return self.connection.list_volumes()

    def _apply_tags(self, resource_ids, tags):
        for resource_id in resource_ids:
            self.connection.ex_create_tags(self._volume_handle(resource_id),
                                           tags)

    def _query_tags(self, resource_id):
        return self.connection.ex_describe_tags(
            self._volume_handle(resource_id)) or {}

    def _to_volume_details__location(self, libcloud_volume):
        return (libcloud_volume.extra or {}).get('zone')
