"""Definition of base classes for storage subcontrollers

The storage subcontroller drives the lifecycle of block storage volumes. The
cloud only acknowledges requests, so every mutating operation here issues its
request and then waits, up to a caller supplied timeout, until the volume has
converged to the expected status.

"""

import logging
import contextlib

from libcloud.compute.base import Node
from libcloud.compute.base import StorageVolume
from libcloud.compute.types import NodeState
from libcloud.compute.types import StorageVolumeState

from blockvol import config

from blockvol.exceptions import BlockvolError
from blockvol.exceptions import RequiredParameterMissingError
from blockvol.exceptions import VolumeSizeError
from blockvol.exceptions import VolumeAlreadyAttachedError
from blockvol.exceptions import VolumeTimeoutError
from blockvol.exceptions import VolumeNotFoundError
from blockvol.exceptions import VolumeCreationError
from blockvol.exceptions import VolumeAttachmentError
from blockvol.exceptions import VolumeDetachmentError
from blockvol.exceptions import VolumeDeletionError
from blockvol.exceptions import VolumeListingError
from blockvol.exceptions import VolumeStatusQueryError
from blockvol.exceptions import TagCreationError
from blockvol.exceptions import TagQueryError

from blockvol.helpers import get_deadline
from blockvol.helpers import timestamp_ms

from blockvol.clouds.utils import LibcloudExceptionHandler
from blockvol.clouds.controllers.base import BaseController

from blockvol.poller.methods import wait_for_status

from blockvol.volumes.models import VolumeStatus
from blockvol.volumes.models import VolumeDetails


log = logging.getLogger(__name__)

__all__ = [
    "BaseStorageController",
]


class BaseStorageController(BaseController):
    """Abstract base class for volume-specific subcontrollers.

    This base controller factors out all the steps common to all or most
    clouds into a base class, and defines an interface for provider
    or technology specific cloud controllers.

    The following convention is followed:

    Any methods and attributes that don't start with an underscore are the
    controller's public API.

    In the `BaseStorageController`, these public methods contain all the
    steps of a volume operation which are common to all cloud types: input
    validation, waiting for the cloud to converge, cleaning up after partial
    failures and translating errors. In almost all cases, subclasses SHOULD
    NOT override or extend the public methods of `BaseStorageController`.

    Any methods and attributes that start with an underscore are the
    controller's internal/private API. They are the only places where the
    libcloud connection is used, so a subclass accounts for cloud specific
    behaviour by overriding them. When an internal method is only ever used
    in the process of one public method, it is prefixed as such to make
    identification and purpose more obvious.

    Every mutating operation accepts a `timeout`, either a number of
    seconds, a `datetime.timedelta` or a string like '90s' or '5m'. It is
    turned into an absolute deadline when the operation starts. The deadline
    bounds the waits for status changes, not the libcloud calls themselves.

    """

    # Map provider volume states to `VolumeStatus`. Both libcloud's
    # `StorageVolumeState` values and raw provider strings are accepted.
    STATUS_MAP = {
        StorageVolumeState.CREATING: VolumeStatus.CREATING,
        StorageVolumeState.AVAILABLE: VolumeStatus.AVAILABLE,
        StorageVolumeState.INUSE: VolumeStatus.IN_USE,
        StorageVolumeState.DELETING: VolumeStatus.DELETING,
        StorageVolumeState.DELETED: VolumeStatus.DELETED,
        StorageVolumeState.ERROR: VolumeStatus.ERROR,
        'in-use': VolumeStatus.IN_USE,
        'detaching': VolumeStatus.DETACHING,
    }

    def _connect(self):
        # Volumes are managed through the compute driver.
        return self.cloud.ctl.compute.connection

    def create_volume(self, template_name, location=None, timeout=None):
        """Create a new volume out of a storage template

        The volume is created in `location` (an availability zone), or the
        template's location if none is given. Once available, it is tagged
        with a name made of the template's name prefix and the creation
        time in milliseconds.

        If anything goes wrong after the cloud has assigned an id to the new
        volume, the volume is deleted before the error is raised. A timeout
        is raised as `VolumeTimeoutError`, any other failure as
        `VolumeCreationError`.

        Subclasses SHOULD NOT override or extend this method.

        There are instead a number of methods that are called from this
        method, to allow subclasses to modify the data according to the
        specific of their cloud type. These methods currently are:

            `self._create_volume__create`

        Returns a `VolumeDetails` object.
        """
        deadline = get_deadline(timeout)
        template = self.cloud.get_storage_template(template_name)
        size = template.size
        location = location or template.location
        if not location:
            raise RequiredParameterMissingError('location')
        if size is None or not \
                config.MIN_VOLUME_SIZE <= size <= config.MAX_VOLUME_SIZE:
            raise VolumeSizeError(
                "Volume size must be set to a value between %d and %d, "
                "got %s" % (config.MIN_VOLUME_SIZE, config.MAX_VOLUME_SIZE,
                            size), size=size)

        created = {}
        try:
            with self._delete_on_failure(created):
                log.debug("Creating new volume of %dGB in %s", size,
                          location)
                libcloud_volume = self._create_volume__create(
                    location, size, template)
                created['id'] = volume_id = libcloud_volume.id
                log.debug("Waiting for volume %s to become available",
                          volume_id)
                wait_for_status(volume_id, VolumeStatus.AVAILABLE, deadline,
                                self.get_volume_status)
                name = '%s_%d' % (template.name_prefix, timestamp_ms())
                log.debug("Naming volume %s as %s", volume_id, name)
                self._apply_tags([volume_id], {config.NAME_TAG_KEY: name})
        except VolumeTimeoutError:
            raise
        except Exception as exc:
            raise VolumeCreationError(
                "Failed creating volume of size %s in availability zone %s. "
                "Reason: %s" % (size, location, exc), exc=exc, size=size,
                location=location, volume_id=created.get('id'))
        log.info("Volume %s of %dGB created in %s", volume_id, size,
                 location)
        volume = self._to_volume_details(libcloud_volume)
        volume.status = VolumeStatus.AVAILABLE
        volume.size = size
        volume.location = location
        return volume

    @contextlib.contextmanager
    def _delete_on_failure(self, created):
        """Delete the volume whose id is in `created` if the block fails

        `created` is filled in by the block once the cloud returns the id of
        the new volume. The error is always re-raised. A failure of
        the delete itself is only logged.
        """
        try:
            yield created
        except Exception as exc:
            volume_id = created.get('id')
            if volume_id:
                log.warning("Volume provisioning of %s failed: %r. "
                            "Deleting it.", volume_id, exc)
                try:
                    self._delete_volume(volume_id)
                except Exception as del_exc:
                    log.error("Volume provisioning failed. An error was "
                              "encountered while trying to delete the new "
                              "volume (%s). Error was: %r", volume_id,
                              del_exc)
            raise

    def _create_volume__create(self, location, size, template):
        """Issue the create request and return a libcloud `StorageVolume`

        The volume is returned as soon as the cloud assigns it an id, no
        other request may be sent in between.

        The name is always left out, volumes are named with a tag once
        available.

        Subclasses SHOULD override this method to pass provider specific
        arguments, or if the libcloud call does more than create the volume.
        """
        return self.connection.create_volume(size=size, name=None,
                                             location=location)

    @LibcloudExceptionHandler(VolumeAttachmentError)
    def attach_volume(self, volume_id, device, address, timeout=None):
        """Attach a volume to the machine with ip `address` as `device`

        Raises `VolumeAlreadyAttachedError` without contacting the cloud if
        the volume is already attached to that machine. Returns when the
        volume is in use.

        Subclasses SHOULD NOT override or extend this method.

        If a subclass needs to override the way volumes are attached, it
        should override the private method `_attach_volume` instead.
        """
        if not volume_id:
            raise RequiredParameterMissingError('volume_id')
        if not device:
            raise RequiredParameterMissingError('device')
        deadline = get_deadline(timeout)
        node = self.cloud.ctl.compute.find_node_by_address(address)
        if volume_id in node.attached_volume_ids:
            raise VolumeAlreadyAttachedError(
                "Volume %s is already attached to machine %s with ip %s" % (
                    volume_id, node.provider_id, address),
                volume_id=volume_id, address=address)
        log.debug("Attaching volume %s to %s as %s", volume_id, node, device)
        try:
            self._attach_volume(volume_id, node, device)
        except BlockvolError:
            raise
        except Exception as exc:
            log.warning("Failed attaching volume %s to %s: %r", volume_id,
                        node, exc)
            raise VolumeAttachmentError(
                "Failed attaching volume %s to machine %s. Reason: %s" % (
                    volume_id, node.provider_id, exc),
                exc=exc, volume_id=volume_id, address=address)
        wait_for_status(volume_id, VolumeStatus.IN_USE, deadline,
                        self.get_volume_status)
        log.info("Volume %s attached to %s as %s", volume_id, node, device)

    def _attach_volume(self, volume_id, node, device):
        self.connection.attach_volume(self._node_handle(node),
                                      self._volume_handle(volume_id),
                                      device=device)

    @LibcloudExceptionHandler(VolumeDetachmentError)
    def detach_volume(self, volume_id, address, timeout=None):
        """Detach a volume from the machine with ip `address`

        Raises `VolumeNotFoundError` if the volume is not attached to that
        machine. The detachment is forced. Returns when the volume is
        available again.

        Subclasses SHOULD NOT override or extend this method.

        If a subclass needs to override the way volumes are detached, it
        should override the private method `_detach_volume` instead.
        """
        deadline = get_deadline(timeout)
        node = self.cloud.ctl.compute.find_node_by_address(address)
        volume_ids = [volume.id for volume in self._list_node_volumes(node)]
        if volume_id not in volume_ids:
            raise VolumeNotFoundError(
                "Volume %s is not attached to machine with ip %s" % (
                    volume_id, address),
                volume_id=volume_id, address=address)
        log.debug("Detaching volume %s from %s", volume_id, node)
        try:
            self._detach_volume(volume_id, node)
        except BlockvolError:
            raise
        except Exception as exc:
            log.warning("Failed detaching volume %s from %s: %r", volume_id,
                        node, exc)
            raise VolumeDetachmentError(
                "Failed detaching volume %s from machine %s. Reason: %s" % (
                    volume_id, node.provider_id, exc),
                exc=exc, volume_id=volume_id, address=address)
        wait_for_status(volume_id, VolumeStatus.AVAILABLE, deadline,
                        self.get_volume_status)
        log.info("Volume %s detached from %s", volume_id, node)

    def _detach_volume(self, volume_id, node):
        """Force detach volume from node

        Subclasses SHOULD override this method if the provider needs the
        node or a flag to force the detachment. Libcloud's generic call
        only sends the volume.
        """
        self.connection.detach_volume(self._volume_handle(volume_id))

    def delete_volume(self, location, volume_id, timeout=None):
        """Delete a volume

        The delete request is issued whatever the volume's status. Returns
        once the volume is being deleted, or is already gone.

        Subclasses SHOULD NOT override or extend this method.

        If a subclass needs to override the way volumes are deleted, it
        should override the private method `_delete_volume` instead.
        """
        deadline = get_deadline(timeout)
        log.debug("Deleting volume %s in %s", volume_id, location)
        try:
            self._delete_volume(volume_id)
        except BlockvolError:
            raise
        except Exception as exc:
            log.warning("Failed deleting volume %s: %r", volume_id, exc)
            raise VolumeDeletionError(
                "Failed deleting volume with ID %s. Reason: %s" % (
                    volume_id, exc),
                exc=exc, volume_id=volume_id, location=location)
        try:
            wait_for_status(volume_id, VolumeStatus.DELETING, deadline,
                            self.get_volume_status)
        except VolumeNotFoundError:
            log.debug("Volume %s is already gone", volume_id)
        log.info("Volume %s deleted", volume_id)

    def _delete_volume(self, volume_id):
        self.connection.destroy_volume(self._volume_handle(volume_id))

    def list_volumes(self, address, timeout=None):
        """Return the volumes attached to the machine with ip `address`

        Nothing is awaited here, `timeout` is accepted so that all volume
        operations share the same signature.

        Returns a list of `VolumeDetails` objects.
        """
        node = self.cloud.ctl.compute.find_node_by_address(address)
        return self._list_node_volumes(node)

    def _list_node_volumes(self, node):
        attached_ids = node.attached_volume_ids
        log.debug("Listing all volumes on %s", node)
        return [volume for volume in self.list_all_volumes()
                if volume.id in attached_ids]

    @LibcloudExceptionHandler(VolumeListingError)
    def list_all_volumes(self):
        """Return every volume in the cloud's region

        Each volume is named after its name tag. Volumes whose tags can't be
        read are returned without a name.

        Returns a list of `VolumeDetails` objects, unique by id.
        """
        try:
            libcloud_volumes = self._describe_volumes()
        except BlockvolError:
            raise
        except Exception as exc:
            raise VolumeListingError(
                "Failed listing volumes. Reason: %s" % exc, exc=exc)
        volumes, seen = [], set()
        for libcloud_volume in libcloud_volumes:
            if libcloud_volume.id in seen:
                continue
            seen.add(libcloud_volume.id)
            volumes.append(self._to_volume_details(libcloud_volume))
        return volumes

    def _describe_volumes(self, volume_ids=None):
        """Return the libcloud `StorageVolume` objects of the region

        Subclasses MAY override this method to only describe the volumes in
        `volume_ids`, when given. Callers filter the result themselves.
        """
        return self.connection.list_volumes()

    def _describe_volume(self, volume_id):
        """Return the libcloud `StorageVolume` with id `volume_id`

        Raises `VolumeNotFoundError` if the cloud doesn't know about it.
        """
        for libcloud_volume in self._describe_volumes([volume_id]):
            if libcloud_volume.id == volume_id:
                return libcloud_volume
        raise VolumeNotFoundError("Volume %s" % volume_id,
                                  volume_id=volume_id)

    @LibcloudExceptionHandler(VolumeStatusQueryError)
    def get_volume_status(self, volume_id):
        """Query the cloud once for the current `VolumeStatus` of a volume"""
        return self._get_status(self._describe_volume(volume_id))

    def _get_status(self, libcloud_volume):
        return self.STATUS_MAP.get(libcloud_volume.state,
                                   VolumeStatus.UNKNOWN)

    def get_volume_name(self, volume_id):
        """Return the value of the name tag of a volume, or ''

        Raises `TagQueryError` if the tags can't be read.
        """
        log.debug("Filtering tags of %s to find the '%s' tag", volume_id,
                  config.NAME_TAG_KEY)
        try:
            tags = self._query_tags(volume_id)
        except BlockvolError:
            raise
        except Exception as exc:
            log.warning("Failed getting volume name. Reason: %r", exc)
            raise TagQueryError("Failed getting volume name. Reason: %s" %
                                exc, exc=exc, volume_id=volume_id)
        return tags.get(config.NAME_TAG_KEY) or ''

    def get_machine_volume_ids(self, address):
        """Return the ids of the volumes attached to the machine at
        `address`"""
        return self.cloud.ctl.compute.get_machine_volume_ids(address)

    def _apply_tags(self, resource_ids, tags):
        """Apply `tags` to every resource in `resource_ids`

        Subclasses MUST override this method to support tagging.
        """
        raise TagCreationError("Tagging is not supported by %s" %
                               self.cloud)

    def _query_tags(self, resource_id):
        """Return the tags of a resource as a dict

        Subclasses MUST override this method to support tagging.
        """
        raise TagQueryError("Tagging is not supported by %s" % self.cloud)

    def _to_volume_details(self, libcloud_volume):
        try:
            size = int(libcloud_volume.size)
        except (TypeError, ValueError):
            size = None
        extra = dict(libcloud_volume.extra or {})
        try:
            name = self.get_volume_name(libcloud_volume.id)
        except BlockvolError as exc:
            # Volumes created outside blockvol may have no tags at all.
            log.info("Could not obtain volume name for volume with id: %s. "
                     "Reason: %s", libcloud_volume.id, exc)
            name = ''
        return VolumeDetails(
            id=libcloud_volume.id,
            name=name,
            size=size,
            location=self._to_volume_details__location(libcloud_volume),
            status=self._get_status(libcloud_volume),
            extra={key: value for key, value in extra.items()
                   if isinstance(value, (str, int, float, bool))},
        )

    def _to_volume_details__location(self, libcloud_volume):
        """Return the location of a libcloud volume

        Subclasses SHOULD override this method.
        """
        return (libcloud_volume.extra or {}).get('location')

    def _volume_handle(self, volume_id):
        """Return a libcloud `StorageVolume` usable in requests"""
        return StorageVolume(id=volume_id, name=None, size=None,
                             driver=self.connection)

    def _node_handle(self, node):
        """Return a libcloud `Node` usable in requests"""
        return Node(id=node.provider_id, name=node.name,
                    state=NodeState.UNKNOWN, public_ips=node.public_ips,
                    private_ips=node.private_ips, driver=self.connection)
