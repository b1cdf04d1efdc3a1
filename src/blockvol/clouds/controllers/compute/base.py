"""Definition of base classes for compute subcontrollers

The compute subcontroller resolves machines. Its main job is to map an
address, as known by the caller, to the machine the cloud knows by an opaque
provider id, and to describe the volumes attached to it.

"""

import logging
import threading

from blockvol import config

from blockvol.exceptions import BlockvolError
from blockvol.exceptions import MachineListingError
from blockvol.exceptions import MachineNotFoundError

from blockvol.clouds.utils import LibcloudExceptionHandler
from blockvol.clouds.controllers.base import BaseController

from blockvol.machines.models import ComputeNode


log = logging.getLogger(__name__)

__all__ = [
    "BaseComputeController",
]


class BaseComputeController(BaseController):
    """Abstract base class for every cloud/provider compute controller

    Any methods and attributes that don't start with an underscore are the
    controller's public API. Subclasses SHOULD NOT override them.

    Methods that start with an underscore are hooks used by the public
    methods to talk to the provider. An internal method only used by one
    public method is prefixed with that method's name, for example
    `self._get_node_metadata__devices`.

    Subclasses MUST define `self._connect` and SHOULD define
    `self._get_node_metadata__devices`.

    """

    def __init__(self, main_ctl):
        super(BaseComputeController, self).__init__(main_ctl)
        self._address_cache = {}
        self._address_cache_lock = threading.Lock()

    def check_connection(self):
        """Raise an exception if we can't talk to the cloud

        Creating a libcloud driver doesn't make any request, so we list the
        nodes to verify that the credentials work.
        """
        self.list_nodes()

    @LibcloudExceptionHandler(MachineListingError)
    def list_nodes(self):
        """Return a `ComputeNode` for every machine in the cloud/region"""
        return [self._get_node_metadata(node)
                for node in self._list_nodes__fetch_nodes()]

    def find_node_by_address(self, address):
        """Return the `ComputeNode` with `address` as public or private ip

        Every machine visible in the current region is listed and its
        metadata fetched, one machine at a time, until one matches. Nothing
        is cached across calls, unless `config.NODE_ADDRESS_CACHE` is set.

        Raises `MachineNotFoundError` if no machine has this address.
        """
        if config.NODE_ADDRESS_CACHE:
            node = self._find_node_by_address__cached(address)
            if node is not None:
                return node
        try:
            libcloud_nodes = self._list_nodes__fetch_nodes()
        except BlockvolError:
            raise
        except Exception as exc:
            log.warning("Failed listing available nodes. Reason: %s", exc)
            raise MachineListingError(
                "Failed listing available nodes. Reason: %s" % exc, exc=exc)
        log.debug("Searching for node with matching ip %s in servers list",
                  address)
        for libcloud_node in libcloud_nodes:
            try:
                node = self._get_node_metadata(libcloud_node)
            except BlockvolError:
                raise
            except Exception as exc:
                log.warning("Failed getting metadata of node %s: %s",
                            libcloud_node.id, exc)
                raise MachineListingError(
                    "Failed getting metadata of node %s. Reason: %s" % (
                        libcloud_node.id, exc), exc=exc)
            if node.has_address(address):
                log.debug("Found %s with matching ip %s", node, address)
                if config.NODE_ADDRESS_CACHE:
                    with self._address_cache_lock:
                        self._address_cache[address] = node.provider_id
                return node
        log.warning("Could not find machine with matching ip: %s", address)
        raise MachineNotFoundError(
            "Could not find machine with matching ip: %s" % address,
            address=address)

    def _find_node_by_address__cached(self, address):
        with self._address_cache_lock:
            provider_id = self._address_cache.get(address)
        if provider_id is None:
            return None
        libcloud_node = self._fetch_node(provider_id)
        node = None
        if libcloud_node is not None:
            node = self._get_node_metadata(libcloud_node)
        if node is None or not node.has_address(address):
            log.debug("Cached machine %s no longer has ip %s",
                      provider_id, address)
            self.invalidate_node_cache(address)
            return None
        return node

    def invalidate_node_cache(self, address=None):
        """Forget the machine cached for `address`, or all of them"""
        with self._address_cache_lock:
            if address is None:
                self._address_cache.clear()
            else:
                self._address_cache.pop(address, None)

    def get_machine_volume_ids(self, address):
        """Return the ids of the volumes attached to the machine at
        `address`"""
        return self.find_node_by_address(address).attached_volume_ids

    def _list_nodes__fetch_nodes(self):
        """Return the list of libcloud Node objects in the cloud

        Subclasses MAY override this method.
        """
        return self.connection.list_nodes()

    def _fetch_node(self, provider_id):
        """Return the libcloud node with `provider_id`, or None

        Subclasses SHOULD override this method if the provider can describe
        a single machine.
        """
        for libcloud_node in self._list_nodes__fetch_nodes():
            if libcloud_node.id == provider_id:
                return libcloud_node
        return None

    def _get_node_metadata(self, libcloud_node):
        """Build a `ComputeNode` out of a libcloud Node

        Subclasses SHOULD NOT override this method.
        """
        return ComputeNode(
            provider_id=libcloud_node.id,
            name=libcloud_node.name,
            private_ips=list(libcloud_node.private_ips or []),
            public_ips=list(libcloud_node.public_ips or []),
            devices=self._get_node_metadata__devices(libcloud_node),
        )

    def _get_node_metadata__devices(self, libcloud_node):
        """Return the list of `BlockDevice` of a libcloud Node

        Subclasses SHOULD override this method.
        """
        return []
