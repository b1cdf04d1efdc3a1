"""Definition of base main controllers for clouds

This currently contains only BaseMainController. It includes the functionality
common to all clouds: selecting the region, sharing the libcloud connection
between subcontrollers and closing it.

The main controller also acts as a gateway to specific controllers. For
example, one may do

    cloud.ctl.set_compute_template('SMALL_LINUX')
    cloud.ctl.storage.create_volume('SMALL_BLOCK', 'eu-west-1a', '5m')

Cloud specific main controllers are in
`blockvol.clouds.controllers.main.controllers`.

"""

import logging

from blockvol.exceptions import CloudUnavailableError

from blockvol.clouds.controllers.compute.base import BaseComputeController
from blockvol.clouds.controllers.storage.base import BaseStorageController


log = logging.getLogger(__name__)

__all__ = [
    "BaseMainController",
]


class BaseMainController(object):
    """Base main controller class for all cloud types

    Main controllers act as a gateway to specific controllers. For example,
    one may do

        cloud.ctl.compute.find_node_by_address('10.0.0.12')
        cloud.ctl.storage.list_all_volumes()

    For this to work, subclasses must define the appropriate subcontroller
    class, by defining for example a `ComputeController` attribute with a
    subclass of
    blockvol.clouds.controllers.compute.base.BaseComputeController.

    For specific clouds, main controllers are defined in
    `blockvol.clouds.controllers.main.controllers`.

    Any methods and attributes that don't start with an underscore are the
    controller's public API. Subclasses SHOULD NOT override them.

    """

    provider = ''
    ComputeController = None
    StorageController = None

    def __init__(self, cloud):
        """Initialize main cloud controller given a cloud

        Most times one is expected to access a controller from inside the
        cloud, like this:

            cloud = blockvol.clouds.methods.get_cloud('aws-eu')
            cloud.ctl.storage.list_all_volumes()

        Subclasses SHOULD NOT override this method.

        """

        self.cloud = cloud

        # Initialize compute controller.
        assert issubclass(self.ComputeController, BaseComputeController)
        self.compute = self.ComputeController(self)

        # Initialize storage controller.
        assert issubclass(self.StorageController, BaseStorageController)
        self.storage = self.StorageController(self)

    @property
    def connection(self):
        """The libcloud connection shared by all subcontrollers"""
        return self.compute.connection

    def set_connection(self, conn):
        """Use an existing libcloud driver instead of creating one

        Raises `CloudUnavailableError` if `conn` is not a driver of this
        cloud's provider.
        """
        log.debug("Setting compute context for %s", self.cloud)
        self.compute.set_connection(conn)
        self.storage.set_connection(conn)

    def set_compute_template(self, template_name):
        """Use the region of a compute template

        Any connection already created for another region is closed, a new
        one is created on next use.
        """
        template = self.cloud.get_compute_template(template_name)
        region = template.location_id
        if not region or region == self.cloud.region:
            return
        if self.compute.closed:
            raise CloudUnavailableError("Connection to %s has been closed" %
                                        self.cloud)
        log.info("Switching %s to region %s", self.cloud, region)
        self.cloud.region = region
        self.storage.reset_connection()
        self.compute.reset_connection()
        self.compute.invalidate_node_cache()

    def check_connection(self):
        """Raise an exception if the cloud can't be reached"""
        self.compute.check_connection()

    def disconnect(self):
        """Close the shared connection

        This is terminal, the controllers can't be used afterwards.
        """
        log.debug("Closing connections of %s", self.cloud)
        self.storage.disconnect()
        self.compute.disconnect()
        self.compute.invalidate_node_cache()

    close = disconnect
