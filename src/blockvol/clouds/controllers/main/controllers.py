"""Definition of cloud-specific main controller classes.

This file should only contain subclasses of `BaseMainController`.

"""

import logging

from blockvol.clouds.controllers.main.base import BaseMainController
from blockvol.clouds.controllers.compute import controllers as compute_ctls
from blockvol.clouds.controllers.storage import controllers as storage_ctls


log = logging.getLogger(__name__)


class AmazonMainController(BaseMainController):

    provider = 'ec2'
    ComputeController = compute_ctls.AmazonComputeController
    StorageController = storage_ctls.AmazonStorageController
