import logging

from blockvol.clouds.models import Cloud

from blockvol import config


log = logging.getLogger(__name__)


def list_clouds():
    """Return the titles of the clouds in the settings"""
    return sorted(config.CLOUDS)


def get_cloud(title, compute_template=None):
    """Build the cloud named `title`

    If `compute_template` is given, the cloud is switched to that template's
    region.
    """
    cloud = Cloud.from_settings(title)
    if compute_template:
        cloud.ctl.set_compute_template(compute_template)
    log.debug("Loaded %s", cloud)
    return cloud
