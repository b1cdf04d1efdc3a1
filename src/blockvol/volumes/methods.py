from blockvol.clouds.methods import get_cloud


def list_volumes(title, address, timeout=None):
    """List the volumes attached to the machine with ip `address`"""
    cloud = get_cloud(title)
    try:
        volumes = cloud.ctl.storage.list_volumes(address, timeout)
    finally:
        cloud.ctl.close()
    return [v.as_dict() for v in volumes]


def list_all_volumes(title):
    """List the volumes of the specified cloud"""
    cloud = get_cloud(title)
    try:
        volumes = cloud.ctl.storage.list_all_volumes()
    finally:
        cloud.ctl.close()
    return [v.as_dict() for v in volumes]


def create_volume(title, template_name, location=None, timeout=None):
    cloud = get_cloud(title)
    try:
        volume = cloud.ctl.storage.create_volume(template_name, location,
                                                 timeout)
    finally:
        cloud.ctl.close()
    return volume.as_dict()


def attach_volume(title, volume_id, device, address, timeout=None):
    cloud = get_cloud(title)
    try:
        cloud.ctl.storage.attach_volume(volume_id, device, address, timeout)
    finally:
        cloud.ctl.close()


def detach_volume(title, volume_id, address, timeout=None):
    cloud = get_cloud(title)
    try:
        cloud.ctl.storage.detach_volume(volume_id, address, timeout)
    finally:
        cloud.ctl.close()


def delete_volume(title, volume_id, location=None, timeout=None):
    cloud = get_cloud(title)
    try:
        cloud.ctl.storage.delete_volume(location, volume_id, timeout)
    finally:
        cloud.ctl.close()


def get_volume_name(title, volume_id):
    cloud = get_cloud(title)
    try:
        return cloud.ctl.storage.get_volume_name(volume_id)
    finally:
        cloud.ctl.close()


def get_machine_volume_ids(title, address):
    cloud = get_cloud(title)
    try:
        return sorted(cloud.ctl.storage.get_machine_volume_ids(address))
    finally:
        cloud.ctl.close()
