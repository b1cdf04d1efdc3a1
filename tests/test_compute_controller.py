"""Tests for resolving machines by address"""

import pytest

from blockvol import config
from blockvol.exceptions import MachineNotFoundError
from blockvol.exceptions import MachineListingError


def test_find_by_private_address(cloud, driver):
    node = cloud.ctl.compute.find_node_by_address('10.0.0.2')
    assert node.provider_id == 'i-2'
    assert node.name == 'machine-i-2'


def test_find_by_public_address(cloud, driver):
    node = cloud.ctl.compute.find_node_by_address('54.0.0.1')
    assert node.provider_id == 'i-1'


def test_unknown_address(cloud, driver):
    with pytest.raises(MachineNotFoundError) as excinfo:
        cloud.ctl.compute.find_node_by_address('192.168.1.1')
    assert '192.168.1.1' in str(excinfo.value)


def test_listing_failure(cloud, driver):
    driver.errors['list_nodes'] = RuntimeError('throttled')
    with pytest.raises(MachineListingError) as excinfo:
        cloud.ctl.compute.find_node_by_address('10.0.0.1')
    assert 'throttled' in str(excinfo.value)


def test_attached_volume_ids_skip_devices_without_id(cloud, driver):
    driver.add_instance('i-3', private_ips=['10.0.0.3'],
                        devices=[('/dev/sda1', 'vol-root'), ('/dev/sdb', ''),
                                 ('/dev/sdc', '')])
    driver.add_volume('vol-data', attached_to='i-3', device='/dev/sdf')
    node = cloud.ctl.compute.find_node_by_address('10.0.0.3')
    assert len(node.devices) == 4
    assert node.attached_volume_ids == {'vol-root', 'vol-data'}
    assert cloud.ctl.compute.get_machine_volume_ids('10.0.0.3') == \
        {'vol-root', 'vol-data'}


def test_no_cache_by_default(cloud, driver):
    cloud.ctl.compute.find_node_by_address('10.0.0.1')
    cloud.ctl.compute.find_node_by_address('10.0.0.1')
    assert driver.calls['list_nodes'] == 2
    assert driver.calls['list_nodes_by_id'] == 0


def test_address_cache_refetches_node(cloud, driver, monkeypatch):
    monkeypatch.setattr(config, 'NODE_ADDRESS_CACHE', True)
    cloud.ctl.compute.find_node_by_address('10.0.0.1')
    driver.add_volume('vol-new', attached_to='i-1', device='/dev/sdf')
    node = cloud.ctl.compute.find_node_by_address('10.0.0.1')
    assert driver.calls['list_nodes'] == 1
    assert driver.calls['list_nodes_by_id'] == 1
    # Attachment data is never served from the cache.
    assert 'vol-new' in node.attached_volume_ids


def test_address_cache_follows_moved_address(cloud, driver, monkeypatch):
    monkeypatch.setattr(config, 'NODE_ADDRESS_CACHE', True)
    assert cloud.ctl.compute.find_node_by_address('10.0.0.1').provider_id \
        == 'i-1'
    driver.instances['i-1']['private_ips'] = []
    driver.instances['i-2']['private_ips'] = ['10.0.0.1']
    node = cloud.ctl.compute.find_node_by_address('10.0.0.1')
    assert node.provider_id == 'i-2'
    assert driver.calls['list_nodes'] == 2


def test_invalidate_node_cache(cloud, driver, monkeypatch):
    monkeypatch.setattr(config, 'NODE_ADDRESS_CACHE', True)
    cloud.ctl.compute.find_node_by_address('10.0.0.1')
    cloud.ctl.compute.invalidate_node_cache('10.0.0.1')
    cloud.ctl.compute.find_node_by_address('10.0.0.1')
    assert driver.calls['list_nodes'] == 2
    assert driver.calls['list_nodes_by_id'] == 0


def test_list_nodes(cloud, driver):
    nodes = cloud.ctl.compute.list_nodes()
    assert [node.provider_id for node in nodes] == ['i-1', 'i-2']
    assert nodes[0].as_dict()['public_ips'] == ['54.0.0.1']


def test_node_addresses(cloud, driver):
    node = cloud.ctl.compute.find_node_by_address('54.0.0.1')
    assert node.addresses == {'10.0.0.1', '54.0.0.1'}
    assert node.has_address('10.0.0.1')
    assert not node.has_address('10.0.0.2')
