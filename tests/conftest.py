"""Fixtures shared by the blockvol tests

No request ever leaves the process: the libcloud EC2 driver is replaced by
`FakeEC2Driver`, which keeps volumes, machines and tags in memory, and the
clock used by the poller is replaced by `FakeClock`, so waits take no time.
"""

import collections

from xml.etree import ElementTree as ET

import pytest

from libcloud.compute.base import Node
from libcloud.compute.base import StorageVolume
from libcloud.compute.types import NodeState
from libcloud.compute.types import StorageVolumeState
from libcloud.compute.drivers.ec2 import NAMESPACE
from libcloud.compute.drivers.ec2 import EC2NodeDriver

from blockvol import config
from blockvol import helpers
from blockvol.poller import methods as poller_methods
from blockvol.clouds.models import Cloud


ZONE = 'z1'
REGION = 'eu-west-1'

CLOUD_SETTINGS = {
    'provider': 'ec2',
    'apikey': 'AKIAFAKE',
    'apisecret': 'secret',
    'region': REGION,
    'compute_templates': {
        'SMALL_LINUX': {'location_id': REGION},
        'US_LINUX': {'location_id': 'us-east-1'},
    },
    'storage_templates': {
        'SMALL_BLOCK': {'size': 10, 'name_prefix': 'small'},
        'ZONED_BLOCK': {'size': 5, 'name_prefix': 'zoned', 'location': ZONE,
                        'volume_type': 'gp2'},
        'MAX_BLOCK': {'size': 1024, 'name_prefix': 'max'},
        'HUGE_BLOCK': {'size': 1025, 'name_prefix': 'huge'},
        'EMPTY_BLOCK': {'size': 0, 'name_prefix': 'empty'},
    },
}


class FakeClock(object):
    """Stands in for the `time` module in the poller and helpers"""

    def __init__(self, now=1600000000.0):
        self.now = now
        self.sleeps = []

    def time(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


CREATE_VOLUME_RESPONSE = """<CreateVolumeResponse xmlns="%(namespace)s">
    <volumeId>%(volume_id)s</volumeId>
    <size>%(size)s</size>
    <availabilityZone>%(zone)s</availabilityZone>
    <status>creating</status>
    <volumeType>%(volume_type)s</volumeType>
</CreateVolumeResponse>"""


class FakeResponse(object):

    def __init__(self, body=None):
        self.object = ET.fromstring(body) if body else None


class FakeConnection(object):
    """Hands the EC2 query API requests over to the fake driver"""

    def __init__(self, driver):
        self.driver = driver
        self.closed = 0

    def request(self, action, params=None, **kwargs):
        return self.driver.handle_request(dict(params or {}))

    def close(self):
        self.closed += 1


class FakeEC2Driver(EC2NodeDriver):
    """In memory EC2 driver

    Every volume has a queue of states. Each time volumes are listed the
    head of the queue is reported and dropped, until one state is left.
    Actions replace the queue with the states in `create_states`,
    `attach_states` and so on.

    Requests that controllers send straight to the EC2 API, such as
    CreateVolume, go through `handle_request`. The inherited
    `create_volume` and `detach_volume` end up there too.

    Set `errors[method_name]` to an exception to make a method fail.
    """

    def __init__(self, region=REGION):
        # Nothing to authenticate against.
        self.region_name = region
        self.connection = FakeConnection(self)
        self.calls = collections.Counter()
        self.errors = {}
        self.volumes = collections.OrderedDict()
        self.instances = collections.OrderedDict()
        self.tags = {}
        self.create_states = [StorageVolumeState.CREATING,
                              StorageVolumeState.AVAILABLE]
        self.attach_states = ['attaching',
                              StorageVolumeState.INUSE]
        self.detach_states = ['detaching', StorageVolumeState.AVAILABLE]
        self.destroy_states = [StorageVolumeState.DELETING]
        self.remove_on_destroy = False
        self.create_requests = []
        self.detach_requests = []
        self._counter = 0

    def _call(self, method):
        self.calls[method] += 1
        if method in self.errors:
            raise self.errors[method]

    @property
    def total_calls(self):
        return sum(self.calls.values())

    # Helpers used by tests to set up state.

    def add_instance(self, instance_id, private_ips=(), public_ips=(),
                     devices=None):
        self.instances[instance_id] = {
            'name': 'machine-%s' % instance_id,
            'private_ips': list(private_ips),
            'public_ips': list(public_ips),
            # Devices that start with the machine, eg instance store.
            'devices': list(devices or [('/dev/sdb', '')]),
        }

    def add_volume(self, volume_id, size=1, zone=ZONE,
                   state=StorageVolumeState.AVAILABLE, attached_to=None,
                   device=None, tags=None):
        self.volumes[volume_id] = {
            'size': size,
            'zone': zone,
            'states': [state],
            'attached_to': attached_to,
            'device': device,
        }
        if tags:
            self.tags[volume_id] = dict(tags)

    # Requests

    def handle_request(self, params):
        action = params.get('Action')
        if action == 'CreateVolume':
            return self._create_volume_request(params)
        if action == 'DetachVolume':
            return self._detach_volume_request(params)
        raise NotImplementedError('Unexpected %s request' % action)

    def _create_volume_request(self, params):
        self._call('create_volume')
        self.create_requests.append(params)
        self._counter += 1
        volume_id = 'vol-%04d' % self._counter
        self.volumes[volume_id] = {
            'size': int(params['Size']),
            'zone': params['AvailabilityZone'],
            'states': list(self.create_states),
            'attached_to': None,
            'device': None,
        }
        return FakeResponse(CREATE_VOLUME_RESPONSE % {
            'namespace': NAMESPACE, 'volume_id': volume_id,
            'size': params['Size'], 'zone': params['AvailabilityZone'],
            'volume_type': params.get('VolumeType', 'standard')})

    def _detach_volume_request(self, params):
        self._call('detach_volume')
        self.detach_requests.append(params)
        volume = self.volumes[params['VolumeId']]
        if 'InstanceId' in params and \
                volume['attached_to'] != params['InstanceId']:
            raise Exception('IncorrectState: %s is not attached to %s' % (
                params['VolumeId'], params['InstanceId']))
        volume['attached_to'] = None
        volume['device'] = None
        volume['states'] = list(self.detach_states)
        return FakeResponse()

    # Volumes

    def list_volumes(self, node=None, ex_filters=None):
        self._call('list_volumes')
        wanted = (ex_filters or {}).get('volume-id')
        volumes = []
        for volume_id, volume in self.volumes.items():
            if wanted is not None and volume_id not in wanted:
                continue
            state = volume['states'][0]
            if len(volume['states']) > 1:
                volume['states'].pop(0)
            volumes.append(StorageVolume(
                id=volume_id, name=None, size=volume['size'], driver=self,
                state=state, extra={'zone': volume['zone'],
                                    'instance_id': volume['attached_to']}))
        return volumes

    def attach_volume(self, node, volume, device=None):
        self._call('attach_volume')
        self.volumes[volume.id]['attached_to'] = node.id
        self.volumes[volume.id]['device'] = device
        self.volumes[volume.id]['states'] = list(self.attach_states)
        return True

    def destroy_volume(self, volume):
        self._call('destroy_volume')
        if volume.id not in self.volumes:
            raise Exception('InvalidVolume.NotFound: %s' % volume.id)
        if self.remove_on_destroy:
            del self.volumes[volume.id]
        else:
            self.volumes[volume.id]['states'] = list(self.destroy_states)
        return True

    # Machines

    def list_nodes(self, ex_node_ids=None, ex_filters=None):
        if ex_node_ids:
            self._call('list_nodes_by_id')
        else:
            self._call('list_nodes')
        nodes = []
        for instance_id, instance in self.instances.items():
            if ex_node_ids and instance_id not in ex_node_ids:
                continue
            mapping = [{'device_name': name, 'ebs': {'volume_id': vol_id}}
                       for name, vol_id in instance['devices']]
            for volume_id, volume in self.volumes.items():
                if volume['attached_to'] == instance_id:
                    mapping.append({'device_name': volume['device'],
                                    'ebs': {'volume_id': volume_id}})
            nodes.append(Node(id=instance_id, name=instance['name'],
                              state=NodeState.RUNNING,
                              public_ips=list(instance['public_ips']),
                              private_ips=list(instance['private_ips']),
                              driver=self,
                              extra={'block_device_mapping': mapping}))
        return nodes

    # Tags

    def ex_create_tags(self, resource, tags):
        self._call('ex_create_tags')
        self.tags.setdefault(resource.id, {}).update(tags)
        return True

    def ex_describe_tags(self, resource):
        self._call('ex_describe_tags')
        return dict(self.tags.get(resource.id, {}))


@pytest.fixture
def clock(monkeypatch):
    clock = FakeClock()
    monkeypatch.setattr(poller_methods, 'time', clock)
    monkeypatch.setattr(helpers, 'time', clock)
    return clock


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setattr(config, 'CLOUDS', {'test-cloud': CLOUD_SETTINGS})
    monkeypatch.setattr(config, 'NODE_ADDRESS_CACHE', False)
    monkeypatch.setattr(config, 'VOLUME_STATUS_POLL_INTERVAL', 3)
    return config


@pytest.fixture
def driver():
    driver = FakeEC2Driver()
    driver.add_instance('i-1', private_ips=['10.0.0.1'],
                        public_ips=['54.0.0.1'])
    driver.add_instance('i-2', private_ips=['10.0.0.2'])
    return driver


@pytest.fixture
def cloud(settings, clock, driver):
    cloud = Cloud.from_settings('test-cloud')
    cloud.ctl.set_connection(driver)
    return cloud
