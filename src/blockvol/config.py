"""Basic configuration and mappings
   Here we define constants needed by blockvol
   Also, the configuration from settings.py is exposed through this module.
"""
import os
import logging

from libcloud.compute.types import Provider


log = logging.getLogger(__name__)


###############################################################################
# Logging
###############################################################################

PY_LOG_LEVEL = logging.INFO
PY_LOG_FORMAT = '%(asctime)s %(levelname)s %(threadName)s %(module)s - %(funcName)s: %(message)s'  # noqa
PY_LOG_FORMAT_DATE = "%Y-%m-%d %H:%M:%S"


###############################################################################
# Volumes
###############################################################################

MIN_VOLUME_SIZE = 1
MAX_VOLUME_SIZE = 1024

# Key of the tag that carries the human readable name of a volume.
NAME_TAG_KEY = 'Name'

# Seconds to sleep between two consecutive status queries.
VOLUME_STATUS_POLL_INTERVAL = 3

# Used when an operation is invoked without an explicit timeout.
DEFAULT_VOLUME_OPERATION_TIMEOUT = 300

# Remember which machine owns an address. Only the machine id is cached, its
# metadata is always fetched again, so attachment info is never stale.
NODE_ADDRESS_CACHE = False


###############################################################################
# Clouds
###############################################################################

# Map of provider name to libcloud provider constant.
PROVIDERS = {
    'ec2': {
        'driver': Provider.EC2,
        'title': 'Amazon Web Services',
        'aliases': ['aws', 'amazon'],
    },
}

# Clouds available to the controllers, keyed by title. Example:
#
# CLOUDS = {
#     'aws-eu': {
#         'provider': 'ec2',
#         'apikey': 'AKIA...',
#         'apisecret': '...',
#         'region': 'eu-west-1',
#         'compute_templates': {
#             'SMALL_LINUX': {'location_id': 'eu-west-1'},
#         },
#         'storage_templates': {
#             'SMALL_BLOCK': {'size': 5, 'name_prefix': 'small'},
#         },
#     },
# }
CLOUDS = {}


###############################################################################
# DO NOT PUT ANYTHING BELOW HERE UNLESS YOU KNOW WHAT YOU ARE DOING
###############################################################################

CONFIG_OVERRIDE_FILES = []

# Load defaults file if defined
DEFAULTS_FILE = os.getenv('DEFAULTS_FILE')
if DEFAULTS_FILE:
    CONFIG_OVERRIDE_FILES.append(os.path.abspath(DEFAULTS_FILE))

# Get settings from settings file.
SETTINGS_FILE = os.path.abspath(os.getenv('SETTINGS_FILE') or 'settings.py')
CONFIG_OVERRIDE_FILES.append(SETTINGS_FILE)

# Load all config override files. SETTINGS_FILE should be the last one to load
for override_file in CONFIG_OVERRIDE_FILES:
    if os.path.exists(override_file):
        log.info("Reading settings from %s" % override_file)
        CONF = {}
        with open(override_file) as fobj:
            exec(compile(fobj.read(), override_file, 'exec'), CONF)
        for key in CONF:
            if key.startswith('__'):
                continue
            if isinstance(locals().get(key), dict) and isinstance(CONF[key],
                                                                  dict):
                locals()[key].update(CONF[key])
            else:
                locals()[key] = CONF[key]
    else:
        log.debug("Couldn't find settings file in %s" % override_file)

# Get settings from environmental variables.
FROM_ENV_STRINGS = []
FROM_ENV_INTS = [
    'MIN_VOLUME_SIZE', 'MAX_VOLUME_SIZE', 'VOLUME_STATUS_POLL_INTERVAL',
    'DEFAULT_VOLUME_OPERATION_TIMEOUT', 'PY_LOG_LEVEL',
]
FROM_ENV_BOOLS = [
    'NODE_ADDRESS_CACHE',
]
for key in FROM_ENV_STRINGS:
    if os.getenv(key):
        locals()[key] = os.getenv(key)
for key in FROM_ENV_INTS:
    if os.getenv(key):
        try:
            locals()[key] = int(os.getenv(key))
        except (KeyError, ValueError):
            log.error("Invalid value for %s: %s" % (key, os.getenv(key)))
for key in FROM_ENV_BOOLS:
    if os.getenv(key) is not None:
        locals()[key] = os.getenv(key) in ('1', 'true', 'True')
