"""Deadline bounded polling of remote resource status

Every mutating volume operation returns before the cloud has converged to
the requested state. `wait_for_status` is the one place where the
controllers block until it has, so timeout and query failure semantics are
the same for create, attach, detach and delete.

"""

import time
import logging

from blockvol import config

from blockvol.exceptions import BlockvolError
from blockvol.exceptions import VolumeTimeoutError
from blockvol.exceptions import VolumeStatusQueryError


log = logging.getLogger(__name__)


def wait_for_status(resource_id, status, deadline, fetch_status,
                    interval=None):
    """Block until `fetch_status(resource_id)` returns `status`

    Params:
    resource_id:    Id of the polled resource, passed to `fetch_status`.
    status:         The awaited status.
    deadline:       Absolute wall-clock time (as returned by `time.time`)
                    after which no new query is issued.
    fetch_status:   Callable that issues exactly one query and returns the
                    current status of the resource.
    interval:       Seconds to sleep between queries. Defaults to
                    `config.VOLUME_STATUS_POLL_INTERVAL`.

    The deadline is checked before every query, not at fixed ticks, so the
    wait may overrun it by one query latency plus one interval.

    A failing query aborts the wait at once, it is never retried. Errors
    raised as `BlockvolError` (eg `VolumeNotFoundError`) propagate
    unchanged, anything else is wrapped in a `VolumeStatusQueryError`.

    Raises `VolumeTimeoutError` if `status` wasn't observed in time.

    """
    if interval is None:
        interval = config.VOLUME_STATUS_POLL_INTERVAL
    last_status = None
    attempt = 0
    while time.time() < deadline:
        attempt += 1
        try:
            last_status = fetch_status(resource_id)
        except BlockvolError:
            raise
        except Exception as exc:
            log.warning("Failed getting status of %s: %r", resource_id, exc)
            raise VolumeStatusQueryError(
                "Failed getting description of %s. Reason: %s" % (
                    resource_id, exc), exc=exc, resource_id=resource_id)
        log.debug("Status of %s is '%s' (attempt %d), waiting for '%s'",
                  resource_id, last_status, attempt, status)
        if last_status == status:
            return last_status
        time.sleep(interval)
    raise VolumeTimeoutError(
        "%s did not reach status '%s' (last seen '%s')" % (
            resource_id, status, last_status),
        resource_id=resource_id, status=status, last_status=last_status)
