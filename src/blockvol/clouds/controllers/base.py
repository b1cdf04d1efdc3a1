"""Definition of the base class of all cloud subcontrollers

A subcontroller is initialized given a main controller. It holds the libcloud
connection it needs and exposes it through the `connection` property. See
`blockvol.clouds.controllers.main.base` for the gateway that ties them
together.

"""

import logging
import threading

from blockvol.exceptions import BlockvolError
from blockvol.exceptions import CloudUnavailableError


log = logging.getLogger(__name__)

__all__ = [
    "BaseController",
]


class BaseController(object):
    """Base class of compute and storage subcontrollers

    The libcloud connection is created lazily, on first access of
    `self.connection`, by calling `self._connect`. Creation happens once,
    under a lock, so concurrent operations share the same connection. After
    `self.disconnect` the controller is closed for good.

    Subclasses MUST define `self._connect`.

    """

    # Set to a libcloud driver class to type check connections passed to
    # `set_connection`.
    _connection_cls = None

    def __init__(self, main_ctl):
        """Initialize subcontroller given a main controller"""
        self.ctl = main_ctl
        self.cloud = main_ctl.cloud
        self._conn = None
        self._closed = False
        self._conn_lock = threading.Lock()

    @property
    def connection(self):
        """Cached libcloud connection, created on first access"""
        if self._closed:
            raise CloudUnavailableError("Connection to %s has been closed" %
                                        self.cloud)
        if self._conn is None:
            with self._conn_lock:
                if self._conn is None:
                    log.debug("Creating connection for %s", self.cloud)
                    try:
                        self._conn = self._connect()
                    except BlockvolError:
                        raise
                    except Exception as exc:
                        log.error("Failed creating connection for %s: %r",
                                  self.cloud, exc)
                        raise CloudUnavailableError(
                            "Failed creating cloud native context. "
                            "Reason: %s" % exc, exc=exc)
        return self._conn

    def _connect(self):
        """Return a new libcloud connection

        Subclasses MUST override this method.
        """
        raise NotImplementedError()

    def set_connection(self, conn):
        """Use an already established libcloud connection"""
        if self._connection_cls is not None and \
                not isinstance(conn, self._connection_cls):
            raise CloudUnavailableError(
                "Connection does not match %s, expecting an instance of %s" %
                (self.__class__.__name__, self._connection_cls.__name__))
        with self._conn_lock:
            if self._closed:
                raise CloudUnavailableError(
                    "Connection to %s has been closed" % self.cloud)
            self._conn = conn

    @property
    def connected(self):
        return self._conn is not None and not self._closed

    @property
    def closed(self):
        return self._closed

    def disconnect(self):
        """Close the connection. The controller can't be used afterwards."""
        self._close_connection(closed=True)

    def reset_connection(self):
        """Close the connection, a new one is created on next access"""
        self._close_connection(closed=False)

    def _close_connection(self, closed):
        with self._conn_lock:
            conn, self._conn = self._conn, None
            self._closed = self._closed or closed
        if conn is None:
            return
        log.debug("Closing connection for %s", self.cloud)
        try:
            conn.connection.close()
        except AttributeError:
            pass
        except Exception as exc:
            log.warning("Error while closing connection: %r", exc)
