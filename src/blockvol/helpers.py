"""Various utility functions

This module contains small helpers shared by the controllers. Nothing here
talks to a cloud.

"""

import time
import logging

from datetime import timedelta

from blockvol import config

from blockvol.exceptions import ValidationError


log = logging.getLogger(__name__)


def convert_to_timedelta(time_val):
    """
    Receives a time_val param. time_val should be either a number of
    seconds, a timedelta, or a relative delta in the following format:
    '_s', '_m', '_h', '_d', _w, for seconds, minutes, hours, days and weeks
    respectively. Returns a timedelta object.
    """
    if isinstance(time_val, timedelta):
        return time_val
    if isinstance(time_val, (int, float)) and not isinstance(time_val, bool):
        return timedelta(seconds=time_val)
    if isinstance(time_val, str) and time_val.isdigit():
        return timedelta(seconds=int(time_val))
    try:
        num = int(time_val[:-1])
        if time_val.endswith('s'):
            return timedelta(seconds=num)
        elif time_val.endswith('m'):
            return timedelta(minutes=num)
        elif time_val.endswith('h'):
            return timedelta(hours=num)
        elif time_val.endswith('d'):
            return timedelta(days=num)
        elif time_val.endswith('w'):
            return timedelta(days=num * 7)
    except (TypeError, ValueError):
        pass
    raise ValueError('Input is expected to be in the format _s, _m, _h, _d '
                     'or _w where _ is an int, a timedelta, or a number '
                     'representing seconds, got %r' % (time_val, ))


def get_deadline(timeout=None):
    """Return the absolute wall-clock time at which `timeout` expires

    Raises `ValidationError` if `timeout` is malformed or negative.
    """
    if timeout is None:
        timeout = config.DEFAULT_VOLUME_OPERATION_TIMEOUT
    try:
        delta = convert_to_timedelta(timeout)
    except ValueError as exc:
        raise ValidationError("Invalid timeout %r" % (timeout, ), exc=exc,
                              timeout=timeout)
    if delta.total_seconds() < 0:
        raise ValidationError("Timeout must not be negative, got %r" % (
            timeout, ), timeout=timeout)
    return time.time() + delta.total_seconds()


def timestamp_ms():
    """Current time in milliseconds since the epoch"""
    return int(time.time() * 1000)
