# Public Domain (-) 2013-2026 The Assetstamp Authors.
# See the Assetstamp UNLICENSE file for details.

"""Persistence of build timestamps across a fast cache and a fallback file."""

import logging

from collections import namedtuple
from contextlib import contextmanager
from fcntl import flock, LOCK_EX, LOCK_UN
from os import chmod, makedirs, remove
from os.path import dirname, isdir, isfile
from threading import RLock

from simplejson import JSONDecodeError, dumps as enc_json, loads as dec_json

# ------------------------------------------------------------------------------
# Some Globals
# ------------------------------------------------------------------------------

BUILD_TIME_FILE = 'build_time'
CACHE_BUILD_TIME_KEY = 'asset_build_time'
CACHE_CONFIG = 'asset_compress'

log = logging.getLogger(__name__)

# ------------------------------------------------------------------------------
# Payload Decoding
# ------------------------------------------------------------------------------

Decoded = namedtuple('Decoded', ['record', 'ok'])

def decode(payload):
    """Decode a serialized timestamp record.

    Malformed payloads decode to an empty record with ``ok`` set to False,
    which makes every build look stale on the next check.
    """
    if not payload:
        return Decoded({}, True)
    if isinstance(payload, bytes):
        try:
            payload = payload.decode('utf-8')
        except UnicodeDecodeError:
            return Decoded({}, False)
    try:
        data = dec_json(payload)
    except JSONDecodeError:
        return Decoded({}, False)
    if not isinstance(data, dict):
        return Decoded({}, False)
    for value in data.values():
        if isinstance(value, bool) or not isinstance(value, int):
            return Decoded({}, False)
    return Decoded(data, True)

def encode(record):
    return enc_json(record, sort_keys=True)

# ------------------------------------------------------------------------------
# Fast Cache Backends
# ------------------------------------------------------------------------------

class MemoryCache(object):
    """In-process key/value cache, namespaced by config name."""

    def __init__(self):
        self.data = {}

    def read(self, key, config):
        value = self.data.get((config, key))
        if value is None:
            return None
        return dict(value)

    def write(self, key, value, config):
        self.data[(config, key)] = dict(value)

    def delete(self, key, config):
        self.data.pop((config, key), None)

# ------------------------------------------------------------------------------
# Timestamp Store
# ------------------------------------------------------------------------------

class TimestampStore(object):
    """Whole-record storage of build cache name -> build time."""

    def __init__(self, path, cache=None):
        self.path = path
        self.cache = cache
        self.lock_path = path + '.lock'
        self._depth = 0
        self._lock_file = None
        self._mutex = RLock()

    def __repr__(self):
        return "<TimestampStore: %s>" % self.path

    def read(self):
        cache = self.cache
        if cache is not None:
            try:
                data = cache.read(CACHE_BUILD_TIME_KEY, CACHE_CONFIG)
            except Exception as err:
                log.warning("Couldn't read build times from cache: %s" % err)
                data = None
            if data:
                return data
        return self.load().record

    def load(self):
        if not isfile(self.path):
            return Decoded({}, True)
        try:
            file = open(self.path, 'rb')
            try:
                payload = file.read()
            finally:
                file.close()
        except (IOError, OSError) as err:
            log.warning("Couldn't read build times from %s: %s" % (self.path, err))
            return Decoded({}, False)
        decoded = decode(payload)
        if not decoded.ok:
            log.warning("Ignoring corrupt build times in %s" % self.path)
        return decoded

    def write(self, record):
        directory = dirname(self.path)
        if directory and not isdir(directory):
            makedirs(directory)
        with open(self.path, 'w') as file:
            file.write(encode(record))
        chmod(self.path, 0o644)
        self.mirror(record)

    def mirror(self, record):
        cache = self.cache
        if cache is None:
            return
        try:
            cache.write(CACHE_BUILD_TIME_KEY, record, CACHE_CONFIG)
        except Exception as err:
            log.warning("Couldn't write build times to cache: %s" % err)

    def clear(self):
        if self.cache is not None:
            self.cache.delete(CACHE_BUILD_TIME_KEY, CACHE_CONFIG)
        if isfile(self.path):
            log.info("Removing: %s" % self.path)
            remove(self.path)

    @contextmanager
    def locked(self):
        """Hold an exclusive lock for a read-modify-write of the record."""

        with self._mutex:
            if not self._depth:
                directory = dirname(self.lock_path)
                if directory and not isdir(directory):
                    makedirs(directory)
                self._lock_file = open(self.lock_path, 'w')
                flock(self._lock_file.fileno(), LOCK_EX)
                # Other processes may have written the file since the cache
                # was filled.
                self.mirror(self.load().record)
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
                if not self._depth:
                    flock(self._lock_file.fileno(), LOCK_UN)
                    self._lock_file.close()
                    self._lock_file = None
