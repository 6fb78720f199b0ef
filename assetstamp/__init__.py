#! /usr/bin/env python

# Public Domain (-) 2013-2026 The Assetstamp Authors.
# See the Assetstamp UNLICENSE file for details.

"""Build cache and freshness engine for compiled web assets."""

import logging

# ------------------------------------------------------------------------------
# Some Globals
# ------------------------------------------------------------------------------

LOCKS = {}

log = logging.getLogger(__name__)

# ------------------------------------------------------------------------------
# Exceptions
# ------------------------------------------------------------------------------

class AppExit(Exception):
    """Exception to signal a potential exit condition."""

class ConfigError(AppExit):
    """Raised for a missing or malformed config."""

class CacheWriteError(AppExit):
    """Raised when a build can't be written to its output directory."""

def exit(msg, error=AppExit):
    log.error(msg)
    raise error(msg)

# ------------------------------------------------------------------------------
# Lock Support
# ------------------------------------------------------------------------------

def lock(path, config_path):
    try:
        from fcntl import flock, LOCK_EX, LOCK_NB
    except ImportError:
        exit("Locking is not supported on this platform.")
    lock = open(path, 'w')
    try:
        flock(lock.fileno(), LOCK_EX | LOCK_NB)
    except OSError:
        lock.close()
        exit("Another assetstamp is already running for %s." % config_path)
    LOCKS[path] = lock

def unlock(path):
    if path in LOCKS:
        LOCKS[path].close()
        del LOCKS[path]

# ------------------------------------------------------------------------------
# Utility Functions
# ------------------------------------------------------------------------------

def read(filename):
    with open(filename, 'rb') as file:
        return file.read()

def is_remote(path):
    return path.startswith('http://') or path.startswith('https://')
