# Public Domain (-) 2013-2026 The Assetstamp Authors.
# See the Assetstamp UNLICENSE file for details.

"""Versioned writes and freshness checks for compiled builds."""

import logging

from os import access, stat, W_OK
from os.path import isfile, join
from re import compile as compile_regex
from stat import ST_MTIME
from time import time as now

from assetstamp import CacheWriteError, exit
from assetstamp.remote import last_modified
from assetstamp.scanner import AssetScanner
from assetstamp.store import TimestampStore

# ------------------------------------------------------------------------------
# Some Globals
# ------------------------------------------------------------------------------

INVALIDATED_PREFIX = '~'

log = logging.getLogger(__name__)

class BuildStatus(object):
    """The two states a build moves through during a rebuild."""

    VALID = 'valid'
    INVALIDATED = 'invalidated'

# ------------------------------------------------------------------------------
# Filename Helpers
# ------------------------------------------------------------------------------

capital_regex = compile_regex(r'(?<=\w)([A-Z])')

def underscore(word):
    """Return ``word`` as lower_snake_case, e.g. MyTheme -> my_theme."""
    return capital_regex.sub(r'_\1', word.replace('-', '_')).lower()

def timestamp_file(file, time):
    if not time:
        return file
    if '.' not in file:
        return '%s.v%d' % (file, time)
    name, ext = file.rsplit('.', 1)
    return '%s.v%d.%s' % (name, time, ext)

# ------------------------------------------------------------------------------
# Asset Writer
# ------------------------------------------------------------------------------

class AssetWriter(object):
    """Writes compiled assets to disk with optional version timestamps.

    Build times live in a :class:`TimestampStore` keyed by cache name. A
    build that is being regenerated keeps its entry under the cache name
    prefixed with ``~`` until :meth:`finalize` moves it back.
    """

    def __init__(self, config, store=None, session=None, clock=now):
        if store is None:
            store = TimestampStore(
                config.timestamp_path(), cache=config.fast_cache()
                )
        self.config = config
        self.store = store
        self.session = session
        self.clock = clock

    def __repr__(self):
        return "<AssetWriter: %s>" % self.config.path

    def timestamped(self, build):
        return bool(self.config.get('%s.timestamp' % self.config.get_ext(build)))

    def scanner(self, ext, target=None):
        config = self.config
        return AssetScanner(
            config.paths(ext, target), config.theme(), config.themes_path()
            )

    # --------------------------------------------------------------------------
    # Writing
    # --------------------------------------------------------------------------

    def write(self, build, content):
        """Write ``content`` for ``build`` and finalize its timestamp."""

        ext = self.config.get_ext(build)
        path = self.config.cache_path(ext)
        if not access(path, W_OK):
            exit(
                "Cannot write cache file. Unable to write to %s" % path,
                CacheWriteError
                )
        filename = self.build_file_name(build)
        if isinstance(content, str):
            content = content.encode('utf-8')
        try:
            file = open(join(path, filename), 'wb')
            try:
                file.write(content)
            finally:
                file.close()
            success = True
        except (IOError, OSError) as err:
            log.error("!! Couldn't write %s: %s" % (filename, err))
            success = False
        self.finalize(build)
        if success:
            log.info("Generated output: %s" % filename)
        return success

    # --------------------------------------------------------------------------
    # Freshness
    # --------------------------------------------------------------------------

    def is_fresh(self, target):
        """Return whether the build file for ``target`` is newer than all of
        its inputs: the config and every one of its source files."""

        if self.status(target) == BuildStatus.INVALIDATED:
            log.debug("Build of %s was never finalized" % target)
            return False

        config = self.config
        ext = config.get_ext(target)
        build_file = join(config.cache_path(ext), self.build_file_name(target))

        if not isfile(build_file):
            return False

        build_time = stat(build_file)[ST_MTIME]
        if config.modified_time() >= build_time:
            log.debug("Config is newer than %s" % build_file)
            return False

        scanner = self.scanner(ext, target)
        for path in scanner.resolve(config.files(target)):
            if path is None:
                time = False
            elif scanner.is_remote(path):
                time = self.get_remote_file_last_modified(path)
            else:
                try:
                    time = stat(path)[ST_MTIME]
                except OSError:
                    time = False
            if time is False or time >= build_time:
                log.debug("Source %s is newer than %s" % (path, build_file))
                return False
        return True

    def get_remote_file_last_modified(self, url):
        return last_modified(url, self.session)

    # --------------------------------------------------------------------------
    # Invalidation
    # --------------------------------------------------------------------------

    def invalidate(self, build):
        """Mark ``build`` as being regenerated."""

        if not self.timestamped(build):
            return
        name = INVALIDATED_PREFIX + self.build_file_name(build, False)
        with self.store.locked():
            data = self.store.read()
            data[name] = 0
            self.store.write(data)

    def finalize(self, build):
        """Move the build time of a regenerated build back under its clean
        cache name.

        An invalidated build that never resolved a new version leaves the
        previous build time in place.
        """
        if not self.timestamped(build):
            return
        store = self.store
        with store.locked():
            data = store.read()
            name = self.build_cache_name(build, data)
            if name not in data:
                return
            if not name.startswith(INVALIDATED_PREFIX):
                return
            time = data.pop(name)
            if time:
                data[self.build_cache_name(build, data)] = time
            store.write(data)

    def status(self, build):
        name = INVALIDATED_PREFIX + self.build_file_name(build, False)
        if name in self.store.read():
            return BuildStatus.INVALIDATED
        return BuildStatus.VALID

    # --------------------------------------------------------------------------
    # Timestamps
    # --------------------------------------------------------------------------

    def set_timestamp(self, build, time):
        if not self.timestamped(build):
            return
        store = self.store
        with store.locked():
            data = store.read()
            data[self.build_cache_name(build, data)] = time
            store.write(data)

    def get_timestamp(self, build):
        """Return the last build time for ``build``.

        A new time is generated and saved when none has been recorded yet.
        Returns False if timestamps are disabled for the build's extension.
        """
        if not self.timestamped(build):
            return False
        with self.store.locked():
            data = self.store.read()
            time = data.get(self.build_cache_name(build, data))
            if time:
                return time
            time = int(self.clock())
            self.set_timestamp(build, time)
            return time

    # --------------------------------------------------------------------------
    # Build Names
    # --------------------------------------------------------------------------

    def build_file_name(self, target, timestamp=True):
        file = target
        if self.config.is_themed(target):
            file = '%s-%s' % (underscore(self.config.theme()), target)
        if timestamp:
            file = timestamp_file(file, self.get_timestamp(target))
        return file

    def build_cache_name(self, build, data=None):
        name = self.build_file_name(build, False)
        if data is None:
            data = self.store.read()
        if INVALIDATED_PREFIX + name in data:
            return INVALIDATED_PREFIX + name
        return name
