# Public Domain (-) 2013-2026 The Assetstamp Authors.
# See the Assetstamp UNLICENSE file for details.

"""YAML build configuration."""

import os

from hashlib import sha1
from os import stat
from os.path import dirname, join
from stat import ST_MTIME
from tempfile import gettempdir

from yaml import YAMLError, safe_load as decode_yaml

from assetstamp import ConfigError, exit
from assetstamp.store import BUILD_TIME_FILE, MemoryCache

# ------------------------------------------------------------------------------
# Default Settings
# ------------------------------------------------------------------------------

DEFAULTS = {
    'css.timestamp': False,
    'general.cache': False,
    'js.timestamp': False,
    'output.directory': 'build',
    'theme': None,
    'themes.directory': 'themes'
    }

# ------------------------------------------------------------------------------
# Config
# ------------------------------------------------------------------------------

def merge_profile(mapping, profile):
    for key in list(mapping.keys()):
        if key.startswith('profile.'):
            if key == 'profile.%s' % profile:
                mapping.update(mapping.pop(key) or {})
            else:
                mapping.pop(key)

class AssetConfig(object):
    """Read-only view of an assetstamp.yaml file."""

    _fast_cache = None

    def __init__(self, path, profile='default', theme=None):

        self.path = path
        self.base_dir = dirname(path)
        self.data_dir = join(
            gettempdir(),
            'assetstamp-%s' % sha1(path.encode('utf-8')).hexdigest()[:12]
            )

        config_file = open(path, 'r')
        try:
            config_data = config_file.read() % os.environ
        finally:
            config_file.close()

        try:
            config = decode_yaml(config_data)
        except YAMLError as err:
            exit("Couldn't parse config at %s: %s" % (path, err), ConfigError)

        if not config:
            exit("No config found at %s" % path, ConfigError)

        if not isinstance(config, dict):
            exit("Config at %s is not a dict mapping." % path, ConfigError)

        merge_profile(config, profile)

        for key in DEFAULTS:
            if key not in config:
                config[key] = DEFAULTS[key]

        if theme:
            config['theme'] = theme

        listing = config.pop('generate', None)
        if not listing:
            exit("No value found for generate in %s." % path, ConfigError)

        self.targets = targets = {}
        self.order = []
        for info in listing:
            if not isinstance(info, dict) or len(info) != 1:
                exit("Invalid generate entry %r in %s." % (info, path), ConfigError)
            output, spec = list(info.items())[0]
            spec = dict(spec or {})
            merge_profile(spec, profile)
            if 'type' not in spec:
                if '.' not in output:
                    exit(
                        "Couldn't determine asset type for %r" % output,
                        ConfigError
                        )
                spec['type'] = output.rsplit('.', 1)[1]
            sources = spec.get('source')
            if not sources:
                exit("No 'source' defined for %s" % output, ConfigError)
            if not isinstance(sources, list):
                spec['source'] = [sources]
            targets[output] = spec
            self.order.append(output)

        self.settings = config

    def __repr__(self):
        return "<AssetConfig: %s>" % self.path

    def get(self, key, default=None):
        return self.settings.get(key, default)

    def general(self, key):
        return self.settings.get('general.%s' % key)

    def spec(self, target):
        if target not in self.targets:
            exit("No build target %r in %s." % (target, self.path), ConfigError)
        return self.targets[target]

    def get_ext(self, target):
        return self.spec(target)['type']

    def theme(self):
        return self.settings.get('theme')

    def is_themed(self, target):
        return bool(self.spec(target).get('theme')) and bool(self.theme())

    def files(self, target):
        return list(self.spec(target)['source'])

    def cache_path(self, ext):
        directory = (
            self.settings.get('%s.output.directory' % ext) or
            self.settings['output.directory']
            )
        return join(self.base_dir, directory)

    def paths(self, ext, target=None):
        paths = self.settings.get('%s.paths' % ext) or ['']
        if not isinstance(paths, list):
            paths = [paths]
        return [join(self.base_dir, path) for path in paths]

    def themes_path(self):
        return join(self.base_dir, self.settings['themes.directory'])

    def modified_time(self):
        return stat(self.path)[ST_MTIME]

    def timestamp_path(self):
        return join(self.data_dir, BUILD_TIME_FILE)

    def fast_cache(self):
        if not self.general('cache'):
            return None
        if self._fast_cache is None:
            self._fast_cache = MemoryCache()
        return self._fast_cache

    def list_targets(self, ext=None):
        if ext is None:
            return list(self.order)
        return [
            target for target in self.order if self.get_ext(target) == ext
            ]
