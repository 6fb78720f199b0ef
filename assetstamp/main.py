# Public Domain (-) 2013-2026 The Assetstamp Authors.
# See the Assetstamp UNLICENSE file for details.

"""Command line runner for assetstamp builds."""

import sys
import logging

from optparse import OptionParser
from os import makedirs, remove
from os.path import isdir, isfile, join, realpath

from requests import RequestException, get as get_url

from assetstamp import AppExit, exit, is_remote, lock, read, unlock
from assetstamp.config import AssetConfig
from assetstamp.remote import TIMEOUT
from assetstamp.version import __release__
from assetstamp.writer import AssetWriter

# ------------------------------------------------------------------------------
# Some Globals
# ------------------------------------------------------------------------------

CONFIG_FILE = 'assetstamp.yaml'
LOG_FORMAT = '%(asctime)-15s [%(levelname)s] %(message)s'

log = logging.getLogger('assetstamp')

# ------------------------------------------------------------------------------
# Source Fetching
# ------------------------------------------------------------------------------

def fetch(url, session=None):
    get = session.get if session else get_url
    log.info("Downloading: %s" % url)
    try:
        r = get(url, timeout=TIMEOUT)
    except RequestException as err:
        exit("Couldn't download %s (%s)" % (url, err))
    if r.status_code != 200:
        exit("Couldn't download %s (Got %d)" % (url, r.status_code))
    return r.content

# ------------------------------------------------------------------------------
# Asset Stamp Runner
# ------------------------------------------------------------------------------

class AssetStampRunner(object):
    """Encapsulated build runner for a single config file."""

    def __init__(
        self, path, profile='default', force=None, theme=None, session=None,
        store=None
        ):
        self.config = config = AssetConfig(path, profile, theme)
        if not isdir(config.data_dir):
            makedirs(config.data_dir)
        self.lock_path = join(config.data_dir, 'lock')
        lock(self.lock_path, path)
        self.force = force
        self.session = session
        self.writer = AssetWriter(config, store=store, session=session)

    def close(self):
        unlock(self.lock_path)

    def generate(self, target):
        config = self.config
        scanner = self.writer.scanner(config.get_ext(target), target)
        output = []; out = output.append
        for file, path in zip_sources(config.files(target), scanner):
            if path is None:
                exit("Couldn't find %s for %s" % (file, target))
            if is_remote(path):
                out(fetch(path, self.session))
            else:
                out(read(path))
        return b''.join(output)

    def build(self, target):
        writer = self.writer
        output_dir = self.config.cache_path(self.config.get_ext(target))
        version = writer.get_timestamp(target)
        previous = writer.build_file_name(target)
        writer.invalidate(target)
        try:
            success = writer.write(target, self.generate(target))
        except AppExit:
            writer.finalize(target)
            raise
        if not success:
            # Point back at the previous output, which is left in place.
            if version:
                writer.set_timestamp(target, version)
            return False
        current = writer.build_file_name(target)
        if current != previous:
            stale = join(output_dir, previous)
            if isfile(stale):
                remove(stale)
                log.info(".. Removed stale: %s" % previous)
        return True

    def run(self):
        config = self.config
        writer = self.writer
        change = False
        for target in config.list_targets():
            output_dir = config.cache_path(config.get_ext(target))
            if not isdir(output_dir):
                makedirs(output_dir)
            if not self.force and writer.is_fresh(target):
                log.debug("Fresh: %s" % target)
                continue
            change = True
            self.build(target)
        return change

    def clean(self):
        config = self.config
        writer = self.writer
        for target in config.list_targets():
            output_dir = config.cache_path(config.get_ext(target))
            path = join(output_dir, writer.build_file_name(target))
            if isfile(path):
                log.info("Removing: %s" % path)
                remove(path)
        writer.store.clear()

def zip_sources(files, scanner):
    for file in files:
        for path in scanner.resolve([file]):
            yield file, path

# ------------------------------------------------------------------------------
# Main Runner
# ------------------------------------------------------------------------------

def main(argv=None):

    if argv is None:
        argv = sys.argv[1:]
    op = OptionParser(usage=(
        "Usage: assetstamp [<path/to/assetstamp.yaml> ...] [options]\n\n"
        "Note:\n"
        "    If you don't specify assetstamp.yaml file paths, then the\n"
        "    assetstamp.yaml file in the current directory will be used."
        ))

    op.add_option(
        '-v', '--version', action='store_true',
        help="show program's version number and exit"
        )

    op.add_option(
        '--clean', action='store_true', help="remove all generated files"
        )

    op.add_option(
        '--debug', action='store_true', help="set debug mode"
        )

    op.add_option(
        '--force', action='store_true', help="force rebuild of all files"
        )

    op.add_option(
        '--profile', dest='name', default='default',
        help="specify a profile to use"
        )

    op.add_option(
        '--theme', dest='theme', default=None,
        help="specify the theme to build for"
        )

    options, files = op.parse_args(argv)

    if options.version:
        print('assetstamp %s' % __release__)
        return 0

    logging.basicConfig(
        format=LOG_FORMAT,
        level=options.debug and logging.DEBUG or logging.INFO
        )

    if not files:
        if not isfile(CONFIG_FILE):
            op.print_help()
            return 0
        files = [CONFIG_FILE]

    for file in files:
        if not isfile(file):
            log.error("Could not find %s" % file)
            return 1

    files = [realpath(file) for file in files]
    runners = []
    try:
        for file in files:
            runners.append(AssetStampRunner(
                file, options.name, options.force, options.theme
                ))
        for runner in runners:
            if options.clean:
                runner.clean()
            else:
                runner.run()
    except AppExit:
        return 1
    finally:
        for runner in runners:
            runner.close()
    return 0

# ------------------------------------------------------------------------------
# Self Runner
# ------------------------------------------------------------------------------

if __name__ == '__main__':
    sys.exit(main())
