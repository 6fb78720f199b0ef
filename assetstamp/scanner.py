# Public Domain (-) 2013-2026 The Assetstamp Authors.
# See the Assetstamp UNLICENSE file for details.

"""Resolution of source file identifiers into concrete paths."""

from fnmatch import fnmatch
from os import walk
from os.path import isfile, join, split

from assetstamp import is_remote

THEME_PREFIX = 'theme:'

class AssetScanner(object):
    """Find source files across search paths and the active theme."""

    def __init__(self, paths, theme=None, themes_path=None):
        self.paths = paths
        self.theme = theme
        self.themes_path = themes_path

    def __repr__(self):
        return "<AssetScanner: %r>" % (self.paths,)

    is_remote = staticmethod(is_remote)

    def roots(self, file):
        if file.startswith(THEME_PREFIX):
            if not (self.theme and self.themes_path):
                return [], file[len(THEME_PREFIX):]
            return (
                [join(self.themes_path, self.theme)],
                file[len(THEME_PREFIX):]
                )
        return self.paths, file

    def find(self, file):
        if is_remote(file):
            return file
        roots, file = self.roots(file)
        for root in roots:
            path = join(root, file)
            if isfile(path):
                return path

    def expand(self, file):
        roots, file = self.roots(file)
        sources = []; new_source = sources.append
        for root in roots:
            pattern = join(root, file)
            top = split(pattern.partition('*')[0])[0]
            for directory, _, files in walk(top):
                for name in files:
                    path = join(directory, name)
                    if fnmatch(path, pattern):
                        new_source(path)
            if sources:
                break
        return sorted(sources)

    def resolve(self, files):
        """Return the paths for ``files``, with None for any missing file."""

        paths = []
        for file in files:
            if '*' in file and not is_remote(file):
                paths.extend(self.expand(file))
            else:
                paths.append(self.find(file))
        return paths
