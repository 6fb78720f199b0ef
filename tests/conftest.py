"""Shared pytest fixtures for build projects, stores and HTTP fakes."""

import os
import time

from contextlib import contextmanager

import pytest
import requests

from requests.structures import CaseInsensitiveDict

from assetstamp.config import AssetConfig
from assetstamp.writer import AssetWriter

CONFIG = """\
theme: Red

js.timestamp: true
js.output.directory: build/js
js.paths: [src/js]

css.output.directory: build/css
css.paths: [src/css]

generate:
  - libs.js:
      source: [jquery.js, app.js]
      theme: true
  - plain.js:
      source: jquery.js
  - site.css:
      source:
        - base.css
        - "theme:colors.css"
"""

SOURCES = {
    'src/js/jquery.js': 'var $ = {};\n',
    'src/js/app.js': 'var app = {};\n',
    'src/css/base.css': 'body { margin: 0 }\n',
    'themes/Red/colors.css': 'body { color: red }\n',
    }

# ------------------------------------------------------------------------------
# Fakes
# ------------------------------------------------------------------------------

class MemoryStore(object):
    """In-memory stand-in for TimestampStore."""

    def __init__(self, record=None):
        self.record = dict(record or {})
        self.writes = 0

    def read(self):
        return dict(self.record)

    def write(self, record):
        self.record = dict(record)
        self.writes += 1

    def clear(self):
        self.record = {}

    @contextmanager
    def locked(self):
        yield self

class FakeResponse(object):

    def __init__(self, status_code=200, headers=None, content=b''):
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        self.content = content
        self.closed = False

    def close(self):
        self.closed = True

class FakeSession(object):
    """Serves canned responses by url and refuses everything else."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.requested = []

    def get(self, url, **kwargs):
        self.requested.append(url)
        if url not in self.responses:
            raise requests.ConnectionError("Connection refused: %s" % url)
        return self.responses[url]

# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------

def set_mtime(path, mtime):
    os.utime(str(path), (mtime, mtime))

def write_project(root, config=CONFIG, sources=SOURCES):
    past = int(time.time()) - 1000
    for name, content in sources.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        set_mtime(path, past + 100)
    config_path = root / 'assetstamp.yaml'
    config_path.write_text(config)
    set_mtime(config_path, past)
    (root / 'build' / 'js').mkdir(parents=True, exist_ok=True)
    (root / 'build' / 'css').mkdir(parents=True, exist_ok=True)
    return config_path

# ------------------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------------------

@pytest.fixture
def project(tmp_path):
    write_project(tmp_path)
    return tmp_path

@pytest.fixture
def config(project):
    return AssetConfig(str(project / 'assetstamp.yaml'))

@pytest.fixture
def store():
    return MemoryStore()

@pytest.fixture
def writer(config, store):
    return AssetWriter(config, store=store, clock=lambda: 12345)
