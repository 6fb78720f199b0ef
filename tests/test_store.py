"""Tests for timestamp persistence across the fast cache and the file."""

import os
import stat

import pytest

from assetstamp.store import (
    CACHE_BUILD_TIME_KEY, CACHE_CONFIG, Decoded, MemoryCache, TimestampStore,
    decode
    )


class BrokenCache(object):

    def read(self, key, config):
        raise RuntimeError("cache is down")

    def write(self, key, value, config):
        raise RuntimeError("cache is down")

    def delete(self, key, config):
        pass


def test_file_roundtrip(tmp_path):
    store = TimestampStore(str(tmp_path / 'data' / 'build_time'))
    record = {'libs.js': 1381234567, 'red-site.css': 1381234599}

    store.write(record)

    assert store.read() == record
    assert TimestampStore(store.path).read() == record


def test_missing_file_reads_empty(tmp_path):
    store = TimestampStore(str(tmp_path / 'build_time'))

    assert store.read() == {}
    assert store.load() == Decoded({}, True)


def test_file_permissions(tmp_path):
    store = TimestampStore(str(tmp_path / 'build_time'))

    store.write({'libs.js': 1})

    mode = stat.S_IMODE(os.stat(store.path).st_mode)
    assert mode == 0o644


def test_corrupt_payload_reads_empty(tmp_path):
    path = tmp_path / 'build_time'
    path.write_text('a:1:{s:7:"libs.js";i:12;')
    store = TimestampStore(str(path))

    assert store.read() == {}
    assert store.load() == Decoded({}, False)


@pytest.mark.parametrize('payload', [
    '[1, 2, 3]',
    '{"libs.js": "yesterday"}',
    '{"libs.js": true}',
    b'\xff\xfe',
    ])
def test_decode_rejects_malformed_payloads(payload):
    assert decode(payload) == Decoded({}, False)


def test_decode_empty_payload_is_ok():
    assert decode(b'') == Decoded({}, True)


def test_fast_cache_takes_precedence(tmp_path):
    cache = MemoryCache()
    store = TimestampStore(str(tmp_path / 'build_time'), cache=cache)
    store.write({'libs.js': 100})
    cache.write(CACHE_BUILD_TIME_KEY, {'libs.js': 200}, CACHE_CONFIG)

    assert store.read() == {'libs.js': 200}


def test_empty_fast_cache_falls_back_to_file(tmp_path):
    cache = MemoryCache()
    store = TimestampStore(str(tmp_path / 'build_time'), cache=cache)
    store.write({'libs.js': 100})
    cache.delete(CACHE_BUILD_TIME_KEY, CACHE_CONFIG)

    assert store.read() == {'libs.js': 100}


def test_write_goes_to_cache_and_file(tmp_path):
    cache = MemoryCache()
    store = TimestampStore(str(tmp_path / 'build_time'), cache=cache)

    store.write({'libs.js': 100})

    assert cache.read(CACHE_BUILD_TIME_KEY, CACHE_CONFIG) == {'libs.js': 100}
    assert TimestampStore(store.path).read() == {'libs.js': 100}


def test_broken_fast_cache_still_writes_file(tmp_path):
    store = TimestampStore(str(tmp_path / 'build_time'), cache=BrokenCache())

    store.write({'libs.js': 100})

    assert store.read() == {'libs.js': 100}


def test_unwritable_fallback_file_raises(tmp_path):
    blocker = tmp_path / 'blocker'
    blocker.write_text('')
    store = TimestampStore(str(blocker / 'build_time'))

    with pytest.raises(OSError):
        store.write({'libs.js': 100})


def test_locked_is_reentrant(tmp_path):
    store = TimestampStore(str(tmp_path / 'build_time'))

    with store.locked():
        with store.locked():
            store.write({'libs.js': 1})
        assert os.path.isfile(store.lock_path)

    assert store.read() == {'libs.js': 1}


def test_clear(tmp_path):
    cache = MemoryCache()
    store = TimestampStore(str(tmp_path / 'build_time'), cache=cache)
    store.write({'libs.js': 100})

    store.clear()

    assert not os.path.isfile(store.path)
    assert store.read() == {}


def test_locked_updates_from_other_stores_are_kept(tmp_path):
    path = str(tmp_path / 'build_time')
    first = TimestampStore(path, cache=MemoryCache())
    second = TimestampStore(path, cache=MemoryCache())

    for store, name, time in [
        (first, 'a.js', 1), (second, 'b.js', 2), (first, 'c.js', 3)
        ]:
        with store.locked():
            record = store.read()
            record[name] = time
            store.write(record)

    assert TimestampStore(path).read() == {'a.js': 1, 'b.js': 2, 'c.js': 3}


def test_failed_file_write_leaves_cache_untouched(tmp_path):
    blocker = tmp_path / 'blocker'
    blocker.write_text('')
    cache = MemoryCache()
    store = TimestampStore(str(blocker / 'build_time'), cache=cache)

    with pytest.raises(OSError):
        store.write({'libs.js': 100})

    assert cache.read(CACHE_BUILD_TIME_KEY, CACHE_CONFIG) is None
