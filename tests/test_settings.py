"""Tests for playdeck.settings: defaults, coercion, round trip on disk."""

import json

import pytest

from playdeck.settings import DEFAULT_POLL_INTERVAL, DEFAULT_VOLUME, Settings


def write_settings(tmp_path, payload):
    (tmp_path / 'settings.json').write_text(payload, encoding='utf-8')


class TestLoad:
    def test_defaults_when_missing(self, tmp_path):
        s = Settings(str(tmp_path))
        assert s.volume == DEFAULT_VOLUME == 0.5
        assert s.shuffle is False
        assert s.poll_interval == DEFAULT_POLL_INTERVAL
        assert s.output_port is None

    def test_corrupt_file_gives_defaults(self, tmp_path):
        write_settings(tmp_path, '{not json')
        assert Settings(str(tmp_path)).volume == DEFAULT_VOLUME

    def test_non_object_gives_defaults(self, tmp_path):
        write_settings(tmp_path, '[1, 2]')
        assert Settings(str(tmp_path)).volume == DEFAULT_VOLUME

    @pytest.mark.parametrize('raw,expected', [
        (0.75, 0.75), (5, 1.0), (-2, 0.0), ('0.2', 0.2), ('loud', DEFAULT_VOLUME), (None, DEFAULT_VOLUME),
    ])
    def test_volume_coerced(self, tmp_path, raw, expected):
        write_settings(tmp_path, json.dumps({'volume': raw}))
        assert Settings(str(tmp_path)).volume == expected

    def test_bad_types_ignored(self, tmp_path):
        write_settings(tmp_path, json.dumps({'shuffle': 'yes', 'output_port': 3, 'poll_interval': 0}))
        s = Settings(str(tmp_path))
        assert s.shuffle is False
        assert s.output_port is None
        assert s.poll_interval == 0.01


class TestSave:
    def test_round_trip(self, tmp_path):
        s = Settings(str(tmp_path))
        s.volume = 0.8
        s.shuffle = True
        s.output_port = 'Synth 1'
        s.save()
        loaded = Settings(str(tmp_path))
        assert loaded.to_dict() == {
            'volume': 0.8,
            'shuffle': True,
            'poll_interval': DEFAULT_POLL_INTERVAL,
            'output_port': 'Synth 1',
        }

    def test_creates_directory(self, tmp_path):
        target = tmp_path / 'nested' / 'dir'
        s = Settings(str(target))
        s.save()
        assert (target / 'settings.json').is_file()

    def test_unwritable_does_not_raise(self, tmp_path):
        blocker = tmp_path / 'file'
        blocker.write_text('x', encoding='utf-8')
        s = Settings(str(blocker / 'sub'))
        s.save()


def test_location_description(tmp_path):
    s = Settings(str(tmp_path))
    assert s.location_description() == f'Settings are stored at: {tmp_path / "settings.json"}'
    assert s.settings_dir == str(tmp_path)


def test_default_dir_under_home(monkeypatch, tmp_path):
    monkeypatch.setenv('HOME', str(tmp_path))
    s = Settings()
    assert s.settings_dir == str(tmp_path / '.playdeck')
    s.save()
    assert (tmp_path / '.playdeck' / 'settings.json').is_file()
