"""Tests for playdeck.cli: argument handling and the polling loop over a fake output."""

import json
import logging

import pytest

from playdeck import cli

from conftest import FakeOutput


@pytest.fixture(autouse=True)
def isolated_logging(monkeypatch, tmp_path):
    monkeypatch.setenv('TEMP', str(tmp_path / 'tmp'))
    yield
    logger = logging.getLogger('playdeck')
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def tracks(tmp_path):
    paths = []
    for name in ('a.mid', 'b.mid', 'bad.mid'):
        path = tmp_path / name
        path.write_bytes(b'MThd')
        paths.append(str(path))
    return paths


@pytest.fixture
def fake_output(monkeypatch, tracks):
    out = FakeOutput(broken={tracks[2]})
    monkeypatch.setattr(cli, 'MidiOutput', lambda port_name=None: out)
    # Each poll tick lets the current track run out.
    monkeypatch.setattr(cli.time, 'sleep', lambda seconds: out.finish())
    return out


def run(tmp_path, *args):
    return cli.main([*args, '--settings-dir', str(tmp_path / 'settings')])


class TestParser:
    def test_defaults(self):
        args = cli.build_parser().parse_args(['x.mid'])
        assert args.paths == ['x.mid']
        assert not args.single
        assert not args.shuffle
        assert args.volume is None
        assert args.port is None

    def test_requires_a_path(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_options(self):
        args = cli.build_parser().parse_args(['--single', '--volume', '0.2', '--port', 'Synth', 'x.mid'])
        assert args.single
        assert args.volume == 0.2
        assert args.port == 'Synth'


class TestFilterTracks:
    def test_keeps_existing_supported(self, tracks):
        assert cli.filter_tracks(tracks[:2]) == tracks[:2]

    def test_skips_missing_and_unsupported(self, tmp_path, tracks):
        text = tmp_path / 'notes.txt'
        text.write_text('x', encoding='utf-8')
        paths = [str(tmp_path / 'missing.mid'), str(text), tracks[0]]
        assert cli.filter_tracks(paths) == [tracks[0]]


class TestMain:
    def test_no_playable_files(self, tmp_path, capsys):
        assert run(tmp_path, str(tmp_path / 'missing.mid')) == 1
        assert 'no playable files' in capsys.readouterr().err

    def test_plays_whole_playlist(self, tmp_path, tracks, fake_output, capsys):
        assert run(tmp_path, tracks[0], tracks[1]) == 0
        assert fake_output.opened == tracks[:2]
        assert fake_output.closed
        printed = capsys.readouterr().out
        assert f'Playing: {tracks[0]}' in printed
        assert f'Playing: {tracks[1]}' in printed

    def test_skips_broken_track(self, tmp_path, tracks, fake_output):
        assert run(tmp_path, tracks[2], tracks[0]) == 0
        assert fake_output.opened == [tracks[2], tracks[0]]

    def test_single(self, tmp_path, tracks, fake_output):
        assert run(tmp_path, '--single', tracks[0], tracks[1]) == 0
        assert fake_output.opened == [tracks[0]]

    def test_single_broken_reports_error(self, tmp_path, tracks, fake_output, capsys):
        assert run(tmp_path, '--single', tracks[2]) == 1
        assert 'Cannot open' in capsys.readouterr().err
        assert fake_output.closed

    def test_volume_saved(self, tmp_path, tracks, fake_output):
        run(tmp_path, '--volume', '0.7', tracks[0])
        with open(tmp_path / 'settings' / 'settings.json', encoding='utf-8') as f:
            assert json.load(f)['volume'] == 0.7
        assert fake_output.volume == 0.7

    def test_output_unavailable(self, tmp_path, tracks, monkeypatch, capsys):
        def no_port(port_name=None):
            raise OSError('no ports')
        monkeypatch.setattr(cli, 'MidiOutput', no_port)
        assert run(tmp_path, tracks[0]) == 1
        err = capsys.readouterr().err
        assert 'cannot open MIDI output' in err
        assert 'Details in ' in err
