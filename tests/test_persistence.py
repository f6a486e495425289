'''Tests for loading and atomically saving mimeapps.list files.'''

import os
import stat

import pytest

import Mimedef
from Mimedef import Handler, MimeType, MimeappsList


class TestLoadMimeapps:
  '''Tests for load_mimeapps().'''

  def test_missing_file_is_created(self, tmp_path):
    path = str(tmp_path / 'new' / 'dir' / 'mimeapps.list')

    assert Mimedef.load_mimeapps(path) == MimeappsList()
    assert os.path.isfile(path)
    assert os.path.getsize(path) == 0

  def test_empty_file(self, tmp_path):
    path = tmp_path / 'mimeapps.list'
    path.write_text('')

    assert Mimedef.load_mimeapps(str(path)) == MimeappsList()

  def test_invalid_utf8(self, tmp_path):
    path = tmp_path / 'mimeapps.list'
    path.write_bytes(b'[Default Applications]\ntext/plain=\xff.desktop;\n')

    with pytest.raises(Mimedef.ParseError):
      Mimedef.load_mimeapps(str(path))

  def test_load_with_registry(self, registry, mimeapps_path):
    os.makedirs(os.path.dirname(mimeapps_path))
    with open(mimeapps_path, 'w') as f:
      f.write('[Default Applications]\naudio/flac=missing.desktop;mpv.desktop;\n')

    mimeapps = Mimedef.load_mimeapps(mimeapps_path, registry=registry)

    assert mimeapps.defaults == {'audio/flac': ['mpv.desktop']}


class TestAtomicWrite:
  '''Tests for atomic_write() and save_mimeapps().'''

  def test_write_and_replace(self, tmp_path):
    path = str(tmp_path / 'mimeapps.list')
    Mimedef.atomic_write(path, 'first\n')
    Mimedef.atomic_write(path, 'second\n')

    with open(path) as f:
      assert f.read() == 'second\n'
    assert os.listdir(str(tmp_path)) == ['mimeapps.list']

  def test_new_file_mode(self, tmp_path):
    path = str(tmp_path / 'mimeapps.list')
    Mimedef.atomic_write(path, '')

    assert stat.S_IMODE(os.stat(path).st_mode) == Mimedef.DEFAULT_FILE_MODE

  def test_existing_mode_is_kept(self, tmp_path):
    path = tmp_path / 'mimeapps.list'
    path.write_text('old\n')
    os.chmod(str(path), 0o600)

    Mimedef.atomic_write(str(path), 'new\n')

    assert stat.S_IMODE(os.stat(str(path)).st_mode) == 0o600

  def test_sync_dir(self, tmp_path, monkeypatch):
    synced = []
    fsync = os.fsync

    def recording_fsync(fd):
      synced.append(fd)
      fsync(fd)

    monkeypatch.setattr(os, 'fsync', recording_fsync)
    Mimedef.atomic_write(str(tmp_path / 'a'), 'x', sync_dir=False)
    assert len(synced) == 1

    Mimedef.atomic_write(str(tmp_path / 'b'), 'x', sync_dir=True)
    assert len(synced) == 3

  def test_failed_write_keeps_old_file(self, tmp_path, monkeypatch):
    path = tmp_path / 'mimeapps.list'
    path.write_text('old\n')

    def failing_replace(src, dst):
      raise OSError('disk on fire')

    monkeypatch.setattr(os, 'replace', failing_replace)
    with pytest.raises(OSError, match='disk on fire'):
      Mimedef.atomic_write(str(path), 'new\n')

    assert path.read_text() == 'old\n'
    assert os.listdir(str(tmp_path)) == ['mimeapps.list']

  def test_symlink_is_kept(self, tmp_path):
    target = tmp_path / 'dotfiles' / 'mimeapps.list'
    target.parent.mkdir()
    target.write_text('old\n')
    link = tmp_path / 'mimeapps.list'
    link.symlink_to(target)

    Mimedef.atomic_write(str(link), 'new\n')

    assert link.is_symlink()
    assert target.read_text() == 'new\n'
    assert sorted(os.listdir(str(target.parent))) == ['mimeapps.list']

  def test_save_and_load(self, tmp_path):
    path = str(tmp_path / 'mimeapps.list')
    mimeapps = MimeappsList(
      added={MimeType('audio/flac'): [Handler('vlc.desktop')]},
      defaults={MimeType('audio/flac'): [Handler('mpv.desktop'), Handler('vlc.desktop')]},
    )

    Mimedef.save_mimeapps(path, mimeapps)

    assert Mimedef.load_mimeapps(path) == mimeapps
