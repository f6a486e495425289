'''Pytest configuration and fixtures.'''

import os

import pytest
import xdg.BaseDirectory

import Mimedef


ALIASES = {
  'audio/x-flac': 'audio/flac',
  'audio/x-mp3': 'audio/mpeg',
  'audio/x-mpeg': 'audio/mpeg',
  'audio/x-wav': 'audio/vnd.wave',
}

APPLICATIONS = ('vlc.desktop', 'mpv.desktop', 'audacious.desktop')


def write_file(path, text=''):
  os.makedirs(os.path.dirname(path), exist_ok=True)
  with open(path, 'w') as f:
    f.write(text)
  return path


@pytest.fixture
def resolver():
  '''Provide an alias resolver with a few audio aliases.'''
  return Mimedef.AliasResolver(ALIASES)


@pytest.fixture
def xdg_dirs(tmp_path, monkeypatch):
  '''
  Redirect the XDG base directories to a temporary tree with installed desktop
  entries in the user data directory and an aliases file in the system one.
  '''
  config_home = str(tmp_path / 'config')
  data_home = str(tmp_path / 'data')
  system_data = str(tmp_path / 'system')

  for name in APPLICATIONS:
    write_file(os.path.join(data_home, Mimedef.APP_DIR, name), '[Desktop Entry]\n')
  write_file(
    os.path.join(system_data, Mimedef.MIME_DIR, Mimedef.MIME_ALIASES_FILE),
    ''.join('{} {}\n'.format(a, c) for a, c in sorted(ALIASES.items()))
  )

  monkeypatch.setattr(xdg.BaseDirectory, 'xdg_config_home', config_home)
  monkeypatch.setattr(xdg.BaseDirectory, 'xdg_data_home', data_home)
  monkeypatch.setattr(xdg.BaseDirectory, 'xdg_data_dirs', [data_home, system_data])
  monkeypatch.delenv(Mimedef.XDG_CURRENT_DESKTOP, raising=False)
  return tmp_path


@pytest.fixture
def registry(xdg_dirs):
  '''Provide a registry over the temporary application directories.'''
  return Mimedef.ApplicationRegistry()


@pytest.fixture
def mimeapps_path(tmp_path):
  return str(tmp_path / 'config' / Mimedef.MIMEAPPS_LIST_FILE)
