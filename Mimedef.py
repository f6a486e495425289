#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2009-2016  Xyne
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# (version 2) as published by the Free Software Foundation.
#
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301, USA.

'''
Mimedef manages the default applications in the user's mimeapps.list file. It
tries to follow the freedesktop.org specifications:

    http://standards.freedesktop.org/mime-apps-spec/mime-apps-spec-latest.html
    http://standards.freedesktop.org/shared-mime-info-spec/shared-mime-info-spec-latest.html
    http://standards.freedesktop.org/basedir-spec/basedir-spec-latest.html

MIME-types are canonicalized against the shared-mime-info alias database before
they are looked up or modified, so "audio/x-flac" and "audio/flac" refer to the
same entry. Entries in an existing file that are keyed by aliases are merged
when the file is loaded and written back under the canonical name.

Internally Mimedef uses pyxdg:

    http://freedesktop.org/wiki/Software/pyxdg/
    http://pyxdg.readthedocs.org/en/latest/index.html

'''

import argparse
import logging
import mimetypes
import os
import re
import shlex
import stat
import subprocess
import sys
import tempfile

import xdg.BaseDirectory
import xdg.Mime



################################### Globals ####################################

NAME = 'Mimedef'
DEFAULT_ARGUMENTS_FILE = 'default_arguments.txt'

# Files and paths
MIMEAPPS_LIST_FILE = 'mimeapps.list'
APP_DIR = 'applications'
MIME_DIR = 'mime'
MIME_ALIASES_FILE = 'aliases'
DESKTOP_EXTENSION = '.desktop'

# Name of current desktop for desktop-specific configuration.
XDG_CURRENT_DESKTOP = 'XDG_CURRENT_DESKTOP'

# File sections
ADDED_ASSOCIATIONS_SECTION = 'Added Associations'
REMOVED_ASSOCIATIONS_SECTION = 'Removed Associations'
DEFAULT_APPLICATIONS_SECTION = 'Default Applications'

# Executables
EXE_NOTIFY_SEND = 'notify-send'

# Restricted names from RFC 6838, after lowercasing.
MIMETYPE_REGEX = re.compile(
  r'^[a-z0-9][a-z0-9!#$&^_.+-]{0,126}/[a-z0-9][a-z0-9!#$&^_.+-]{0,126}$'
)

# Characters that cannot appear in a handler name in mimeapps.list.
HANDLER_RESERVED = ';/\n\r'

# Mode of a newly created mimeapps.list file.
DEFAULT_FILE_MODE = 0o644



#################################### Errors ####################################

class MimedefError(Exception):
  pass



class ParseError(MimedefError):
  '''
  The mimeapps.list file or the default arguments could not be parsed.
  '''
  pass



class HandlerNotFound(MimedefError):
  '''
  A handler does not resolve to an installed desktop entry, or a MIME-type has
  no handler.
  '''
  pass



class AmbiguousType(MimedefError):
  '''
  The MIME-type of an argument could not be determined.
  '''
  pass



class InvalidMimeSyntax(MimedefError, ValueError):
  pass



############################### Config Functions ###############################

def default_arguments_path():
  '''
  The path to a plaintext file containing shell-parsable arguments to add to
  Mimedef before argument parsing.
  '''
  return os.path.join(
    xdg.BaseDirectory.xdg_config_home,
    NAME.lower(),
    DEFAULT_ARGUMENTS_FILE
  )



def default_arguments():
  '''
  Load default arguments from default_arguments_path().
  '''
  path = default_arguments_path()
  logging.debug('loading arguments from {}'.format(path))
  try:
    with open(path, 'r') as f:
      line = f.readline()
  except FileNotFoundError:
    return None
  try:
    return shlex.split(line)
  except ValueError as e:
    raise ParseError('{}: {}'.format(path, e)) from e



################################## Debugging ###################################

def logging_debug_and_yield(msg, lst):
  '''
  Pretty-print a debugging message followed by a list of arguments. This is an
  iterator so that it can be used to log lists with "yield from" without
  building an intermediate list or tuple.
  '''
  for item in lst:
    logging.debug('{}: {}'.format(msg, item))
    yield item



############################## Generic Functions ###############################

def quote_cmd(cmd):
  '''
  Quote a command for shell parsing (used for command-line output).
  '''
  return ' '.join(shlex.quote(w) for w in cmd)



def unique_items(f):
  '''
  Function decorator to remove duplicates from iterable functions.
  '''
  def g(*args, **kwargs):
    seen = set()
    for x in f(*args, **kwargs):
      if x in seen:
        continue
      else:
        yield x
        seen.add(x)
  return g



def ensure_desktop_name(name):
  '''
  Add the desktop extension if it is missing.
  '''
  name = os.path.basename(name)
  return name if name.endswith(DESKTOP_EXTENSION) else name + DESKTOP_EXTENSION



def format_table(rows):
  '''
  Iterate over the lines of a two-column table with an aligned first column.
  '''
  if not rows:
    return
  width = max(len(a) for a, _ in rows)
  for a, b in rows:
    yield '{}  {}'.format(a.ljust(width), b)



def print_tables(tables):
  '''
  Print titled tables to STDOUT. Tables without a title are printed without a
  header line.
  '''
  for title, rows in tables:
    if title:
      print(title)
    for line in format_table(rows):
      print(line)



def notify(title, message):
  '''
  Show a desktop notification.
  '''
  cmd = [EXE_NOTIFY_SEND, title, message]
  logging.debug(quote_cmd(cmd))
  subprocess.run(cmd, check=True)



################################## MIME-types ##################################

def parse_mimetype(mimetype):
  '''
  Parse a MIME-type string into the following components, returned as a tuple:

  * top-level type name
  * subtype name
  * parameters or None
  '''
  try:
    rest, parameters = mimetype.split(';', 1)
  except ValueError:
    rest = mimetype
    parameters = None
  try:
    type_name, subtype_name = rest.split('/', 1)
  except ValueError:
    raise InvalidMimeSyntax('bad MIME-type: {}'.format(mimetype)) from None
  return type_name.strip(), subtype_name.strip(), parameters



def strip_mimetype(mimetype):
  '''
  Strip the parameters and return the lowercased top-level type name and
  subtype name.
  '''
  type_name, subtype_name, _ = parse_mimetype(mimetype)
  return '{}/{}'.format(type_name.lower(), subtype_name.lower())



class MimeType(str):
  '''
  The essence ("type/subtype") of a MIME-type. Parameters are dropped and the
  value is lowercased. Equality and ordering are those of the string, so two
  aliases of the same type are different values until they are canonicalized
  with an AliasResolver.
  '''
  __slots__ = ()

  def __new__(cls, mimetype):
    if isinstance(mimetype, cls):
      return mimetype
    if not isinstance(mimetype, str):
      raise InvalidMimeSyntax('bad MIME-type: {!r}'.format(mimetype))
    essence = strip_mimetype(mimetype)
    if not MIMETYPE_REGEX.match(essence):
      raise InvalidMimeSyntax('bad MIME-type: {}'.format(mimetype))
    return super().__new__(cls, essence)


  def __repr__(self):
    return '{}({})'.format(self.__class__.__name__, str.__repr__(self))



def mimetype_by_name(path):
  '''
  Attempt to determine the MIME-type of a file by name.
  '''
  mimetype = None
  mt = xdg.Mime.get_type_by_name(path)
  if mt:
    mimetype = '{}/{}'.format(mt.media, mt.subtype)
  if not mimetype:
    mimetype = mimetypes.guess_type(path)[0]
  return mimetype



def mime_or_extension(arg):
  '''
  Interpret a command-line argument as a MIME-type if it contains a slash,
  otherwise as a file extension with or without the leading dot.
  '''
  if '/' in arg:
    return MimeType(arg)
  ext = arg if arg.startswith('.') else '.' + arg
  mimetype = mimetype_by_name('file' + ext)
  if not mimetype:
    raise AmbiguousType('could not determine the MIME-type of {}'.format(arg))
  logging.debug('{} -> {}'.format(arg, mimetype))
  return MimeType(mimetype)



################################ Path Functions ################################

def desktop_mimeapps_filenames():
  '''
  Iterative over names of current desktop as defined in the XDG_CURRENT_DESKTOP
  environment variable.
  '''
  desktop = os.getenv(XDG_CURRENT_DESKTOP)
  if desktop:
    for d in desktop.split(':'):
      if d:
        yield '{}-{}'.format(d.lower(), MIMEAPPS_LIST_FILE)



def user_mimeapps_path(current_desktop=False):
  '''
  Get the user's association file.
  '''
  name = MIMEAPPS_LIST_FILE
  if current_desktop:
    try:
      name = next(desktop_mimeapps_filenames())
    except StopIteration:
      pass
  return os.path.join(xdg.BaseDirectory.xdg_config_home, name)



def desktop_directories(user=True, system=True):
  '''
  Iterate over desktop entry directories:

      https://specifications.freedesktop.org/menu-spec/menu-spec-latest.html#adding-items

  '''
  my_name = 'desktop_directories'
  data_home = xdg.BaseDirectory.xdg_data_home

  if user:
    yield from logging_debug_and_yield(
      my_name,
      (os.path.join(data_home, APP_DIR),)
    )

  if system:
    yield from logging_debug_and_yield(
      my_name,
      (
        os.path.join(d, APP_DIR)
        for d in xdg.BaseDirectory.xdg_data_dirs
        if d != data_home
      )
    )



################################### Handlers ###################################

class Handler(str):
  '''
  The file name of a desktop entry, e.g. "mpv.desktop". Creating one directly
  assumes that it is valid. Use ApplicationRegistry.resolve to check that the
  desktop entry is installed.
  '''
  __slots__ = ()

  def __new__(cls, name):
    if isinstance(name, cls):
      return name
    if not isinstance(name, str) \
    or not name \
    or any(c in HANDLER_RESERVED for c in name):
      raise HandlerNotFound('invalid handler name: {!r}'.format(name))
    return super().__new__(cls, name)


  def __repr__(self):
    return '{}({})'.format(self.__class__.__name__, str.__repr__(self))



class ApplicationRegistry(object):
  '''
  Resolve handler names to installed desktop entries. The desktop entries are
  only checked for existence, not parsed.
  '''
  def __init__(self, directories=None):
    if directories is None:
      directories = desktop_directories()
    self.directories = list(directories)



  def find(self, name):
    '''
    Return the path to the first desktop entry with the given name, or None.
    '''
    for dpath in self.directories:
      path = os.path.join(dpath, name)
      if os.path.isfile(path):
        return path
    return None



  def resolve(self, name):
    '''
    Return a Handler for an installed desktop entry. HandlerNotFound is raised
    if there is none.
    '''
    handler = Handler(name)
    path = self.find(handler)
    if path is None:
      raise HandlerNotFound('no installed application named {}'.format(name))
    logging.debug('resolved {} to {}'.format(handler, path))
    return handler



################################ MIME aliases ##################################

def parse_mime_aliases(lines):
  '''
  Iterate over (alias, canonical) pairs in a shared-mime-info aliases file.
  Malformed lines are skipped.
  '''
  for line in lines:
    words = line.split()
    if not words or words[0][0] == '#':
      continue
    if len(words) != 2:
      logging.debug('skipping alias line [{}]'.format(line.rstrip()))
      continue
    try:
      yield MimeType(words[0]), MimeType(words[1])
    except InvalidMimeSyntax as e:
      logging.debug('skipping alias line [{}]: {}'.format(line.rstrip(), e))



class AliasResolver(object):
  '''
  Map MIME-type aliases to their canonical MIME-types.

  The alias table is indexed into a dict once so that each lookup is constant
  time. Scanning the list of aliases for each lookup instead would make
  canonicalizing a mimeapps.list file O(entries x aliases) (there are around
  300 aliases on a typical system). The table is never modified after
  construction.
  '''
  def __init__(self, aliases=None):
    self.aliases = dict()
    if aliases:
      for alias, canonical in aliases.items():
        self.aliases[MimeType(alias)] = MimeType(canonical)



  @classmethod
  def from_paths(cls, paths):
    '''
    Load aliases files in order of precedence. The first file that lists an
    alias determines its canonical MIME-type. Files that cannot be read are
    skipped.
    '''
    resolver = cls()
    for path in paths:
      logging.debug('loading {}'.format(path))
      try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
          aliases = list(parse_mime_aliases(f))
      except OSError as e:
        logging.warning('failed to load MIME aliases from {}: {}'.format(path, e))
        continue
      for alias, canonical in aliases:
        resolver.aliases.setdefault(alias, canonical)
    return resolver



  @classmethod
  def from_system(cls):
    '''
    Load the shared-mime-info aliases from the XDG data directories. If none
    can be read, MIME-types are left as they are.
    '''
    return cls.from_paths(
      xdg.BaseDirectory.load_data_paths(MIME_DIR, MIME_ALIASES_FILE)
    )



  def canonicalize(self, mime):
    '''
    Return the canonical MIME-type for the given one, or the MIME-type itself if
    it is not an alias.
    '''
    return self.aliases.get(mime, mime)



  def __len__(self):
    return len(self.aliases)



############################ mimeapps.list parsing #############################

def copy_entries(entries):
  '''
  Copy a section so that its handler lists are not shared.
  '''
  if not entries:
    return dict()
  return dict((key, list(values)) for key, values in entries.items())



class MimeappsList(object):
  '''
  The sections of a mimeapps.list file. Each section maps a MimeType to a list
  of unique Handlers in order of preference. Aliases are not resolved here so
  the same underlying type may appear under several keys.
  '''
  def __init__(self, added=None, removed=None, defaults=None):
    self.added = copy_entries(added)
    self.removed = copy_entries(removed)
    self.defaults = copy_entries(defaults)



  def sections(self):
    '''
    Iterate over the sections and their entries in file order.
    '''
    yield ADDED_ASSOCIATIONS_SECTION, self.added
    yield REMOVED_ASSOCIATIONS_SECTION, self.removed
    yield DEFAULT_APPLICATIONS_SECTION, self.defaults



  def section(self, name):
    '''
    Get the entries of a section by name, or None if it is not recognized.
    '''
    for section, entries in self.sections():
      if section == name:
        return entries
    return None



  def unaliased(self, resolver):
    '''
    Return a copy with every section keyed by canonical MIME-types.
    '''
    return MimeappsList(
      added=unalias_mapping(resolver, self.added),
      removed=unalias_mapping(resolver, self.removed),
      defaults=unalias_mapping(resolver, self.defaults),
    )



  def add_handler(self, mime, handler):
    '''
    Append a fallback handler to the default applications.
    '''
    handlers = self.defaults.setdefault(mime, list())
    if handler not in handlers:
      handlers.append(handler)



  def set_handler(self, mime, handler):
    self.defaults[mime] = [handler]



  def remove_handler(self, mime):
    '''
    Remove all default applications for a MIME-type. Returns True if there were
    any.
    '''
    try:
      del self.defaults[mime]
    except KeyError:
      return False
    else:
      return True



  def get_handler(self, mime):
    try:
      return self.defaults[mime][0]
    except (KeyError, IndexError):
      raise HandlerNotFound('no handlers found for {}'.format(mime)) from None



  def __eq__(self, other):
    if not isinstance(other, MimeappsList):
      return NotImplemented
    return (self.added, self.removed, self.defaults) \
      == (other.added, other.removed, other.defaults)


  __hash__ = None


  def __repr__(self):
    return '{}(added={!r}, removed={!r}, defaults={!r})'.format(
      self.__class__.__name__, self.added, self.removed, self.defaults
    )



@unique_items
def parse_handlers(value, registry=None):
  '''
  Iterate over the handlers in the value of an association line. Empty names
  are ignored. If a registry is given, handlers that are not installed are
  dropped.
  '''
  for name in value.split(';'):
    name = name.strip()
    if not name:
      continue
    try:
      if registry is None:
        yield Handler(name)
      else:
        yield registry.resolve(name)
    except HandlerNotFound as e:
      logging.debug('dropping handler: {}'.format(e))



def parse_associations(lines, registry=None):
  '''
  Parse lines of an association file into a MimeappsList.
  '''
  mimeapps = MimeappsList()
  entries = None
  for n, line in enumerate(lines, 1):
    line = line.strip()
    if not line or line[0] == '#':
      continue
    elif line[0] == '[':
      if line[-1] != ']':
        raise ParseError('line {}: unterminated section header [{}]'.format(n, line))
      section = line[1:-1]
      entries = mimeapps.section(section)
      if entries is None:
        logging.debug('ignoring section [{}]'.format(section))
    else:
      try:
        mimetype, desktops = line.split('=', 1)
      except ValueError:
        logging.warning('failed to parse line {} [{}]'.format(n, line))
        continue
      if entries is None:
        continue
      try:
        mimetype = MimeType(mimetype.rstrip())
      except InvalidMimeSyntax as e:
        logging.warning('line {}: {}'.format(n, e))
        continue
      handlers = list(parse_handlers(desktops, registry=registry))
      if handlers:
        entries[mimetype] = handlers
  return mimeapps



def format_associations(mimeapps):
  '''
  Iterate over the lines of an association file. Entries are sorted by
  MIME-type and the removed associations are omitted if there are none.
  '''
  first = True
  for section, entries in mimeapps.sections():
    if section == REMOVED_ASSOCIATIONS_SECTION and not entries:
      continue
    if not first:
      yield '\n'
    first = False
    yield '[{}]\n'.format(section)
    for key, values in sorted(entries.items()):
      if values:
        yield '{}={};\n'.format(key, ';'.join(values))



################################# Persistence ##################################

def atomic_write(path, text, sync_dir=False):
  '''
  Replace the file at the given path with the text. The text is written to a
  temporary file in the same directory which is then renamed over the target,
  so readers see either the old or the new content. If sync_dir is True, the
  directory is synced after the rename so that the rename itself survives a
  crash.
  '''
  # Replace the target of a symlink, not the link itself.
  path = os.path.realpath(path)
  dpath = os.path.dirname(path)
  os.makedirs(dpath, exist_ok=True)
  try:
    mode = stat.S_IMODE(os.stat(path).st_mode)
  except FileNotFoundError:
    mode = DEFAULT_FILE_MODE
  fd, tmp_path = tempfile.mkstemp(
    prefix='.{}.'.format(os.path.basename(path)),
    suffix='.tmp',
    dir=dpath
  )
  try:
    with os.fdopen(fd, 'w', encoding='utf-8') as f:
      f.write(text)
      f.flush()
      os.fsync(f.fileno())
    os.chmod(tmp_path, mode)
    os.replace(tmp_path, path)
  except BaseException:
    try:
      os.remove(tmp_path)
    except FileNotFoundError:
      pass
    raise
  if sync_dir:
    dfd = os.open(dpath, os.O_RDONLY)
    try:
      os.fsync(dfd)
    finally:
      os.close(dfd)



def load_mimeapps(path, registry=None):
  '''
  Load an association file. A missing file is created empty.
  '''
  try:
    f = open(path, 'rb')
  except FileNotFoundError:
    logging.debug('creating {}'.format(path))
    dpath = os.path.dirname(path)
    if dpath:
      os.makedirs(dpath, exist_ok=True)
    with open(path, 'a'):
      pass
    return MimeappsList()
  with f:
    logging.debug('loading {}'.format(path))
    data = f.read()
  try:
    text = data.decode('utf-8')
  except UnicodeDecodeError as e:
    raise ParseError('{}: {}'.format(path, e)) from e
  return parse_associations(text.splitlines(), registry=registry)



def save_mimeapps(path, mimeapps, sync_dir=False):
  '''
  Save associations to a file.
  '''
  logging.debug('saving {}'.format(path))
  atomic_write(path, ''.join(format_associations(mimeapps)), sync_dir=sync_dir)



############################ Canonical associations ############################

def unalias_mapping(resolver, mapping):
  '''
  Return a dict with the same values as the given mapping but keyed by
  canonical MIME-types.

  When several keys resolve to the same canonical MIME-type, one value is kept:

  * The entry keyed by the canonical MIME-type itself, if there is one.
  * Otherwise the entry keyed by the alphabetically first alias.

  The result depends only on the entries, not on the order in which the
  mapping yields them. Other policies are possible, e.g. GLib picks the alias
  that comes first in the file, but that order is not recorded once the file
  has been loaded into a dict. The alphabetically first alias is found in a
  single pass without sorting.
  '''
  # canonical MIME-type -> (key of the current best entry, its value)
  canonical_map = dict()
  for mime, value in mapping.items():
    canonical = resolver.canonicalize(mime)
    if mime == canonical:
      # Keys are unique so this happens at most once per canonical MIME-type.
      canonical_map[canonical] = (canonical, value)
    else:
      try:
        old_mime, _ = canonical_map[canonical]
      except KeyError:
        canonical_map[canonical] = (mime, value)
      else:
        if old_mime != canonical and mime < old_mime:
          canonical_map[canonical] = (mime, value)
  return dict(
    (canonical, value)
    for canonical, (_, value) in canonical_map.items()
  )



class CanonicalMimeapps(object):
  '''
  A MimeappsList keyed only by canonical MIME-types. Lookups and modifications
  resolve aliases first. If a path is given, each modification is saved to it
  immediately.

  Nothing prevents two processes from modifying the same file at the same time.
  The last one to save wins.
  '''
  def __init__(self, mimeapps, resolver, path=None, sync_dir=False):
    self.resolver = resolver
    self.mimeapps = mimeapps.unaliased(resolver)
    self.path = path
    self.sync_dir = sync_dir



  @classmethod
  def load(cls, path, resolver, registry=None, sync_dir=False):
    return cls(
      load_mimeapps(path, registry=registry),
      resolver,
      path=path,
      sync_dir=sync_dir
    )



  def unalias(self, mime):
    return self.resolver.canonicalize(MimeType(mime))



  def save(self):
    if self.path:
      save_mimeapps(self.path, self.mimeapps, sync_dir=self.sync_dir)



  def add_handler(self, mime, handler):
    '''
    Add a fallback handler after the existing default handlers.
    '''
    self.mimeapps.add_handler(self.unalias(mime), Handler(handler))
    self.save()



  def set_handler(self, mime, handler):
    '''
    Make the handler the only default handler.
    '''
    self.mimeapps.set_handler(self.unalias(mime), Handler(handler))
    self.save()



  def remove_handler(self, mime):
    '''
    Remove the default handlers. The file is only saved if there were any.
    '''
    removed = self.mimeapps.remove_handler(self.unalias(mime))
    if removed:
      self.save()
    return removed



  def get_handler(self, mime):
    return self.mimeapps.get_handler(self.unalias(mime))



  def rows(self, detailed=False):
    '''
    Return a list of (title, rows) for display, each row being a MIME-type and
    its comma-separated handlers. The added associations are only included if
    detailed is True.
    '''
    def to_rows(entries):
      return list(
        (mime, ', '.join(handlers))
        for mime, handlers in sorted(entries.items())
      )

    if not detailed:
      return [(None, to_rows(self.mimeapps.defaults))]
    tables = [('Default Apps', to_rows(self.mimeapps.defaults))]
    if self.mimeapps.added:
      tables.append(('Added Associations', to_rows(self.mimeapps.added)))
    return tables



############################### Argument parsing ###############################

def get_argparser():
  parser = argparse.ArgumentParser(
    prog=NAME.lower(),
    description='Manage default applications by MIME-type. MIME-type aliases are resolved to their canonical MIME-types.',
    epilog='A <mime> argument may also be a file extension such as ".flac". A <handler> is the name of a desktop file, with or without the "{}" extension. Default arguments are read from {}.'.format(
      DESKTOP_EXTENSION, default_arguments_path()
    )
  )

  conf_group = parser.add_argument_group(
    'Configuration',
    'Various configuration options.'
  )

  conf_group.add_argument(
    '-f', '--file', metavar='<filepath>',
    help='Modify this file instead of the user\'s mimeapps.list file.'
  )

  conf_group.add_argument(
    '--current-desktop', action='store_true',
    help='Modify associations of the current desktop as specified in ${xcd}. Ignored if ${xcd} is not set.'.format(xcd=XDG_CURRENT_DESKTOP)
  )

  conf_group.add_argument(
    '--sync-dir', action='store_true',
    help='Sync the directory after saving so that the new file survives a crash.'
  )

  conf_group.add_argument(
    '--no-def-args', dest='use_default_args', action='store_false',
    help='Omit the default arguments.'
  )

  conf_group.add_argument(
    '--debug', action='store_true',
    help='Enable debugging messages.'
  )

  subparsers = parser.add_subparsers(dest='operation', metavar='<operation>')
  subparsers.required = True

  list_parser = subparsers.add_parser(
    'list',
    help='List default applications and their handlers.'
  )
  list_parser.add_argument(
    '-a', '--all', action='store_true',
    help='Also list the added associations.'
  )

  get_parser = subparsers.add_parser(
    'get',
    help='Print the default handler for a MIME-type.'
  )
  get_parser.add_argument('mime', metavar='<mime>')

  set_parser = subparsers.add_parser(
    'set',
    help='Set the default handler for a MIME-type.'
  )
  set_parser.add_argument('mime', metavar='<mime>')
  set_parser.add_argument('handler', metavar='<handler>')

  unset_parser = subparsers.add_parser(
    'unset',
    help='Unset the default handlers for a MIME-type.'
  )
  unset_parser.add_argument('mime', metavar='<mime>')

  add_parser = subparsers.add_parser(
    'add',
    help='Add a handler for a MIME-type. The first handler is the default.'
  )
  add_parser.add_argument('mime', metavar='<mime>')
  add_parser.add_argument('handler', metavar='<handler>')

  return parser



##################################### Main #####################################

def main(args=None):
  if not args:
    args = sys.argv[1:]
  parser = get_argparser()
  pargs = parser.parse_args(args)

  if pargs.use_default_args:
    extra_args = default_arguments()
    if extra_args:
      logging.debug('prepending arguments: {}'.format(quote_cmd(extra_args)))
      args = extra_args + list(args)
      pargs = parser.parse_args(args)

  if pargs.debug:
    logging.getLogger().setLevel(logging.DEBUG)

  if pargs.file:
    path = pargs.file
  else:
    path = user_mimeapps_path(current_desktop=pargs.current_desktop)

  registry = ApplicationRegistry()
  mimeapps = CanonicalMimeapps.load(
    path,
    AliasResolver.from_system(),
    registry=registry,
    sync_dir=pargs.sync_dir
  )

  if pargs.operation == 'list':
    print_tables(mimeapps.rows(detailed=pargs.all))

  elif pargs.operation == 'get':
    print(mimeapps.get_handler(mime_or_extension(pargs.mime)))

  elif pargs.operation == 'set':
    mimeapps.set_handler(
      mime_or_extension(pargs.mime),
      registry.resolve(ensure_desktop_name(pargs.handler))
    )

  elif pargs.operation == 'add':
    mimeapps.add_handler(
      mime_or_extension(pargs.mime),
      registry.resolve(ensure_desktop_name(pargs.handler))
    )

  elif pargs.operation == 'unset':
    mimeapps.remove_handler(mime_or_extension(pargs.mime))



def report_error(error):
  '''
  Print an error to STDERR if STDOUT is a terminal, otherwise show it as a
  desktop notification.
  '''
  if sys.stdout.isatty():
    print(error, file=sys.stderr)
  else:
    try:
      notify('{} error'.format(NAME.lower()), str(error))
    except (OSError, subprocess.CalledProcessError) as e:
      logging.warning('failed to send notification: {}'.format(e))
      print(error, file=sys.stderr)



def run(args=None):
  if not args:
    args = sys.argv[1:]
  logging.basicConfig(
    format='%(levelname)s: %(message)s',
    level=logging.DEBUG if ('--debug' in args) else logging.WARNING
  )
  try:
    main(args)
  except (KeyboardInterrupt, BrokenPipeError):
    pass
  except (MimedefError, OSError) as e:
    report_error(e)
    sys.exit(1)



if __name__ == '__main__':
  run()
