#!/usr/bin/env python3

from setuptools import setup
import time

setup(
  name='''Mimedef''',
  version=time.strftime('%Y.%m.%d.%H.%M.%S', time.gmtime(1792324800)),
  description='''Set default applications by MIME-type with alias canonicalization.''',
  py_modules=['''Mimedef'''],
  install_requires=['''pyxdg'''],
  extras_require={'test': ['''pytest''']},
  entry_points={'console_scripts': ['''mimedef = Mimedef:run''']},
)
