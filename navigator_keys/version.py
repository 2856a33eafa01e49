"""Navigator Keys Meta information.
   Navigator Keys manages rotation of master, refresh and site encryption keys.
"""
__title__ = 'navigator_keys'
__description__ = (
   'Navigator Keys manages rotation and id allocation of '
   'master, refresh and per-site encryption keys.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/navigator-keys'
