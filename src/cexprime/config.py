""" Option handling shared by the REST and WebSocket clients. Options are
    resolved in three layers: the built-in defaults below, then any
    CEXPRIME_* environment variables, then the explicit overrides handed
    to the client constructor.
"""

import os


defaults = dict()
defaults['api_url'] = 'https://liquidity.prime.cex.io/api/rest/'
defaults['api_url_public'] = 'https://liquidity.prime.cex.io/api/rest-public/'
defaults['ws_url'] = 'wss://liquidity.prime.cex.io/api/ws'
defaults['ws_url_public'] = 'wss://liquidity.prime.cex.io/api/ws-public'
defaults['ws_reply_timeout'] = 30.0
defaults['timeout'] = 30.0
defaults['api_limit'] = 300
defaults['reject_unauthorized'] = True
defaults['keepalive'] = None

# Environment variables are typed according to these converters; anything
# not listed here is taken as a plain string.

_converters = dict()
_converters['ws_reply_timeout'] = float
_converters['timeout'] = float
_converters['api_limit'] = int
_converters['keepalive'] = float

_true = set(('1', 'true', 'yes', 'on'))
_false = set(('0', 'false', 'no', 'off'))


def environment_name(key):
    return 'CEXPRIME_' + key.upper()


def _boolean(value):

    lowered = value.strip().lower()

    if lowered in _true:
        return True
    if lowered in _false:
        return False

    raise ValueError('not a boolean value: ' + repr(value))


def _from_environment(key, value):

    if isinstance(defaults[key], bool):
        return _boolean(value)

    try:
        converter = _converters[key]
    except KeyError:
        return value

    if value.strip().lower() in ('', 'none'):
        return None

    return converter(value)


def options(overrides=None):
    """ Return a new dictionary of fully resolved options. Unknown keys in
        *overrides* raise a KeyError; a misspelled option silently falling
        back to its default is a hard bug to find.
    """

    resolved = dict(defaults)

    for key in defaults.keys():
        name = environment_name(key)
        try:
            value = os.environ[name]
        except KeyError:
            continue

        try:
            resolved[key] = _from_environment(key, value)
        except ValueError:
            raise ValueError('invalid value for %s: %s' % (name, repr(value)))

    if overrides:
        for key,value in overrides.items():
            if key not in defaults:
                raise KeyError('unknown option: ' + str(key))
            resolved[key] = value

    return resolved


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
