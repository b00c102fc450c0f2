""" HMAC-SHA256 signatures for the two API surfaces. Both functions are
    pure: the caller supplies the timestamp, so the output is reproducible.
"""

import base64
import hashlib
import hmac


def _digest(secret, data):

    if isinstance(secret, str):
        secret = secret.encode('utf-8')

    mac = hmac.new(secret, data.encode('utf-8'), digestmod=hashlib.sha256)
    return mac.digest()


def websocket(api_key, api_secret, timestamp):
    """ Return the hex-encoded signature for the WebSocket auth handshake.
        The signed string is the *timestamp* immediately followed by the
        *api_key*; the timestamp is rendered exactly as it will appear in
        the auth frame.
    """

    data = '%s%s' % (_timestamp_string(timestamp), api_key)
    return _digest(api_secret, data).hex()


def rest(api_secret, action, timestamp, params):
    """ Return the base64-encoded signature for a private REST call. The
        signed string is the *action*, the integer *timestamp*, and the
        JSON-encoded *params*, concatenated in that order.
    """

    data = '%s%s%s' % (action, timestamp, params)
    digest = _digest(api_secret, data)
    return base64.b64encode(digest).decode('ascii')


def _timestamp_string(timestamp):
    """ Render a timestamp the way the server's JavaScript runtime prints a
        number, which is what it signs against: integral floats lose their
        trailing '.0'. Python's json module would keep it.
    """

    if isinstance(timestamp, float) and timestamp.is_integer():
        return str(int(timestamp))

    return str(timestamp)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
