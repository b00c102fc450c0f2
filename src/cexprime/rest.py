""" Stateless REST client for the private and public venue APIs. Every call
    is a single HTTP round trip; the parsed JSON body is returned, and any
    failure is raised as a :class:`cexprime.errors.RestError`.
"""

import logging
import time

import requests

from . import config
from . import signature
from .errors import RateLimitReached, RestError, WrongClientMode
from .protocol import wire


logger = logging.getLogger(__name__)


def _trailing_slash(url):
    if url.endswith('/'):
        return url
    return url + '/'


class RestClient:
    """ As with :class:`cexprime.websocket.WebsocketClient`, a client built
        without credentials is a public client, and may only issue public
        calls.
    """

    def __init__(self, api_key=None, api_secret=None, options=None, session=None):

        self.is_public_client = api_key is None and api_secret is None

        if self.is_public_client == False and (not api_key or not api_secret):
            raise ValueError('a private client requires both api_key and api_secret')

        self.api_key = api_key
        self.api_secret = api_secret

        self.options = config.options(options)
        self.options['api_url'] = _trailing_slash(self.options['api_url'])
        self.options['api_url_public'] = _trailing_slash(self.options['api_url_public'])

        if session is None:
            session = requests.Session()
        session.verify = self.options['reject_unauthorized']
        self.session = session


    def call_public(self, action, params=None):

        if params is None:
            params = dict()

        headers = {'Content-Type': 'application/json'}
        return self._request(action, params, headers, 'POST', True)


    def call_private(self, action, params=None, method='POST', on_behalf_of_user_id=None):
        """ Issue a signed call. The signature covers the *action*, the
            timestamp, and the compact JSON encoding of *params*; the same
            encoding is sent as the request body.

            Note that *method* only decides how *params* are encoded; the
            signature always covers the JSON form.
        """

        if self.is_public_client:
            raise WrongClientMode('Attempt to call private method on public client')

        if params is None:
            params = dict()

        timestamp = self._unix_time()
        signed = wire.dumps(params)

        headers = dict()
        headers['X-AGGR-KEY'] = self.api_key
        headers['X-AGGR-TIMESTAMP'] = str(timestamp)
        headers['X-AGGR-SIGNATURE'] = signature.rest(self.api_secret, action, timestamp, signed)
        headers['Content-Type'] = 'application/json'

        if on_behalf_of_user_id:
            headers['X-ON-BEHALF-OF-USER-ID'] = str(on_behalf_of_user_id)

        return self._request(action, params, headers, method)


    def _unix_time(self):
        return int(time.time())


    def _limit_reached(self):
        ### Placeholder: no call accounting yet, every call is allowed.
        return False


    def _request(self, action, body=None, headers=None, method='GET', public=False):

        if self._limit_reached():
            raise RateLimitReached('Internal API call rate limit reached. Limit: %s' % (self.options['api_limit']))

        if public:
            endpoint = self.options['api_url_public']
        else:
            endpoint = self.options['api_url']

        url = endpoint + action
        method = method.upper()

        kwargs = dict()
        kwargs['headers'] = headers or dict()
        kwargs['timeout'] = self.options['timeout']

        if method == 'GET':
            kwargs['params'] = body or dict()
        elif method == 'POST':
            kwargs['data'] = wire.dumps(body or dict()).encode('utf-8')

        logger.debug('Request: %s %s, %s', method, url, kwargs.get('data'))

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.debug('Error: %s %s, err: %s', method, url, e)
            raise

        try:
            parsed = response.json()
        except ValueError:
            parsed = response.text

        logger.debug('Response: %s %s, statusCode: %s, body: %s', method, url, response.status_code, parsed)

        return self._parse_response(response.status_code, parsed)


    def _parse_response(self, status_code, body):

        if status_code != 200:
            raise RestError(status_code, body)

        if isinstance(body, dict) and body.get('error'):
            raise RestError(status_code, body)

        return body


# end of class RestClient


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
