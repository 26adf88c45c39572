#-------------------------------------------------------------------------
# Copyright (c) Microsoft.  All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#--------------------------------------------------------------------------
import logging

import requests
from azure.common import AzureException

from ._constants import (
    _SOCKET_TIMEOUT,
)
from ._http import HTTPError
from ._http.httpclient import _HTTPClient
from ._serialization import (
    _update_request,
    _add_date_header,
    _sas_query,
)
from ._error import (
    _storage_error_handler,
)

logger = logging.getLogger(__name__)


class StorageClient(object):

    '''
    This is the base class for service objects. Service objects are used to do 
    all requests to Storage. This class cannot be instantiated directly.

    :ivar str account_name:
        The storage account name. This is used to construct the storage 
        endpoint. It is required unless a connection string is given, or if a 
        custom domain is used.
    :ivar str sas_token:
        A shared access signature token appended to every request. If it is not
        specified, anonymous access will be used.
    :ivar str primary_endpoint:
        The endpoint to send storage requests to.
    :ivar function(request) request_callback:
        A function called immediately before each request is sent. This function 
        takes as a parameter the request object and returns nothing. It may be 
        used to added custom headers or log request data.
    :ivar function() response_callback:
        A function called immediately after each response is received. This 
        function takes as a parameter the response object and returns nothing. 
        It may be used to log response data.
    '''

    def __init__(self, connection_params):
        '''
        :param obj connection_params: The parameters to use to construct the client.
        '''
        self.account_name = connection_params.account_name
        self.sas_token = connection_params.sas_token
        self.is_emulated = connection_params.is_emulated

        self.primary_endpoint = connection_params.primary_endpoint

        protocol = connection_params.protocol
        request_session = connection_params.request_session or requests.Session()
        self._httpclient = _HTTPClient(
            protocol=protocol,
            session=request_session,
            timeout=_SOCKET_TIMEOUT,
        )

        self.request_callback = None
        self.response_callback = None

    @property
    def protocol(self):
        return self._httpclient.protocol

    @protocol.setter
    def protocol(self, value):
        self._httpclient.protocol = value

    @property
    def request_session(self):
        return self._httpclient.session

    @request_session.setter
    def request_session(self, value):
        self._httpclient.session = value

    def set_proxy(self, host, port, user=None, password=None):
        '''
        Sets the proxy server host and port for the HTTP CONNECT Tunnelling.

        :param str host: Address of the proxy. Ex: '192.168.0.100'
        :param int port: Port of the proxy. Ex: 6000
        :param str user: User for proxy authorization.
        :param str password: Password for proxy authorization.
        '''
        self._httpclient.set_proxy(host, port, user, password)

    def _get_host(self):
        return self.primary_endpoint

    def _perform_request(self, request, operation_context=None):
        '''
        Sends the request and return response. Catches HTTPError and hands it
        to error handler. Exactly one request is sent; nothing is retried.

        :param HTTPRequest request:
            The request to send.
        :param OperationContext operation_context:
            When given, records the request before it is sent.
        '''
        _update_request(request)
        for name, value in _sas_query(self.sas_token).items():
            request.query.setdefault(name, value)

        if self.request_callback:
            self.request_callback(request)

        # Add date after the callback so the date doesn't get too old
        _add_date_header(request)

        client_request_id_prefix = 'Client-Request-ID={}'.format(
            request.headers['x-ms-client-request-id'])
        logger.info('%s Outgoing request: Method=%s, Path=%s, Query=%s.',
                    client_request_id_prefix,
                    request.method,
                    request.path,
                    {k: v for k, v in request.query.items() if k != 'sig'})

        if operation_context is not None:
            operation_context._record_request(request.headers['x-ms-client-request-id'])

        try:
            response = self._httpclient.perform_request(request)
        except AzureException:
            raise
        except Exception as ex:
            logger.info('%s Request failed with %s: %s.',
                        client_request_id_prefix, ex.__class__.__name__, ex)
            raise AzureException('{}: {}'.format(ex.__class__.__name__, ex)) from ex

        logger.info('%s Receiving Response: Server-Timestamp=%s, Server-Request-ID=%s, '
                    'HTTP Status Code=%s, Message=%s.',
                    client_request_id_prefix,
                    response.headers.get('date'),
                    response.headers.get('x-ms-request-id'),
                    response.status,
                    response.message)

        if self.response_callback:
            self.response_callback(response)

        # Parse and wrap HTTP errors in AzureHttpError which inherits from AzureException
        if response.status >= 300:
            logger.info('%s Operation failed: HTTP Status Code=%s, Error Code=%s.',
                        client_request_id_prefix,
                        response.status,
                        response.headers.get('x-ms-error-code'))
            _storage_error_handler(HTTPError(response.status, response.message,
                                             response.headers, response.body))

        return response
