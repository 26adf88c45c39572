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
import uuid
from datetime import datetime
from urllib.parse import quote as url_quote

from ._constants import (
    X_MS_VERSION,
    _USER_AGENT_STRING,
)
from ._error import (
    _ERROR_VALUE_SHOULD_BE_BYTES,
)


def _get_request_body_bytes_only(param_name, param_value):
    '''Validates the request body passed in and converts it to bytes
    if our policy allows it.'''
    if param_value is None:
        return b''

    if isinstance(param_value, bytes):
        return param_value

    if isinstance(param_value, (bytearray, memoryview)):
        return bytes(param_value)

    raise TypeError(_ERROR_VALUE_SHOULD_BE_BYTES.format(param_name))


def _get_request_body(request_body):
    '''Converts an object into a request body.  If it's None
    we'll return an empty string, if it's one of our objects it'll
    convert it to XML and return it.  Otherwise we just use the object
    directly'''
    if request_body is None:
        return b''

    if isinstance(request_body, bytes):
        return request_body

    if isinstance(request_body, str):
        return request_body.encode('utf-8')

    return str(request_body).encode('utf-8')


def _update_request(request):
    # Drop unset optional parameters
    request.headers = {k: v for k, v in request.headers.items() if v is not None}
    request.query = {k: v for k, v in request.query.items() if v is not None}

    # Verify body
    if request.body:
        request.body = _get_request_body_bytes_only('request.body', request.body)
        length = len(request.body)

        # only scenario where this case is plausible is if the stream object is not seekable.
        if length == 0:
            raise ValueError(_ERROR_VALUE_SHOULD_BE_BYTES.format('request.body'))
    else:
        length = 0

    # if it is PUT, POST, MERGE, DELETE, need to add content-length to header.
    if request.method in ['PUT', 'POST', 'MERGE', 'DELETE']:
        request.headers['Content-Length'] = str(length)

    # append additional headers based on the service
    request.headers['x-ms-version'] = X_MS_VERSION
    request.headers['User-Agent'] = _USER_AGENT_STRING
    request.headers['x-ms-client-request-id'] = str(uuid.uuid1())

    # If the host has a path component (ex local storage), move it
    path = request.host.split('/', 1)
    if len(path) == 2:
        request.host = path[0]
        request.path = '/{}{}'.format(path[1], request.path)

    # Encode and optionally add local storage prefix to path
    request.path = url_quote(request.path, '/()$=\',~')


def _add_metadata_headers(metadata, request):
    if metadata:
        if not request.headers:
            request.headers = {}
        for name, value in metadata.items():
            request.headers['x-ms-meta-' + name] = value


def _add_date_header(request):
    current_time = datetime.utcnow().strftime('%a, %d %b %Y %H:%M:%S GMT')
    request.headers['x-ms-date'] = current_time


def _sas_query(sas_token):
    '''Splits a SAS token into query parameters to append to a request.'''
    if not sas_token:
        return {}

    query = {}
    for pair in sas_token.lstrip('?').split('&'):
        if not pair:
            continue
        name, _, value = pair.partition('=')
        query[name] = value
    return query
