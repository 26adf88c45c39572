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

from ._constants import (
    SERVICE_HOST_BASE,
    DEFAULT_PROTOCOL,
    DEV_ACCOUNT_NAME,
    DEV_BLOB_HOST,
)
from ._error import (
    _ERROR_STORAGE_MISSING_INFO,
)

logger = logging.getLogger(__name__)

_EMULATOR_ENDPOINTS = {
    'blob': DEV_BLOB_HOST,
}

_CONNECTION_ENDPOINTS = {
    'blob': 'BlobEndpoint',
}


class _ServiceParameters(object):
    def __init__(self, service, account_name=None, sas_token=None,
                 is_emulated=False, protocol=DEFAULT_PROTOCOL, endpoint_suffix=SERVICE_HOST_BASE,
                 custom_domain=None):

        self.account_name = account_name
        self.sas_token = sas_token
        self.protocol = protocol or DEFAULT_PROTOCOL
        self.is_emulated = is_emulated

        if is_emulated:
            self.account_name = DEV_ACCOUNT_NAME
            self.protocol = 'http'

            # Only set the endpoints if the emulator is used
            self.primary_endpoint = '{}/{}'.format(_EMULATOR_ENDPOINTS[service], DEV_ACCOUNT_NAME)
        else:
            if custom_domain:
                parsed_url = custom_domain.split('://', 1)
                if len(parsed_url) == 2:
                    self.protocol = parsed_url[0]
                    custom_domain = parsed_url[1]
                self.primary_endpoint = custom_domain.rstrip('/')
            else:
                if not self.account_name:
                    raise ValueError(_ERROR_STORAGE_MISSING_INFO)

                self.primary_endpoint = '{}.{}.{}'.format(self.account_name, service, endpoint_suffix)

    @staticmethod
    def get_service_parameters(service, account_name=None, sas_token=None, is_emulated=None,
                               protocol=None, endpoint_suffix=None, custom_domain=None,
                               request_session=None, connection_string=None):
        if connection_string:
            params = _ServiceParameters._from_connection_string(connection_string, service)
        elif is_emulated:
            params = _ServiceParameters(service, is_emulated=True)
        elif account_name or custom_domain:
            params = _ServiceParameters(service,
                                        account_name=account_name,
                                        sas_token=sas_token,
                                        is_emulated=is_emulated,
                                        protocol=protocol,
                                        endpoint_suffix=endpoint_suffix or SERVICE_HOST_BASE,
                                        custom_domain=custom_domain)
        else:
            raise ValueError(_ERROR_STORAGE_MISSING_INFO)

        params.request_session = request_session
        return params

    @staticmethod
    def _from_connection_string(connection_string, service):
        # Split into key=value pairs removing empties, then split the pairs into a dict
        config = dict(s.split('=', 1) for s in connection_string.split(';') if s)

        if 'AccountKey' in config:
            # shared key signing is left to the caller's session
            logger.warning('AccountKey in the connection string is ignored; use a SAS token.')

        # Authentication
        account_name = config.get('AccountName')
        sas_token = config.get('SharedAccessSignature')

        # Emulator
        is_emulated = config.get('UseDevelopmentStorage', '').lower() == 'true'

        # Basic URL Configuration
        protocol = config.get('DefaultEndpointsProtocol')
        endpoint_suffix = config.get('EndpointSuffix')

        # Custom URLs
        endpoint = config.get(_CONNECTION_ENDPOINTS[service])

        return _ServiceParameters(service,
                                  account_name=account_name,
                                  sas_token=sas_token,
                                  is_emulated=is_emulated,
                                  protocol=protocol,
                                  endpoint_suffix=endpoint_suffix or SERVICE_HOST_BASE,
                                  custom_domain=endpoint)
