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
from .._common_conversion import (
    _int_or_none,
)
from .._connection import _ServiceParameters
from .._constants import (
    SERVICE_HOST_BASE,
    DEFAULT_PROTOCOL,
    _DEFAULT_WRITE_CHUNK_SIZE,
)
from .._error import (
    NotFoundError,
    _validate_not_none,
)
from .._http import HTTPRequest
from ..storageclient import StorageClient
from ._buffer import BufferPool
from ._conditions import _format_condition_headers
from ._deserialization import (
    _parse_base_properties,
    _parse_blob,
)
from ._serialization import (
    _get_path,
    _validate_and_format_range_headers,
)
from .models import BlobHandle
from .writestream import BlobWriteStream


class _BaseBlobService(StorageClient):

    '''
    This is the main class managing Blob resources.

    The Blob service stores text and binary data as blobs in the cloud.
    The Blob service offers the following three resources: the storage account,
    containers, and blobs. Within your storage account, containers provide a
    way to organize sets of blobs. For more information please see:
    https://msdn.microsoft.com/en-us/library/azure/ee691964.aspx

    :ivar int MAX_BLOCK_SIZE:
        The default chunk size of block blob write streams.
    :ivar int MAX_PAGE_SIZE:
        The default chunk size of page blob write streams.
    :ivar int MAX_APPEND_SIZE:
        The default chunk size of append blob write streams.
    :ivar BufferPool buffer_pool:
        The pool the write streams of this service take their chunk buffers
        from.
    '''

    MAX_BLOCK_SIZE = _DEFAULT_WRITE_CHUNK_SIZE
    MAX_PAGE_SIZE = _DEFAULT_WRITE_CHUNK_SIZE
    MAX_APPEND_SIZE = _DEFAULT_WRITE_CHUNK_SIZE

    def __init__(self, account_name=None, sas_token=None, is_emulated=False,
                 protocol=DEFAULT_PROTOCOL, endpoint_suffix=SERVICE_HOST_BASE,
                 custom_domain=None, request_session=None, connection_string=None,
                 buffer_pool=None):
        '''
        :param str account_name:
            The storage account name. This is used to construct the storage
            endpoint. It is required unless a connection string is given, or if
            a custom domain is used.
        :param str sas_token:
             A shared access signature token appended to every request. If it
             is not specified, anonymous access will be used.
        :param bool is_emulated:
            Whether to use the emulator. Defaults to False. If specified, will 
            override all other parameters besides connection string and request 
            session.
        :param str protocol:
            The protocol to use for requests. Defaults to https.
        :param str endpoint_suffix:
            The host base component of the url, minus the account name. Defaults 
            to Azure (core.windows.net). Override this to use the China cloud 
            (core.chinacloudapi.cn).
        :param str custom_domain:
            The custom domain to use. This can be set in the Azure Portal. For 
            example, 'www.mydomain.com'.
        :param requests.Session request_session:
            The session object to use for http requests.
        :param str connection_string:
            If specified, this will override all other parameters besides 
            request session. See
            http://azure.microsoft.com/en-us/documentation/articles/storage-configure-connection-string/
            for the connection string format.
        :param BufferPool buffer_pool:
            The pool write streams take their chunk buffers from. A new pool is
            created if not given.
        '''
        service_params = _ServiceParameters.get_service_parameters(
            'blob',
            account_name=account_name,
            sas_token=sas_token,
            is_emulated=is_emulated,
            protocol=protocol,
            endpoint_suffix=endpoint_suffix,
            custom_domain=custom_domain,
            request_session=request_session,
            connection_string=connection_string)

        super(_BaseBlobService, self).__init__(service_params)
        self.buffer_pool = buffer_pool or BufferPool()

    def make_blob_url(self, container_name, blob_name, protocol=None, sas_token=None):
        '''
        Creates the url to access a blob.

        :param str container_name:
            Name of container.
        :param str blob_name:
            Name of blob.
        :param str protocol:
            Protocol to use: 'http' or 'https'. If not specified, uses the
            protocol specified when the service was initialized.
        :param str sas_token:
            Shared access signature token to append to the url.
        :return: blob access URL.
        :rtype: str
        '''
        url = '{}://{}/{}/{}'.format(
            protocol or self.protocol,
            self.primary_endpoint,
            container_name,
            blob_name,
        )

        sas_token = sas_token or self.sas_token
        if sas_token:
            url += '?' + sas_token.lstrip('?')

        return url

    def get_blob_properties(
        self, container_name, blob_name, lease_id=None,
        if_modified_since=None, if_unmodified_since=None, if_match=None,
        if_none_match=None, timeout=None, operation_context=None):
        '''
        Returns all user-defined metadata, standard HTTP properties, and
        system properties for the blob. It does not return the content of the blob.
        Returns :class:`.Blob` with :class:`.BlobProperties` and a metadata dict.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param str lease_id:
            Required if the blob has an active lease.
        :param datetime if_modified_since:
            A DateTime value. Azure expects the date value passed in to be UTC.
            If timezone is included, any non-UTC datetimes will be converted to UTC.
            If a date is passed in without timezone info, it is assumed to be UTC. 
            Specify this header to perform the operation only
            if the resource has been modified since the specified time.
        :param datetime if_unmodified_since:
            A DateTime value. Azure expects the date value passed in to be UTC.
            If timezone is included, any non-UTC datetimes will be converted to UTC.
            If a date is passed in without timezone info, it is assumed to be UTC.
            Specify this header to perform the operation only if
            the resource has not been modified since the specified date/time.
        :param str if_match:
            An ETag value, or the wildcard character (*). Specify this header to perform
            the operation only if the resource's ETag matches the value specified.
        :param str if_none_match:
            An ETag value, or the wildcard character (*). Specify this header
            to perform the operation only if the resource's ETag does not match
            the value specified.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :param OperationContext operation_context:
            Records the request when given.
        :return: a blob object including properties and metadata.
        :rtype: :class:`~blobstream.blob.models.Blob`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        request = HTTPRequest()
        request.method = 'HEAD'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {'timeout': _int_or_none(timeout)}
        request.headers = _format_condition_headers(
            if_match=if_match,
            if_none_match=if_none_match,
            if_modified_since=if_modified_since,
            if_unmodified_since=if_unmodified_since,
            lease_id=lease_id,
        )

        response = self._perform_request(request, operation_context)
        return _parse_blob(blob_name, response)

    def set_blob_properties(
        self, container_name, blob_name, content_settings=None, lease_id=None,
        if_modified_since=None, if_unmodified_since=None, if_match=None,
        if_none_match=None, timeout=None, operation_context=None):
        '''
        Sets system properties on the blob. If one property is set for the
        content_settings, all properties will be overriden.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param ~blobstream.blob.models.ContentSettings content_settings:
            ContentSettings object used to set blob properties.
        :param str lease_id:
            Required if the blob has an active lease.
        :param datetime if_modified_since:
            Perform the operation only if the blob was modified since this time.
        :param datetime if_unmodified_since:
            Perform the operation only if the blob was not modified since this time.
        :param str if_match:
            An ETag value, or the wildcard character (*).
        :param str if_none_match:
            An ETag value, or the wildcard character (*).
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :param OperationContext operation_context:
            Records the request when given.
        :return: ETag and last modified properties for the updated Blob
        :rtype: :class:`~blobstream.blob.models.ResourceProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {
            'comp': 'properties',
            'timeout': _int_or_none(timeout),
        }
        request.headers = _format_condition_headers(
            if_match=if_match,
            if_none_match=if_none_match,
            if_modified_since=if_modified_since,
            if_unmodified_since=if_unmodified_since,
            lease_id=lease_id,
        )
        if content_settings is not None:
            request.headers.update(content_settings._to_headers())

        response = self._perform_request(request, operation_context)
        return _parse_base_properties(response)

    def get_blob_to_bytes(
        self, container_name, blob_name, start_range=None, end_range=None,
        lease_id=None, if_modified_since=None, if_unmodified_since=None,
        if_match=None, if_none_match=None, timeout=None):
        '''
        Downloads a blob as an array of bytes, with automatic chunking and
        progress notifications. Returns an instance of :class:`.Blob` with
        properties, metadata, and content.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param int start_range:
            Start of byte range to use for downloading a section of the blob.
            If no end_range is given, all bytes after the start_range will be
            downloaded.
        :param int end_range:
            End of byte range to use for downloading a section of the blob,
            inclusive.
        :param str lease_id:
            Required if the blob has an active lease.
        :param datetime if_modified_since:
            Perform the operation only if the blob was modified since this time.
        :param datetime if_unmodified_since:
            Perform the operation only if the blob was not modified since this time.
        :param str if_match:
            An ETag value, or the wildcard character (*).
        :param str if_none_match:
            An ETag value, or the wildcard character (*).
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :return: A Blob with properties and metadata. The content is in bytes.
        :rtype: :class:`~blobstream.blob.models.Blob`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        request = HTTPRequest()
        request.method = 'GET'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {'timeout': _int_or_none(timeout)}
        request.headers = _format_condition_headers(
            if_match=if_match,
            if_none_match=if_none_match,
            if_modified_since=if_modified_since,
            if_unmodified_since=if_unmodified_since,
            lease_id=lease_id,
        )
        if start_range is not None:
            _validate_and_format_range_headers(request, start_range, end_range)

        response = self._perform_request(request)
        return _parse_blob(blob_name, response)

    def exists(self, container_name, blob_name, timeout=None):
        '''
        Returns a boolean indicating whether the blob exists.

        :param str container_name:
            Name of a container.
        :param str blob_name:
            Name of a blob.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :return: A boolean indicating whether the blob exists.
        :rtype: bool
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        try:
            self.get_blob_properties(container_name, blob_name, timeout=timeout)
            return True
        except NotFoundError:
            return False

    def _new_write_stream(self, container_name, blob_name, blob_type, strategy_class,
                          gate, chunk_size, operation_context, position=0, length=None,
                          store_content_md5=False, store_content_crc64=False,
                          validate_content=False, content_settings=None, metadata=None,
                          max_connections=1, timeout=None):
        strategy = strategy_class(
            self,
            container_name,
            blob_name,
            gate,
            validate_content=validate_content,
            timeout=timeout,
            operation_context=operation_context,
            content_settings=content_settings,
            metadata=metadata,
            max_connections=max_connections,
        )
        return BlobWriteStream(
            BlobHandle(container_name, blob_name, blob_type),
            strategy,
            chunk_size,
            position=position,
            length=length,
            store_content_md5=store_content_md5,
            store_content_crc64=store_content_crc64,
            buffer_pool=self.buffer_pool,
            operation_context=operation_context,
        )
