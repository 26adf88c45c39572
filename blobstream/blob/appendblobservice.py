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
    _get_content_md5,
    _int_or_none,
    _str_or_none,
)
from .._constants import (
    SERVICE_HOST_BASE,
    DEFAULT_PROTOCOL,
    _MAX_APPEND_BLOCK_SIZE,
)
from .._error import (
    _ERROR_CHECKSUM_NOT_POSSIBLE,
    _validate_not_none,
)
from .._http import HTTPRequest
from .._serialization import (
    _add_metadata_headers,
    _get_request_body_bytes_only,
)
from ..models import OperationContext
from ._baseblobservice import _BaseBlobService
from ._conditions import (
    ConditionalGate,
    _format_condition_headers,
)
from ._deserialization import (
    _parse_append_block,
    _parse_base_properties,
)
from ._serialization import _get_path
from ._upload_chunking import _AppendBlobCommitStrategy
from .models import _BlobTypes
from .writestream import _validate_chunk_size


class AppendBlobService(_BaseBlobService):
    '''
    An append blob is comprised of blocks and is optimized for append operations.
    When you modify an append blob, blocks are added to the end of the blob only,
    via the append_block operation. Updating or deleting of existing blocks is not
    supported. Unlike a block blob, an append blob does not expose its block IDs. 

    Each block in an append blob can be a different size, up to a maximum of 4 MB,
    and an append blob can include up to 50,000 blocks. The maximum size of an
    append blob is therefore slightly more than 195 GB (4 MB X 50,000 blocks).

    :ivar int MAX_APPEND_SIZE:
        The size of the blocks appended by open_write if no chunk_size is
        given. Defaults to 4MB.
    '''

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
             A shared access signature token appended to every request.
        :param bool is_emulated:
            Whether to use the emulator. Defaults to False.
        :param str protocol:
            The protocol to use for requests. Defaults to https.
        :param str endpoint_suffix:
            The host base component of the url, minus the account name.
        :param str custom_domain:
            The custom domain to use.
        :param requests.Session request_session:
            The session object to use for http requests.
        :param str connection_string:
            If specified, this will override all other parameters besides 
            request session.
        :param BufferPool buffer_pool:
            The pool write streams take their chunk buffers from.
        '''
        self.blob_type = _BlobTypes.AppendBlob
        super(AppendBlobService, self).__init__(
            account_name, sas_token, is_emulated, protocol, endpoint_suffix,
            custom_domain, request_session, connection_string, buffer_pool)

    def create_blob(self, container_name, blob_name, content_settings=None,
                    metadata=None, lease_id=None, if_modified_since=None,
                    if_unmodified_since=None, if_match=None, if_none_match=None,
                    timeout=None, operation_context=None):
        '''
        Creates a blob or overrides an existing blob. Use if_none_match=* to
        prevent overriding an existing blob. 

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of blob to create or update.
        :param ~blobstream.blob.models.ContentSettings content_settings:
            ContentSettings object used to set blob properties.
        :param metadata:
            Name-value pairs associated with the blob as metadata.
        :type metadata: dict(str, str)
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
        :return: ETag and last modified properties for the updated Append Blob
        :rtype: :class:`~blobstream.blob.models.ResourceProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        request = HTTPRequest()
        request.method = 'PUT'
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
        request.headers['x-ms-blob-type'] = _str_or_none(self.blob_type)
        _add_metadata_headers(metadata, request)
        if content_settings is not None:
            request.headers.update(content_settings._to_headers())

        response = self._perform_request(request, operation_context)
        return _parse_base_properties(response)

    def append_block(self, container_name, blob_name, block,
                     validate_content=False, maxsize_condition=None,
                     appendpos_condition=None,
                     lease_id=None, if_modified_since=None,
                     if_unmodified_since=None, if_match=None,
                     if_none_match=None, timeout=None, operation_context=None):
        '''
        Commits a new block of data to the end of an existing append blob.
        
        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param bytes block:
            Content of the block in bytes.
        :param bool validate_content:
            If true, calculates an MD5 hash of the block content. The storage 
            service checks the hash of the content that has arrived
            with the hash that was sent.
        :param int maxsize_condition:
            Optional conditional header. The max length in bytes permitted for
            the append blob. If the Append Block operation would cause the blob
            to exceed that limit or if the blob size is already greater than the
            value specified in this header, the request will fail with
            MaxBlobSizeConditionNotMet error (HTTP status code 412 - Precondition Failed).
        :param int appendpos_condition:
            Optional conditional header, used only for the Append Block operation.
            A number indicating the byte offset to compare. Append Block will
            succeed only if the append position is equal to this number. If it
            is not, the request will fail with the
            AppendPositionConditionNotMet error
            (HTTP status code 412 - Precondition Failed).
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
        :return:
            ETag, last modified, append offset, and committed block count 
            properties for the updated Append Blob
        :rtype: :class:`~blobstream.blob.models.AppendBlockProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        _validate_not_none('block', block)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {
            'comp': 'appendblock',
            'timeout': _int_or_none(timeout),
        }
        request.headers = _format_condition_headers(
            if_match=if_match,
            if_none_match=if_none_match,
            if_modified_since=if_modified_since,
            if_unmodified_since=if_unmodified_since,
            maxsize_condition=maxsize_condition,
            appendpos_condition=appendpos_condition,
            lease_id=lease_id,
        )
        request.body = _get_request_body_bytes_only('block', block)

        if validate_content:
            computed_md5 = _get_content_md5(request.body)
            request.headers['Content-MD5'] = _str_or_none(computed_md5)

        response = self._perform_request(request, operation_context)
        return _parse_append_block(response)

    def open_write(
        self, container_name, blob_name, create_new=False, chunk_size=None,
        store_content_md5=False, store_content_crc64=False, validate_content=False,
        access_condition=None, content_settings=None, metadata=None, timeout=None):
        '''
        Opens a stream for appending to the append blob. Every chunk is
        appended at the stream's position, which must match the blob's length;
        a concurrent append by another writer fails the stream.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of the blob.
        :param bool create_new:
            If true, the blob is created (or replaced with an empty one).
            Otherwise the blob must exist, and its properties are fetched to
            honor the access condition and to learn its length.
        :param int chunk_size:
            The size of each appended block, up to 4MB. Defaults to
            MAX_APPEND_SIZE.
        :param bool store_content_md5:
            If true, the MD5 of the content written is computed and stored as
            the blob's Content-MD5 at commit. Only possible for a new blob.
        :param bool store_content_crc64:
            If true, the CRC64 of the content written is computed. Only
            possible for a new blob.
        :param bool validate_content:
            If true, every block is sent with the MD5 of its content.
        :param ~blobstream.blob.models.AccessCondition access_condition:
            The conditions the blob must meet when the stream is opened. Its
            if_max_size_less_than_or_equal applies to every append. Its
            if_append_position_equal sets the position of the first append.
        :param ~blobstream.blob.models.ContentSettings content_settings:
            ContentSettings object used to set properties on a new blob.
        :param metadata:
            Name-value pairs set on a new blob.
        :type metadata: dict(str, str)
        :param int timeout:
            The timeout parameter is expressed in seconds, for each request.
        :return: A stream to write the blob's content to.
        :rtype: :class:`~blobstream.blob.writestream.BlobWriteStream`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        if chunk_size is None:
            chunk_size = self.MAX_APPEND_SIZE
        chunk_size = _validate_chunk_size(chunk_size, _MAX_APPEND_BLOCK_SIZE)

        operation_context = OperationContext()
        gate = ConditionalGate(access_condition)
        if create_new:
            self.create_blob(
                container_name,
                blob_name,
                content_settings=content_settings,
                metadata=metadata,
                timeout=timeout,
                operation_context=operation_context,
                **gate.kwargs()
            )
            position = 0
        else:
            if store_content_md5 or store_content_crc64:
                raise ValueError(_ERROR_CHECKSUM_NOT_POSSIBLE)

            blob = self.get_blob_properties(
                container_name,
                blob_name,
                timeout=timeout,
                operation_context=operation_context,
                **gate.kwargs()
            )
            position = blob.properties.content_length

        if gate.condition.if_append_position_equal is not None:
            position = gate.condition.if_append_position_equal

        return self._new_write_stream(
            container_name,
            blob_name,
            _BlobTypes.AppendBlob,
            _AppendBlobCommitStrategy,
            gate.for_stream(_BlobTypes.AppendBlob),
            chunk_size,
            operation_context,
            position=position,
            store_content_md5=store_content_md5,
            store_content_crc64=store_content_crc64,
            validate_content=validate_content,
            content_settings=content_settings,
            timeout=timeout,
        )
