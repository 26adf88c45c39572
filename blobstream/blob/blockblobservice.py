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
from azure.common import AzureHttpError

from .._common_conversion import (
    _encode_base64,
    _get_content_md5,
    _int_or_none,
    _str_or_none,
)
from .._constants import (
    SERVICE_HOST_BASE,
    DEFAULT_PROTOCOL,
    _MAX_BLOCK_SIZE,
)
from .._error import (
    NotFoundError,
    _validate_in_range,
    _validate_not_none,
)
from .._http import HTTPRequest
from .._serialization import (
    _add_metadata_headers,
    _get_request_body,
    _get_request_body_bytes_only,
)
from ..models import OperationContext
from ._baseblobservice import _BaseBlobService
from ._conditions import (
    ConditionalGate,
    _format_condition_headers,
)
from ._deserialization import (
    _convert_xml_to_block_list,
    _parse_base_properties,
)
from ._serialization import (
    _convert_block_list_to_xml,
    _get_path,
)
from ._upload_chunking import _BlockBlobCommitStrategy
from .models import _BlobTypes
from .writestream import _validate_chunk_size


class BlockBlobService(_BaseBlobService):
    '''
    Block blobs let you upload large blobs efficiently. Block blobs are comprised
    of blocks, each of which is identified by a block ID. You create or modify a
    block blob by writing a set of blocks and committing them by their block IDs.
    Each block can be a different size, up to a maximum of 100 MB, and a block blob
    can include up to 50,000 blocks.

    :ivar int MAX_BLOCK_SIZE:
        The size of the blocks put by open_write if no chunk_size is given.
        Defaults to 4MB.
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
        self.blob_type = _BlobTypes.BlockBlob
        super(BlockBlobService, self).__init__(
            account_name, sas_token, is_emulated, protocol, endpoint_suffix,
            custom_domain, request_session, connection_string, buffer_pool)

    def put_block(self, container_name, blob_name, block, block_id,
                  validate_content=False, lease_id=None, timeout=None,
                  operation_context=None):
        '''
        Creates a new block to be committed as part of a blob.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of blob.
        :param bytes block:
            Content of the block.
        :param str block_id:
            A valid Base64 string value that identifies the
            block. Prior to encoding, the string must be less than or equal to 64 
            bytes in size. For a given blob, the length of the value specified for 
            the block_id parameter must be the same size for each block. Note that 
            the Base64 string must be URL-encoded.
        :param bool validate_content:
            If true, calculates an MD5 hash of the block content. The storage 
            service checks the hash of the content that has arrived
            with the hash that was sent.
        :param str lease_id:
            Required if the blob has an active lease.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :param OperationContext operation_context:
            Records the request when given.
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        _validate_not_none('block', block)
        _validate_not_none('block_id', block_id)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {
            'comp': 'block',
            'blockid': _encode_base64(_str_or_none(block_id)),
            'timeout': _int_or_none(timeout),
        }
        request.headers = {
            'x-ms-lease-id': _str_or_none(lease_id)
        }
        request.body = _get_request_body_bytes_only('block', block)

        if validate_content:
            computed_md5 = _get_content_md5(request.body)
            request.headers['Content-MD5'] = _str_or_none(computed_md5)

        self._perform_request(request, operation_context)

    def put_block_list(
        self, container_name, blob_name, block_list, content_settings=None,
        metadata=None, validate_content=False, lease_id=None, if_modified_since=None,
        if_unmodified_since=None, if_match=None, if_none_match=None,
        timeout=None, operation_context=None):
        '''
        Writes a blob by specifying the list of block IDs that make up the blob.
        In order to be written as part of a blob, a block must have been
        successfully written to the server in a prior Put Block operation.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param block_list:
            A list of :class:`~blobstream.blob.models.BlobBlock` containing the
            block ids and block state.
        :type block_list: list(:class:`~blobstream.blob.models.BlobBlock`)
        :param ~blobstream.blob.models.ContentSettings content_settings:
            ContentSettings object used to set properties on the blob. Its
            content_md5 is stored as the MD5 of the whole blob.
        :param metadata:
            Name-value pairs associated with the blob as metadata.
        :type metadata: dict(str, str)
        :param bool validate_content:
            If true, calculates an MD5 hash of the block list content. The storage 
            service checks the hash of the block list content that has arrived
            with the hash that was sent.
        :param str lease_id:
            Required if the blob has an active lease.
        :param datetime if_modified_since:
            Perform the operation only if the blob was modified since this time.
        :param datetime if_unmodified_since:
            Perform the operation only if the blob was not modified since this time.
        :param str if_match:
            An ETag value, or the wildcard character (*).
        :param str if_none_match:
            An ETag value, or the wildcard character (*). Specify the wildcard
            character (*) to perform the operation only if the blob does not exist.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :param OperationContext operation_context:
            Records the request when given.
        :return: ETag and last modified properties for the updated Block Blob
        :rtype: :class:`~blobstream.blob.models.ResourceProperties`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        _validate_not_none('block_list', block_list)
        request = HTTPRequest()
        request.method = 'PUT'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {
            'comp': 'blocklist',
            'timeout': _int_or_none(timeout),
        }
        request.headers = _format_condition_headers(
            if_match=if_match,
            if_none_match=if_none_match,
            if_modified_since=if_modified_since,
            if_unmodified_since=if_unmodified_since,
            lease_id=lease_id,
        )
        _add_metadata_headers(metadata, request)
        if content_settings is not None:
            request.headers.update(content_settings._to_headers())
        request.body = _get_request_body(
            _convert_block_list_to_xml(block_list))

        if validate_content:
            computed_md5 = _get_content_md5(request.body)
            request.headers['Content-MD5'] = _str_or_none(computed_md5)

        response = self._perform_request(request, operation_context)
        return _parse_base_properties(response)

    def get_block_list(self, container_name, blob_name, block_list_type=None,
                       lease_id=None, timeout=None):
        '''
        Retrieves the list of blocks that have been uploaded as part of a
        block blob. There are two block lists maintained for a blob:
            Committed Block List:
                The list of blocks that have been successfully committed to a
                given blob with Put Block List.
            Uncommitted Block List:
                The list of blocks that have been uploaded for a blob using 
                Put Block, but that have not yet been committed. These blocks 
                are stored in Azure in association with a blob, but do not yet 
                form part of the blob.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of existing blob.
        :param str block_list_type:
            Specifies whether to return the list of committed blocks, the list
            of uncommitted blocks, or both lists together. Valid values are:
            committed, uncommitted, or all.
        :param str lease_id:
            Required if the blob has an active lease.
        :param int timeout:
            The timeout parameter is expressed in seconds.
        :return: list committed and/or uncommitted blocks for Block Blob
        :rtype: :class:`~blobstream.blob.models.BlobBlockList`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        request = HTTPRequest()
        request.method = 'GET'
        request.host = self._get_host()
        request.path = _get_path(container_name, blob_name)
        request.query = {
            'comp': 'blocklist',
            'blocklisttype': _str_or_none(block_list_type),
            'timeout': _int_or_none(timeout),
        }
        request.headers = {'x-ms-lease-id': _str_or_none(lease_id)}

        response = self._perform_request(request)
        return _convert_xml_to_block_list(response)

    def open_write(
        self, container_name, blob_name, chunk_size=None, max_connections=1,
        store_content_md5=False, store_content_crc64=False, validate_content=False,
        access_condition=None, content_settings=None, metadata=None, timeout=None):
        '''
        Opens a stream for writing to the block blob. The blob is replaced when
        the stream is committed or closed; nothing is visible before that.

        If access_condition is given, the blob's properties are fetched first so
        that a failing condition stops the open before any block is sent.
        If-None-Match: * fails here with ConflictError when the blob exists,
        and again at commit if the blob was created in the meantime.

        :param str container_name:
            Name of existing container.
        :param str blob_name:
            Name of blob to create or replace.
        :param int chunk_size:
            The size of each block, between 1 byte and 100MB. Defaults to
            MAX_BLOCK_SIZE.
        :param int max_connections:
            Maximum number of blocks put in parallel.
        :param bool store_content_md5:
            If true, the MD5 of the whole blob is computed while writing and
            stored as its Content-MD5 at commit.
        :param bool store_content_crc64:
            If true, the CRC64 of the whole blob is computed while writing and
            exposed as the stream's checksum after commit.
        :param bool validate_content:
            If true, every block is sent with the MD5 of its content.
        :param ~blobstream.blob.models.AccessCondition access_condition:
            The conditions the blob must meet.
        :param ~blobstream.blob.models.ContentSettings content_settings:
            ContentSettings object used to set blob properties at commit.
        :param metadata:
            Name-value pairs set on the blob at commit.
        :type metadata: dict(str, str)
        :param int timeout:
            The timeout parameter is expressed in seconds, for each request.
        :return: A stream to write the blob's content to.
        :rtype: :class:`~blobstream.blob.writestream.BlobWriteStream`
        '''
        _validate_not_none('container_name', container_name)
        _validate_not_none('blob_name', blob_name)
        if chunk_size is None:
            chunk_size = self.MAX_BLOCK_SIZE
        chunk_size = _validate_chunk_size(chunk_size, _MAX_BLOCK_SIZE)
        _validate_in_range('max_connections', max_connections, 1, float('inf'))

        operation_context = OperationContext()
        gate = ConditionalGate(access_condition)
        if gate.is_conditional:
            exists = True
            etag = None
            try:
                blob = self.get_blob_properties(
                    container_name,
                    blob_name,
                    timeout=timeout,
                    operation_context=operation_context,
                    **gate.existence_check_kwargs()
                )
                etag = blob.properties.etag
            except NotFoundError:
                if gate.condition.if_match is not None:
                    raise
                exists = False
            except AzureHttpError as ex:
                # a write-only SAS cannot read properties
                if ex.status_code != 403:
                    raise
                exists = None

            gate.validate(last_known_etag=etag, exists=exists)

        return self._new_write_stream(
            container_name,
            blob_name,
            _BlobTypes.BlockBlob,
            _BlockBlobCommitStrategy,
            gate.for_stream(_BlobTypes.BlockBlob),
            chunk_size,
            operation_context,
            store_content_md5=store_content_md5,
            store_content_crc64=store_content_crc64,
            validate_content=validate_content,
            content_settings=content_settings,
            metadata=metadata,
            max_connections=max_connections,
            timeout=timeout,
        )
